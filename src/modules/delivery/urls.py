"""Delivery URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.delivery.views import (
    AdminRegionListView,
    AdminSubregionListView,
    AssignDeliveriesView,
    DeliveryDashboardView,
    DeliveryHistoryView,
    DeliveryOrdersView,
    DeliveryRoutesView,
    OptimizeRoutesView,
    PublicRegionListView,
)

urlpatterns = [
    path("delivery-regions", PublicRegionListView.as_view(), name="delivery-regions"),
    path(
        "admin/delivery-regions",
        AdminRegionListView.as_view(),
        name="admin-delivery-regions",
    ),
    path(
        "admin/delivery-regions/<uuid:region_id>/subregions",
        AdminSubregionListView.as_view(),
        name="admin-delivery-subregions",
    ),
    path(
        "admin/assign-deliveries",
        AssignDeliveriesView.as_view(),
        name="admin-assign-deliveries",
    ),
    path("delivery/dashboard", DeliveryDashboardView.as_view(), name="delivery-dashboard"),
    path("delivery/history", DeliveryHistoryView.as_view(), name="delivery-history"),
    path("delivery/orders", DeliveryOrdersView.as_view(), name="delivery-orders"),
    path("delivery/routes", DeliveryRoutesView.as_view(), name="delivery-routes"),
    path(
        "admin/optimize-routes",
        OptimizeRoutesView.as_view(),
        name="admin-optimize-routes",
    ),
]
