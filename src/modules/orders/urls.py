"""Order URL configuration."""

from __future__ import annotations

from django.urls import path
from rest_framework.routers import SimpleRouter

from modules.orders.views import AdminStatsView, OrderViewSet

router = SimpleRouter(trailing_slash=False)
router.register("orders", OrderViewSet, basename="order")

urlpatterns = [
    path("admin/stats", AdminStatsView.as_view(), name="admin-stats"),
    *router.urls,
]
