"""Address URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.customers.views import AddressListView

urlpatterns = [
    path("addresses", AddressListView.as_view(), name="addresses"),
]
