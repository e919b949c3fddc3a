"""Catalog URL configuration."""

from __future__ import annotations

from django.urls import path
from rest_framework.routers import SimpleRouter

from modules.catalog.views import CategoryListView, ProductViewSet, UploadView

router = SimpleRouter(trailing_slash=False)
router.register("products", ProductViewSet, basename="product")

urlpatterns = [
    path("categories", CategoryListView.as_view(), name="categories"),
    path("upload", UploadView.as_view(), name="upload"),
    *router.urls,
]
