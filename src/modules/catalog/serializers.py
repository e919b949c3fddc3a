"""Catalog DRF serializers (output).

Input is validated by the pydantic DTOs in ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.catalog.models import Category, Product
from modules.core.serializers import CamelCaseModelSerializer


class CategorySummarySerializer(CamelCaseModelSerializer):
    class Meta:
        model = Category
        fields = ["id", "name", "slug"]
        read_only_fields = fields


class ProductSerializer(CamelCaseModelSerializer):
    """Read serializer for products with their category summary."""

    category = CategorySummarySerializer(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "slug",
            "description",
            "price",
            "category_id",
            "category",
            "inventory",
            "weight",
            "unit",
            "images",
            "is_active",
            "is_featured",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
