"""Django ORM implementation of the catalog repositories.

Error handling follows the Null Object pattern: look-ups return ``None``
for missing or malformed IDs and the Service Layer decides how to
translate that into an API response.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import models, transaction

from modules.catalog.models import Category, Product
from modules.catalog.repositories.interfaces import (
    ICategoryRepository,
    IProductRepository,
)

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        try:
            return Product.objects.select_related("category").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[Product]":
        queryset = Product.objects.select_related("category")
        if filters:
            queryset = queryset.filter(**filters)
        return queryset.order_by("-is_featured", "-created_at", "-id")

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        entity.save()
        logger.info("product.saved", product_id=str(entity.id), slug=entity.slug)
        return entity

    def get_by_slug(self, slug: str) -> Optional[Product]:
        return Product.objects.filter(slug=slug).first()

    def get_for_update(self, id: str) -> Optional[Product]:
        try:
            return Product.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def has_order_history(self, product: Product) -> bool:
        return product.order_items.exists()

    def delete(self, product: Product) -> None:
        product_id = str(product.id)
        product.delete()
        logger.info("product.deleted", product_id=product_id)

    def count_active(self) -> int:
        return Product.objects.filter(is_active=True).count()

    def count_low_stock(self, threshold: int) -> int:
        return Product.objects.filter(is_active=True, inventory__lte=threshold).count()


class CategoryDjangoRepository(ICategoryRepository):
    def get_by_id(self, id: str) -> Optional[Category]:
        try:
            return Category.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list_active_with_counts(self) -> List[Category]:
        return list(
            Category.objects.filter(is_active=True)
            .annotate(
                product_count=models.Count(
                    "products", filter=models.Q(products__is_active=True)
                )
            )
            .order_by("sort_order", "name")
        )
