"""Catalog models: categories and products.

Business rules implemented:
- Product slugs are unique; they default to the slugified name.
- Price must be greater than zero and inventory cannot be negative.
- Products referenced by orders are deactivated instead of deleted
  (enforced at the service layer).
"""

from __future__ import annotations

from decimal import Decimal

import structlog
from django.core.validators import MinValueValidator
from django.db import models
from django.utils.text import slugify

from modules.core.models import BaseModel

logger = structlog.get_logger(__name__)


class Category(BaseModel):
    name = models.CharField(max_length=120)
    slug = models.SlugField(max_length=140, unique=True)
    description = models.TextField(blank=True, default="")
    is_active = models.BooleanField(default=True)
    sort_order = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "categories"
        ordering = ["sort_order", "name"]
        verbose_name_plural = "categories"

    def save(self, *args, **kwargs) -> None:
        if not self.slug:
            self.slug = slugify(self.name)
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return self.name


class Product(BaseModel):
    """Sellable catalog item.

    ``inventory`` is decremented under a row lock at checkout; ``images``
    holds public URLs returned by the upload endpoint.
    """

    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=280, unique=True)
    description = models.TextField(blank=True, default="")
    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    category = models.ForeignKey(
        Category,
        on_delete=models.PROTECT,
        related_name="products",
    )
    inventory = models.PositiveIntegerField(default=0)
    weight = models.DecimalField(max_digits=10, decimal_places=3, default=Decimal("0"))
    unit = models.CharField(max_length=20, blank=True, default="")
    images = models.JSONField(default=list, blank=True)
    is_active = models.BooleanField(default=True)
    is_featured = models.BooleanField(default=False)

    class Meta:
        db_table = "products"
        ordering = ["-is_featured", "-created_at"]
        indexes = [
            models.Index(fields=["is_active", "is_featured"], name="products_active_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                check=models.Q(price__gt=0),
                name="products_price_positive",
            ),
        ]

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        if not self.slug:
            self.slug = slugify(self.name)
        super().save(*args, **kwargs)
        if is_new:
            logger.info("product_created", product_id=str(self.id), slug=self.slug)

    def __str__(self) -> str:
        return self.name
