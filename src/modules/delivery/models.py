"""Delivery regions and their subregions (with delivery fees)."""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel


class DeliveryRegion(BaseModel):
    name = models.CharField(max_length=120, unique=True)
    code = models.CharField(max_length=20, unique=True, null=True, blank=True)
    description = models.TextField(blank=True, default="")
    is_active = models.BooleanField(default=True)
    sort_order = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "delivery_regions"
        ordering = ["sort_order", "name"]

    def __str__(self) -> str:
        return self.name


class DeliverySubregion(BaseModel):
    region = models.ForeignKey(
        DeliveryRegion,
        on_delete=models.CASCADE,
        related_name="subregions",
    )
    name = models.CharField(max_length=120)
    code = models.CharField(max_length=20, null=True, blank=True)
    description = models.TextField(blank=True, default="")
    delivery_fee = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
    )
    is_active = models.BooleanField(default=True)
    sort_order = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "delivery_subregions"
        ordering = ["sort_order", "name"]
        constraints = [
            models.UniqueConstraint(
                fields=["region", "name"], name="delivery_subregions_region_name_uniq"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.region.name} / {self.name}"
