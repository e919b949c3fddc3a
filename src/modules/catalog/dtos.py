"""Catalog DTOs for the Service Layer.

Immutable Pydantic v2 models passed from the views to
``CatalogService``.

- ``CreateProductDTO``: input for product creation.
- ``UpdateProductDTO``: input for full product updates (PUT).
"""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator


class _ProductDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    @field_validator("price", check_fields=False)
    @classmethod
    def price_must_be_positive(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is not None and v <= 0:
            raise ValueError("Price must be greater than zero")
        return v

    @field_validator("inventory", check_fields=False)
    @classmethod
    def inventory_must_be_non_negative(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError("Inventory cannot be negative")
        return v

    @field_validator("weight", check_fields=False)
    @classmethod
    def weight_must_be_non_negative(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is not None and v < 0:
            raise ValueError("Weight cannot be negative")
        return v


class CreateProductDTO(_ProductDTO):
    name: str
    slug: str = ""
    description: str
    price: Decimal
    category_id: UUID
    inventory: int
    weight: Decimal = Decimal("0")
    unit: str = ""
    is_featured: bool = False
    images: List[str] = []

    @field_validator("name", "description")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Missing required fields")
        return v.strip()


class UpdateProductDTO(_ProductDTO):
    """PUT semantics: fields left out keep their stored value."""

    name: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = None
    category_id: Optional[UUID] = None
    inventory: Optional[int] = None
    weight: Optional[Decimal] = None
    unit: Optional[str] = None
    is_featured: Optional[bool] = None
    images: Optional[List[str]] = None
    is_active: Optional[bool] = None
