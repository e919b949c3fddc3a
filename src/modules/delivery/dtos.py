"""Delivery DTOs for the Service Layer (Pydantic v2, immutable)."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class CreateRegionDTO(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str
    code: Optional[str] = None
    description: str = ""
    is_active: bool = True
    sort_order: int = 0

    @field_validator("name")
    @classmethod
    def name_required(cls, v: str) -> str:
        if not v:
            raise ValueError("Region name is required")
        return v


class CreateSubregionDTO(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str
    delivery_fee: Decimal
    code: Optional[str] = None
    description: str = ""
    is_active: bool = True
    sort_order: int = 0

    @field_validator("name")
    @classmethod
    def name_required(cls, v: str) -> str:
        if not v:
            raise ValueError("Subregion name and delivery fee are required")
        return v

    @field_validator("delivery_fee")
    @classmethod
    def fee_must_be_non_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Delivery fee cannot be negative")
        return v
