"""Address DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
DTOs are immutable (``frozen=True``).

- ``CreateAddressDTO``: a saved address-book entry (name, street, city,
  region and phone required).
- ``ShippingAddressDTO``: the address captured at checkout; only name,
  phone and street are mandatory.
- Coordinates are optional but always come as a latitude/longitude pair.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from modules.customers.models import DEFAULT_COUNTRY


class ShippingAddressDTO(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str
    phone: str
    street: str
    city: str = ""
    region: str = ""
    zip_code: Optional[str] = None
    country: str = DEFAULT_COUNTRY
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    is_default: bool = False

    @field_validator("name", "phone", "street")
    @classmethod
    def must_not_be_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("Missing required fields")
        return v

    @model_validator(mode="after")
    def coordinates_come_in_pairs(self):
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("Both latitude and longitude are required")
        return self


class CreateAddressDTO(ShippingAddressDTO):
    """Address-book entry: ``city`` and ``region`` are required as well."""

    @field_validator("city", "region")
    @classmethod
    def location_must_not_be_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("Missing required fields")
        return v
