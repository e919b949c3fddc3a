"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (views) and the
Service layer.  DTOs are immutable (``frozen=True``).

- ``CreateOrderItemDTO`` / ``CreateOrderDTO``: checkout input.
- ``UpdateOrderStatusDTO``: admin status/payment/notes update.
- ``DeliveryStatusUpdateDTO``: delivery-person status update with proof.
- ``AssignDeliveriesDTO``: admin bulk assignment.
- ``ConfirmDeliveryDTO`` / ``OrderReviewDTO``: customer follow-ups.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from modules.customers.dtos import ShippingAddressDTO
from modules.orders.constants import DELIVERY_TRANSITIONS, OrderStatus, PaymentStatus

# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------


class CreateOrderItemDTO(BaseModel):
    """A single cart line.

    The unit price is resolved by the Service Layer from the catalog, so
    whatever price the client sends is ignored.
    """

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1")
        return v


class CreateOrderDTO(BaseModel):
    """Checkout request.

    Validates:
    - ``items`` must contain at least one item, one line per product.
    - ``shipping_cost`` cannot be negative.
    """

    model_config = ConfigDict(frozen=True)

    items: List[CreateOrderItemDTO]
    shipping_address: ShippingAddressDTO
    payment_method: str = "cash_on_delivery"
    shipping_cost: Decimal = Decimal("0")
    delivery_subregion_id: Optional[UUID] = None

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(
        cls, v: List[CreateOrderItemDTO]
    ) -> List[CreateOrderItemDTO]:
        if not v:
            raise ValueError("Order items are required")
        return v

    @field_validator("shipping_cost")
    @classmethod
    def shipping_cost_non_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Shipping cost cannot be negative")
        return v

    @model_validator(mode="after")
    def no_duplicate_products(self):
        """Prevent duplicate product IDs in the same order."""
        product_ids = [item.product_id for item in self.items]
        if len(product_ids) != len(set(product_ids)):
            raise ValueError("Duplicate products are not allowed in the same order")
        return self


# ---------------------------------------------------------------------------
# State machine inputs
# ---------------------------------------------------------------------------


class UpdateOrderStatusDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Optional[str] = None
    payment_status: Optional[str] = None
    admin_notes: Optional[str] = None

    @field_validator("status")
    @classmethod
    def status_must_be_known(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in OrderStatus.values:
            raise ValueError(f"Invalid status: {v}")
        return v

    @field_validator("payment_status")
    @classmethod
    def payment_status_must_be_known(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in PaymentStatus.values:
            raise ValueError(f"Invalid payment status: {v}")
        return v


class DeliveryStatusUpdateDTO(BaseModel):
    """Delivery-person update.

    Validates:
    - ``status`` is one a delivery person may set (SHIPPED, DELIVERED).
    - latitude and longitude come together and are in range.
    """

    model_config = ConfigDict(frozen=True)

    order_number: str
    status: str
    signature: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    notes: Optional[str] = None

    @field_validator("status")
    @classmethod
    def status_must_be_deliverable(cls, v: str) -> str:
        if v not in DELIVERY_TRANSITIONS:
            raise ValueError(f"Invalid delivery status: {v}")
        return v

    @model_validator(mode="after")
    def coordinates_must_pair(self):
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("Latitude and longitude must be provided together")
        if self.latitude is not None and not -90 <= self.latitude <= 90:
            raise ValueError("Latitude must be between -90 and 90")
        if self.longitude is not None and not -180 <= self.longitude <= 180:
            raise ValueError("Longitude must be between -180 and 180")
        return self


class AssignDeliveriesDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    delivery_person_id: UUID
    order_numbers: List[str] = []
    order_ids: List[UUID] = []

    @model_validator(mode="after")
    def some_orders_required(self):
        if not self.order_numbers and not self.order_ids:
            raise ValueError("Missing orderIds array or deliveryPersonId")
        return self


# ---------------------------------------------------------------------------
# Customer follow-ups
# ---------------------------------------------------------------------------


class ConfirmDeliveryDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    confirmed_at: Optional[datetime] = None


class OrderReviewDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    rating: int
    comment: str = ""
    issue_type: str = ""
    issue_description: str = ""

    @field_validator("rating")
    @classmethod
    def rating_in_range(cls, v: int) -> int:
        if not 1 <= v <= 5:
            raise ValueError("Rating must be between 1 and 5")
        return v

    @property
    def reports_issue(self) -> bool:
        return bool(self.issue_type and self.issue_description)
