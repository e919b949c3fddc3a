"""Order, OrderItem, OrderStatusHistory and OrderReview models.

Business rules implemented:
- ``order_number`` is the public identifier (``RN<epoch ms><3 digits>``);
  the UUIDv7 ``id`` stays internal.
- ``shipped_at`` / ``delivered_at`` are stamped only on the first
  transition into SHIPPED / DELIVERED (enforced at service layer).
- Every accepted status change appends one ``OrderStatusHistory`` row.
- OrderItem snapshots the product price at checkout (``price``).
- User and product FKs use PROTECT to preserve financial history.
- Raw delivery signatures and GPS fixes are never stored, only digests.
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from modules.core.models import BaseModel
from modules.orders.constants import OrderStatus, PaymentStatus


class Order(BaseModel):
    """Order aggregate root."""

    order_number: models.CharField = models.CharField(
        max_length=32, unique=True, editable=False
    )
    user: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
    )
    address: models.ForeignKey = models.ForeignKey(
        "customers.Address",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    subtotal: models.DecimalField = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    shipping_cost: models.DecimalField = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    total: models.DecimalField = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )
    payment_status: models.CharField = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    payment_method: models.CharField = models.CharField(
        max_length=40, blank=True, default="cash_on_delivery"
    )
    qr_code: models.TextField = models.TextField(blank=True, default="")
    tracking_hash: models.CharField = models.CharField(max_length=64, blank=True, default="")
    admin_notes: models.TextField = models.TextField(blank=True, default="")

    # Delivery
    delivery_person: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="deliveries",
    )
    shipped_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)
    delivered_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)
    customer_confirmed_at: models.DateTimeField = models.DateTimeField(
        null=True, blank=True
    )
    delivery_started_at: models.DateTimeField = models.DateTimeField(
        null=True, blank=True
    )
    delivery_completed_at: models.DateTimeField = models.DateTimeField(
        null=True, blank=True
    )
    delivery_token: models.CharField = models.CharField(max_length=16, blank=True, default="")
    delivery_signature_hash: models.CharField = models.CharField(
        max_length=64, blank=True, default=""
    )
    gps_delivery_location: models.CharField = models.CharField(
        max_length=64, blank=True, default=""
    )
    delivery_notes: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
            models.Index(
                fields=["delivery_person", "status"], name="orders_delivery_idx"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"


class OrderItem(BaseModel):
    """Line item; ``price`` is a snapshot of the product price at checkout."""

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product: models.ForeignKey = models.ForeignKey(
        "catalog.Product",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )
    price: models.DecimalField = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        db_table = "order_items"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                check=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    def __str__(self) -> str:
        return f"{self.product} x{self.quantity}"


class OrderStatusHistory(BaseModel):
    """Append-only audit trail for order status transitions.

    Audit records are immutable: nothing updates or deletes them.
    ``changed_by`` is nullable; ``None`` means the change was made by the
    system (e.g. checkout).
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    old_status: models.CharField = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=OrderStatus.choices,
        null=True,
        blank=True,
    )
    status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
    )
    changed_by: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    notes: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["order", "-created_at"],
                name="osh_order_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order_id} : {self.old_status} -> {self.status}"


class OrderReview(BaseModel):
    """Customer feedback on a delivered order (one per order)."""

    order_number: models.CharField = models.CharField(max_length=32, unique=True)
    user: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="order_reviews",
    )
    rating: models.PositiveSmallIntegerField = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(5)],
    )
    comment: models.TextField = models.TextField(blank=True, default="")
    issue_type: models.CharField = models.CharField(max_length=60, blank=True, default="")
    issue_description: models.TextField = models.TextField(blank=True, default="")
    is_resolved: models.BooleanField = models.BooleanField(default=True)

    class Meta:
        db_table = "order_reviews"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"Review {self.order_number} ({self.rating}/5)"
