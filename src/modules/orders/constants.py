"""Order domain constants.

Status and payment choices plus the transition rules for the order
state machine.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    CONFIRMED = "CONFIRMED", "Confirmed"
    PROCESSING = "PROCESSING", "Processing"
    SHIPPED = "SHIPPED", "Shipped"
    DELIVERED = "DELIVERED", "Delivered"
    CANCELLED = "CANCELLED", "Cancelled"


class PaymentStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    PAID = "PAID", "Paid"
    FAILED = "FAILED", "Failed"
    REFUNDED = "REFUNDED", "Refunded"


# Statuses a delivery person may set, and where each may be reached from.
# SHIPPED -> SHIPPED only starts the delivery clock on an assigned order.
DELIVERY_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.SHIPPED: {
        OrderStatus.CONFIRMED,
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPED,
    },
    OrderStatus.DELIVERED: {OrderStatus.SHIPPED},
}

ASSIGNABLE_STATES: set[str] = {OrderStatus.CONFIRMED, OrderStatus.PROCESSING}

ACTIVE_DELIVERY_STATES: set[str] = {
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
}

ORDER_NUMBER_MAX_RETRIES = 5

ORDER_PLACED_NOTE = "Order placed successfully"
