"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer (Views) catches these and translates them into
``{"error": ...}`` responses.
"""

from __future__ import annotations


class OrderNotFound(Exception):
    """The order does not exist or is not visible to the caller."""


class InvalidOrderState(Exception):
    """The order's current status does not allow the operation."""


class InvalidOrderData(Exception):
    """The checkout payload is incomplete (items or shipping address)."""


class ProductNotFound(Exception):
    """A product referenced by an order item does not exist."""


class InactiveProduct(Exception):
    """A product referenced by an order item is not available."""


class InsufficientInventory(Exception):
    """Not enough inventory to fulfil an order item."""


class InvalidDeliveryPerson(Exception):
    """The user does not exist or does not hold the DELIVERY role."""


class ReceiptAccessDenied(Exception):
    """The caller neither owns the order nor holds the ADMIN role."""


class QRCodeGenerationError(Exception):
    """The tracking QR code could not be rendered."""


class OrderNumberExhausted(Exception):
    """No free order number was found within the retry budget."""


class OrderPermissionDenied(Exception):
    """The caller's role does not allow the operation."""
