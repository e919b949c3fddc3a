"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.  Input serializers accept the
storefront's camelCase keys and map them onto DTO field names via
``source``.
"""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from modules.accounts.models import User
from modules.catalog.models import Product
from modules.core.serializers import CamelCaseModelSerializer
from modules.customers.serializers import AddressSerializer
from modules.orders.models import Order, OrderItem, OrderReview, OrderStatusHistory

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CreateOrderItemSerializer(serializers.Serializer):
    """Validates a single item in an order creation request."""

    productId = serializers.UUIDField(source="product_id")
    quantity = serializers.IntegerField(min_value=1)


class ShippingAddressInputSerializer(serializers.Serializer):
    name = serializers.CharField(required=False, allow_blank=True, default="")
    phone = serializers.CharField(required=False, allow_blank=True, default="")
    street = serializers.CharField(required=False, allow_blank=True, default="")
    city = serializers.CharField(required=False, allow_blank=True, default="")
    region = serializers.CharField(required=False, allow_blank=True, default="")
    zipCode = serializers.CharField(
        source="zip_code", required=False, allow_blank=True, allow_null=True, default=None
    )
    country = serializers.CharField(required=False, allow_blank=False)
    latitude = serializers.FloatField(
        required=False, allow_null=True, default=None, min_value=-90, max_value=90
    )
    longitude = serializers.FloatField(
        required=False, allow_null=True, default=None, min_value=-180, max_value=180
    )
    isDefault = serializers.BooleanField(source="is_default", required=False, default=False)


class CreateOrderSerializer(serializers.Serializer):
    """Validates the order creation request payload.

    ``paymentMethod`` may be a plain string or ``{"type": "..."}``.
    """

    items = CreateOrderItemSerializer(many=True, required=False, default=list)
    shippingAddress = ShippingAddressInputSerializer(
        source="shipping_address", required=False, default=dict
    )
    paymentMethod = serializers.JSONField(
        source="payment_method", required=False, default="cash_on_delivery"
    )
    shippingCost = serializers.DecimalField(
        source="shipping_cost",
        max_digits=12,
        decimal_places=2,
        required=False,
        default=Decimal("0"),
    )
    deliverySubregionId = serializers.UUIDField(
        source="delivery_subregion_id", required=False, allow_null=True, default=None
    )

    def validate_paymentMethod(self, value):
        if isinstance(value, dict):
            value = value.get("type")
        if not isinstance(value, str) or not value:
            raise serializers.ValidationError("Invalid payment method")
        return value


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderUserSerializer(CamelCaseModelSerializer):
    name = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = ["id", "name", "email", "phone"]
        read_only_fields = fields


class OrderProductSerializer(CamelCaseModelSerializer):
    class Meta:
        model = Product
        fields = ["id", "name", "slug", "images"]
        read_only_fields = fields


class OrderItemSerializer(CamelCaseModelSerializer):
    """Read serializer for order items with product snapshot."""

    product = OrderProductSerializer(read_only=True)

    class Meta:
        model = OrderItem
        fields = ["id", "product_id", "product", "quantity", "price"]
        read_only_fields = fields


class StatusHistorySerializer(CamelCaseModelSerializer):
    """Read serializer for order status history records."""

    class Meta:
        model = OrderStatusHistory
        fields = ["id", "old_status", "status", "notes", "changed_by_id", "created_at"]
        read_only_fields = fields


class OrderListSerializer(CamelCaseModelSerializer):
    """Order summary for listings (no QR image, no history)."""

    user = OrderUserSerializer(read_only=True)
    delivery_person = OrderUserSerializer(read_only=True)
    address = AddressSerializer(read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "status",
            "payment_status",
            "payment_method",
            "subtotal",
            "shipping_cost",
            "total",
            "user",
            "address",
            "delivery_person",
            "items",
            "shipped_at",
            "delivered_at",
            "created_at",
        ]
        read_only_fields = fields


class OrderSerializer(OrderListSerializer):
    """Full order: items, status history, QR code and delivery proof."""

    status_history = StatusHistorySerializer(many=True, read_only=True)

    class Meta(OrderListSerializer.Meta):
        fields = OrderListSerializer.Meta.fields + [
            "qr_code",
            "tracking_hash",
            "admin_notes",
            "customer_confirmed_at",
            "delivery_started_at",
            "delivery_completed_at",
            "delivery_token",
            "delivery_notes",
            "status_history",
            "updated_at",
        ]
        read_only_fields = fields


class OrderReviewSerializer(CamelCaseModelSerializer):
    class Meta:
        model = OrderReview
        fields = [
            "id",
            "order_number",
            "user_id",
            "rating",
            "comment",
            "issue_type",
            "issue_description",
            "is_resolved",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
