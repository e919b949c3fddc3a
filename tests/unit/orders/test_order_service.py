"""Unit tests for OrderService.

Covers:
- Admin status updates: timestamps stamped once, one history row per
  actual change, role enforcement.
- Delivery-person transitions with proof of delivery.
- Bulk assignment of deliveries.
- Customer delivery confirmation and reviews.
- Checkout: price snapshot, inventory decrement, rollback on failure,
  order-number collisions.
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from unittest import mock
from uuid import uuid4

import pytest
from freezegun import freeze_time

from django.utils import timezone

from modules.customers.dtos import ShippingAddressDTO
from modules.delivery.models import DeliveryRegion, DeliverySubregion
from modules.delivery.proof import hash_gps_location, hash_signature
from modules.orders.constants import OrderStatus, PaymentStatus
from modules.orders.dtos import (
    AssignDeliveriesDTO,
    ConfirmDeliveryDTO,
    CreateOrderDTO,
    CreateOrderItemDTO,
    DeliveryStatusUpdateDTO,
    OrderReviewDTO,
    UpdateOrderStatusDTO,
)
from modules.orders.exceptions import (
    InactiveProduct,
    InsufficientInventory,
    InvalidDeliveryPerson,
    InvalidOrderData,
    InvalidOrderState,
    OrderNotFound,
    OrderNumberExhausted,
    OrderPermissionDenied,
    ProductNotFound,
    ReceiptAccessDenied,
)
from modules.orders.models import Order, OrderStatusHistory
from modules.orders.views import build_order_service

pytestmark = pytest.mark.unit


@pytest.fixture()
def service():
    return build_order_service()


def _history(order):
    return list(OrderStatusHistory.objects.filter(order=order).order_by("created_at"))


# ---------------------------------------------------------------------------
# Admin status updates
# ---------------------------------------------------------------------------


class TestUpdateStatus:
    def test_shipping_stamps_shipped_at_and_records_history(
        self, service, make_order, admin_user
    ):
        order = make_order(status=OrderStatus.CONFIRMED)

        updated = service.update_status(
            order.order_number, admin_user, UpdateOrderStatusDTO(status="SHIPPED")
        )

        assert updated.status == OrderStatus.SHIPPED
        assert updated.shipped_at is not None
        history = _history(order)
        assert len(history) == 1
        assert history[0].old_status == OrderStatus.CONFIRMED
        assert history[0].status == OrderStatus.SHIPPED
        assert history[0].notes == "Order status updated to SHIPPED"
        assert history[0].changed_by == admin_user

    def test_repeated_shipped_keeps_timestamp_and_history(
        self, service, make_order, admin_user
    ):
        order = make_order(status=OrderStatus.CONFIRMED)
        with freeze_time("2024-03-01 10:00:00"):
            first = service.update_status(
                order.order_number, admin_user, UpdateOrderStatusDTO(status="SHIPPED")
            )
        with freeze_time("2024-03-02 10:00:00"):
            second = service.update_status(
                order.order_number, admin_user, UpdateOrderStatusDTO(status="SHIPPED")
            )

        assert second.shipped_at == first.shipped_at
        assert len(_history(order)) == 1

    def test_admin_notes_become_history_notes(self, service, make_order, admin_user):
        order = make_order(status=OrderStatus.PENDING)
        service.update_status(
            order.order_number,
            admin_user,
            UpdateOrderStatusDTO(status="CONFIRMED", admin_notes="Called customer"),
        )
        order.refresh_from_db()
        assert order.admin_notes == "Called customer"
        assert _history(order)[0].notes == "Called customer"

    def test_delivered_stamps_delivered_at_once(self, service, make_order, admin_user):
        order = make_order(status=OrderStatus.SHIPPED)
        first = service.update_status(
            order.order_number, admin_user, UpdateOrderStatusDTO(status="DELIVERED")
        )
        service.update_status(
            order.order_number, admin_user, UpdateOrderStatusDTO(status="SHIPPED")
        )
        again = service.update_status(
            order.order_number, admin_user, UpdateOrderStatusDTO(status="DELIVERED")
        )
        assert again.delivered_at == first.delivered_at
        assert len(_history(order)) == 3

    def test_payment_status_only_writes_no_history(
        self, service, make_order, admin_user
    ):
        order = make_order(status=OrderStatus.CONFIRMED)
        updated = service.update_status(
            order.order_number,
            admin_user,
            UpdateOrderStatusDTO(payment_status=PaymentStatus.PAID),
        )
        assert updated.payment_status == PaymentStatus.PAID
        assert updated.status == OrderStatus.CONFIRMED
        assert _history(order) == []

    def test_non_admin_rejected(self, service, make_order, customer_user):
        order = make_order(status=OrderStatus.CONFIRMED)
        with pytest.raises(OrderPermissionDenied, match="Admin access required"):
            service.update_status(
                order.order_number, customer_user, UpdateOrderStatusDTO(status="SHIPPED")
            )
        order.refresh_from_db()
        assert order.status == OrderStatus.CONFIRMED

    def test_unknown_order(self, service, admin_user):
        with pytest.raises(OrderNotFound):
            service.update_status(
                "RN0000000000000000", admin_user, UpdateOrderStatusDTO(status="SHIPPED")
            )

    def test_history_rolls_back_with_order(self, service, make_order, admin_user):
        order = make_order(status=OrderStatus.CONFIRMED)
        with mock.patch(
            "modules.orders.repositories.django_repository.OrderStatusHistory.objects.create",
            side_effect=RuntimeError("db down"),
        ):
            with pytest.raises(RuntimeError):
                service.update_status(
                    order.order_number, admin_user, UpdateOrderStatusDTO(status="SHIPPED")
                )
        order.refresh_from_db()
        assert order.status == OrderStatus.CONFIRMED
        assert order.shipped_at is None


# ---------------------------------------------------------------------------
# Delivery personnel
# ---------------------------------------------------------------------------


class TestDeliveryStatus:
    def test_start_delivery_on_shipped_order(self, service, make_order, delivery_user):
        order = make_order(status=OrderStatus.SHIPPED, delivery_person=delivery_user)

        updated = service.update_delivery_status(
            delivery_user,
            DeliveryStatusUpdateDTO(order_number=order.order_number, status="SHIPPED"),
        )

        assert updated.delivery_started_at is not None
        assert updated.shipped_at is not None
        assert _history(order) == []

    def test_confirmed_to_shipped_appends_history(
        self, service, make_order, delivery_user
    ):
        order = make_order(status=OrderStatus.CONFIRMED, delivery_person=delivery_user)
        service.update_delivery_status(
            delivery_user,
            DeliveryStatusUpdateDTO(order_number=order.order_number, status="SHIPPED"),
        )
        history = _history(order)
        assert len(history) == 1
        assert history[0].notes == "Delivery status updated to SHIPPED by Juma Rider"

    def test_delivered_records_proof(self, service, make_order, delivery_user):
        order = make_order(status=OrderStatus.SHIPPED, delivery_person=delivery_user)

        updated = service.update_delivery_status(
            delivery_user,
            DeliveryStatusUpdateDTO(
                order_number=order.order_number,
                status="DELIVERED",
                signature="signature-bytes",
                latitude=-6.7924,
                longitude=39.2083,
                notes="Handed to customer",
            ),
        )

        assert updated.status == OrderStatus.DELIVERED
        assert updated.delivered_at is not None
        assert updated.delivery_completed_at is not None
        assert updated.delivery_signature_hash == hash_signature("signature-bytes")
        assert updated.gps_delivery_location == hash_gps_location(-6.7924, 39.2083)
        assert updated.delivery_notes == "Handed to customer"
        assert len(updated.delivery_token) == 16
        assert _history(order)[0].notes == "Handed to customer"

    def test_cannot_skip_to_delivered(self, service, make_order, delivery_user):
        order = make_order(status=OrderStatus.CONFIRMED, delivery_person=delivery_user)
        with pytest.raises(InvalidOrderState):
            service.update_delivery_status(
                delivery_user,
                DeliveryStatusUpdateDTO(
                    order_number=order.order_number, status="DELIVERED"
                ),
            )

    def test_cannot_move_backwards(self, service, make_order, delivery_user):
        order = make_order(status=OrderStatus.DELIVERED, delivery_person=delivery_user)
        with pytest.raises(InvalidOrderState):
            service.update_delivery_status(
                delivery_user,
                DeliveryStatusUpdateDTO(order_number=order.order_number, status="SHIPPED"),
            )

    def test_requires_assignment(self, service, make_order, delivery_user):
        order = make_order(status=OrderStatus.SHIPPED)
        with pytest.raises(OrderNotFound, match="not assigned to you"):
            service.update_delivery_status(
                delivery_user,
                DeliveryStatusUpdateDTO(order_number=order.order_number, status="SHIPPED"),
            )

    def test_requires_delivery_role(self, service, make_order, admin_user):
        order = make_order(status=OrderStatus.SHIPPED, delivery_person=admin_user)
        with pytest.raises(OrderPermissionDenied, match="Delivery access required"):
            service.update_delivery_status(
                admin_user,
                DeliveryStatusUpdateDTO(order_number=order.order_number, status="SHIPPED"),
            )


class TestAssignDeliveries:
    def test_assigns_confirmed_and_processing_only(
        self, service, make_order, admin_user, delivery_user
    ):
        confirmed = make_order("RN1700000000001", status=OrderStatus.CONFIRMED)
        processing = make_order("RN1700000000002", status=OrderStatus.PROCESSING)
        pending = make_order("RN1700000000003", status=OrderStatus.PENDING)

        person, orders = service.assign_deliveries(
            admin_user,
            AssignDeliveriesDTO(
                delivery_person_id=delivery_user.id,
                order_numbers=[
                    confirmed.order_number,
                    processing.order_number,
                    pending.order_number,
                ],
            ),
        )

        assert person == delivery_user
        assert {o.order_number for o in orders} == {
            confirmed.order_number,
            processing.order_number,
        }
        confirmed.refresh_from_db()
        pending.refresh_from_db()
        assert confirmed.status == OrderStatus.SHIPPED
        assert confirmed.delivery_person == delivery_user
        assert confirmed.shipped_at is not None
        assert confirmed.delivery_started_at is None
        assert pending.status == OrderStatus.PENDING
        assert pending.delivery_person is None
        assert len(_history(confirmed)) == 1

    def test_accepts_order_ids(self, service, make_order, admin_user, delivery_user):
        order = make_order(status=OrderStatus.CONFIRMED)
        _, orders = service.assign_deliveries(
            admin_user,
            AssignDeliveriesDTO(delivery_person_id=delivery_user.id, order_ids=[order.id]),
        )
        assert [o.id for o in orders] == [order.id]

    def test_rejects_non_delivery_user(
        self, service, make_order, admin_user, customer_user
    ):
        order = make_order(status=OrderStatus.CONFIRMED)
        with pytest.raises(InvalidDeliveryPerson, match="Invalid delivery person"):
            service.assign_deliveries(
                admin_user,
                AssignDeliveriesDTO(
                    delivery_person_id=customer_user.id,
                    order_numbers=[order.order_number],
                ),
            )


# ---------------------------------------------------------------------------
# Customer follow-ups
# ---------------------------------------------------------------------------


class TestConfirmDelivery:
    def test_confirms_delivered_order(self, service, make_order, customer_user):
        order = make_order(status=OrderStatus.DELIVERED)
        moment = timezone.now() - timedelta(hours=1)
        updated = service.confirm_delivery(
            order.order_number, customer_user, ConfirmDeliveryDTO(confirmed_at=moment)
        )
        assert updated.customer_confirmed_at == moment

    def test_rejects_undelivered_order(self, service, make_order, customer_user):
        order = make_order(status=OrderStatus.SHIPPED)
        with pytest.raises(
            InvalidOrderState, match="Order must be delivered before confirmation"
        ):
            service.confirm_delivery(order.order_number, customer_user, ConfirmDeliveryDTO())

    def test_other_customers_cannot_confirm(self, service, make_order, other_customer):
        order = make_order(status=OrderStatus.DELIVERED)
        with pytest.raises(OrderNotFound):
            service.confirm_delivery(order.order_number, other_customer, ConfirmDeliveryDTO())


class TestReview:
    def test_upserts_single_review(self, service, make_order, customer_user):
        order = make_order(status=OrderStatus.DELIVERED)
        first = service.submit_review(
            order.order_number, customer_user, OrderReviewDTO(rating=3)
        )
        second = service.submit_review(
            order.order_number,
            customer_user,
            OrderReviewDTO(rating=5, comment="Great juice"),
        )
        assert second.id == first.id
        assert second.rating == 5
        assert second.is_resolved is True

    def test_issue_marks_review_unresolved(self, service, make_order, customer_user):
        order = make_order(status=OrderStatus.DELIVERED)
        review = service.submit_review(
            order.order_number,
            customer_user,
            OrderReviewDTO(
                rating=2, issue_type="DAMAGED", issue_description="Bottle cracked"
            ),
        )
        assert review.is_resolved is False


class TestReceipt:
    def test_context_for_delivered_order(self, service, make_order, customer_user):
        order = make_order(status=OrderStatus.DELIVERED)
        context = service.receipt(order.order_number, customer_user)
        assert context["order"].order_number == order.order_number
        assert context["total"] == "TZS 19,000"
        assert context["lines"][0]["total"] == "TZS 17,000"

    def test_other_users_denied(self, service, make_order, other_customer):
        order = make_order(status=OrderStatus.DELIVERED)
        with pytest.raises(ReceiptAccessDenied):
            service.receipt(order.order_number, other_customer)

    def test_only_for_delivered(self, service, make_order, admin_user):
        order = make_order(status=OrderStatus.SHIPPED)
        with pytest.raises(InvalidOrderState):
            service.receipt(order.order_number, admin_user)


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------


def _checkout_dto(*items, **overrides) -> CreateOrderDTO:
    data = {
        "items": [CreateOrderItemDTO(product_id=p.id, quantity=q) for p, q in items],
        "shipping_address": ShippingAddressDTO(
            name="Demo Customer", phone="+255123456789", street="12 Uhuru Street"
        ),
        "shipping_cost": Decimal("2500"),
    }
    data.update(overrides)
    return CreateOrderDTO(**data)


class TestCreateOrder:
    def test_creates_order_with_snapshot_and_history(
        self, service, customer_user, product
    ):
        order = service.create_order(customer_user, _checkout_dto((product, 2)))

        assert order.status == OrderStatus.PENDING
        assert order.subtotal == Decimal("17000.00")
        assert order.total == Decimal("19500.00")
        assert order.qr_code.startswith("data:image/png;base64,")
        assert len(order.tracking_hash) == 64
        item = order.items.get()
        assert item.price == product.price
        product.refresh_from_db()
        assert product.inventory == 48
        history = _history(order)
        assert [h.notes for h in history] == ["Order placed successfully"]

    def test_subregion_fee_sets_shipping_cost(self, service, customer_user, product):
        region = DeliveryRegion.objects.create(name="Dar es Salaam")
        subregion = DeliverySubregion.objects.create(
            region=region, name="Ilala District", delivery_fee=Decimal("2000")
        )
        order = service.create_order(
            customer_user,
            _checkout_dto((product, 1), delivery_subregion_id=subregion.id),
        )
        assert order.shipping_cost == Decimal("2000.00")
        assert order.total == Decimal("10500.00")

    def test_unknown_subregion(self, service, customer_user, product):
        with pytest.raises(InvalidOrderData, match="Invalid delivery subregion"):
            service.create_order(
                customer_user, _checkout_dto((product, 1), delivery_subregion_id=uuid4())
            )

    def test_insufficient_inventory_rolls_back(
        self, service, customer_user, product, category
    ):
        from modules.catalog.models import Product

        scarce = Product.objects.create(
            name="Wellness Pack",
            description="Limited",
            price=Decimal("22000"),
            category=category,
            inventory=1,
        )
        with pytest.raises(InsufficientInventory):
            service.create_order(
                customer_user, _checkout_dto((product, 5), (scarce, 3))
            )

        product.refresh_from_db()
        scarce.refresh_from_db()
        assert product.inventory == 50
        assert scarce.inventory == 1
        assert Order.objects.count() == 0

    def test_inactive_product(self, service, customer_user, product):
        product.is_active = False
        product.save()
        with pytest.raises(InactiveProduct):
            service.create_order(customer_user, _checkout_dto((product, 1)))

    def test_unknown_product(self, service, customer_user):
        dto = CreateOrderDTO(
            items=[CreateOrderItemDTO(product_id=uuid4(), quantity=1)],
            shipping_address=ShippingAddressDTO(name="A", phone="1", street="S"),
        )
        with pytest.raises(ProductNotFound):
            service.create_order(customer_user, dto)

    def test_order_number_collision_retries(
        self, service, customer_user, product, make_order
    ):
        make_order("RN1700000000000001", status=OrderStatus.PENDING)
        with mock.patch(
            "modules.orders.services.generate_order_number",
            side_effect=["RN1700000000000001", "RN1700000000000002"],
        ):
            order = service.create_order(customer_user, _checkout_dto((product, 1)))
        assert order.order_number == "RN1700000000000002"

    def test_order_number_exhausted(self, service, customer_user, product, make_order):
        make_order("RN1700000000000001", status=OrderStatus.PENDING)
        with mock.patch(
            "modules.orders.services.generate_order_number",
            return_value="RN1700000000000001",
        ):
            with pytest.raises(OrderNumberExhausted):
                service.create_order(customer_user, _checkout_dto((product, 1)))


class TestQueries:
    def test_customers_only_see_their_orders(
        self, service, make_order, customer_user, other_customer
    ):
        mine = make_order("RN1700000000001")
        make_order("RN1700000000002", user=other_customer)
        assert [o.id for o in service.list_orders(customer_user)] == [mine.id]

    def test_admin_sees_all(self, service, make_order, admin_user, other_customer):
        make_order("RN1700000000001")
        make_order("RN1700000000002", user=other_customer)
        assert service.list_orders(admin_user).count() == 2

    def test_foreign_order_reported_as_missing(
        self, service, make_order, other_customer
    ):
        order = make_order()
        with pytest.raises(OrderNotFound):
            service.get_order(order.order_number, other_customer)

    def test_admin_stats(self, service, make_order, customer_user):
        make_order("RN1700000000001", status=OrderStatus.PENDING)
        make_order("RN1700000000002", status=OrderStatus.DELIVERED)
        stats = service.admin_stats()
        assert stats["total_orders"] == 2
        assert stats["total_revenue"] == Decimal("38000.00")
        assert stats["pending_orders"] == 1
        assert stats["total_products"] == 1
        assert stats["total_customers"] == 1
        assert stats["low_stock_products"] == 0
