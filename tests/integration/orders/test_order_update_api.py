"""Integration tests for PATCH /api/orders/{order_number} (admin status updates)."""

import pytest

from modules.orders.constants import OrderStatus
from modules.orders.models import OrderStatusHistory

pytestmark = pytest.mark.integration

URL = "/api/orders/RN1700000000123"


class TestAdminStatusUpdate:
    def test_confirmed_to_shipped(self, admin_client, make_order):
        order = make_order(status=OrderStatus.CONFIRMED)

        response = admin_client.patch(URL, {"status": "SHIPPED"}, format="json")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["order"]["orderNumber"] == "RN1700000000123"
        assert body["order"]["status"] == "SHIPPED"
        assert body["order"]["shippedAt"] is not None
        history = body["order"]["statusHistory"]
        assert len(history) == 1
        assert history[0]["oldStatus"] == "CONFIRMED"
        assert history[0]["status"] == "SHIPPED"
        assert history[0]["notes"] == "Order status updated to SHIPPED"
        assert OrderStatusHistory.objects.filter(order=order).count() == 1

    def test_repeated_shipped_keeps_first_timestamp(self, admin_client, make_order):
        make_order(status=OrderStatus.CONFIRMED)

        first = admin_client.patch(URL, {"status": "SHIPPED"}, format="json").json()
        second = admin_client.patch(URL, {"status": "SHIPPED"}, format="json").json()

        assert second["order"]["shippedAt"] == first["order"]["shippedAt"]
        assert len(second["order"]["statusHistory"]) == 1

    def test_payment_status_and_notes(self, admin_client, make_order):
        make_order(status=OrderStatus.DELIVERED)

        response = admin_client.patch(
            URL, {"paymentStatus": "PAID", "adminNotes": "Cash received"}, format="json"
        )

        order = response.json()["order"]
        assert order["paymentStatus"] == "PAID"
        assert order["adminNotes"] == "Cash received"
        assert order["statusHistory"] == []

    def test_customer_forbidden(self, customer_client, make_order):
        make_order(status=OrderStatus.CONFIRMED)

        response = customer_client.patch(URL, {"status": "SHIPPED"}, format="json")

        assert response.status_code == 403
        assert response.json() == {"error": "Admin access required"}

    def test_delivery_person_forbidden(self, delivery_client, make_order):
        make_order(status=OrderStatus.CONFIRMED)
        response = delivery_client.patch(URL, {"status": "DELIVERED"}, format="json")
        assert response.status_code == 403

    def test_unauthenticated(self, api_client, make_order):
        make_order(status=OrderStatus.CONFIRMED)

        response = api_client.patch(URL, {"status": "SHIPPED"}, format="json")

        assert response.status_code == 401
        assert response.json() == {"error": "Authentication required"}

    def test_unknown_status(self, admin_client, make_order):
        make_order(status=OrderStatus.CONFIRMED)
        response = admin_client.patch(URL, {"status": "LOST"}, format="json")
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid status: LOST"}

    def test_unknown_order(self, admin_client):
        response = admin_client.patch(URL, {"status": "SHIPPED"}, format="json")
        assert response.status_code == 404
        assert response.json() == {"error": "Order not found"}

    def test_empty_status_is_ignored(self, admin_client, make_order):
        make_order(status=OrderStatus.CONFIRMED)

        response = admin_client.patch(
            URL,
            {"status": "", "paymentStatus": "", "adminNotes": "Customer called"},
            format="json",
        )

        assert response.status_code == 200
        order = response.json()["order"]
        assert order["status"] == "CONFIRMED"
        assert order["paymentStatus"] == "PENDING"
        assert order["adminNotes"] == "Customer called"
        assert order["statusHistory"] == []

    def test_array_body_rejected(self, admin_client, make_order):
        make_order(status=OrderStatus.CONFIRMED)

        response = admin_client.patch(URL, ["SHIPPED"], format="json")

        assert response.status_code == 400
        assert response.json() == {"error": "Request body must be a JSON object"}
