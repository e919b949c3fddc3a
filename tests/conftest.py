from decimal import Decimal

import pytest

from django.core.cache import cache
from rest_framework.test import APIClient

from modules.accounts.constants import Role
from modules.accounts.models import User
from modules.catalog.models import Category, Product
from modules.customers.models import Address
from modules.orders.constants import OrderStatus
from modules.orders.models import Order, OrderItem


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_cache():
    """Throttle counters live in the cache; start every test from zero."""
    cache.clear()
    yield
    cache.clear()


def _make_user(email: str, role: str, name: str) -> User:
    first_name, _, last_name = name.partition(" ")
    user = User(
        username=email,
        email=email,
        first_name=first_name,
        last_name=last_name,
        role=role,
    )
    user.set_password("testpass123")
    user.save()
    return user


@pytest.fixture()
def admin_user():
    return _make_user("admin@example.com", Role.ADMIN, "Store Admin")


@pytest.fixture()
def customer_user():
    return _make_user("customer@example.com", Role.CUSTOMER, "Demo Customer")


@pytest.fixture()
def other_customer():
    return _make_user("other@example.com", Role.CUSTOMER, "Other Customer")


@pytest.fixture()
def delivery_user():
    return _make_user("rider@example.com", Role.DELIVERY, "Juma Rider")


@pytest.fixture()
def second_rider():
    return _make_user("courier@example.com", Role.DELIVERY, "Amina Courier")


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


def _client_for(user: User) -> APIClient:
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture()
def admin_client(admin_user):
    return _client_for(admin_user)


@pytest.fixture()
def customer_client(customer_user):
    return _client_for(customer_user)


@pytest.fixture()
def delivery_client(delivery_user):
    return _client_for(delivery_user)


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


@pytest.fixture()
def category():
    return Category.objects.create(name="Organic Juices", slug="organic-juices")


@pytest.fixture()
def product(category):
    return Product.objects.create(
        name="Premium Orange Juice",
        description="Fresh-pressed orange juice",
        price=Decimal("8500.00"),
        category=category,
        inventory=50,
    )


@pytest.fixture()
def address(customer_user):
    return Address.objects.create(
        user=customer_user,
        name="Demo Customer",
        phone="+255123456789",
        street="12 Uhuru Street",
        city="Dar es Salaam",
        region="Ilala",
    )


@pytest.fixture()
def make_order(customer_user, address, product):
    """Factory for orders created directly in the database."""

    def _make(
        order_number: str = "RN1700000000123",
        status: str = OrderStatus.PENDING,
        user=None,
        delivery_person=None,
        quantity: int = 2,
        **fields,
    ) -> Order:
        owner = user or customer_user
        order_address = address
        if owner != customer_user:
            order_address = Address.objects.create(
                user=owner, name=owner.name, phone="+255700000000", street="1 Main Rd"
            )
        subtotal = product.price * quantity
        order = Order.objects.create(
            order_number=order_number,
            user=owner,
            address=order_address,
            subtotal=subtotal,
            shipping_cost=Decimal("2000.00"),
            total=subtotal + Decimal("2000.00"),
            status=status,
            delivery_person=delivery_person,
            qr_code="data:image/png;base64,AAAA",
            tracking_hash="f" * 64,
            **fields,
        )
        OrderItem.objects.create(
            order=order, product=product, quantity=quantity, price=product.price
        )
        return order

    return _make


@pytest.fixture()
def make_located_order(make_order, customer_user):
    """Order whose address has its own region and coordinates."""

    def _make(
        order_number: str,
        region: str,
        latitude=-6.8,
        longitude=39.28,
        status: str = OrderStatus.CONFIRMED,
        **fields,
    ) -> Order:
        order = make_order(order_number=order_number, status=status, **fields)
        order.address = Address.objects.create(
            user=customer_user,
            name="Demo Customer",
            phone="+255123456789",
            street=f"{order_number[-3:]} Morogoro Road",
            city="Dar es Salaam",
            region=region,
            latitude=latitude,
            longitude=longitude,
        )
        order.save(update_fields=["address"])
        return order

    return _make
