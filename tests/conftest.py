from decimal import Decimal

import pytest

from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from modules.customers.models import Customer
from modules.orders.constants import DeliveryOption
from modules.orders.models import Order, OrderItem
from modules.products.models import Product, ProductStatus

User = get_user_model()


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_cache():
    """Throttle counters live in the cache; start every test from zero."""
    cache.clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


@pytest.fixture()
def driver_user():
    return User.objects.create_user(
        username="ali", password="testpass123", first_name="Ali"
    )


@pytest.fixture()
def auth_client(driver_user):
    """APIClient force-authenticated as driver ``Ali``."""
    client = APIClient()
    client.force_authenticate(user=driver_user)
    return client


@pytest.fixture()
def customer():
    return Customer.objects.create(
        name="Ahmed Al-Harbi",
        phone="+966 50 123 4567",
        address="King Fahd Rd, Riyadh",
        is_active=True,
    )


@pytest.fixture()
def product():
    return Product.objects.create(
        name="شاورما دجاج",
        name_en="Chicken Shawarma",
        price=Decimal("75.00"),
        status=ProductStatus.ACTIVE,
    )


@pytest.fixture()
def make_order(customer, product):
    """Factory for orders with one line item; keyword arguments override fields."""

    def _make(quantity: int = 2, **fields) -> Order:
        fields.setdefault("customer", customer)
        fields.setdefault("delivery_option", DeliveryOption.DELIVERY)
        fields.setdefault("delivery_address", customer.address)
        fields.setdefault("customer_phone", customer.phone)
        fields.setdefault("total", product.price * quantity)
        order = Order.objects.create(**fields)
        OrderItem.objects.create(
            order=order, product=product, quantity=quantity, unit_price=product.price
        )
        return order

    return _make
