import itertools
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from modules.accounts.models import UserRole
from modules.orders.constants import DeliveryMethod, PaymentMethod
from modules.orders.dtos import (
    ContactInfoDTO,
    CreateOrderDTO,
    CreateOrderItemDTO,
    ShippingInfoDTO,
)
from modules.orders.notifications import IOrderNotifier
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.products.models import Product, ProductImage
from modules.products.repositories.django_repository import ProductDjangoRepository


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


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_user(django_user_model):
    """Factory for users; every user gets a distinct username and e-mail."""
    counter = itertools.count(1)

    def _make(role=UserRole.CUSTOMER, **kwargs):
        n = next(counter)
        fields = {
            "username": f"user{n}",
            "email": f"user{n}@example.com",
            "password": "testpass123",
            "first_name": f"User{n}",
        }
        fields.update(kwargs)
        return django_user_model.objects.create_user(role=role, **fields)

    return _make


@pytest.fixture()
def customer(make_user):
    return make_user(username="sara", email="sara@example.com", first_name="Sara")


@pytest.fixture()
def other_customer(make_user):
    return make_user(username="ali", email="ali@example.com", first_name="Ali")


@pytest.fixture()
def admin_user(make_user):
    return make_user(
        role=UserRole.ADMIN,
        username="admin",
        email="admin@example.com",
        first_name="Admin",
    )


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_product():
    counter = itertools.count(1)

    def _make(
        name=None,
        price=Decimal("10.00"),
        quantity=100,
        is_active=True,
        brand="NutriBrand",
        image_url=None,
    ):
        n = next(counter)
        product = Product.objects.create(
            name=name or f"Product {n}",
            brand=brand,
            price=price,
            quantity=quantity,
            is_active=is_active,
        )
        if image_url:
            ProductImage.objects.create(
                product=product, url=image_url, alt_text=product.name, is_primary=True
            )
        return product

    return _make


@pytest.fixture()
def product_a(make_product):
    return make_product(
        name="Whey Protein",
        price=Decimal("10.00"),
        quantity=100,
        image_url="https://cdn.example.com/whey.jpg",
    )


@pytest.fixture()
def product_b(make_product):
    return make_product(name="Creatine", price=Decimal("25.50"), quantity=10)


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_order_dto():
    """Build a ``CreateOrderDTO`` from ``(product, quantity)`` pairs."""

    def _make(
        user,
        lines,
        delivery_method=DeliveryMethod.STORE_PICKUP,
        region=None,
        payment_method=PaymentMethod.CASH_ON_DELIVERY,
    ):
        shipping = None
        if delivery_method == DeliveryMethod.DELIVERY:
            shipping = ShippingInfoDTO(
                country="Pakistan",
                region=region or "Sindh",
                address="House 12, Street 4",
            )
        return CreateOrderDTO(
            user_id=user.id,
            items=[
                CreateOrderItemDTO(product_id=product.id, quantity=quantity)
                for product, quantity in lines
            ],
            contact_info=ContactInfoDTO(
                first_name=user.first_name,
                last_name="Khan",
                phone="+923001234567",
                email=user.email,
            ),
            delivery_method=delivery_method,
            shipping_info=shipping,
            payment_method=payment_method,
        )

    return _make


@pytest.fixture()
def notifier():
    return MagicMock(spec=IOrderNotifier)


@pytest.fixture()
def order_service(notifier):
    return OrderService(
        order_repository=OrderDjangoRepository(),
        product_repository=ProductDjangoRepository(),
        notifier=notifier,
    )


@pytest.fixture()
def placed_order(order_service, make_order_dto, customer, product_a, product_b):
    """A PENDING order for ``customer``: 2 x product_a, 3 x product_b."""
    return order_service.create_order(
        make_order_dto(customer, [(product_a, 2), (product_b, 3)])
    )
