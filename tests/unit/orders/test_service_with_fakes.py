"""OrderService against in-memory repositories.

The service depends only on the repository and notifier interfaces, so
the lifecycle rules can be exercised without the ORM models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

import pytest

from modules.orders.constants import VALID_TRANSITIONS, OrderStatus
from modules.orders.dtos import (
    ContactInfoDTO,
    CreateOrderDTO,
    CreateOrderItemDTO,
    ShippingInfoDTO,
)
from modules.orders.exceptions import (
    InsufficientStock,
    InvalidOrderStatus,
    NotOrderOwner,
    ProductNotFoundOrInactive,
)
from modules.orders.notifications import IOrderNotifier
from modules.orders.pricing import line_subtotal
from modules.orders.repositories.interfaces import IOrderRepository
from modules.orders.services import OrderService
from modules.products.repositories.interfaces import IProductRepository

pytestmark = pytest.mark.unit


@dataclass
class FakeProduct:
    name: str
    price: Decimal
    quantity: int
    brand: str = ""
    is_active: bool = True
    id: UUID = field(default_factory=uuid4)


@dataclass
class FakeItem:
    product_id: UUID
    product_name: str
    product_brand: str
    quantity: int
    price: Decimal

    @property
    def subtotal(self) -> Decimal:
        return line_subtotal(self.price, self.quantity)


@dataclass
class FakeOrder:
    user_id: UUID
    status: str
    subtotal: Decimal
    shipping_fee: Decimal
    tax: Decimal
    total: Decimal
    items: List[FakeItem]
    fields: Dict[str, Any]
    order_number: str = "0000001"
    payment_status: str = "PENDING"
    cancellation_reason: str = ""
    id: UUID = field(default_factory=uuid4)

    def can_transition_to(self, new_status: str) -> bool:
        return new_status in VALID_TRANSITIONS.get(self.status, set())


class InMemoryProductRepository(IProductRepository):
    def __init__(self, *products: FakeProduct) -> None:
        self.products = {p.id: p for p in products}

    def get_by_id(self, id: str) -> Optional[FakeProduct]:
        return self.products.get(UUID(str(id)))

    def list(self, filters=None):
        return list(self.products.values())

    def save(self, entity, update_fields=None):
        self.products[entity.id] = entity
        return entity

    def get_active_by_ids(self, ids, for_update=False):
        found = [self.products[pid] for pid in ids if pid in self.products]
        return sorted((p for p in found if p.is_active), key=lambda p: p.id)

    def decrement_stock(self, id, quantity) -> bool:
        product = self.products[id]
        if product.quantity < quantity:
            return False
        product.quantity -= quantity
        return True

    def increment_stock(self, id, quantity) -> None:
        self.products[id].quantity += quantity


class InMemoryOrderRepository(IOrderRepository):
    def __init__(self) -> None:
        self.orders: Dict[UUID, FakeOrder] = {}
        self.saved_fields: List[List[str]] = []

    def create(self, data):
        data = dict(data)
        items = [FakeItem(**item) for item in data.pop("items")]
        order = FakeOrder(
            user_id=data.pop("user_id"),
            status=data.pop("status"),
            subtotal=data.pop("subtotal"),
            shipping_fee=data.pop("shipping_fee"),
            tax=data.pop("tax"),
            total=data.pop("total"),
            items=items,
            fields=data,
        )
        self.orders[order.id] = order
        return order

    def get_by_id(self, id):
        return self.orders.get(UUID(str(id)))

    def get_for_update(self, id):
        return self.get_by_id(id)

    def list_items(self, order):
        return list(order.items)

    def list(self, filters=None):
        return list(self.orders.values())

    def save(self, entity, update_fields=None):
        self.saved_fields.append(list(update_fields or []))
        self.orders[entity.id] = entity
        return entity


class RecordingNotifier(IOrderNotifier):
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent: List[tuple[str, str]] = []

    def order_confirmation(self, order) -> None:
        if self.fail:
            raise ConnectionError("broker unreachable")
        self.sent.append(("confirmation", order.status))

    def order_status_changed(self, order) -> None:
        if self.fail:
            raise ConnectionError("broker unreachable")
        self.sent.append(("status", order.status))


@pytest.fixture()
def whey():
    return FakeProduct(name="Whey", price=Decimal("12.50"), quantity=5, brand="Optimum")


@pytest.fixture()
def oats():
    return FakeProduct(name="Oats", price=Decimal("3.00"), quantity=2)


@pytest.fixture()
def products(whey, oats):
    return InMemoryProductRepository(whey, oats)


@pytest.fixture()
def orders():
    return InMemoryOrderRepository()


@pytest.fixture()
def recording_notifier():
    return RecordingNotifier()


@pytest.fixture()
def service(orders, products, recording_notifier):
    return OrderService(
        order_repository=orders,
        product_repository=products,
        notifier=recording_notifier,
    )


def _dto(user_id, lines, region=None):
    return CreateOrderDTO(
        user_id=user_id,
        items=[CreateOrderItemDTO(product_id=p.id, quantity=q) for p, q in lines],
        contact_info=ContactInfoDTO(
            first_name="Hina", last_name="Ali", phone="0300", email="hina@example.com"
        ),
        delivery_method="DELIVERY" if region else "STORE_PICKUP",
        shipping_info=(
            ShippingInfoDTO(country="Pakistan", region=region, address="1 Canal Road")
            if region
            else None
        ),
        payment_method="CARD",
    )


class TestCreateWithFakes:
    def test_totals_and_stock(self, service, whey, oats):
        order = service.create_order(_dto(uuid4(), [(whey, 2), (oats, 1)], region="Punjab"))

        assert order.subtotal == Decimal("28.00")
        assert order.shipping_fee == Decimal("100.00")
        assert order.total == Decimal("128.00")
        assert whey.quantity == 3
        assert oats.quantity == 1
        assert order.fields["shipping_region"] == "Punjab"
        assert order.fields["contact_email"] == "hina@example.com"

    def test_inactive_product(self, service, orders, whey, oats):
        oats.is_active = False

        with pytest.raises(ProductNotFoundOrInactive) as exc_info:
            service.create_order(_dto(uuid4(), [(whey, 1), (oats, 1)]))

        assert exc_info.value.product_ids == [oats.id]
        assert orders.orders == {}
        assert whey.quantity == 5

    def test_all_violations_listed(self, service, orders, whey, oats):
        with pytest.raises(InsufficientStock) as exc_info:
            service.create_order(_dto(uuid4(), [(whey, 6), (oats, 3)]))

        assert [(v.product_name, v.requested, v.available) for v in exc_info.value.violations] == [
            ("Whey", 6, 5),
            ("Oats", 3, 2),
        ]
        assert orders.orders == {}

    def test_confirmation_after_commit(
        self, service, recording_notifier, whey, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            service.create_order(_dto(uuid4(), [(whey, 1)]))

        assert recording_notifier.sent == [("confirmation", OrderStatus.PENDING)]


class TestLifecycleWithFakes:
    def test_cancel_restores_stock(self, service, orders, whey, oats):
        owner = uuid4()
        order = service.create_order(_dto(owner, [(whey, 2), (oats, 2)]))

        cancelled = service.cancel_order(order.id, owner, reason="duplicate")

        assert cancelled.status == OrderStatus.CANCELLED
        assert cancelled.cancellation_reason == "duplicate"
        assert (whey.quantity, oats.quantity) == (5, 2)
        assert orders.saved_fields[-1] == ["status", "cancellation_reason"]

    def test_cancel_by_stranger(self, service, whey):
        order = service.create_order(_dto(uuid4(), [(whey, 1)]))

        with pytest.raises(NotOrderOwner):
            service.cancel_order(order.id, uuid4())

        assert order.status == OrderStatus.PENDING
        assert whey.quantity == 4

    def test_double_cancel(self, service, whey):
        owner = uuid4()
        order = service.create_order(_dto(owner, [(whey, 3)]))
        service.cancel_order(order.id, owner)

        with pytest.raises(InvalidOrderStatus):
            service.cancel_order(order.id, owner)

        assert whey.quantity == 5

    def test_admin_cancel_from_processing(self, service, whey):
        order = service.create_order(_dto(uuid4(), [(whey, 2)]))
        service.update_status(order.id, OrderStatus.PAID)
        service.update_status(order.id, OrderStatus.PROCESSING)

        service.update_status(order.id, OrderStatus.CANCELLED)

        assert whey.quantity == 5

    def test_payment_status_follows_paid(self, service, orders, whey):
        order = service.create_order(_dto(uuid4(), [(whey, 1)]))

        service.update_status(order.id, OrderStatus.PAID)

        assert order.payment_status == "PAID"
        assert orders.saved_fields[-1] == ["status", "payment_status"]

    def test_notifier_failure_is_isolated(
        self, orders, products, whey, django_capture_on_commit_callbacks
    ):
        service = OrderService(orders, products, RecordingNotifier(fail=True))
        owner = uuid4()

        with django_capture_on_commit_callbacks(execute=True):
            order = service.create_order(_dto(owner, [(whey, 1)]))
            service.cancel_order(order.id, owner)

        assert order.status == OrderStatus.CANCELLED
        assert whey.quantity == 5
