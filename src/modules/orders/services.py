"""Order service layer (Use Cases).

Orchestrates order creation, cancellation and administrative status
changes.  All write operations are atomic: the service defines the
unit-of-work boundary, and notifications are only handed to the
notifier once that unit of work has committed.

Business rules enforced:
- Only active catalog products can be ordered; every missing or inactive
  product is reported at once.
- Stock is checked against row-locked products and every shortage is
  reported at once; the decrement itself is a conditional relative
  update, so stock can never go negative.
- Prices, names and brands are snapshotted from the catalog.
- ``total = subtotal + shipping_fee + tax``.
- Status transitions follow ``VALID_TRANSITIONS``; owners may cancel
  from ``CUSTOMER_CANCELLABLE_STATES``.
- Any transition into CANCELLED restores the stock of every item.
"""

from __future__ import annotations

from contextlib import contextmanager
from functools import partial
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, Iterator, List, Optional
from uuid import UUID

import structlog
from django.db import DatabaseError, transaction

from modules.orders.constants import (
    CUSTOMER_CANCELLABLE_STATES,
    PAYMENT_STATUS_ON_TRANSITION,
    OrderStatus,
)
from modules.orders.exceptions import (
    InsufficientStock,
    InvalidOrderStatus,
    NotOrderOwner,
    OrderNotFound,
    PersistenceError,
    ProductNotFoundOrInactive,
    StockViolation,
)
from modules.orders.pricing import (
    ZERO,
    calculate_shipping_fee,
    calculate_tax,
    line_subtotal,
)

if TYPE_CHECKING:
    from modules.orders.dtos import CreateOrderDTO
    from modules.orders.models import Order
    from modules.orders.notifications import IOrderNotifier
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.models import Product
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for Order use-cases.

    Receives repositories and the notifier via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        product_repository: IProductRepository,
        notifier: IOrderNotifier,
    ) -> None:
        self._order_repo = order_repository
        self._product_repo = product_repository
        self._notifier = notifier

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_order(self, dto: CreateOrderDTO) -> Order:
        """Place an order and reserve its stock atomically.

        Steps:
        1. Lock the requested active products (primary-key order).
        2. Reject unknown/inactive products, then every stock shortage.
        3. Snapshot prices and compute subtotal, shipping, tax and total.
        4. Persist order + items and decrement stock.
        5. After commit, send the order confirmation.

        Raises:
            ProductNotFoundOrInactive: a product is unknown or inactive.
            InsufficientStock: at least one item exceeds available stock.
            PersistenceError: the database failed; nothing was written.
        """
        log = logger.bind(user_id=str(dto.user_id), item_count=len(dto.items))
        log.info("order.creation_started")

        with self._unit_of_work(log, "create order"):
            products = self._lock_products(dto.product_ids, log)
            lines, subtotal = self._price_lines(dto, products)

            region = dto.shipping_info.region if dto.shipping_info else None
            shipping_fee = calculate_shipping_fee(dto.delivery_method, region)
            tax = calculate_tax(subtotal)

            order = self._order_repo.create(
                {
                    **self._snapshot_fields(dto),
                    "user_id": dto.user_id,
                    "status": OrderStatus.PENDING,
                    "subtotal": subtotal,
                    "shipping_fee": shipping_fee,
                    "tax": tax,
                    "total": subtotal + shipping_fee + tax,
                    "items": lines,
                }
            )
            self._reserve_stock(dto, products, log)

            created = self._order_repo.get_by_id(str(order.id)) or order
            transaction.on_commit(
                partial(self._notify, self._notifier.order_confirmation, created)
            )

        log.info(
            "order.created",
            order_id=str(created.id),
            order_number=created.order_number,
            total=str(created.total),
        )
        return created

    def cancel_order(
        self,
        order_id: UUID,
        requesting_user_id: UUID,
        reason: str = "",
    ) -> Order:
        """Cancel the caller's own order and release its stock.

        Acquires a row-level lock on the order **first** so concurrent
        cancellations cannot release stock twice.

        Raises:
            OrderNotFound: order does not exist.
            NotOrderOwner: the caller does not own the order.
            InvalidOrderStatus: the order is past PENDING/PAID.
        """
        log = logger.bind(order_id=str(order_id), user_id=str(requesting_user_id))

        with self._unit_of_work(log, "cancel order"):
            order = self._get_locked(order_id)
            if str(order.user_id) != str(requesting_user_id):
                log.warning("order.cancel_forbidden")
                raise NotOrderOwner(f"Not authorized to cancel order {order_id}.")
            if order.status not in CUSTOMER_CANCELLABLE_STATES:
                log.warning("order.cancel_not_allowed", current_status=order.status)
                raise InvalidOrderStatus(order.status)

            updated = self._transition(order, OrderStatus.CANCELLED, log, reason)

        log.info("order.cancelled", reason=reason)
        return updated

    def update_status(self, order_id: UUID, new_status: str) -> Order:
        """Move an order along the state machine (administrative).

        Stock is restored when the new status is CANCELLED, exactly as in
        ``cancel_order``.

        Raises:
            OrderNotFound: order does not exist.
            InvalidOrderStatus: the transition is not allowed.
        """
        log = logger.bind(order_id=str(order_id), new_status=new_status)

        with self._unit_of_work(log, "update order status"):
            order = self._get_locked(order_id)
            if not order.can_transition_to(new_status):
                log.warning("order.invalid_transition", current_status=order.status)
                raise InvalidOrderStatus(order.status, new_status)

            updated = self._transition(order, new_status, log)

        return updated

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str) -> Order:
        """Retrieve a single order by ID.

        Raises:
            OrderNotFound: if the order does not exist.
        """
        order = self._order_repo.get_by_id(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def list_orders(self, filters: Optional[Dict[str, Any]] = None) -> Iterable[Order]:
        """Return orders, optionally filtered (e.g. ``{"user_id": ...}``)."""
        return self._order_repo.list(filters)

    # ------------------------------------------------------------------
    # Creation helpers
    # ------------------------------------------------------------------

    def _lock_products(self, product_ids: List[UUID], log) -> Dict[UUID, Product]:
        products = self._product_repo.get_active_by_ids(product_ids, for_update=True)
        by_id = {product.id: product for product in products}
        missing = [pid for pid in product_ids if pid not in by_id]
        if missing:
            log.warning(
                "order.products_unavailable",
                product_ids=[str(pid) for pid in missing],
            )
            raise ProductNotFoundOrInactive(missing)
        return by_id

    def _price_lines(
        self, dto: CreateOrderDTO, products: Dict[UUID, Product]
    ) -> tuple[List[Dict[str, Any]], Any]:
        violations: List[StockViolation] = []
        lines: List[Dict[str, Any]] = []
        subtotal = ZERO

        for item in dto.items:
            product = products[item.product_id]
            if product.quantity < item.quantity:
                violations.append(
                    StockViolation(
                        product_id=product.id,
                        product_name=product.name,
                        requested=item.quantity,
                        available=product.quantity,
                    )
                )
                continue
            subtotal += line_subtotal(product.price, item.quantity)
            lines.append(
                {
                    "product_id": product.id,
                    "product_name": product.name,
                    "product_brand": product.brand,
                    "quantity": item.quantity,
                    "price": product.price,
                }
            )

        if violations:
            raise InsufficientStock(violations)
        return lines, subtotal

    def _reserve_stock(
        self, dto: CreateOrderDTO, products: Dict[UUID, Product], log
    ) -> None:
        for item in sorted(dto.items, key=lambda i: i.product_id):
            if self._product_repo.decrement_stock(item.product_id, item.quantity):
                log.info(
                    "order.stock_reserved",
                    product_id=str(item.product_id),
                    quantity=item.quantity,
                )
                continue
            current = self._product_repo.get_by_id(str(item.product_id))
            product = products[item.product_id]
            raise InsufficientStock(
                [
                    StockViolation(
                        product_id=product.id,
                        product_name=product.name,
                        requested=item.quantity,
                        available=current.quantity if current else 0,
                    )
                ]
            )

    @staticmethod
    def _snapshot_fields(dto: CreateOrderDTO) -> Dict[str, Any]:
        contact = dto.contact_info
        fields: Dict[str, Any] = {
            "contact_first_name": contact.first_name,
            "contact_last_name": contact.last_name,
            "contact_phone": contact.phone,
            "contact_email": contact.email,
            "delivery_method": dto.delivery_method,
            "payment_method": dto.payment_method,
            "delivery_note": dto.delivery_note or "",
        }
        shipping = dto.shipping_info
        if shipping is not None:
            fields.update(
                {
                    "shipping_country": shipping.country,
                    "shipping_region": shipping.region,
                    "shipping_address": shipping.address,
                    "shipping_address2": shipping.address2,
                    "delivery_date": shipping.delivery_date,
                    "convenient_time": shipping.convenient_time,
                }
            )
        return fields

    # ------------------------------------------------------------------
    # Transition helpers
    # ------------------------------------------------------------------

    def _get_locked(self, order_id: UUID) -> Order:
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def _transition(self, order: Order, new_status: str, log, reason: str = "") -> Order:
        """Apply *new_status* to a locked order. Caller validated the edge."""
        old_status = order.status
        update_fields = ["status"]

        if new_status == OrderStatus.CANCELLED:
            self._release_stock(order, log)
            order.cancellation_reason = reason
            update_fields.append("cancellation_reason")

        payment_status = PAYMENT_STATUS_ON_TRANSITION.get(new_status)
        if payment_status:
            order.payment_status = payment_status
            update_fields.append("payment_status")

        order.status = new_status
        self._order_repo.save(order, update_fields=update_fields)

        updated = self._order_repo.get_by_id(str(order.id)) or order
        transaction.on_commit(
            partial(self._notify, self._notifier.order_status_changed, updated)
        )
        log.info("order.status_updated", old_status=old_status, new_status=new_status)
        return updated

    def _release_stock(self, order: Order, log) -> None:
        for item in self._order_repo.list_items(order):
            self._product_repo.increment_stock(item.product_id, item.quantity)
            log.info(
                "order.stock_released",
                product_id=str(item.product_id),
                quantity=item.quantity,
            )

    # ------------------------------------------------------------------
    # Infrastructure
    # ------------------------------------------------------------------

    @staticmethod
    @contextmanager
    def _unit_of_work(log, action: str) -> Iterator[None]:
        try:
            with transaction.atomic():
                yield
        except DatabaseError as exc:
            log.exception("order.persistence_failed", action=action)
            raise PersistenceError(f"Failed to {action}.") from exc

    @staticmethod
    def _notify(send: Callable[[Order], None], order: Order) -> None:
        """Run a notifier call; failures are logged, never raised."""
        try:
            send(order)
        except Exception:
            logger.exception("notification.dispatch_failed", order_id=str(order.id))
