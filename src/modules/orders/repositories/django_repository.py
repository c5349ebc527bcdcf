"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.  The
service owns the transaction boundary; ``create`` is additionally
atomic so the aggregate is never half-written when called alone.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Prefetch, QuerySet

from modules.orders.models import Order, OrderItem
from modules.orders.repositories.interfaces import IOrderRepository
from modules.products.models import ProductImage

logger = structlog.get_logger(__name__)


def _with_relations(queryset: QuerySet[Order]) -> QuerySet[Order]:
    """Eager-load items, their products and only the primary image."""
    return queryset.select_related("user").prefetch_related(
        Prefetch(
            "items",
            queryset=OrderItem.objects.select_related("product").prefetch_related(
                Prefetch(
                    "product__images",
                    queryset=ProductImage.objects.filter(is_primary=True),
                )
            ),
        )
    )


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        fields = dict(data)
        items = fields.pop("items", [])

        order = Order(**fields)
        order.save()

        for item_data in items:
            OrderItem(order=order, **item_data).save()

        logger.info(
            "order.persisted",
            order_id=str(order.id),
            order_number=order.order_number,
            item_count=len(items),
        )
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Returns ``None`` for non-existent or invalid IDs."""
        try:
            return _with_relations(Order.objects.filter(id=id)).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Order]:
        """Lock only the order row; related rows are read separately."""
        try:
            return Order.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list_items(self, order: Order) -> List[OrderItem]:
        return list(OrderItem.objects.filter(order=order).order_by("product_id"))

    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet[Order]:
        """List orders with optional filters and eager-loaded relations.

        Supported filter keys are Django look-ups, e.g. ``user_id`` or
        ``status``.
        """
        queryset = _with_relations(Order.objects.all())
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------

    def save(self, entity: Order, update_fields: Optional[list[str]] = None) -> Order:
        entity.save(update_fields=update_fields)
        logger.info("order.saved", order_id=str(entity.id), status=entity.status)
        return entity
