"""Order notifier: hands order snapshots to the notification sink.

``IOrderNotifier`` is what ``OrderService`` depends on.  The Celery
implementation only enqueues; delivery and retries belong to the sink.
``OrderService`` isolates notifier failures, so implementations may
raise freely.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import structlog

from modules.orders.dtos import OrderOutputDTO

if TYPE_CHECKING:
    from modules.orders.models import Order

logger = structlog.get_logger(__name__)


class IOrderNotifier(ABC):
    """Fire-and-forget notifications about an order."""

    @abstractmethod
    def order_confirmation(self, order: Order) -> None:
        """Notify the customer that *order* was placed."""

    @abstractmethod
    def order_status_changed(self, order: Order) -> None:
        """Notify the customer that *order* moved to a new status."""


class CeleryOrderNotifier(IOrderNotifier):
    """Enqueues the ``notifications`` e-mail tasks."""

    def order_confirmation(self, order: Order) -> None:
        from modules.notifications.tasks import send_order_confirmation_email

        snapshot = OrderOutputDTO.from_entity(order).model_dump(mode="json")
        send_order_confirmation_email.delay(
            order.contact_email, snapshot, order.contact_first_name
        )
        logger.info("notification.enqueued", order_id=str(order.id), kind="confirmation")

    def order_status_changed(self, order: Order) -> None:
        from modules.notifications.tasks import send_order_status_email

        snapshot = OrderOutputDTO.from_entity(order).model_dump(mode="json")
        send_order_status_email.delay(
            order.contact_email, snapshot, order.contact_first_name
        )
        logger.info(
            "notification.enqueued",
            order_id=str(order.id),
            kind="status_changed",
            status=order.status,
        )
