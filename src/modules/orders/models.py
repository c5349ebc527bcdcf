"""Order and OrderItem models.

Business rules implemented:
- Status transitions follow ``VALID_TRANSITIONS`` (enforced at service layer).
- Order number auto-generated on first save from the creation clock;
  unique column, bumped on collision.
- Owner FK uses PROTECT to preserve financial history; orders are never
  deleted, cancellation is a status value.
- Contact and shipping data are snapshots taken at checkout.
- OrderItem snapshots product name, brand and price at creation time.
- OrderItem subtotal is always ``quantity * price`` (calculated on save).
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import structlog
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import IntegrityError, models, transaction
from django.utils import timezone

from modules.core.models import BaseModel
from modules.orders.constants import (
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    DeliveryMethod,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from modules.orders.exceptions import OrderNumberUnavailable
from modules.orders.pricing import generate_order_number, line_subtotal, next_order_number

logger = structlog.get_logger(__name__)


def _money_field(**kwargs: Any) -> models.DecimalField:
    return models.DecimalField(max_digits=10, decimal_places=2, **kwargs)


class Order(BaseModel):
    """Order aggregate root.

    ``order_number`` is the short reference quoted to customers; the
    UUIDv7 ``id`` is used for all internal references and API look-ups.
    """

    order_number: models.CharField = models.CharField(
        max_length=20, unique=True, editable=False
    )
    user: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
    )
    status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )

    subtotal: models.DecimalField = _money_field()
    shipping_fee: models.DecimalField = _money_field(default=Decimal("0.00"))
    tax: models.DecimalField = _money_field(default=Decimal("0.00"))
    total: models.DecimalField = _money_field()

    contact_first_name: models.CharField = models.CharField(max_length=100)
    contact_last_name: models.CharField = models.CharField(max_length=100)
    contact_phone: models.CharField = models.CharField(max_length=30)
    contact_email: models.EmailField = models.EmailField(max_length=254)

    delivery_method: models.CharField = models.CharField(
        max_length=20, choices=DeliveryMethod.choices
    )
    shipping_country: models.CharField = models.CharField(
        max_length=100, blank=True, default=""
    )
    shipping_region: models.CharField = models.CharField(
        max_length=100, blank=True, default=""
    )
    shipping_address: models.CharField = models.CharField(
        max_length=255, blank=True, default=""
    )
    shipping_address2: models.CharField = models.CharField(
        max_length=255, blank=True, default=""
    )
    delivery_date: models.DateTimeField = models.DateTimeField(null=True, blank=True)
    convenient_time: models.CharField = models.CharField(
        max_length=100, blank=True, default=""
    )

    payment_method: models.CharField = models.CharField(
        max_length=20, choices=PaymentMethod.choices
    )
    payment_status: models.CharField = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    delivery_note: models.TextField = models.TextField(blank=True, default="")
    cancellation_reason: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["user", "-created_at"], name="orders_user_created_idx"),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        """Return ``True`` if the order is in a terminal state."""
        return self.status in TERMINAL_STATES

    def can_transition_to(self, new_status: str) -> bool:
        """Check whether transitioning to *new_status* is valid."""
        allowed = VALID_TRANSITIONS.get(self.status, set())
        return new_status in allowed

    @property
    def contact_name(self) -> str:
        return f"{self.contact_first_name} {self.contact_last_name}".strip()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        if self.order_number:
            super().save(*args, **kwargs)
            return
        self._insert_with_order_number(*args, **kwargs)

    def _insert_with_order_number(self, *args: Any, **kwargs: Any) -> None:
        """Insert under the first free number, bumping on collision.

        The ``exists()`` pre-check only sees committed rows; a number taken
        by a concurrent, uncommitted insert surfaces as an ``IntegrityError``
        from the unique index, so each attempt runs in its own savepoint.
        """
        candidate = generate_order_number(timezone.now())
        for _ in range(settings.ORDER_NUMBER_MAX_RETRIES):
            if not Order.objects.filter(order_number=candidate).exists():
                self.order_number = candidate
                try:
                    with transaction.atomic():
                        super().save(*args, **kwargs)
                    return
                except IntegrityError as exc:
                    if "order_number" not in str(exc):
                        raise
            logger.info("order.number_collision", order_number=candidate)
            candidate = next_order_number(candidate)
        self.order_number = ""
        raise OrderNumberUnavailable(
            f"Failed to allocate a unique order number after "
            f"{settings.ORDER_NUMBER_MAX_RETRIES} attempts."
        )

    def __str__(self) -> str:
        return f"#{self.order_number} ({self.status})"


class OrderItem(BaseModel):
    """Line item linking an Order to a Product.

    ``product_name``, ``product_brand`` and ``price`` are **snapshots**
    taken at checkout; later catalog edits never change them.
    ``subtotal`` is always ``quantity * price``, recalculated on every save.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product: models.ForeignKey = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    product_name: models.CharField = models.CharField(max_length=255)
    product_brand: models.CharField = models.CharField(
        max_length=120, blank=True, default=""
    )
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
    )
    price: models.DecimalField = _money_field()
    subtotal: models.DecimalField = _money_field(editable=False)

    class Meta:
        db_table = "order_items"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                check=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1."})

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.subtotal = line_subtotal(self.price, self.quantity)
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.product_name} x{self.quantity} ({self.subtotal})"
