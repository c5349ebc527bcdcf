"""Pure pricing and numbering helpers for orders.

Kept free of ORM access so they can be tested and reused in isolation.
Shipping rates are configuration (``ORDER_SHIPPING_RATES`` /
``ORDER_DEFAULT_SHIPPING_FEE``), not a pricing engine.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Mapping, Optional

from django.conf import settings

from modules.orders.constants import ORDER_NUMBER_LENGTH, DeliveryMethod

ZERO = Decimal("0.00")
CENTS = Decimal("0.01")


def calculate_shipping_fee(
    delivery_method: str,
    region: Optional[str],
    rates: Optional[Mapping[str, Decimal]] = None,
    default: Optional[Decimal] = None,
) -> Decimal:
    """Shipping fee for *delivery_method* to *region*.

    Store pickup is always free.  Delivery uses the regional rate table,
    falling back to the default fee for unknown or missing regions.
    """
    if delivery_method == DeliveryMethod.STORE_PICKUP:
        return ZERO
    if rates is None:
        rates = settings.ORDER_SHIPPING_RATES
    if default is None:
        default = settings.ORDER_DEFAULT_SHIPPING_FEE
    fee = rates.get(region, default) if region else default
    return Decimal(fee).quantize(CENTS)


def calculate_tax(subtotal: Decimal) -> Decimal:
    """Tax on *subtotal*. No tax is charged yet."""
    return ZERO


def line_subtotal(unit_price: Decimal, quantity: int) -> Decimal:
    return (unit_price * quantity).quantize(CENTS)


def generate_order_number(now: datetime) -> str:
    """Customer-facing order number: trailing digits of the epoch-ms clock."""
    millis = int(now.timestamp() * 1000)
    return str(millis)[-ORDER_NUMBER_LENGTH:].zfill(ORDER_NUMBER_LENGTH)


def next_order_number(candidate: str) -> str:
    """The numerically next order number, wrapping within the fixed width."""
    modulus = 10**ORDER_NUMBER_LENGTH
    return str((int(candidate) + 1) % modulus).zfill(ORDER_NUMBER_LENGTH)
