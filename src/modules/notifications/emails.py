"""Order e-mail rendering.

Builds subject + text/HTML bodies from the JSON order snapshot produced
by ``OrderOutputDTO``.  Rendering is pure; sending lives in ``tasks``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Mapping

from django.conf import settings
from django.template.loader import render_to_string


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    text: str
    html: str


@dataclass(frozen=True)
class StatusCopy:
    title: str
    message: str


STATUS_COPY: Dict[str, StatusCopy] = {
    "PAID": StatusCopy(
        "Payment Confirmed",
        "Your payment has been confirmed and your order is being prepared.",
    ),
    "PROCESSING": StatusCopy(
        "Order Processing",
        "We're preparing your order for shipment.",
    ),
    "SHIPPED": StatusCopy(
        "Order Shipped",
        "Your order is on its way! You should receive it soon.",
    ),
    "DELIVERED": StatusCopy(
        "Order Delivered",
        "Your order has been delivered. We hope you enjoy your products!",
    ),
    "CANCELLED": StatusCopy(
        "Order Cancelled",
        "Your order has been cancelled. If you didn't request this, "
        "please contact support.",
    ),
    "REFUNDED": StatusCopy(
        "Order Refunded",
        "Your payment has been refunded.",
    ),
}


def status_copy(status: str) -> StatusCopy:
    return STATUS_COPY.get(
        status,
        StatusCopy("Order Update", f"Your order status has been updated to {status}."),
    )


def _context(order: Mapping[str, Any], display_name: str) -> Dict[str, Any]:
    return {
        "order": order,
        "display_name": display_name or order.get("contact_first_name", ""),
        "is_delivery": order.get("delivery_method") == "DELIVERY",
        "free_shipping": Decimal(str(order.get("shipping_fee", "0"))) == 0,
        "store_name": settings.EMAIL_FROM_NAME,
        "frontend_url": settings.FRONTEND_URL,
    }


def render_order_confirmation(
    order: Mapping[str, Any], display_name: str
) -> RenderedEmail:
    context = _context(order, display_name)
    return RenderedEmail(
        subject=(
            f"Order Confirmation #{order['order_number']} - {settings.EMAIL_FROM_NAME}"
        ),
        text=render_to_string("notifications/order_confirmation.txt", context),
        html=render_to_string("notifications/order_confirmation.html", context),
    )


def render_order_status(order: Mapping[str, Any], display_name: str) -> RenderedEmail:
    copy = status_copy(order["status"])
    context = {**_context(order, display_name), "copy": copy}
    return RenderedEmail(
        subject=(
            f"Order #{order['order_number']} - {copy.title} - "
            f"{settings.EMAIL_FROM_NAME}"
        ),
        text=render_to_string("notifications/order_status.txt", context),
        html=render_to_string("notifications/order_status.html", context),
    )
