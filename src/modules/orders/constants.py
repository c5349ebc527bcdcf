"""Order domain constants.

Defines status choices and the valid status transitions for the order
state machine, plus the delivery/payment enumerations captured on every
order.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    PAID = "PAID", "Paid"
    PROCESSING = "PROCESSING", "Processing"
    SHIPPED = "SHIPPED", "Shipped"
    DELIVERED = "DELIVERED", "Delivered"
    CANCELLED = "CANCELLED", "Cancelled"
    REFUNDED = "REFUNDED", "Refunded"


class DeliveryMethod(models.TextChoices):
    STORE_PICKUP = "STORE_PICKUP", "Store pickup"
    DELIVERY = "DELIVERY", "Delivery"


class PaymentMethod(models.TextChoices):
    CARD = "CARD", "Card"
    CASH_ON_DELIVERY = "CASH_ON_DELIVERY", "Cash on delivery"
    BANK_TRANSFER = "BANK_TRANSFER", "Bank transfer"


class PaymentStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    PAID = "PAID", "Paid"
    FAILED = "FAILED", "Failed"
    REFUNDED = "REFUNDED", "Refunded"


VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.PENDING: {OrderStatus.PAID, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.PROCESSING, OrderStatus.REFUNDED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
    OrderStatus.REFUNDED: set(),
}

TERMINAL_STATES: set[str] = {
    OrderStatus.DELIVERED,
    OrderStatus.CANCELLED,
    OrderStatus.REFUNDED,
}

# Customers may cancel their own order only before it is being prepared.
# PAID -> CANCELLED is not an admin edge; it exists for the owner only.
CUSTOMER_CANCELLABLE_STATES: set[str] = {OrderStatus.PENDING, OrderStatus.PAID}

# Payment status implied by reaching an order status.
PAYMENT_STATUS_ON_TRANSITION: dict[str, str] = {
    OrderStatus.PAID: PaymentStatus.PAID,
    OrderStatus.REFUNDED: PaymentStatus.REFUNDED,
}

ORDER_NUMBER_LENGTH = 7
