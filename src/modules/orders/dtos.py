"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``CreateOrderItemDTO`` / ``ContactInfoDTO`` / ``ShippingInfoDTO``:
  pieces of a checkout request.
- ``CreateOrderDTO``: input for order creation.
- ``OrderItemOutputDTO`` / ``OrderOutputDTO``: order snapshot handed to
  the notification sink.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator, model_validator

from modules.orders.constants import DeliveryMethod, PaymentMethod

if TYPE_CHECKING:
    from modules.orders.models import Order


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateOrderItemDTO(BaseModel):
    """A single line of a checkout request.

    Only ``product_id`` and ``quantity`` come from the client; name, brand
    and price are resolved by the Service Layer from the catalog.
    """

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v


class ContactInfoDTO(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    first_name: str
    last_name: str
    phone: str
    email: EmailStr

    @field_validator("first_name", "phone")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        if not v:
            raise ValueError("Field is required.")
        return v


class ShippingInfoDTO(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    country: str
    region: str
    address: str
    address2: str = ""
    delivery_date: Optional[datetime] = None
    convenient_time: str = ""

    @field_validator("address")
    @classmethod
    def address_must_not_be_blank(cls, v: str) -> str:
        if not v:
            raise ValueError("Shipping address is required.")
        return v


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests.

    Validates:
    - ``items`` must contain at least one item, without duplicate products.
    - Each item quantity must be positive.
    - ``shipping_info`` is required for home delivery.
    """

    model_config = ConfigDict(frozen=True)

    user_id: UUID
    items: List[CreateOrderItemDTO]
    contact_info: ContactInfoDTO
    delivery_method: DeliveryMethod
    shipping_info: Optional[ShippingInfoDTO] = None
    payment_method: PaymentMethod
    delivery_note: Optional[str] = ""

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(
        cls, v: List[CreateOrderItemDTO]
    ) -> List[CreateOrderItemDTO]:
        if not v:
            raise ValueError("Order must contain at least one item.")
        return v

    @model_validator(mode="after")
    def no_duplicate_products(self):
        product_ids = [item.product_id for item in self.items]
        if len(product_ids) != len(set(product_ids)):
            raise ValueError("Duplicate product IDs are not allowed in the same order.")
        return self

    @model_validator(mode="after")
    def shipping_required_for_delivery(self):
        if self.delivery_method == DeliveryMethod.DELIVERY and self.shipping_info is None:
            raise ValueError("Shipping address is required for delivery orders.")
        return self

    @property
    def product_ids(self) -> List[UUID]:
        return [item.product_id for item in self.items]


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class OrderItemOutputDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: UUID
    product_name: str
    product_brand: str
    quantity: int
    price: Decimal
    subtotal: Decimal


class OrderOutputDTO(BaseModel):
    """Immutable order snapshot (JSON-safe via ``model_dump(mode="json")``)."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    order_number: str
    status: str
    subtotal: Decimal
    shipping_fee: Decimal
    tax: Decimal
    total: Decimal
    contact_first_name: str
    contact_email: str
    delivery_method: str
    shipping_country: str
    shipping_region: str
    shipping_address: str
    shipping_address2: str
    payment_method: str
    created_at: datetime
    items: List[OrderItemOutputDTO]

    @classmethod
    def from_entity(cls, order: Order) -> OrderOutputDTO:
        """Build an output DTO from an Order model instance.

        Assumes ``items`` are prefetched.
        """
        items = [
            OrderItemOutputDTO(
                product_id=item.product_id,
                product_name=item.product_name,
                product_brand=item.product_brand,
                quantity=item.quantity,
                price=item.price,
                subtotal=item.subtotal,
            )
            for item in order.items.all()
        ]
        return cls(
            id=order.id,
            order_number=order.order_number,
            status=order.status,
            subtotal=order.subtotal,
            shipping_fee=order.shipping_fee,
            tax=order.tax,
            total=order.total,
            contact_first_name=order.contact_first_name,
            contact_email=order.contact_email,
            delivery_method=order.delivery_method,
            shipping_country=order.shipping_country,
            shipping_region=order.shipping_region,
            shipping_address=order.shipping_address,
            shipping_address2=order.shipping_address2,
            payment_method=order.payment_method,
            created_at=order.created_at,
            items=items,
        )
