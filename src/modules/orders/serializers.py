"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from typing import Optional

from rest_framework import serializers

from modules.orders.constants import DeliveryMethod, OrderStatus, PaymentMethod
from modules.orders.models import Order, OrderItem

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CreateOrderItemSerializer(serializers.Serializer):
    """Validates a single item in an order creation request."""

    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)


class ContactInfoSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=100)
    last_name = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    phone = serializers.CharField(max_length=30)
    email = serializers.EmailField()


class ShippingInfoSerializer(serializers.Serializer):
    country = serializers.CharField(max_length=100)
    region = serializers.CharField(max_length=100)
    address = serializers.CharField(max_length=255)
    address2 = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    delivery_date = serializers.DateTimeField(required=False, allow_null=True, default=None)
    convenient_time = serializers.CharField(
        max_length=100, required=False, allow_blank=True, default=""
    )


class CreateOrderSerializer(serializers.Serializer):
    """Validates the order creation request payload.

    The owner is always the authenticated caller, never a payload field.
    """

    items = CreateOrderItemSerializer(many=True, allow_empty=False)
    contact_info = ContactInfoSerializer()
    delivery_method = serializers.ChoiceField(choices=DeliveryMethod.choices)
    shipping_info = ShippingInfoSerializer(required=False, allow_null=True, default=None)
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices)
    delivery_note = serializers.CharField(required=False, allow_blank=True, default="")

    def validate(self, attrs):
        if attrs["delivery_method"] == DeliveryMethod.DELIVERY and not attrs.get(
            "shipping_info"
        ):
            raise serializers.ValidationError(
                {"shipping_info": "Shipping address is required for delivery orders."}
            )
        return attrs


class CancelOrderSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="", max_length=500)


class UpdateOrderStatusSerializer(serializers.Serializer):
    """Accepts any spelling of a known status; edges are checked by the service."""

    status = serializers.CharField()

    def validate_status(self, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in OrderStatus.values:
            raise serializers.ValidationError(f"Unknown order status: {value}.")
        return normalized


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    """Read serializer for order items with the product snapshot."""

    product_image = serializers.SerializerMethodField()

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "product_name",
            "product_brand",
            "product_image",
            "quantity",
            "price",
            "subtotal",
        ]
        read_only_fields = fields

    def get_product_image(self, obj: OrderItem) -> Optional[str]:
        image = obj.product.primary_image
        return image.url if image else None


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested items."""

    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "user_id",
            "status",
            "payment_status",
            "subtotal",
            "shipping_fee",
            "tax",
            "total",
            "contact_first_name",
            "contact_last_name",
            "contact_phone",
            "contact_email",
            "delivery_method",
            "shipping_country",
            "shipping_region",
            "shipping_address",
            "shipping_address2",
            "delivery_date",
            "convenient_time",
            "payment_method",
            "delivery_note",
            "cancellation_reason",
            "created_at",
            "updated_at",
            "items",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order lists."""

    item_count = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "user_id",
            "status",
            "payment_status",
            "total",
            "contact_email",
            "item_count",
            "created_at",
        ]
        read_only_fields = fields

    def get_item_count(self, obj: Order) -> int:
        return len(obj.items.all())
