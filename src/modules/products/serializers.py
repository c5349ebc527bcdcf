"""Product DRF serializers (read-only catalog API)."""

from __future__ import annotations

from rest_framework import serializers

from modules.products.models import Product, ProductImage


class ProductImageSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProductImage
        fields = ["id", "url", "alt_text", "is_primary", "position"]
        read_only_fields = fields


class ProductSerializer(serializers.ModelSerializer):
    """Read serializer for the Product resource."""

    images = ProductImageSerializer(many=True, read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "brand",
            "description",
            "price",
            "quantity",
            "is_active",
            "images",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
