"""Product catalog models.

Business rules implemented:
- Price must be greater than zero.
- Stock ``quantity`` can never be negative (DB check constraint); it is
  only mutated through ``IProductRepository.decrement_stock`` /
  ``increment_stock`` by the order lifecycle.
- Inactive products (``is_active=False``) cannot be ordered.
- At most one ``ProductImage`` per product is flagged ``is_primary``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

import structlog

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel

logger = structlog.get_logger(__name__)


class Product(BaseModel):
    name = models.CharField(max_length=255)
    brand = models.CharField(max_length=120, blank=True, default="")
    description = models.TextField(blank=True, default="")
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    quantity = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "products"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["is_active"], name="products_active_idx"),
            models.Index(fields=["brand"], name="products_brand_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                check=models.Q(price__gt=0),
                name="products_price_positive",
            ),
            models.CheckConstraint(
                check=models.Q(quantity__gte=0),
                name="products_quantity_non_negative",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.price is not None and self.price <= 0:
            raise ValidationError({"price": "Price must be greater than zero."})

    @property
    def primary_image(self) -> Optional[ProductImage]:
        """First image flagged primary.

        Uses the prefetch cache when ``images`` was prefetched, so list
        endpoints stay at a constant number of queries.
        """
        for image in self.images.all():
            if image.is_primary:
                return image
        return None

    def __str__(self) -> str:
        return f"{self.name} ({self.brand})" if self.brand else self.name


class ProductImage(BaseModel):
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.CASCADE,
        related_name="images",
    )
    url = models.URLField(max_length=500)
    alt_text = models.CharField(max_length=255, blank=True, default="")
    is_primary = models.BooleanField(default=False)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "product_images"
        ordering = ["position", "created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["product"],
                condition=models.Q(is_primary=True),
                name="product_images_single_primary",
            ),
        ]

    def __str__(self) -> str:
        return self.url
