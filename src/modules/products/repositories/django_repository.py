"""Django ORM implementation of the Product repository.

Stock changes are expressed as relative ``F()`` updates so the database
applies them against the current row value, never against a stale copy
held in Python.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

import structlog

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F, QuerySet
from django.utils import timezone

from modules.products.models import Product
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        """Retrieve a product by primary key, images prefetched.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return Product.objects.prefetch_related("images").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet[Product]:
        """List products with optional Django ORM look-ups.

        Examples of valid filters::

            {"is_active": True}
            {"name__icontains": "whey"}
        """
        queryset = Product.objects.prefetch_related("images")
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    @transaction.atomic
    def save(
        self, entity: Product, update_fields: Optional[list[str]] = None
    ) -> Product:
        """Persist (create or update) a product."""
        entity.save(update_fields=update_fields)
        logger.info("product.saved", product_id=str(entity.id))
        return entity

    def get_active_by_ids(
        self, ids: Iterable[UUID], for_update: bool = False
    ) -> List[Product]:
        queryset = Product.objects.filter(id__in=list(ids), is_active=True)
        if for_update:
            # Lock in primary-key order so concurrent orders never deadlock
            queryset = queryset.select_for_update()
        return list(queryset.order_by("id"))

    def decrement_stock(self, id: UUID, quantity: int) -> bool:
        updated = Product.objects.filter(id=id, quantity__gte=quantity).update(
            quantity=F("quantity") - quantity,
            updated_at=timezone.now(),
        )
        if updated:
            logger.info("product.stock_decremented", product_id=str(id), quantity=quantity)
        else:
            logger.warning(
                "product.stock_decrement_rejected", product_id=str(id), quantity=quantity
            )
        return bool(updated)

    def increment_stock(self, id: UUID, quantity: int) -> None:
        Product.objects.filter(id=id).update(
            quantity=F("quantity") + quantity,
            updated_at=timezone.now(),
        )
        logger.info("product.stock_incremented", product_id=str(id), quantity=quantity)
