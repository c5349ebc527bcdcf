"""Product API views.

Read-only storefront catalog.  Only active products are listed; stock
and prices are managed through the Django admin.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.mixins import ListModelMixin, RetrieveModelMixin
from rest_framework.viewsets import GenericViewSet

from modules.products.filters import ProductFilter
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.serializers import ProductSerializer


class ProductViewSet(ListModelMixin, RetrieveModelMixin, GenericViewSet):
    """ViewSet for browsing the catalog.

    All ORM access goes through ``ProductDjangoRepository``.
    """

    filterset_class = ProductFilter
    search_fields = ["name", "brand", "description"]
    ordering_fields = ["name", "price", "quantity", "created_at"]
    ordering = ["name"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    queryset = Product.objects.none()
    serializer_class = ProductSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._repo = ProductDjangoRepository()

    def get_queryset(self):
        return self._repo.list({"is_active": True})
