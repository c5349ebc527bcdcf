"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.
Domain exceptions are caught and translated into distinct HTTP status
codes; the view never swallows generic exceptions.
"""

from __future__ import annotations

from uuid import UUID

import pydantic
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.permissions import BasePermission, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.accounts.permissions import IsAdminRole
from modules.orders.dtos import (
    ContactInfoDTO,
    CreateOrderDTO,
    CreateOrderItemDTO,
    ShippingInfoDTO,
)
from modules.orders.exceptions import (
    InsufficientStock,
    InvalidOrderStatus,
    NotOrderOwner,
    OrderNotFound,
    PersistenceError,
    ProductNotFoundOrInactive,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.notifications import CeleryOrderNotifier
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    CancelOrderSerializer,
    CreateOrderSerializer,
    OrderListSerializer,
    OrderSerializer,
    UpdateOrderStatusSerializer,
)
from modules.orders.services import OrderService
from modules.products.repositories.django_repository import ProductDjangoRepository

ADMIN_ACTIONS = {"update_status", "admin_all"}


def _not_found() -> Response:
    return Response({"detail": "Order not found."}, status=status.HTTP_404_NOT_FOUND)


def _domain_error(exc: Exception) -> Response:
    """Translate an order-domain exception into its HTTP response."""
    if isinstance(exc, ProductNotFoundOrInactive):
        return Response(
            {
                "detail": str(exc),
                "errors": [
                    {"product_id": str(pid), "error": "Product not found or inactive."}
                    for pid in exc.product_ids
                ],
            },
            status=status.HTTP_400_BAD_REQUEST,
        )
    if isinstance(exc, InsufficientStock):
        return Response(
            {
                "detail": "Insufficient stock.",
                "errors": [
                    {
                        "product_id": str(v.product_id),
                        "product_name": v.product_name,
                        "requested": v.requested,
                        "available": v.available,
                    }
                    for v in exc.violations
                ],
            },
            status=status.HTTP_409_CONFLICT,
        )
    if isinstance(exc, NotOrderOwner):
        return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
    if isinstance(exc, OrderNotFound):
        return _not_found()
    if isinstance(exc, InvalidOrderStatus):
        return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, PersistenceError):
        return Response(
            {"detail": "The order could not be saved. Please try again."},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    raise exc


ORDER_ERRORS = (
    ProductNotFoundOrInactive,
    InsufficientStock,
    NotOrderOwner,
    OrderNotFound,
    InvalidOrderStatus,
    PersistenceError,
)


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with injected repositories and notifier (DIP).
    Does **not** extend ``ModelViewSet``; all ORM access goes through
    the service/repository layer.
    """

    queryset = Order.objects.none()
    serializer_class = OrderSerializer
    filterset_class = OrderFilter
    ordering_fields = ["created_at", "total", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = OrderService(
            order_repository=OrderDjangoRepository(),
            product_repository=ProductDjangoRepository(),
            notifier=CeleryOrderNotifier(),
        )

    def get_permissions(self) -> list[BasePermission]:
        if self.action in ADMIN_ACTIONS:
            return [IsAuthenticated(), IsAdminRole()]
        return [IsAuthenticated()]

    def get_throttles(self) -> list[BaseThrottle]:
        """Per-action throttling scopes."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve", "admin_all"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def get_queryset(self):
        if self.action == "admin_all":
            return self._service.list_orders()
        return self._service.list_orders({"user_id": self.request.user.id})

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/

        The authenticated caller becomes the order owner.
        """
        create_serializer = CreateOrderSerializer(data=request.data)
        create_serializer.is_valid(raise_exception=True)
        data = create_serializer.validated_data

        try:
            dto = CreateOrderDTO(
                user_id=request.user.id,
                items=[
                    CreateOrderItemDTO(
                        product_id=item["product_id"],
                        quantity=item["quantity"],
                    )
                    for item in data["items"]
                ],
                contact_info=ContactInfoDTO(**data["contact_info"]),
                delivery_method=data["delivery_method"],
                shipping_info=(
                    ShippingInfoDTO(**data["shipping_info"])
                    if data.get("shipping_info")
                    else None
                ),
                payment_method=data["payment_method"],
                delivery_note=data.get("delivery_note", ""),
            )
        except pydantic.ValidationError as exc:
            return Response(
                {
                    "detail": "Invalid order request.",
                    "errors": [
                        {"field": ".".join(str(p) for p in err["loc"]), "error": err["msg"]}
                        for err in exc.errors()
                    ],
                },
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            order = self._service.create_order(dto)
        except ORDER_ERRORS as exc:
            return _domain_error(exc)

        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        The caller's own orders, optionally filtered by ``?status=``.
        """
        return self._paginated(request)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/

        Visible to the owner and to admins.
        """
        order_id = _parse_id(pk)
        if order_id is None:
            return _not_found()
        try:
            order = self._service.get_order(str(order_id))
        except OrderNotFound:
            return _not_found()

        if order.user_id != request.user.id and not request.user.is_admin:
            return Response(
                {"detail": "Not authorized to view this order."},
                status=status.HTTP_403_FORBIDDEN,
            )
        return Response(OrderSerializer(order).data)

    @action(detail=False, methods=["get"], url_path="admin/all")
    def admin_all(self, request: Request) -> Response:
        """GET /api/v1/orders/admin/all/

        Every order; ``?status=``, ``?user=`` and ``?search=`` (order
        number, contact e-mail or phone).
        """
        return self._paginated(request)

    # ------------------------------------------------------------------
    # Cancel (owner)
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post", "put"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/

        Cancels the caller's order and restores reserved stock.
        """
        order_id = _parse_id(pk)
        if order_id is None:
            return _not_found()

        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = self._service.cancel_order(
                order_id=order_id,
                requesting_user_id=request.user.id,
                reason=serializer.validated_data["reason"],
            )
        except ORDER_ERRORS as exc:
            return _domain_error(exc)

        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Status Update (admin)
    # ------------------------------------------------------------------

    @action(detail=True, methods=["put", "patch"], url_path="status")
    def update_status(self, request: Request, pk: str | None = None) -> Response:
        """PUT/PATCH /api/v1/orders/{pk}/status/

        Moves the order along the state machine.  Cancelling here
        restores stock exactly like the owner cancellation.
        """
        order_id = _parse_id(pk)
        if order_id is None:
            return _not_found()

        serializer = UpdateOrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = self._service.update_status(
                order_id=order_id,
                new_status=serializer.validated_data["status"],
            )
        except ORDER_ERRORS as exc:
            return _domain_error(exc)

        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _paginated(self, request: Request) -> Response:
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        serializer = OrderListSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)


def _parse_id(pk: str | None) -> UUID | None:
    if pk is None:
        return None
    try:
        return UUID(pk)
    except ValueError:
        return None
