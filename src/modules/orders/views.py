"""Order API views.

Exposes ``OrderService`` over HTTP.  Domain exceptions are translated into
HTTP status codes here; the view never swallows generic exceptions.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.core.context import RequestContext
from modules.core.pagination import StandardResultsSetPagination
from modules.inventory.exceptions import InsufficientStock
from modules.orders.constants import OrderStatus
from modules.orders.dtos import CreateOrderDTO
from modules.orders.exceptions import (
    AdminRequired,
    EmptyCart,
    IdempotencyKeyConflict,
    InvalidTransition,
    NotCancellable,
    OrderNotFound,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.serializers import (
    CancelOrderSerializer,
    ConfirmPaymentSerializer,
    CreateOrderSerializer,
    OrderListSerializer,
    OrderSerializer,
    UpdateStatusSerializer,
)
from modules.orders.services import build_order_service
from modules.payments.exceptions import PaymentGatewayError

_NOT_FOUND = {"detail": "Order not found."}


class OrderViewSet(GenericViewSet):
    """Checkout, order history and fulfilment.

    Does not extend ``ModelViewSet``; writes go through the service layer.
    """

    queryset = Order.objects.none()
    permission_classes = [IsAuthenticated]
    serializer_class = OrderSerializer
    filterset_class = OrderFilter
    search_fields = ["order_number", "items__title"]
    ordering_fields = ["created_at", "total_amount", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def get_throttles(self) -> list[BaseThrottle]:
        """Per-action throttle scopes."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def _context(self) -> RequestContext:
        return RequestContext.from_request(self.request)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/

        Places an order from the caller's cart.  Supports idempotency via
        the ``Idempotency-Key`` header: 200 for a replay, 201 otherwise.
        """
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            dto = CreateOrderDTO(
                payment=data["payment"],
                address=data["address"],
                notes=data.get("notes", ""),
                idempotency_key=request.headers.get("Idempotency-Key"),
            )
        except (PydanticValidationError, ValueError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        ctx = self._context()
        replay = bool(dto.idempotency_key) and Order.objects.filter(
            idempotency_key=dto.idempotency_key, user_id=ctx.user_id
        ).exists()

        try:
            order = self._service.create_order(ctx, dto)
        except EmptyCart as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except InsufficientStock as exc:
            return Response(
                {"detail": str(exc), **exc.as_dict()},
                status=status.HTTP_409_CONFLICT,
            )
        except IdempotencyKeyConflict as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)

        return Response(
            OrderSerializer(order).data,
            status=status.HTTP_200_OK if replay else status.HTTP_201_CREATED,
        )

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return Order.objects.none()
        return self._service.list_orders(self._context())

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Administrators see every order; other callers see their own.
        """
        queryset = self.filter_queryset(self.get_queryset())

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        try:
            order = self._service.get_order(self._context(), pk or "")
        except OrderNotFound:
            return Response(_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Status update (administrators)
    # ------------------------------------------------------------------

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/  ``{"status": "SHIPPED"}``

        Cancellations are not accepted here; use
        ``POST /orders/{id}/cancel/`` instead.
        """
        serializer = UpdateStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        new_status = serializer.validated_data["status"]

        if new_status == OrderStatus.CANCELLED:
            return Response(
                {"detail": "Use the /cancel/ endpoint for cancellations."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            order = self._service.update_status(
                self._context(),
                pk or "",
                new_status,
                notes=serializer.validated_data["notes"],
            )
        except AdminRequired as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        except OrderNotFound:
            return Response(_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except InvalidTransition as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Cancel
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/

        Cancels the order and returns its stock before responding.
        """
        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = self._service.cancel_order(
                self._context(), pk or "", notes=serializer.validated_data["notes"]
            )
        except OrderNotFound:
            return Response(_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except NotCancellable as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)

        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Payment confirmation
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"], url_path="confirm-payment")
    def confirm_payment(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/confirm-payment/

        Synchronously asks the gateway.  A decline or timeout is not an
        HTTP error: the order comes back ``FAILED``.
        """
        serializer = ConfirmPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            self._service.get_order(self._context(), pk or "")
            order = self._service.confirm_payment(
                pk or "", timeout=serializer.validated_data.get("timeout")
            )
        except OrderNotFound:
            return Response(_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except InvalidTransition as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except PaymentGatewayError as exc:
            return Response(
                {"detail": f"Payment gateway unavailable: {exc}"},
                status=status.HTTP_502_BAD_GATEWAY,
            )

        return Response(OrderSerializer(order).data)
