"""Cart API views.  Every request works on the authenticated caller's cart."""

from __future__ import annotations

from decimal import Decimal

from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import ViewSet

from modules.cart.dtos import AddCartLineDTO
from modules.cart.exceptions import CartLineNotFound
from modules.cart.repositories.django_repository import CartDjangoRepository
from modules.cart.serializers import AddCartLineSerializer, CartLineSerializer
from modules.cart.services import CartService
from modules.catalog.exceptions import ProductNotFound
from modules.catalog.repositories.django_repository import ProductDjangoRepository
from modules.core.context import RequestContext


class CartViewSet(ViewSet):
    permission_classes = [IsAuthenticated]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = CartService(
            cart_repository=CartDjangoRepository(),
            product_repository=ProductDjangoRepository(),
        )

    def list(self, request: Request) -> Response:
        """GET /api/v1/cart/"""
        lines = self._service.list_lines(RequestContext.from_request(request))
        total = sum((line.subtotal for line in lines), Decimal("0.00"))
        return Response(
            {
                "lines": CartLineSerializer(lines, many=True).data,
                "total": str(total),
            }
        )

    def create(self, request: Request) -> Response:
        """POST /api/v1/cart/  ``{"product_id", "size", "quantity"}``"""
        serializer = AddCartLineSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            dto = AddCartLineDTO(**serializer.validated_data)
        except (PydanticValidationError, ValueError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        try:
            line = self._service.add_line(RequestContext.from_request(request), dto)
        except ProductNotFound as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        return Response(CartLineSerializer(line).data, status=status.HTTP_201_CREATED)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/cart/{line_id}/"""
        try:
            self._service.remove_line(RequestContext.from_request(request), pk or "")
        except CartLineNotFound:
            return Response(
                {"detail": "Cart line not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["post"])
    def clear(self, request: Request) -> Response:
        """POST /api/v1/cart/clear/"""
        removed = self._service.clear(RequestContext.from_request(request))
        return Response({"removed": removed})
