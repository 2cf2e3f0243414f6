"""Inventory API views."""

from __future__ import annotations

from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.catalog.repositories.django_repository import ProductDjangoRepository
from modules.inventory.dtos import StockRequestDTO
from modules.inventory.repositories.django_repository import (
    ReservationDjangoRepository,
)
from modules.inventory.serializers import AvailabilitySerializer
from modules.inventory.services import StockReservationService


class AvailabilityView(APIView):
    """POST /api/v1/inventory/availability/

    Advisory only: a ``true`` answer holds no stock.
    """

    permission_classes = [AllowAny]

    def post(self, request: Request) -> Response:
        serializer = AvailabilitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            items = [
                StockRequestDTO(**item)
                for item in serializer.validated_data["items"]
            ]
        except (PydanticValidationError, ValueError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        service = StockReservationService(
            stock_store=ProductDjangoRepository(),
            reservation_repository=ReservationDjangoRepository(),
        )
        return Response({"available": service.check_availability(items)})
