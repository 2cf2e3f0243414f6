"""Catalog API views.

Reads are public; writes require the admin role.  Domain exceptions are
translated into HTTP status codes here and nowhere else.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.mixins import ListModelMixin
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.catalog.dtos import (
    CreateProductDTO,
    SetStockDTO,
    UpdateProductDTO,
    UpsertVariantDTO,
    VariantDTO,
)
from modules.catalog.exceptions import (
    LastVariant,
    ProductAlreadyExists,
    ProductNotFound,
)
from modules.catalog.filters import ProductFilter
from modules.catalog.models import DEFAULT_SIZE, Product
from modules.catalog.repositories.django_repository import ProductDjangoRepository
from modules.catalog.serializers import (
    CreateProductSerializer,
    ProductSerializer,
    SetStockSerializer,
    UpsertVariantSerializer,
)
from modules.catalog.services import ProductService
from modules.core.permissions import IsAdminOrReadOnly

_NOT_FOUND = {"detail": "Product not found."}


class ProductViewSet(ListModelMixin, GenericViewSet):
    """Product listing, detail and administration."""

    permission_classes = [IsAdminOrReadOnly]
    filterset_class = ProductFilter
    search_fields = ["title", "sku", "summary", "description"]
    ordering_fields = ["title", "created_at", "featured"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    serializer_class = ProductSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = ProductService(repository=ProductDjangoRepository())

    def get_queryset(self):
        return Product.objects.alive().prefetch_related("variants")

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/products/{pk}/"""
        try:
            product = self._service.get_product(pk or "")
        except ProductNotFound:
            return Response(_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(ProductSerializer(product).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/products/"""
        serializer = CreateProductSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            dto = CreateProductDTO(
                sku=data["sku"],
                title=data["title"],
                summary=data["summary"],
                description=data["description"],
                image=data["image"],
                category=data["category"],
                featured=data["featured"],
                variants=[VariantDTO(**variant) for variant in data["variants"]],
            )
        except (PydanticValidationError, ValueError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        try:
            product = self._service.create_product(dto)
        except ProductAlreadyExists as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)

        return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/products/{pk}/"""
        data = request.data
        try:
            dto = UpdateProductDTO(
                title=data.get("title"),
                summary=data.get("summary"),
                description=data.get("description"),
                image=data.get("image"),
                category=data.get("category"),
                featured=data.get("featured"),
                status=data.get("status"),
            )
        except (PydanticValidationError, ValueError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        try:
            product = self._service.update_product(pk or "", dto)
        except ProductNotFound:
            return Response(_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(ProductSerializer(product).data)

    @action(detail=True, methods=["patch"], url_path="stock")
    def update_stock(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/products/{pk}/stock/  ``{"size": "M", "stock_quantity": N}``"""
        serializer = SetStockSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = SetStockDTO(**serializer.validated_data)
        except (PydanticValidationError, ValueError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        try:
            product = self._service.set_stock(pk or "", dto)
        except ProductNotFound as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        return Response(ProductSerializer(product).data)

    @action(detail=True, methods=["put", "delete"], url_path="variants")
    def variants(self, request: Request, pk: str | None = None) -> Response:
        """PUT    /api/v1/products/{pk}/variants/  ``{"size": "M", "price": "9.90"}``
        DELETE /api/v1/products/{pk}/variants/?size=M
        """
        if request.method == "DELETE":
            try:
                product = self._service.remove_variant(
                    pk or "", request.query_params.get("size", DEFAULT_SIZE)
                )
            except ProductNotFound as exc:
                return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
            except LastVariant as exc:
                return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
            return Response(ProductSerializer(product).data)

        serializer = UpsertVariantSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = UpsertVariantDTO(**serializer.validated_data)
        except (PydanticValidationError, ValueError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        try:
            product = self._service.upsert_variant(pk or "", dto)
        except ProductNotFound as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        return Response(ProductSerializer(product).data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/products/{pk}/"""
        try:
            self._service.delete_product(pk or "")
        except ProductNotFound:
            return Response(_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(status=status.HTTP_204_NO_CONTENT)
