"""Catalog DRF serializers (interface layer).

Write payloads are validated here and converted to Pydantic DTOs by the
views; business rules live in ``ProductService``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.catalog.models import DEFAULT_SIZE, Product, ProductVariant


class VariantSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProductVariant
        fields = ["id", "size", "price", "stock_quantity"]
        read_only_fields = ["id"]


class ProductSerializer(serializers.ModelSerializer):
    """Read serializer with nested variants."""

    variants = VariantSerializer(many=True, read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "sku",
            "title",
            "summary",
            "description",
            "image",
            "category",
            "featured",
            "status",
            "variants",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class VariantInputSerializer(serializers.Serializer):
    size = serializers.CharField(required=False, default=DEFAULT_SIZE, allow_blank=True)
    price = serializers.DecimalField(max_digits=10, decimal_places=2)
    stock_quantity = serializers.IntegerField(required=False, default=0)


class CreateProductSerializer(serializers.Serializer):
    sku = serializers.CharField(max_length=64)
    title = serializers.CharField(max_length=255)
    summary = serializers.CharField(required=False, default="", allow_blank=True)
    description = serializers.CharField(required=False, default="", allow_blank=True)
    image = serializers.CharField(required=False, default="", allow_blank=True)
    category = serializers.CharField(required=False, default="", allow_blank=True)
    featured = serializers.BooleanField(required=False, default=False)
    variants = VariantInputSerializer(many=True, allow_empty=False)


class SetStockSerializer(serializers.Serializer):
    size = serializers.CharField(required=False, default=DEFAULT_SIZE, allow_blank=True)
    stock_quantity = serializers.IntegerField()


class UpsertVariantSerializer(serializers.Serializer):
    size = serializers.CharField(required=False, default=DEFAULT_SIZE, allow_blank=True)
    price = serializers.DecimalField(max_digits=10, decimal_places=2)
    stock_quantity = serializers.IntegerField(required=False, allow_null=True, default=None)
