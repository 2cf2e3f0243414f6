"""DRF serializers for the inventory endpoints."""

from rest_framework import serializers


class StockRequestSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    size = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    quantity = serializers.IntegerField(min_value=1)


class AvailabilitySerializer(serializers.Serializer):
    items = StockRequestSerializer(many=True, allow_empty=False)
