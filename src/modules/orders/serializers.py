"""Order DRF serializers for API input/output.

Business rules live in the service layer, which receives Pydantic DTOs
from ``dtos.py``; these serializers only shape HTTP payloads.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.constants import OrderStatus, PaymentMode
from modules.orders.models import Order, OrderItem, OrderStatusHistory

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class PaymentSerializer(serializers.Serializer):
    mode = serializers.ChoiceField(choices=PaymentMode.values)
    gateway_reference = serializers.CharField(
        required=False, allow_blank=True, max_length=255
    )

    def validate(self, attrs):
        if attrs["mode"] == PaymentMode.ONLINE and not attrs.get("gateway_reference"):
            raise serializers.ValidationError(
                {"gateway_reference": "Required for online payments."}
            )
        if attrs["mode"] == PaymentMode.CASH_ON_DELIVERY:
            attrs.pop("gateway_reference", None)
        return attrs


class CreateOrderSerializer(serializers.Serializer):
    """Checkout payload; lines are taken from the caller's cart."""

    payment = PaymentSerializer()
    address = serializers.CharField()
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class UpdateStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.values)
    notes = serializers.CharField(required=False, default="", allow_blank=True)

    def to_internal_value(self, data):
        if hasattr(data, "get") and isinstance(data.get("status"), str):
            data = {**data, "status": data["status"].upper()}
        return super().to_internal_value(data)


class CancelOrderSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class ConfirmPaymentSerializer(serializers.Serializer):
    timeout = serializers.FloatField(required=False, min_value=0.1, allow_null=True)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    """Snapshot of the line as it was bought."""

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "size",
            "title",
            "summary",
            "image",
            "quantity",
            "unit_price",
            "subtotal",
        ]
        read_only_fields = fields


class StatusHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderStatusHistory
        fields = [
            "id",
            "old_status",
            "new_status",
            "user_id",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested items and history."""

    items = OrderItemSerializer(many=True, read_only=True)
    status_history = StatusHistorySerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "user_id",
            "status",
            "payment_mode",
            "payment_id",
            "total_amount",
            "address",
            "notes",
            "created_at",
            "updated_at",
            "items",
            "status_history",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order lists."""

    item_count = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "user_id",
            "status",
            "payment_mode",
            "total_amount",
            "item_count",
            "created_at",
        ]
        read_only_fields = fields

    def get_item_count(self, obj: Order) -> int:
        return sum(item.quantity for item in obj.items.all())
