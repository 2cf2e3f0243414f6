"""DRF serializers for the cart API."""

from rest_framework import serializers

from modules.cart.models import CartLine


class CartLineSerializer(serializers.ModelSerializer):
    product_id = serializers.UUIDField(read_only=True)
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = CartLine
        fields = [
            "id",
            "product_id",
            "size",
            "quantity",
            "unit_price",
            "subtotal",
            "title",
            "summary",
            "image",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class AddCartLineSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    size = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    quantity = serializers.IntegerField(min_value=1, default=1)
