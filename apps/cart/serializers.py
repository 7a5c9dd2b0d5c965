from rest_framework import serializers


class CartItemSerializer(serializers.Serializer):
    """Read-only cart line as rendered by ``cart_item_data``."""

    id = serializers.UUIDField()
    product_id = serializers.UUIDField()
    product_name = serializers.CharField()
    image_url = serializers.CharField(allow_blank=True)
    quantity = serializers.IntegerField()
    price = serializers.FloatField()
    total_price = serializers.FloatField()
    updated_at = serializers.CharField()


class CartSerializer(serializers.Serializer):
    items = CartItemSerializer(many=True)
    total_items = serializers.IntegerField()
    total_price = serializers.FloatField()
    updated_at = serializers.CharField()
    checksum = serializers.CharField()


class AddToCartSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1, default=1)


class UpdateQuantitySerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=0)
