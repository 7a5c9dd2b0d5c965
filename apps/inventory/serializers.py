from rest_framework import serializers

from .models import Product
from .services import AdjustmentType


class InventoryItemSerializer(serializers.ModelSerializer):
    """Product row as listed on the admin inventory screen."""

    class Meta:
        model = Product
        fields = ['id', 'name', 'image_url', 'price', 'stock', 'updated_at']
        read_only_fields = fields


class StockUpdateSerializer(serializers.Serializer):
    stock = serializers.IntegerField(min_value=0)
    adjustment_type = serializers.ChoiceField(
        choices=AdjustmentType.choices,
        default=AdjustmentType.SET,
    )
