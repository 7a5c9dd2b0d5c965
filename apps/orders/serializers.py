from rest_framework import serializers

from .models import Order, OrderItem, OrderStatus, DeliveryLocation
from .services import DELIVERY_STATUS_MAP, DEFAULT_ESTIMATED_MINUTES


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = ['id', 'product', 'product_name', 'product_image_url', 'quantity', 'unit_price', 'total_price']
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Full order with its lines."""

    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            'id',
            'order_number',
            'status',
            'total_amount',
            'delivery_address',
            'notes',
            'customer',
            'driver',
            'estimated_delivery_time',
            'assigned_at',
            'delivered_at',
            'created_at',
            'updated_at',
            'items',
        ]


class CreateOrderSerializer(serializers.Serializer):
    delivery_address = serializers.CharField(max_length=500)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    estimated_delivery_time = serializers.DateTimeField(required=False, allow_null=True, default=None)


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class AssignDriverSerializer(serializers.Serializer):
    driver_id = serializers.UUIDField()
    estimated_minutes = serializers.IntegerField(min_value=1, max_value=24 * 60, default=DEFAULT_ESTIMATED_MINUTES)


class DeliveryStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=list(DELIVERY_STATUS_MAP))
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class DriverLocationSerializer(serializers.Serializer):
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)
    accuracy = serializers.FloatField(required=False, allow_null=True, default=None)
    speed = serializers.FloatField(required=False, allow_null=True, default=None)
    heading = serializers.FloatField(required=False, allow_null=True, default=None)
    order_id = serializers.UUIDField(required=False, allow_null=True, default=None)


class DeliveryLocationSerializer(serializers.ModelSerializer):
    class Meta:
        model = DeliveryLocation
        fields = ['id', 'driver', 'order', 'latitude', 'longitude', 'accuracy', 'speed', 'heading', 'recorded_at']
        read_only_fields = fields
