from django.contrib import admin
from .models import Order, OrderItem, DeliveryLocation


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ['product', 'product_name', 'quantity', 'unit_price', 'total_price']


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'customer', 'status', 'total_amount', 'driver', 'created_at']
    list_filter = ['status', 'created_at']
    search_fields = ['order_number', 'customer__email']
    readonly_fields = ['order_number', 'created_at', 'updated_at', 'assigned_at', 'delivered_at']
    date_hierarchy = 'created_at'
    inlines = [OrderItemInline]


@admin.register(DeliveryLocation)
class DeliveryLocationAdmin(admin.ModelAdmin):
    list_display = ['driver', 'order', 'latitude', 'longitude', 'recorded_at']
    list_filter = ['recorded_at']
    search_fields = ['driver__email']
