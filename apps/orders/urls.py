from django.urls import path
from . import views

app_name = 'orders'

urlpatterns = [
    path('orders/', views.orders, name='orders'),
    path('admin/orders/<uuid:order_id>/status/', views.admin_order_status, name='admin-order-status'),
    path('admin/orders/<uuid:order_id>/assign/', views.admin_assign_driver, name='admin-order-assign'),
    path('delivery/orders/<uuid:order_id>/status/', views.delivery_order_status, name='delivery-order-status'),
    path('delivery/location/', views.delivery_location, name='delivery-location'),
]
