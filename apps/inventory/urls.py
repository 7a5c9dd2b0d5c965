from django.urls import path
from . import views

app_name = 'inventory'

urlpatterns = [
    path('', views.inventory_list, name='inventory-list'),
    path('<uuid:product_id>/', views.update_product_stock, name='inventory-update'),
]
