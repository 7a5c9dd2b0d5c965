from django.urls import path
from . import views

app_name = 'cart'

urlpatterns = [
    path('', views.cart, name='cart'),
    path('<uuid:product_id>/', views.cart_item, name='cart-item'),
]
