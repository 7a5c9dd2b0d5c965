from django.urls import path
from . import views

app_name = 'sync'

urlpatterns = [
    path('state/', views.sync_state, name='state'),
    path('resolve/', views.sync_resolve, name='resolve'),
]
