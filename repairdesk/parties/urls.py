from django.urls import path
from .views import (
    customer_list_create, customer_detail, customer_devices,
    device_list_create, device_detail,
)

urlpatterns = [
    # Customer endpoints
    path('customers/', customer_list_create, name='customer-list-create'),
    path('customers/<int:pk>/', customer_detail, name='customer-detail'),
    path('customers/<int:pk>/devices/', customer_devices, name='customer-devices'),

    # Device endpoints
    path('devices/', device_list_create, name='device-list-create'),
    path('devices/<int:pk>/', device_detail, name='device-detail'),
]
