from django.urls import path
from .views import location_list, location_detail

urlpatterns = [
    path('locations/', location_list, name='location-list'),
    path('locations/<int:pk>/', location_detail, name='location-detail'),
]
