from rest_framework import serializers
from .models import Location


class LocationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Location
        fields = ['id', 'name', 'location_code', 'location_type', 'address', 'phone', 'email', 'is_active', 'created_at', 'updated_at']
