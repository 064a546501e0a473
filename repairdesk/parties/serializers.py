from rest_framework import serializers
from .models import Customer, Device


class CustomerSerializer(serializers.ModelSerializer):
    device_count = serializers.IntegerField(source='devices.count', read_only=True)

    class Meta:
        model = Customer
        fields = [
            'id', 'name', 'phone', 'email', 'address', 'notes',
            'device_count', 'is_active', 'created_at', 'updated_at'
        ]


class DeviceSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source='customer.name', read_only=True)

    class Meta:
        model = Device
        fields = [
            'id', 'customer', 'customer_name', 'device_type', 'brand', 'model',
            'serial_number', 'imei', 'color', 'notes', 'created_at', 'updated_at'
        ]

    def validate_imei(self, value):
        value = (value or '').strip()
        if value and (not value.isdigit() or len(value) not in (15, 16)):
            raise serializers.ValidationError('IMEI must be 15 or 16 digits.')
        return value
