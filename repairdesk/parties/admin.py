from django.contrib import admin
from .models import Customer, Device


class DeviceInline(admin.TabularInline):
    model = Device
    extra = 0
    fields = ['device_type', 'brand', 'model', 'serial_number', 'imei']


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ['name', 'phone', 'email', 'is_active', 'created_at']
    list_filter = ['is_active', 'created_at']
    search_fields = ['name', 'phone', 'email']
    ordering = ['name']
    inlines = [DeviceInline]


@admin.register(Device)
class DeviceAdmin(admin.ModelAdmin):
    list_display = ['brand', 'model', 'device_type', 'customer', 'serial_number', 'imei', 'created_at']
    list_filter = ['device_type', 'brand', 'created_at']
    search_fields = ['brand', 'model', 'serial_number', 'imei', 'customer__name', 'customer__phone']
    ordering = ['-created_at']
