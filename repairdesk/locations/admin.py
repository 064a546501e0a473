from django.contrib import admin
from .models import Location


@admin.register(Location)
class LocationAdmin(admin.ModelAdmin):
    list_display = ['name', 'location_code', 'location_type', 'phone', 'email', 'is_active', 'created_at']
    list_filter = ['location_type', 'is_active', 'created_at']
    search_fields = ['name', 'location_code', 'email']
    ordering = ['name']
