from django.contrib import admin
from .models import JobSheet, Payment, StatusHistory


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0
    can_delete = False
    fields = ['payment_number', 'amount', 'payment_method', 'reference', 'created_by', 'created_at']
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


class StatusHistoryInline(admin.TabularInline):
    model = StatusHistory
    extra = 0
    can_delete = False
    fields = ['from_status', 'to_status', 'remarks', 'changed_by', 'changed_at']
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(JobSheet)
class JobSheetAdmin(admin.ModelAdmin):
    list_display = [
        'job_number', 'customer', 'device', 'location', 'status', 'priority',
        'total_amount', 'paid_amount', 'balance_amount', 'received_date', 'expected_completion_date'
    ]
    list_filter = ['status', 'priority', 'location', 'received_date']
    search_fields = ['job_number', 'customer__name', 'customer__phone', 'device__serial_number', 'device__imei']
    readonly_fields = [
        'job_number', 'status', 'total_amount', 'paid_amount', 'balance_amount',
        'completed_date', 'delivered_date', 'warranty_expiry', 'created_by', 'created_at', 'updated_at'
    ]
    ordering = ['-created_at']
    inlines = [PaymentInline, StatusHistoryInline]


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ['payment_number', 'job_sheet', 'customer', 'amount', 'payment_method', 'created_by', 'created_at']
    list_filter = ['payment_method', 'created_at']
    search_fields = ['payment_number', 'job_sheet__job_number', 'customer__name', 'reference']
    ordering = ['-created_at']

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(StatusHistory)
class StatusHistoryAdmin(admin.ModelAdmin):
    list_display = ['job_sheet', 'from_status', 'to_status', 'changed_by', 'changed_at']
    list_filter = ['to_status', 'changed_at']
    search_fields = ['job_sheet__job_number', 'remarks']
    ordering = ['-changed_at']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
