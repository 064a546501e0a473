from rest_framework import serializers
from repairdesk.core.models import User
from repairdesk.locations.models import Location
from repairdesk.parties.models import Customer, Device
from . import ledger
from .models import JobSheet, Payment, StatusHistory
from .services import quick_amount_denominations


class PaymentSerializer(serializers.ModelSerializer):
    job_number = serializers.CharField(source='job_sheet.job_number', read_only=True)
    customer_name = serializers.CharField(source='customer.name', read_only=True)
    payment_method_display = serializers.CharField(source='get_payment_method_display', read_only=True)
    created_by_username = serializers.CharField(source='created_by.username', read_only=True)

    class Meta:
        model = Payment
        fields = [
            'id', 'payment_number', 'job_sheet', 'job_number', 'customer', 'customer_name',
            'amount', 'payment_method', 'payment_method_display', 'reference', 'notes',
            'created_by', 'created_by_username', 'created_at'
        ]
        read_only_fields = fields


class StatusHistorySerializer(serializers.ModelSerializer):
    from_status_display = serializers.SerializerMethodField()
    to_status_display = serializers.CharField(source='get_to_status_display', read_only=True)
    changed_by_username = serializers.CharField(source='changed_by.username', read_only=True)

    class Meta:
        model = StatusHistory
        fields = [
            'id', 'job_sheet', 'from_status', 'from_status_display', 'to_status', 'to_status_display',
            'remarks', 'changed_by', 'changed_by_username', 'changed_at'
        ]
        read_only_fields = fields

    def get_from_status_display(self, obj):
        return obj.get_from_status_display() if obj.from_status else None


class JobSheetSerializer(serializers.ModelSerializer):
    """Read representation, including values derived on every read"""
    customer_name = serializers.CharField(source='customer.name', read_only=True)
    customer_phone = serializers.CharField(source='customer.phone', read_only=True)
    device_label = serializers.CharField(source='device.__str__', read_only=True)
    device_type = serializers.CharField(source='device.device_type', read_only=True)
    location_name = serializers.CharField(source='location.name', read_only=True)
    assigned_to_username = serializers.CharField(source='assigned_to.username', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    priority_display = serializers.CharField(source='get_priority_display', read_only=True)
    is_overdue = serializers.SerializerMethodField()
    quick_amounts = serializers.SerializerMethodField()

    class Meta:
        model = JobSheet
        fields = [
            'id', 'job_number', 'customer', 'customer_name', 'customer_phone',
            'device', 'device_label', 'device_type', 'location', 'location_name',
            'assigned_to', 'assigned_to_username',
            'issue_description', 'diagnosis_notes', 'repair_notes', 'accessories', 'notes',
            'status', 'status_display', 'priority', 'priority_display',
            'labour_cost', 'parts_cost', 'discount_amount',
            'total_amount', 'paid_amount', 'balance_amount', 'quick_amounts',
            'received_date', 'expected_completion_date', 'completed_date', 'delivered_date',
            'warranty_period', 'warranty_expiry', 'is_overdue',
            'created_by', 'created_at', 'updated_at'
        ]
        read_only_fields = fields

    def get_is_overdue(self, obj):
        return obj.is_overdue(self.context.get('today'))

    def get_quick_amounts(self, obj):
        return [
            {'label': item['label'], 'amount': str(item['amount'])}
            for item in ledger.quick_amounts(obj.balance_amount, quick_amount_denominations())
        ]


class JobSheetDetailSerializer(JobSheetSerializer):
    payments = PaymentSerializer(many=True, read_only=True)
    status_history = StatusHistorySerializer(many=True, read_only=True)

    class Meta(JobSheetSerializer.Meta):
        fields = JobSheetSerializer.Meta.fields + ['payments', 'status_history']
        read_only_fields = fields


class JobSheetCreateSerializer(serializers.Serializer):
    customer = serializers.PrimaryKeyRelatedField(queryset=Customer.objects.all())
    device = serializers.PrimaryKeyRelatedField(queryset=Device.objects.all())
    location = serializers.PrimaryKeyRelatedField(queryset=Location.objects.all())
    assigned_to = serializers.PrimaryKeyRelatedField(queryset=User.objects.filter(is_active=True), required=False, allow_null=True)
    issue_description = serializers.CharField(allow_blank=True, trim_whitespace=True)
    diagnosis_notes = serializers.CharField(required=False, allow_blank=True, default='')
    accessories = serializers.CharField(required=False, allow_blank=True, default='')
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    priority = serializers.CharField(required=False, allow_blank=True, default=ledger.MEDIUM)
    labour_cost = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, default=0)
    parts_cost = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, default=0)
    discount_amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, default=0)
    warranty_period = serializers.IntegerField(required=False, allow_null=True, default=None)
    received_date = serializers.DateField(required=False, allow_null=True, default=None)
    expected_completion_date = serializers.DateField(required=False, allow_null=True, default=None)
    initial_payment = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True, default=None)
    payment_method = serializers.CharField(required=False, allow_blank=True, default='CASH')
    payment_reference = serializers.CharField(required=False, allow_blank=True, default='')


class JobSheetUpdateSerializer(serializers.Serializer):
    """Partial update input; status and money totals are handled elsewhere"""
    assigned_to = serializers.PrimaryKeyRelatedField(queryset=User.objects.filter(is_active=True), required=False, allow_null=True)
    issue_description = serializers.CharField(required=False, allow_blank=True)
    diagnosis_notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    repair_notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    accessories = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    priority = serializers.CharField(required=False)
    labour_cost = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)
    parts_cost = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)
    discount_amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)
    warranty_period = serializers.IntegerField(required=False, allow_null=True)
    expected_completion_date = serializers.DateField(required=False, allow_null=True)


class StatusChangeSerializer(serializers.Serializer):
    status = serializers.CharField()
    remarks = serializers.CharField(required=False, allow_blank=True, default='')


class PaymentCreateSerializer(serializers.Serializer):
    job_sheet = serializers.IntegerField(required=False)
    customer = serializers.IntegerField(required=False, allow_null=True)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    payment_method = serializers.CharField(required=False, allow_blank=True, default='CASH')
    reference = serializers.CharField(required=False, allow_blank=True, default='')
    notes = serializers.CharField(required=False, allow_blank=True, default='')
