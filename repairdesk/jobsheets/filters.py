import django_filters
from django.db.models import Q
from django.utils import timezone
from . import ledger
from .exceptions import LedgerError
from .models import JobSheet, Payment


class JobSheetFilter(django_filters.FilterSet):
    """
    Filter set for job sheet lists

    Supports:
    - status: any accepted spelling ('pending', 'waiting_for_parts', 'READY_DELIVERY'),
      comma separated for several
    - priority, location, customer, assigned_to
    - date_from / date_to on received_date
    - overdue: 'true' or 'false', evaluated against today
    - search: job number, customer name/phone, device brand/model/serial/IMEI, issue text
    """
    search = django_filters.CharFilter(method='filter_search', label='Search')
    status = django_filters.CharFilter(method='filter_status', label='Status')
    priority = django_filters.CharFilter(method='filter_priority', label='Priority')
    location = django_filters.NumberFilter(field_name='location_id', lookup_expr='exact')
    customer = django_filters.NumberFilter(field_name='customer_id', lookup_expr='exact')
    assigned_to = django_filters.NumberFilter(field_name='assigned_to_id', lookup_expr='exact')
    date_from = django_filters.DateFilter(field_name='received_date', lookup_expr='gte')
    date_to = django_filters.DateFilter(field_name='received_date', lookup_expr='lte')
    overdue = django_filters.CharFilter(method='filter_overdue', label='Overdue')

    class Meta:
        model = JobSheet
        fields = []

    def filter_search(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(job_number__icontains=value) |
            Q(customer__name__icontains=value) |
            Q(customer__phone__icontains=value) |
            Q(device__brand__icontains=value) |
            Q(device__model__icontains=value) |
            Q(device__serial_number__icontains=value) |
            Q(device__imei__icontains=value) |
            Q(issue_description__icontains=value)
        )

    def filter_status(self, queryset, name, value):
        statuses = []
        for part in (value or '').split(','):
            if not part.strip():
                continue
            try:
                statuses.append(ledger.normalize_status(part))
            except LedgerError:
                # Unknown status matches nothing
                return queryset.none()
        if not statuses:
            return queryset
        return queryset.filter(status__in=statuses)

    def filter_priority(self, queryset, name, value):
        if not (value or '').strip():
            return queryset
        try:
            return queryset.filter(priority=ledger.normalize_priority(value))
        except LedgerError:
            return queryset.none()

    def filter_overdue(self, queryset, name, value):
        value = (value or '').strip().lower()
        today = timezone.localdate()
        if value in ('true', '1', 'yes'):
            return queryset.overdue(today)
        if value in ('false', '0', 'no'):
            return queryset.not_overdue(today)
        return queryset


class PaymentFilter(django_filters.FilterSet):
    job_sheet = django_filters.NumberFilter(field_name='job_sheet_id', lookup_expr='exact')
    customer = django_filters.NumberFilter(field_name='customer_id', lookup_expr='exact')
    payment_method = django_filters.CharFilter(method='filter_payment_method', label='Payment Method')
    date_from = django_filters.DateFilter(field_name='created_at', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='created_at', lookup_expr='date__lte')
    location = django_filters.NumberFilter(field_name='job_sheet__location_id', lookup_expr='exact')

    class Meta:
        model = Payment
        fields = []

    def filter_payment_method(self, queryset, name, value):
        if not (value or '').strip():
            return queryset
        try:
            return queryset.filter(payment_method=ledger.normalize_payment_method(value))
        except LedgerError:
            return queryset.none()
