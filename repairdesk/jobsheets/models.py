from django.db import models
from django.db.models import Q
from django.utils import timezone
from decimal import Decimal
from repairdesk.core.models import User
from repairdesk.locations.models import Location
from repairdesk.parties.models import Customer, Device
from . import ledger
from .exceptions import JobSheetValidationError


class JobSheetQuerySet(models.QuerySet):
    def overdue(self, today=None):
        """Same rule as ledger.is_overdue, expressed as a query"""
        today = today or timezone.localdate()
        return self.filter(
            expected_completion_date__isnull=False,
            expected_completion_date__lt=today,
        ).exclude(status__in=ledger.OVERDUE_EXEMPT_STATUSES)

    def not_overdue(self, today=None):
        today = today or timezone.localdate()
        return self.filter(
            Q(expected_completion_date__isnull=True) |
            Q(expected_completion_date__gte=today) |
            Q(status__in=ledger.OVERDUE_EXEMPT_STATUSES)
        )


class JobSheet(models.Model):
    """Repair work orders"""
    job_number = models.CharField(max_length=100, unique=True)
    customer = models.ForeignKey(Customer, on_delete=models.PROTECT, related_name='job_sheets')
    device = models.ForeignKey(Device, on_delete=models.PROTECT, related_name='job_sheets')
    location = models.ForeignKey(Location, on_delete=models.PROTECT, related_name='job_sheets')
    assigned_to = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='assigned_job_sheets')

    issue_description = models.TextField()
    diagnosis_notes = models.TextField(blank=True)
    repair_notes = models.TextField(blank=True)
    accessories = models.TextField(blank=True, help_text='Accessories received with the device')
    notes = models.TextField(blank=True)

    status = models.CharField(max_length=20, choices=ledger.STATUS_CHOICES, default=ledger.INITIAL_STATUS, db_index=True)
    priority = models.CharField(max_length=10, choices=ledger.PRIORITY_CHOICES, default=ledger.MEDIUM)

    labour_cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    parts_cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    # Derived, see refresh_amounts()
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    paid_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    balance_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))

    received_date = models.DateField(default=timezone.localdate)
    expected_completion_date = models.DateField(null=True, blank=True)
    completed_date = models.DateTimeField(null=True, blank=True)
    delivered_date = models.DateTimeField(null=True, blank=True)

    warranty_period = models.PositiveIntegerField(null=True, blank=True, help_text='Warranty in days')
    warranty_expiry = models.DateField(null=True, blank=True)

    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='created_job_sheets')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = JobSheetQuerySet.as_manager()

    def __str__(self):
        return self.job_number

    @property
    def is_terminal(self):
        return ledger.is_terminal(self.status)

    def is_overdue(self, today=None):
        return ledger.is_overdue(self, today or timezone.localdate())

    def refresh_amounts(self):
        """
        Re-derive total, paid and balance from the cost fields and the full
        set of recorded payments. Returns the ledger.Amounts used.
        """
        payment_amounts = []
        if self.pk:
            payment_amounts = list(self.payments.values_list('amount', flat=True))
        amounts = ledger.derive_amounts(
            self.labour_cost, self.parts_cost, self.discount_amount, payment_amounts
        )
        self.total_amount = amounts.total
        self.paid_amount = amounts.paid
        self.balance_amount = amounts.balance
        return amounts

    def refresh_warranty_expiry(self):
        self.warranty_expiry = ledger.warranty_expiry(self.completed_date, self.warranty_period)
        return self.warranty_expiry

    class Meta:
        db_table = 'job_sheets'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'expected_completion_date'], name='idx_jobsheet_status_due'),
            models.Index(fields=['location', 'received_date'], name='idx_jobsheet_loc_received'),
        ]


class Payment(models.Model):
    """Payments recorded against a job sheet. Append-only."""
    payment_number = models.CharField(max_length=100, unique=True)
    job_sheet = models.ForeignKey(JobSheet, on_delete=models.PROTECT, related_name='payments')
    customer = models.ForeignKey(Customer, on_delete=models.PROTECT, related_name='job_sheet_payments')
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    payment_method = models.CharField(max_length=20, choices=ledger.PAYMENT_METHOD_CHOICES, default='CASH')
    reference = models.CharField(max_length=200, blank=True)
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='job_sheet_payments')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.payment_number

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise JobSheetValidationError('Payments cannot be modified once recorded.')
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise JobSheetValidationError('Payments cannot be deleted.')

    class Meta:
        db_table = 'job_sheet_payments'
        ordering = ['created_at', 'id']


class StatusHistory(models.Model):
    """Append-only audit trail of job sheet status changes"""
    job_sheet = models.ForeignKey(JobSheet, on_delete=models.CASCADE, related_name='status_history')
    from_status = models.CharField(max_length=20, choices=ledger.STATUS_CHOICES, null=True, blank=True)
    to_status = models.CharField(max_length=20, choices=ledger.STATUS_CHOICES)
    remarks = models.TextField(blank=True)
    changed_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='job_sheet_status_changes')
    changed_at = models.DateTimeField(default=timezone.now)

    def __str__(self):
        return f"{self.job_sheet.job_number}: {self.from_status or '-'} -> {self.to_status}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise JobSheetValidationError('Status history entries cannot be modified.')
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise JobSheetValidationError('Status history entries cannot be deleted.')

    class Meta:
        db_table = 'job_sheet_status_history'
        ordering = ['changed_at', 'id']
        verbose_name_plural = 'status history'
