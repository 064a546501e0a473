"""
Job sheet service layer.

Every mutation of a job sheet (create, edit, status change, payment) goes
through here so that derived amounts, status history and the audit log are
always written together inside one transaction.
"""
import logging
import uuid
from collections import namedtuple

from django.conf import settings
from django.db import transaction
from django.db.models import Avg, Count, Sum
from django.utils import timezone

from repairdesk.core.utils import create_audit_log
from . import ledger
from .exceptions import (
    InvalidAmount, InvalidTransition, JobSheetNotFound, JobSheetValidationError, PaymentNotFound,
)
from .models import JobSheet, Payment, StatusHistory

logger = logging.getLogger(__name__)

PaymentResult = namedtuple('PaymentResult', ['payment', 'job_sheet', 'overpayment'])

COST_FIELDS = ('labour_cost', 'parts_cost', 'discount_amount')
NOTE_FIELDS = ('diagnosis_notes', 'repair_notes', 'notes')
EDITABLE_FIELDS = (
    'issue_description', 'diagnosis_notes', 'repair_notes', 'accessories', 'notes',
    'priority', 'assigned_to', 'labour_cost', 'parts_cost', 'discount_amount',
    'warranty_period', 'expected_completion_date',
)
READ_ONLY_FIELDS = (
    'status', 'job_number', 'total_amount', 'paid_amount', 'balance_amount',
    'completed_date', 'delivered_date', 'warranty_expiry',
)


def min_issue_length():
    return getattr(settings, 'JOBSHEET_MIN_ISSUE_LENGTH', ledger.MIN_ISSUE_DESCRIPTION_LENGTH)


def quick_amount_denominations():
    return getattr(settings, 'JOBSHEET_QUICK_AMOUNTS', ledger.DEFAULT_QUICK_DENOMINATIONS)


def _generate_number(prefix, model, field):
    number = f"{prefix}-{timezone.now().strftime('%Y%m%d')}-{str(uuid.uuid4())[:8].upper()}"
    while model.objects.filter(**{field: number}).exists():
        number = f"{prefix}-{timezone.now().strftime('%Y%m%d')}-{str(uuid.uuid4())[:8].upper()}"
    return number


def _validate_warranty_period(value):
    if value is None or value == '':
        return None
    try:
        period = int(value)
    except (TypeError, ValueError):
        raise JobSheetValidationError('warranty_period must be a whole number of days.')
    if period < 0:
        raise JobSheetValidationError('warranty_period cannot be negative.')
    return period


def _audit_value(value):
    if value is None:
        return None
    if hasattr(value, 'pk'):
        return value.pk
    return str(value)


class JobSheetService:

    @staticmethod
    def get_job_sheet(pk, for_update=False):
        queryset = JobSheet.objects.all()
        if for_update:
            queryset = queryset.select_for_update()
        try:
            return queryset.get(pk=pk)
        except (JobSheet.DoesNotExist, ValueError, TypeError):
            raise JobSheetNotFound(f'Job sheet {pk} not found.')

    @staticmethod
    def get_by_number(job_number):
        try:
            return JobSheet.objects.select_related('customer', 'device', 'location', 'assigned_to').get(
                job_number=job_number
            )
        except JobSheet.DoesNotExist:
            raise JobSheetNotFound(f'Job sheet {job_number} not found.')

    @staticmethod
    def create_job_sheet(*, customer, device, location, issue_description, created_by=None,
                         assigned_to=None, priority=None, labour_cost=0, parts_cost=0,
                         discount_amount=0, warranty_period=None, expected_completion_date=None,
                         received_date=None, diagnosis_notes='', accessories='', notes='',
                         initial_payment=None, payment_method='CASH', payment_reference='',
                         request=None):
        """
        Open a new job sheet in PENDING status.

        All input is validated before anything is written. ``initial_payment``
        (an advance taken at intake) is recorded as a regular Payment.
        """
        if customer is None or device is None or location is None:
            raise JobSheetValidationError('customer, device and location are required.')
        if device.customer_id != customer.pk:
            raise JobSheetValidationError('Device does not belong to the selected customer.')
        description = ledger.validate_issue_description(issue_description, min_issue_length())
        priority = ledger.normalize_priority(priority) if priority else ledger.MEDIUM
        labour = ledger.to_money(labour_cost, 'labour_cost')
        parts = ledger.to_money(parts_cost, 'parts_cost')
        discount = ledger.to_money(discount_amount, 'discount_amount')
        ledger.compute_totals(labour, parts, discount)
        warranty_period = _validate_warranty_period(warranty_period)

        advance = None
        if initial_payment not in (None, ''):
            advance = ledger.to_money(initial_payment, 'initial_payment')
            if advance < 0:
                raise InvalidAmount('initial_payment cannot be negative.')
            if advance == 0:
                advance = None
            else:
                payment_method = ledger.normalize_payment_method(payment_method)

        with transaction.atomic():
            job_sheet = JobSheet(
                job_number=_generate_number('JOB', JobSheet, 'job_number'),
                customer=customer,
                device=device,
                location=location,
                assigned_to=assigned_to,
                issue_description=description,
                diagnosis_notes=diagnosis_notes or '',
                accessories=accessories or '',
                notes=notes or '',
                status=ledger.INITIAL_STATUS,
                priority=priority,
                labour_cost=labour,
                parts_cost=parts,
                discount_amount=discount,
                warranty_period=warranty_period,
                expected_completion_date=expected_completion_date,
                created_by=created_by,
            )
            if received_date:
                job_sheet.received_date = received_date
            job_sheet.refresh_amounts()
            job_sheet.save()

            StatusHistory.objects.create(
                job_sheet=job_sheet,
                from_status=None,
                to_status=ledger.INITIAL_STATUS,
                remarks='Job sheet created',
                changed_by=created_by,
            )

            create_audit_log(
                request=request,
                user=created_by,
                action='jobsheet_create',
                model_name='JobSheet',
                object_id=str(job_sheet.id),
                object_name=f"Job Sheet {job_sheet.job_number}",
                object_reference=job_sheet.job_number,
                changes={
                    'customer_id': customer.pk,
                    'device_id': device.pk,
                    'location_id': location.pk,
                    'priority': priority,
                    'total_amount': str(job_sheet.total_amount),
                }
            )

            if advance is not None:
                PaymentService.record_payment(
                    job_sheet.pk, advance, payment_method,
                    reference=payment_reference, notes='Advance payment at intake',
                    user=created_by, request=request,
                )
                job_sheet.refresh_from_db()

        logger.info(f"Job sheet {job_sheet.job_number} created for customer {customer.pk} at location {location.pk}")
        return job_sheet

    @staticmethod
    def update_job_sheet(job_sheet_id, changes, user=None, request=None):
        """
        Apply a partial update. Status and money totals are not editable here;
        cost changes re-derive total and balance.
        """
        forbidden = sorted(set(changes) & set(READ_ONLY_FIELDS))
        if forbidden:
            if 'status' in forbidden:
                raise JobSheetValidationError('Use the status endpoint to change the status of a job sheet.')
            raise JobSheetValidationError(f'Read-only fields cannot be updated: {", ".join(forbidden)}')
        unknown = sorted(set(changes) - set(EDITABLE_FIELDS))
        if unknown:
            raise JobSheetValidationError(f'Unknown fields: {", ".join(unknown)}')

        with transaction.atomic():
            job_sheet = JobSheetService.get_job_sheet(job_sheet_id, for_update=True)

            if job_sheet.is_terminal:
                locked = sorted(set(changes) - set(NOTE_FIELDS))
                if locked:
                    raise InvalidTransition(
                        f'Job sheet is {job_sheet.status}; only notes can be edited. Rejected: {", ".join(locked)}'
                    )

            cleaned = {}
            for field, value in changes.items():
                if field == 'issue_description':
                    value = ledger.validate_issue_description(value, min_issue_length())
                elif field == 'priority':
                    value = ledger.normalize_priority(value)
                elif field in COST_FIELDS:
                    value = ledger.to_money(value, field)
                    if value < 0:
                        raise InvalidAmount(f'{field} cannot be negative.')
                elif field == 'warranty_period':
                    value = _validate_warranty_period(value)
                elif field in ('diagnosis_notes', 'repair_notes', 'accessories', 'notes'):
                    value = value or ''
                cleaned[field] = value

            audit_changes = {}
            for field, value in cleaned.items():
                old = getattr(job_sheet, field)
                if old != value:
                    audit_changes[field] = {'old': _audit_value(old), 'new': _audit_value(value)}
                setattr(job_sheet, field, value)

            if any(field in cleaned for field in COST_FIELDS):
                old_total = job_sheet.total_amount
                job_sheet.refresh_amounts()
                if old_total != job_sheet.total_amount:
                    audit_changes['total_amount'] = {'old': str(old_total), 'new': str(job_sheet.total_amount)}
            if 'warranty_period' in cleaned:
                job_sheet.refresh_warranty_expiry()

            job_sheet.save()

            if audit_changes:
                create_audit_log(
                    request=request,
                    user=user,
                    action='jobsheet_update',
                    model_name='JobSheet',
                    object_id=str(job_sheet.id),
                    object_name=f"Job Sheet {job_sheet.job_number}",
                    object_reference=job_sheet.job_number,
                    changes=audit_changes,
                )

        logger.info(f"Job sheet {job_sheet.job_number} updated: {', '.join(audit_changes) or 'no changes'}")
        return job_sheet

    @staticmethod
    def change_status(job_sheet_id, to_status, remarks='', user=None, request=None):
        """
        Move a job sheet to another status and append a history entry.

        Re-asserting the current status is allowed and still recorded.
        Returns (job_sheet, history_entry).
        """
        with transaction.atomic():
            job_sheet = JobSheetService.get_job_sheet(job_sheet_id, for_update=True)
            target = ledger.validate_transition(job_sheet.status, to_status)
            from_status = job_sheet.status
            now = timezone.now()

            job_sheet.status = target
            job_sheet.completed_date, job_sheet.delivered_date = ledger.milestone_dates(
                target, job_sheet.completed_date, job_sheet.delivered_date, now
            )
            job_sheet.refresh_warranty_expiry()
            job_sheet.save()

            history = StatusHistory.objects.create(
                job_sheet=job_sheet,
                from_status=from_status,
                to_status=target,
                remarks=remarks or '',
                changed_by=user if user and user.is_authenticated else None,
                changed_at=now,
            )

            create_audit_log(
                request=request,
                user=user,
                action='status_change',
                model_name='JobSheet',
                object_id=str(job_sheet.id),
                object_name=f"Job Sheet {job_sheet.job_number}",
                object_reference=job_sheet.job_number,
                changes={
                    'status': {'old': from_status, 'new': target},
                    'remarks': remarks or '',
                }
            )

        logger.info(f"Job sheet {job_sheet.job_number} status {from_status} -> {target}")
        return job_sheet, history

    @staticmethod
    def delete_job_sheet(job_sheet_id, user=None, request=None):
        """Hard delete, only allowed while no payment has been recorded"""
        with transaction.atomic():
            job_sheet = JobSheetService.get_job_sheet(job_sheet_id, for_update=True)
            if job_sheet.payments.exists():
                raise JobSheetValidationError(
                    'Job sheet has recorded payments and cannot be deleted. Cancel it instead.'
                )
            job_number = job_sheet.job_number
            object_id = job_sheet.id
            job_sheet.delete()

            create_audit_log(
                request=request,
                user=user,
                action='jobsheet_delete',
                model_name='JobSheet',
                object_id=str(object_id),
                object_name=f"Job Sheet {job_number}",
                object_reference=job_number,
            )
        logger.info(f"Job sheet {job_number} deleted")

    @staticmethod
    def get_stats(queryset, today=None):
        """Counts per status and priority, overdue count and money totals"""
        today = today or timezone.localdate()
        queryset = queryset.order_by()

        by_status = {value: 0 for value, _ in ledger.STATUS_CHOICES}
        for row in queryset.values('status').annotate(count=Count('id')):
            by_status[row['status']] = row['count']

        by_priority = {value: 0 for value, _ in ledger.PRIORITY_CHOICES}
        for row in queryset.values('priority').annotate(count=Count('id')):
            by_priority[row['priority']] = row['count']

        totals = queryset.aggregate(
            sum_total=Sum('total_amount'),
            sum_paid=Sum('paid_amount'),
            sum_balance=Sum('balance_amount'),
            avg_total=Avg('total_amount'),
        )
        total_jobs = sum(by_status.values())
        finished = by_status[ledger.COMPLETED] + by_status[ledger.READY_DELIVERY] + by_status[ledger.DELIVERED]

        return {
            'total_job_sheets': total_jobs,
            'by_status': by_status,
            'by_priority': by_priority,
            'overdue': queryset.overdue(today).count(),
            'completion_rate': round(finished * 100 / total_jobs, 2) if total_jobs else 0,
            'total_amount': ledger.to_money(totals['sum_total']),
            'paid_amount': ledger.to_money(totals['sum_paid']),
            'balance_amount': ledger.to_money(totals['sum_balance']),
            'average_job_value': ledger.to_money(totals['avg_total']),
        }


class PaymentService:

    @staticmethod
    def get_payment(pk):
        try:
            return Payment.objects.select_related('job_sheet', 'customer', 'created_by').get(pk=pk)
        except (Payment.DoesNotExist, ValueError, TypeError):
            raise PaymentNotFound(f'Payment {pk} not found.')

    @staticmethod
    def record_payment(job_sheet_id, amount, payment_method='CASH', reference='', notes='',
                       customer=None, user=None, request=None):
        """
        Append a payment to a job sheet and re-derive paid and balance.

        Paying more than the outstanding balance is allowed; the result
        carries ``overpayment=True`` so the caller can warn about it.
        Cancelled job sheets do not accept payments.
        """
        amount = ledger.validate_payment_amount(amount)
        payment_method = ledger.normalize_payment_method(payment_method or 'CASH')

        with transaction.atomic():
            job_sheet = JobSheetService.get_job_sheet(job_sheet_id, for_update=True)
            if job_sheet.status == ledger.CANCELLED:
                raise InvalidTransition('Cannot record a payment on a cancelled job sheet.')

            customer_id = getattr(customer, 'pk', customer)
            if customer_id not in (None, '') and str(customer_id) != str(job_sheet.customer_id):
                raise JobSheetValidationError('Customer does not match the job sheet customer.')

            old_paid = job_sheet.paid_amount
            payment = Payment.objects.create(
                payment_number=_generate_number('PAY', Payment, 'payment_number'),
                job_sheet=job_sheet,
                customer_id=job_sheet.customer_id,
                amount=amount,
                payment_method=payment_method,
                reference=reference or '',
                notes=notes or '',
                created_by=user if user and user.is_authenticated else None,
            )
            amounts = job_sheet.refresh_amounts()
            job_sheet.save(update_fields=['total_amount', 'paid_amount', 'balance_amount', 'updated_at'])

            create_audit_log(
                request=request,
                user=user,
                action='payment_add',
                model_name='Payment',
                object_id=str(payment.id),
                object_name=f"Payment for Job Sheet {job_sheet.job_number}",
                object_reference=job_sheet.job_number,
                changes={
                    'payment_number': payment.payment_number,
                    'job_sheet_id': job_sheet.id,
                    'amount': str(payment.amount),
                    'payment_method': payment.payment_method,
                    'paid_amount': {'old': str(old_paid), 'new': str(job_sheet.paid_amount)},
                    'balance_amount': str(job_sheet.balance_amount),
                    'overpayment': amounts.overpaid,
                }
            )

        if amounts.overpaid:
            logger.warning(
                f"Overpayment on job sheet {job_sheet.job_number}: paid {amounts.paid} against total {amounts.total}"
            )
        logger.info(f"Payment {payment.payment_number} of {amount} recorded on job sheet {job_sheet.job_number}")
        return PaymentResult(payment=payment, job_sheet=job_sheet, overpayment=amounts.overpaid)
