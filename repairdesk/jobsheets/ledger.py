"""
Job sheet ledger rules.

Pure functions over plain values: status workflow, cost/balance derivation,
overdue detection and quick payment amounts. Nothing in here touches the
database, so models, services, serializers and management commands all share
the same arithmetic.
"""
from collections import namedtuple
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation, ROUND_FLOOR, ROUND_HALF_UP

from django.utils import timezone

from .exceptions import InvalidAmount, InvalidTransition, JobSheetValidationError

ZERO = Decimal('0.00')
CENT = Decimal('0.01')

# Status workflow
PENDING = 'PENDING'
IN_PROGRESS = 'IN_PROGRESS'
WAITING_PARTS = 'WAITING_PARTS'
QUALITY_CHECK = 'QUALITY_CHECK'
COMPLETED = 'COMPLETED'
READY_DELIVERY = 'READY_DELIVERY'
DELIVERED = 'DELIVERED'
ON_HOLD = 'ON_HOLD'
CANCELLED = 'CANCELLED'

STATUS_CHOICES = [
    (PENDING, 'Pending'),
    (IN_PROGRESS, 'In Progress'),
    (WAITING_PARTS, 'Waiting for Parts'),
    (QUALITY_CHECK, 'Quality Check'),
    (COMPLETED, 'Completed'),
    (READY_DELIVERY, 'Ready for Delivery'),
    (DELIVERED, 'Delivered'),
    (ON_HOLD, 'On Hold'),
    (CANCELLED, 'Cancelled'),
]
STATUSES = frozenset(value for value, _ in STATUS_CHOICES)
INITIAL_STATUS = PENDING
TERMINAL_STATUSES = frozenset([DELIVERED, CANCELLED])
COMPLETION_STATUSES = frozenset([COMPLETED, READY_DELIVERY])
# Statuses that can never be overdue
OVERDUE_EXEMPT_STATUSES = frozenset([COMPLETED, DELIVERED, CANCELLED])

LOW = 'LOW'
MEDIUM = 'MEDIUM'
HIGH = 'HIGH'
URGENT = 'URGENT'

PRIORITY_CHOICES = [
    (LOW, 'Low'),
    (MEDIUM, 'Medium'),
    (HIGH, 'High'),
    (URGENT, 'Urgent'),
]
PRIORITIES = frozenset(value for value, _ in PRIORITY_CHOICES)

PAYMENT_METHOD_CHOICES = [
    ('CASH', 'Cash'),
    ('CARD', 'Card'),
    ('BANK_TRANSFER', 'Bank Transfer'),
    ('MOBILE_PAYMENT', 'Mobile Payment'),
    ('CHECK', 'Check'),
    ('OTHER', 'Other'),
]
PAYMENT_METHODS = frozenset(value for value, _ in PAYMENT_METHOD_CHOICES)

# Legacy spellings accepted at the API boundary, keyed by normalized token
STATUS_ALIASES = {
    'WAITING_FOR_PARTS': WAITING_PARTS,
    'READY_FOR_PICKUP': READY_DELIVERY,
    'READY_FOR_DELIVERY': READY_DELIVERY,
    'READY': READY_DELIVERY,
    'CANCELED': CANCELLED,
    'HOLD': ON_HOLD,
}
PAYMENT_METHOD_ALIASES = {
    'CHEQUE': 'CHECK',
    'BANK': 'BANK_TRANSFER',
    'MOBILE': 'MOBILE_PAYMENT',
    'UPI': 'MOBILE_PAYMENT',
}

DEFAULT_QUICK_DENOMINATIONS = (1000, 5000, 10000)
MIN_ISSUE_DESCRIPTION_LENGTH = 10

Amounts = namedtuple('Amounts', ['total', 'paid', 'balance', 'overpaid'])


def _token(value):
    """'in-progress ' -> 'IN_PROGRESS'"""
    return str(value).strip().upper().replace('-', '_').replace(' ', '_')


def _canonical(value, allowed, aliases):
    if value is None or str(value).strip() == '':
        return None
    token = _token(value)
    token = aliases.get(token, token)
    if token not in allowed:
        return None
    return token


def normalize_status(value):
    """Map any accepted status spelling to the canonical value, or raise InvalidTransition"""
    status = _canonical(value, STATUSES, STATUS_ALIASES)
    if status is None:
        raise InvalidTransition(f'Unknown job sheet status: {value!r}')
    return status


def normalize_priority(value):
    priority = _canonical(value, PRIORITIES, {})
    if priority is None:
        raise JobSheetValidationError(
            f'priority must be one of: {", ".join(v for v, _ in PRIORITY_CHOICES)}'
        )
    return priority


def normalize_payment_method(value):
    method = _canonical(value, PAYMENT_METHODS, PAYMENT_METHOD_ALIASES)
    if method is None:
        raise JobSheetValidationError(
            f'payment_method must be one of: {", ".join(v for v, _ in PAYMENT_METHOD_CHOICES)}'
        )
    return method


def to_money(value, field='amount'):
    """Parse a money value into a 2-place Decimal. Blank means zero."""
    if value is None or value == '':
        return ZERO
    if isinstance(value, bool):
        raise InvalidAmount(f'{field} must be a number.')
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidAmount(f'{field} must be a number.')
    if not amount.is_finite():
        raise InvalidAmount(f'{field} must be a finite number.')
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def _non_negative(value, field):
    amount = to_money(value, field)
    if amount < 0:
        raise InvalidAmount(f'{field} cannot be negative.')
    return amount


def compute_totals(labour_cost, parts_cost, discount_amount):
    """
    Total amount of a job sheet.

    All inputs must be non-negative. A discount larger than the costs is
    clamped so the total never drops below zero.
    """
    labour = _non_negative(labour_cost, 'labour_cost')
    parts = _non_negative(parts_cost, 'parts_cost')
    discount = _non_negative(discount_amount, 'discount_amount')
    return max(labour + parts - discount, ZERO)


def recompute_balance(total_amount, paid_amount):
    """Unpaid portion; overpayment yields zero, not a negative balance"""
    return max(to_money(total_amount, 'total_amount') - to_money(paid_amount, 'paid_amount'), ZERO)


def sum_payments(amounts):
    """Sum of recorded payment amounts, recomputed from scratch every time"""
    paid = ZERO
    for amount in amounts:
        paid += to_money(amount)
    return paid


def derive_amounts(labour_cost, parts_cost, discount_amount, payment_amounts=()):
    """Single source of truth for total, paid and balance of a job sheet"""
    total = compute_totals(labour_cost, parts_cost, discount_amount)
    paid = sum_payments(payment_amounts)
    return Amounts(
        total=total,
        paid=paid,
        balance=recompute_balance(total, paid),
        overpaid=paid > total,
    )


def validate_payment_amount(amount):
    value = to_money(amount)
    if value <= 0:
        raise InvalidAmount('Payment amount must be greater than 0.')
    return value


def is_terminal(status):
    return status in TERMINAL_STATUSES


def validate_transition(current_status, target_status):
    """
    Check a status change and return the canonical target.

    Any non-terminal job sheet may move to any known status, including the
    one it already has. Terminal job sheets (DELIVERED, CANCELLED) are frozen.
    """
    target = normalize_status(target_status)
    if is_terminal(current_status):
        raise InvalidTransition(
            f'Job sheet is {current_status} and its status can no longer be changed.'
        )
    return target


def milestone_dates(target_status, completed_date, delivered_date, now):
    """
    Return (completed_date, delivered_date) after moving to target_status.

    Both dates are set once and never overwritten. Delivery implies completion,
    so a job sheet delivered without passing through COMPLETED gets both.
    """
    if target_status in COMPLETION_STATUSES and completed_date is None:
        completed_date = now
    if target_status == DELIVERED:
        if delivered_date is None:
            delivered_date = now
        if completed_date is None:
            completed_date = now
    return completed_date, delivered_date


def _as_date(value):
    """Calendar day in the local time zone"""
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            return timezone.localdate(value)
        return value.date()
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    return value


def warranty_expiry(completed_date, warranty_period):
    if completed_date is None or not warranty_period:
        return None
    return _as_date(completed_date) + timedelta(days=int(warranty_period))


def is_overdue(job_sheet, today):
    """
    A job sheet is overdue when its expected completion date is strictly
    before today and it is not completed, delivered or cancelled.

    Works on anything exposing ``status`` and ``expected_completion_date``
    (model instances, namedtuples, ...). Comparison is by calendar day.
    """
    if job_sheet.status in OVERDUE_EXEMPT_STATUSES:
        return False
    expected = job_sheet.expected_completion_date
    if not expected:
        return False
    return _as_date(expected) < _as_date(today)


def quick_amounts(balance, denominations=DEFAULT_QUICK_DENOMINATIONS):
    """Suggested payment amounts derived from the current balance"""
    balance = to_money(balance, 'balance_amount')
    if balance <= 0:
        return []
    amounts = [
        {'label': 'full', 'amount': balance},
        {'label': 'half', 'amount': (balance / 2).quantize(Decimal('1'), rounding=ROUND_FLOOR).quantize(CENT)},
    ]
    for denomination in denominations:
        value = to_money(denomination)
        if balance >= value:
            amounts.append({'label': str(int(value)), 'amount': value})
    return amounts


def validate_issue_description(text, min_length=MIN_ISSUE_DESCRIPTION_LENGTH):
    cleaned = (text or '').strip()
    if len(cleaned) < min_length:
        raise JobSheetValidationError(
            f'issue_description must be at least {min_length} characters long.'
        )
    return cleaned
