"""
Tests for the pure job sheet ledger rules (no database)
"""
from collections import namedtuple
from datetime import date, datetime, timedelta, timezone as dt_timezone
from decimal import Decimal
from django.test import SimpleTestCase, override_settings
from repairdesk.jobsheets import ledger
from repairdesk.jobsheets.exceptions import InvalidAmount, InvalidTransition, JobSheetValidationError

Sheet = namedtuple('Sheet', ['status', 'expected_completion_date'])


class ComputeTotalsTests(SimpleTestCase):
    """Test total computation from cost fields"""

    def test_total_is_labour_plus_parts_minus_discount(self):
        self.assertEqual(ledger.compute_totals(1000, 500, 200), Decimal('1300.00'))

    def test_discount_larger_than_costs_clamps_to_zero(self):
        self.assertEqual(ledger.compute_totals(100, 50, 500), Decimal('0.00'))

    def test_total_never_negative(self):
        for labour, parts, discount in [(0, 0, 0), (0, 0, 10), (1, 2, 3), ('99.99', '0.01', '100.01')]:
            self.assertGreaterEqual(ledger.compute_totals(labour, parts, discount), Decimal('0'))

    def test_blank_costs_count_as_zero(self):
        self.assertEqual(ledger.compute_totals('', None, ''), Decimal('0.00'))

    def test_negative_cost_rejected(self):
        with self.assertRaises(InvalidAmount):
            ledger.compute_totals(-1, 0, 0)
        with self.assertRaises(InvalidAmount):
            ledger.compute_totals(0, 0, '-5')

    def test_non_numeric_cost_rejected(self):
        with self.assertRaises(InvalidAmount):
            ledger.compute_totals('abc', 0, 0)
        with self.assertRaises(InvalidAmount):
            ledger.compute_totals('NaN', 0, 0)
        with self.assertRaises(InvalidAmount):
            ledger.compute_totals(True, 0, 0)

    def test_amounts_rounded_to_cents(self):
        self.assertEqual(ledger.to_money('10.005'), Decimal('10.01'))
        self.assertEqual(ledger.to_money(3), Decimal('3.00'))


class DeriveAmountsTests(SimpleTestCase):
    """Test total / paid / balance derivation"""

    def test_partial_payments(self):
        amounts = ledger.derive_amounts(1000, 500, 200, [Decimal('800')])
        self.assertEqual(amounts.total, Decimal('1300.00'))
        self.assertEqual(amounts.paid, Decimal('800.00'))
        self.assertEqual(amounts.balance, Decimal('500.00'))
        self.assertFalse(amounts.overpaid)

        amounts = ledger.derive_amounts(1000, 500, 200, [Decimal('800'), Decimal('500')])
        self.assertEqual(amounts.paid, Decimal('1300.00'))
        self.assertEqual(amounts.balance, Decimal('0.00'))
        self.assertFalse(amounts.overpaid)

    def test_overpayment_gives_zero_balance_and_flag(self):
        amounts = ledger.derive_amounts(1000, 500, 200, [Decimal('1500')])
        self.assertEqual(amounts.paid, Decimal('1500.00'))
        self.assertEqual(amounts.balance, Decimal('0.00'))
        self.assertTrue(amounts.overpaid)

    def test_no_payments(self):
        amounts = ledger.derive_amounts(250, 0, 0)
        self.assertEqual(amounts.paid, Decimal('0.00'))
        self.assertEqual(amounts.balance, Decimal('250.00'))

    def test_balance_formula(self):
        self.assertEqual(ledger.recompute_balance(Decimal('100'), Decimal('40')), Decimal('60.00'))
        self.assertEqual(ledger.recompute_balance(Decimal('100'), Decimal('140')), Decimal('0.00'))


class PaymentAmountTests(SimpleTestCase):

    def test_zero_and_negative_rejected(self):
        for value in (0, '0.00', -1, '-0.01'):
            with self.assertRaises(InvalidAmount):
                ledger.validate_payment_amount(value)

    def test_positive_amount_accepted(self):
        self.assertEqual(ledger.validate_payment_amount('0.01'), Decimal('0.01'))


class StatusTests(SimpleTestCase):
    """Test status normalization and transitions"""

    def test_canonical_status_passes_through(self):
        for value in ledger.STATUSES:
            self.assertEqual(ledger.normalize_status(value), value)

    def test_status_aliases(self):
        self.assertEqual(ledger.normalize_status('waiting_for_parts'), ledger.WAITING_PARTS)
        self.assertEqual(ledger.normalize_status('ready-for-pickup'), ledger.READY_DELIVERY)
        self.assertEqual(ledger.normalize_status('Canceled'), ledger.CANCELLED)
        self.assertEqual(ledger.normalize_status(' in progress '), ledger.IN_PROGRESS)

    def test_unknown_status_rejected(self):
        with self.assertRaises(InvalidTransition):
            ledger.normalize_status('LOST')
        with self.assertRaises(InvalidTransition):
            ledger.normalize_status('')

    def test_any_non_terminal_status_can_move_anywhere(self):
        for current in ledger.STATUSES - ledger.TERMINAL_STATUSES:
            for target in ledger.STATUSES:
                self.assertEqual(ledger.validate_transition(current, target), target)

    def test_terminal_status_is_frozen(self):
        for current in (ledger.DELIVERED, ledger.CANCELLED):
            for target in ledger.STATUSES:
                with self.assertRaises(InvalidTransition):
                    ledger.validate_transition(current, target)

    def test_milestone_dates_set_once(self):
        first = datetime(2025, 1, 10, 9, 0)
        later = datetime(2025, 1, 12, 9, 0)
        completed, delivered = ledger.milestone_dates(ledger.COMPLETED, None, None, first)
        self.assertEqual(completed, first)
        self.assertIsNone(delivered)

        completed, delivered = ledger.milestone_dates(ledger.READY_DELIVERY, completed, delivered, later)
        self.assertEqual(completed, first)

        completed, delivered = ledger.milestone_dates(ledger.DELIVERED, completed, delivered, later)
        self.assertEqual(completed, first)
        self.assertEqual(delivered, later)

    def test_delivery_without_completion_sets_both(self):
        now = datetime(2025, 3, 1, 12, 0)
        self.assertEqual(ledger.milestone_dates(ledger.DELIVERED, None, None, now), (now, now))

    def test_other_statuses_leave_dates_alone(self):
        now = datetime(2025, 3, 1, 12, 0)
        self.assertEqual(ledger.milestone_dates(ledger.IN_PROGRESS, None, None, now), (None, None))


class OverdueTests(SimpleTestCase):

    def setUp(self):
        self.today = date(2025, 6, 15)
        self.yesterday = self.today - timedelta(days=1)

    def test_past_due_in_progress_is_overdue(self):
        self.assertTrue(ledger.is_overdue(Sheet(ledger.IN_PROGRESS, self.yesterday), self.today))

    def test_due_today_is_not_overdue(self):
        self.assertFalse(ledger.is_overdue(Sheet(ledger.IN_PROGRESS, self.today), self.today))

    def test_no_expected_date_is_not_overdue(self):
        self.assertFalse(ledger.is_overdue(Sheet(ledger.PENDING, None), self.today))

    def test_exempt_statuses_never_overdue(self):
        long_ago = self.today - timedelta(days=365)
        for status in (ledger.COMPLETED, ledger.DELIVERED, ledger.CANCELLED):
            self.assertFalse(ledger.is_overdue(Sheet(status, long_ago), self.today))

    def test_waiting_statuses_can_be_overdue(self):
        for status in (ledger.WAITING_PARTS, ledger.ON_HOLD, ledger.READY_DELIVERY, ledger.QUALITY_CHECK):
            self.assertTrue(ledger.is_overdue(Sheet(status, self.yesterday), self.today))

    def test_compares_calendar_days(self):
        today_evening = datetime(2025, 6, 15, 23, 59)
        self.assertTrue(ledger.is_overdue(Sheet(ledger.PENDING, '2025-06-14'), today_evening))
        self.assertFalse(ledger.is_overdue(Sheet(ledger.PENDING, '2025-06-15'), today_evening))


class QuickAmountsTests(SimpleTestCase):

    def test_suggestions_for_balance(self):
        amounts = ledger.quick_amounts(Decimal('1300.00'))
        self.assertEqual(
            [(item['label'], item['amount']) for item in amounts],
            [('full', Decimal('1300.00')), ('half', Decimal('650.00')), ('1000', Decimal('1000.00'))]
        )

    def test_half_is_floored(self):
        amounts = ledger.quick_amounts(Decimal('1301.50'))
        self.assertEqual(amounts[1]['amount'], Decimal('650.00'))

    def test_large_balance_gets_all_denominations(self):
        labels = [item['label'] for item in ledger.quick_amounts(Decimal('12000'))]
        self.assertEqual(labels, ['full', 'half', '1000', '5000', '10000'])

    def test_settled_balance_has_no_suggestions(self):
        self.assertEqual(ledger.quick_amounts(Decimal('0.00')), [])

    def test_custom_denominations(self):
        labels = [item['label'] for item in ledger.quick_amounts(Decimal('600'), (100, 500, 1000))]
        self.assertEqual(labels, ['full', 'half', '100', '500'])


class NormalizationTests(SimpleTestCase):

    def test_payment_method_aliases(self):
        self.assertEqual(ledger.normalize_payment_method('cheque'), 'CHECK')
        self.assertEqual(ledger.normalize_payment_method('upi'), 'MOBILE_PAYMENT')
        self.assertEqual(ledger.normalize_payment_method('bank-transfer'), 'BANK_TRANSFER')

    def test_unknown_payment_method_rejected(self):
        with self.assertRaises(JobSheetValidationError):
            ledger.normalize_payment_method('BITCOIN')

    def test_priority(self):
        self.assertEqual(ledger.normalize_priority('urgent'), ledger.URGENT)
        with self.assertRaises(JobSheetValidationError):
            ledger.normalize_priority('CRITICAL')

    def test_issue_description_length(self):
        self.assertEqual(ledger.validate_issue_description('  Battery drains fast  '), 'Battery drains fast')
        with self.assertRaises(JobSheetValidationError):
            ledger.validate_issue_description('Short')
        with self.assertRaises(JobSheetValidationError):
            ledger.validate_issue_description('   short    ')

    @override_settings(TIME_ZONE='Asia/Colombo')
    def test_aware_datetimes_use_local_calendar_day(self):
        completed = datetime(2026, 10, 16, 20, 30, tzinfo=dt_timezone.utc)
        self.assertEqual(ledger.warranty_expiry(completed, 30), date(2026, 11, 16))
        self.assertTrue(ledger.is_overdue(Sheet(ledger.PENDING, date(2026, 10, 16)), completed))

    def test_warranty_expiry(self):
        self.assertEqual(ledger.warranty_expiry(datetime(2025, 1, 1, 10, 0), 90), date(2025, 4, 1))
        self.assertIsNone(ledger.warranty_expiry(None, 90))
        self.assertIsNone(ledger.warranty_expiry(datetime(2025, 1, 1), None))
