"""
Test suite for the job sheet and payment API endpoints
"""
from datetime import timedelta
from decimal import Decimal
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from repairdesk.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from repairdesk.jobsheets import ledger
from repairdesk.jobsheets.models import JobSheet, Payment


class JobSheetAPITests(TestCase):
    """Test job sheet endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.location = TestDataFactory.create_location()
        self.customer = TestDataFactory.create_customer()
        self.device = TestDataFactory.create_device(customer=self.customer)

    def create_payload(self, **overrides):
        data = {
            'customer': self.customer.id,
            'device': self.device.id,
            'location': self.location.id,
            'issue_description': 'Display flickers after water damage',
            'labour_cost': '1000.00',
            'parts_cost': '500.00',
            'discount_amount': '200.00',
        }
        data.update(overrides)
        return data

    def test_requires_authentication(self):
        self.client.logout()
        response = self.client.get('/api/v1/jobsheets/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_create_job_sheet(self):
        response = self.client.post('/api/v1/jobsheets/', self.create_payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], ledger.PENDING)
        self.assertEqual(response.data['total_amount'], '1300.00')
        self.assertEqual(response.data['balance_amount'], '1300.00')
        self.assertEqual(len(response.data['status_history']), 1)
        self.assertEqual(response.data['created_by'], self.user.id)

    def test_create_with_short_description_fails(self):
        response = self.client.post(
            '/api/v1/jobsheets/', self.create_payload(issue_description='Dead'), format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'validation_error')
        self.assertEqual(JobSheet.objects.count(), 0)

    def test_create_with_negative_cost_fails(self):
        response = self.client.post('/api/v1/jobsheets/', self.create_payload(parts_cost='-5'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'invalid_amount')

    def test_create_with_missing_customer_fails(self):
        payload = self.create_payload()
        del payload['customer']
        response = self.client.post('/api/v1/jobsheets/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('customer', response.data)

    def test_list_is_paginated(self):
        for _ in range(3):
            TestDataFactory.create_job_sheet(user=self.user, device=self.device, location=self.location)
        response = self.client.get('/api/v1/jobsheets/', {'limit': 2})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 3)
        self.assertEqual(len(response.data['results']), 2)
        self.assertEqual(response.data['total_pages'], 2)
        self.assertEqual(response.data['next'], 2)
        self.assertIsNone(response.data['previous'])

    def test_list_filters(self):
        other_location = TestDataFactory.create_location()
        job = TestDataFactory.create_job_sheet(user=self.user, device=self.device, location=self.location)
        TestDataFactory.create_job_sheet(user=self.user, location=other_location)
        self.client.post(f'/api/v1/jobsheets/{job.id}/status/', {'status': 'WAITING_FOR_PARTS'}, format='json')

        response = self.client.get('/api/v1/jobsheets/', {'location': self.location.id})
        self.assertEqual(response.data['count'], 1)

        response = self.client.get('/api/v1/jobsheets/', {'status': 'waiting_parts,pending'})
        self.assertEqual(response.data['count'], 2)

        response = self.client.get('/api/v1/jobsheets/', {'status': 'WAITING_FOR_PARTS'})
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['id'], job.id)

        response = self.client.get('/api/v1/jobsheets/', {'search': self.customer.phone})
        self.assertEqual(response.data['count'], 1)

    def test_list_includes_derived_fields(self):
        yesterday = timezone.localdate() - timedelta(days=1)
        TestDataFactory.create_job_sheet(
            user=self.user, device=self.device, location=self.location,
            labour_cost='1300', expected_completion_date=yesterday
        )
        response = self.client.get('/api/v1/jobsheets/')
        row = response.data['results'][0]
        self.assertTrue(row['is_overdue'])
        self.assertEqual(
            row['quick_amounts'],
            [
                {'label': 'full', 'amount': '1300.00'},
                {'label': 'half', 'amount': '650.00'},
                {'label': '1000', 'amount': '1000.00'},
            ]
        )

    def test_get_detail_and_by_number(self):
        job = TestDataFactory.create_job_sheet(user=self.user, device=self.device, location=self.location)
        response = self.client.get(f'/api/v1/jobsheets/{job.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['job_number'], job.job_number)

        response = self.client.get(f'/api/v1/jobsheets/number/{job.job_number}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['id'], job.id)

    def test_get_missing_job_sheet(self):
        response = self.client.get('/api/v1/jobsheets/999999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['code'], 'not_found')

        response = self.client.get('/api/v1/jobsheets/number/JOB-NOPE/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_patch_costs(self):
        job = TestDataFactory.create_job_sheet(user=self.user, device=self.device, location=self.location, labour_cost='100')
        response = self.client.patch(f'/api/v1/jobsheets/{job.id}/', {'parts_cost': '250.50'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_amount'], '350.50')
        self.assertEqual(response.data['balance_amount'], '350.50')

    def test_patch_read_only_fields_rejected(self):
        job = TestDataFactory.create_job_sheet(user=self.user, device=self.device, location=self.location, labour_cost='100')
        response = self.client.patch(f'/api/v1/jobsheets/{job.id}/', {'balance_amount': '0'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.patch(f'/api/v1/jobsheets/{job.id}/', {'status': 'COMPLETED'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        job.refresh_from_db()
        self.assertEqual(job.balance_amount, Decimal('100.00'))
        self.assertEqual(job.status, ledger.PENDING)

    def test_patch_unknown_field_rejected(self):
        job = TestDataFactory.create_job_sheet(user=self.user, device=self.device, location=self.location, labour_cost='100')
        response = self.client.patch(
            f'/api/v1/jobsheets/{job.id}/', {'foo': 'bar', 'notes': 'Changed'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'validation_error')

        job.refresh_from_db()
        self.assertNotEqual(job.notes, 'Changed')

    def test_delete(self):
        job = TestDataFactory.create_job_sheet(user=self.user, device=self.device, location=self.location, labour_cost='100')
        paid = TestDataFactory.create_job_sheet(user=self.user, device=self.device, location=self.location, labour_cost='100')
        TestDataFactory.record_payment(paid, '50', user=self.user)

        response = self.client.delete(f'/api/v1/jobsheets/{paid.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.delete(f'/api/v1/jobsheets/{job.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(JobSheet.objects.filter(pk=job.id).exists())


class StatusAPITests(TestCase):
    """Test status change and history endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.job = TestDataFactory.create_job_sheet(user=self.user, labour_cost='500')

    def test_change_status(self):
        response = self.client.post(
            f'/api/v1/jobsheets/{self.job.id}/status/',
            {'status': 'in_progress', 'remarks': 'Diagnosis started'},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['job_sheet']['status'], ledger.IN_PROGRESS)
        self.assertEqual(response.data['history']['from_status'], ledger.PENDING)
        self.assertEqual(response.data['history']['to_status'], ledger.IN_PROGRESS)
        self.assertEqual(response.data['history']['changed_by'], self.user.id)

    def test_terminal_status_conflict(self):
        self.client.post(f'/api/v1/jobsheets/{self.job.id}/status/', {'status': 'CANCELLED'}, format='json')
        response = self.client.post(f'/api/v1/jobsheets/{self.job.id}/status/', {'status': 'PENDING'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'invalid_transition')

    def test_unknown_status(self):
        response = self.client.post(f'/api/v1/jobsheets/{self.job.id}/status/', {'status': 'MISSING'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_status_required(self):
        response = self.client.post(f'/api/v1/jobsheets/{self.job.id}/status/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_status_history(self):
        self.client.post(f'/api/v1/jobsheets/{self.job.id}/status/', {'status': 'IN_PROGRESS'}, format='json')
        self.client.post(f'/api/v1/jobsheets/{self.job.id}/status/', {'status': 'COMPLETED'}, format='json')
        response = self.client.get(f'/api/v1/jobsheets/{self.job.id}/status-history/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            [entry['to_status'] for entry in response.data],
            [ledger.PENDING, ledger.IN_PROGRESS, ledger.COMPLETED]
        )
        self.assertIsNone(response.data[0]['from_status'])

    def test_overdue_endpoint(self):
        today = timezone.localdate()
        late = TestDataFactory.create_job_sheet(user=self.user, expected_completion_date=today - timedelta(days=5))
        done = TestDataFactory.create_job_sheet(user=self.user, expected_completion_date=today - timedelta(days=5))
        self.client.post(f'/api/v1/jobsheets/{done.id}/status/', {'status': 'COMPLETED'}, format='json')

        response = self.client.get('/api/v1/jobsheets/overdue/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['id'] for row in response.data['results']], [late.id])

    def test_stats_endpoint(self):
        response = self.client.get('/api/v1/jobsheets/stats/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_job_sheets'], 1)
        self.assertEqual(response.data['by_status'][ledger.PENDING], 1)


class PaymentAPITests(TestCase):
    """Test payment endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.job = TestDataFactory.create_job_sheet(
            user=self.user, labour_cost='1000', parts_cost='500', discount_amount='200'
        )

    def test_record_payments(self):
        url = f'/api/v1/jobsheets/{self.job.id}/payments/'
        response = self.client.post(url, {'amount': '800', 'payment_method': 'cash'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['job_sheet']['paid_amount'], '800.00')
        self.assertEqual(response.data['job_sheet']['balance_amount'], '500.00')
        self.assertFalse(response.data['overpayment'])
        self.assertNotIn('warning', response.data)
        self.assertTrue(response.data['payment']['payment_number'].startswith('PAY-'))

        response = self.client.post(url, {'amount': '500'}, format='json')
        self.assertEqual(response.data['job_sheet']['paid_amount'], '1300.00')
        self.assertEqual(response.data['job_sheet']['balance_amount'], '0.00')

        response = self.client.get(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([p['amount'] for p in response.data], ['800.00', '500.00'])

    def test_overpayment_warning(self):
        response = self.client.post(
            f'/api/v1/jobsheets/{self.job.id}/payments/', {'amount': '1500'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['overpayment'])
        self.assertIn('warning', response.data)
        self.assertEqual(response.data['job_sheet']['balance_amount'], '0.00')

    def test_zero_payment_rejected(self):
        response = self.client.post(
            f'/api/v1/jobsheets/{self.job.id}/payments/', {'amount': '0'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'invalid_amount')
        self.assertEqual(Payment.objects.count(), 0)

    def test_payment_on_cancelled_job_sheet(self):
        self.client.post(f'/api/v1/jobsheets/{self.job.id}/status/', {'status': 'CANCELLED'}, format='json')
        response = self.client.post(
            f'/api/v1/jobsheets/{self.job.id}/payments/', {'amount': '100'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_global_payment_endpoints(self):
        response = self.client.post('/api/v1/payments/', {'amount': '100'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('job_sheet', response.data)

        response = self.client.post(
            '/api/v1/payments/',
            {'job_sheet': self.job.id, 'customer': self.job.customer_id, 'amount': '250', 'payment_method': 'cheque'},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        payment_id = response.data['payment']['id']
        self.assertEqual(response.data['payment']['payment_method'], 'CHECK')

        response = self.client.get('/api/v1/payments/', {'job_sheet': self.job.id})
        self.assertEqual(response.data['count'], 1)

        response = self.client.get('/api/v1/payments/', {'payment_method': 'CARD'})
        self.assertEqual(response.data['count'], 0)

        response = self.client.get(f'/api/v1/payments/{payment_id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['amount'], '250.00')

    def test_payments_cannot_be_changed(self):
        TestDataFactory.record_payment(self.job, '100', user=self.user)
        payment = Payment.objects.get(job_sheet=self.job)
        response = self.client.patch(f'/api/v1/payments/{payment.id}/', {'amount': '1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)
        response = self.client.delete(f'/api/v1/payments/{payment.id}/')
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)

    def test_customer_mismatch(self):
        other = TestDataFactory.create_customer()
        response = self.client.post(
            f'/api/v1/jobsheets/{self.job.id}/payments/', {'amount': '100', 'customer': other.id}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class AuthAPITests(TestCase):

    def test_login_returns_tokens(self):
        user = TestDataFactory.create_user(password='s3cret-pass')
        response = self.client.post(
            '/api/v1/auth/login/', {'username': user.username, 'password': 's3cret-pass'}, content_type='application/json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.json())
        self.assertIn('refresh', response.json())

