"""
Test suite for staff, audit log and authentication endpoints
"""
from django.test import TestCase
from rest_framework import status
from repairdesk.core.models import AuditLog
from repairdesk.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from repairdesk.core.utils import create_audit_log


class AuditLogTests(TestCase):
    """Test audit log helper and endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.admin = TestDataFactory.create_user(is_staff=True)
        self.client = AuthenticatedAPIClient()

    def test_create_audit_log(self):
        log = create_audit_log(
            user=self.user, action='create', model_name='Customer', object_id=1,
            object_name='Customer 1', changes={'name': 'A'}
        )
        self.assertIsNotNone(log)
        self.assertEqual(log.object_id, '1')
        self.assertEqual(log.user, self.user)

    def test_missing_fields_skips_log(self):
        self.assertIsNone(create_audit_log(user=self.user, action='create'))
        self.assertEqual(AuditLog.objects.count(), 0)

    def test_non_staff_sees_only_own_logs(self):
        create_audit_log(user=self.user, action='create', model_name='Customer', object_id=1)
        create_audit_log(user=self.admin, action='create', model_name='Customer', object_id=2)

        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(len(response.data), 2)

    def test_filter_by_job_number(self):
        job = TestDataFactory.create_job_sheet(user=self.admin, labour_cost='100')
        TestDataFactory.record_payment(job, '50', user=self.admin)
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/audit-logs/', {'reference': job.job_number})
        self.assertEqual(
            sorted(entry['action'] for entry in response.data),
            ['jobsheet_create', 'payment_add']
        )


class StaffTests(TestCase):

    def test_me_and_staff_list(self):
        location = TestDataFactory.create_location()
        user = TestDataFactory.create_user(location=location)
        TestDataFactory.create_user()
        client = AuthenticatedAPIClient()
        client.authenticate_user(user)

        response = client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['username'], user.username)
        self.assertEqual(response.data['location'], location.id)

        response = client.get('/api/v1/staff/', {'location': location.id})
        self.assertEqual([row['id'] for row in response.data], [user.id])
