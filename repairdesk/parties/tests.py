"""
Test suite for customer and device endpoints
"""
from django.test import TestCase
from rest_framework import status
from repairdesk.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from repairdesk.parties.models import Customer, Device


class CustomerAPITests(TestCase):
    """Test Customer API endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_customer(self):
        data = {'name': 'Nimal Perera', 'phone': '0771234567', 'email': 'nimal@example.com'}
        response = self.client.post('/api/v1/customers/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['device_count'], 0)

    def test_duplicate_phone_rejected(self):
        customer = TestDataFactory.create_customer()
        data = {'name': 'Someone Else', 'phone': customer.phone}
        response = self.client.post('/api/v1/customers/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('phone', response.data)

    def test_search_customers(self):
        TestDataFactory.create_customer(name='Kamal Silva')
        TestDataFactory.create_customer(name='Ruwan Fernando')
        response = self.client.get('/api/v1/customers/', {'search': 'kamal'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

    def test_patch_customer(self):
        customer = TestDataFactory.create_customer()
        response = self.client.patch(f'/api/v1/customers/{customer.id}/', {'notes': 'Prefers SMS'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        customer.refresh_from_db()
        self.assertEqual(customer.notes, 'Prefers SMS')

    def test_customer_with_job_sheets_cannot_be_deleted(self):
        job = TestDataFactory.create_job_sheet(user=self.user)
        response = self.client.delete(f'/api/v1/customers/{job.customer_id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Customer.objects.filter(pk=job.customer_id).exists())

    def test_delete_customer_without_job_sheets(self):
        customer = TestDataFactory.create_customer()
        TestDataFactory.create_device(customer=customer)
        response = self.client.delete(f'/api/v1/customers/{customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(Device.objects.filter(customer_id=customer.id).count(), 0)


class DeviceAPITests(TestCase):
    """Test Device API endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.customer = TestDataFactory.create_customer()

    def test_register_device(self):
        data = {
            'customer': self.customer.id,
            'device_type': 'mobile',
            'brand': 'Apple',
            'model': 'iPhone 13',
            'imei': '356789012345678',
        }
        response = self.client.post('/api/v1/devices/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['customer_name'], self.customer.name)

    def test_invalid_imei_rejected(self):
        data = {'customer': self.customer.id, 'brand': 'Apple', 'model': 'iPhone 13', 'imei': '12AB'}
        response = self.client.post('/api/v1/devices/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('imei', response.data)

    def test_customer_devices(self):
        TestDataFactory.create_device(customer=self.customer)
        TestDataFactory.create_device(customer=self.customer)
        TestDataFactory.create_device()
        response = self.client.get(f'/api/v1/customers/{self.customer.id}/devices/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)

        response = self.client.get('/api/v1/devices/', {'customer': self.customer.id})
        self.assertEqual(len(response.data), 2)
