from django.test import TestCase
from rest_framework import status
from repairdesk.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class LocationAPITests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())

    def test_list_locations(self):
        TestDataFactory.create_location(name='Colombo')
        TestDataFactory.create_location(name='Kandy', location_type='warehouse')
        response = self.client.get('/api/v1/locations/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['name'] for row in response.data], ['Colombo', 'Kandy'])

        response = self.client.get('/api/v1/locations/', {'location_type': 'branch'})
        self.assertEqual(len(response.data), 1)

    def test_location_detail(self):
        location = TestDataFactory.create_location()
        response = self.client.get(f'/api/v1/locations/{location.id}/')
        self.assertEqual(response.data['location_code'], location.location_code)
        response = self.client.get('/api/v1/locations/999999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
