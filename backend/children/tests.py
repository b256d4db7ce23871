from datetime import date
from decimal import Decimal

from django.test import TestCase
from rest_framework.test import APIRequestFactory, force_authenticate

from accounts.models import User
from bookings.models import Booking
from payments.models import PaymentTransaction
from .models import Child
from .views import ChildDetailView, ChildListCreateView

CHILD_PAYLOAD = {
	'full_name': 'Nimali Perera',
	'date_of_birth': '2018-05-01',
	'gender': 'female',
	'school_name': 'Royal Primary',
	'school_latitude': '6.900000',
	'school_longitude': '79.870000',
	'pickup_latitude': '6.927100',
	'pickup_longitude': '79.861200',
}


class ChildViewTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()
		self.parent = User.objects.create_user(username='parent', password='pass1234', role='parent')
		self.driver = User.objects.create_user(username='driver', password='pass1234', role='driver')

	def _create_child(self):
		request = self.factory.post('/api/children/', CHILD_PAYLOAD, format='json')
		force_authenticate(request, user=self.parent)
		return ChildListCreateView.as_view()(request)

	def test_parent_adds_child(self):
		response = self._create_child()

		self.assertEqual(response.status_code, 201)
		self.assertEqual(response.data['pickup_location'], {'lat': 6.9271, 'lng': 79.8612, 'address': ''})
		self.assertFalse(response.data['has_active_booking'])

	def test_invalid_coordinates(self):
		payload = dict(CHILD_PAYLOAD, school_latitude='95.000000')
		request = self.factory.post('/api/children/', payload, format='json')
		force_authenticate(request, user=self.parent)
		self.assertEqual(ChildListCreateView.as_view()(request).status_code, 400)

	def test_driver_cannot_add_child(self):
		request = self.factory.post('/api/children/', CHILD_PAYLOAD, format='json')
		force_authenticate(request, user=self.driver)
		self.assertEqual(ChildListCreateView.as_view()(request).status_code, 403)

	def test_delete_cancels_open_bookings(self):
		child_id = self._create_child().data['id']
		child = Child.objects.get(id=child_id)
		booking = Booking.objects.create(
			parent=self.parent,
			driver=self.driver,
			child=child,
			pickup_latitude=child.pickup_latitude,
			pickup_longitude=child.pickup_longitude,
			dropoff_latitude=child.school_latitude,
			dropoff_longitude=child.school_longitude,
			ride_date=date(2030, 1, 7),
			status='confirmed',
		)
		PaymentTransaction.objects.create(
			booking=booking,
			parent=self.parent,
			driver=self.driver,
			total_amount=Decimal('1000'),
			upfront_amount=Decimal('250'),
			balance_amount=Decimal('750'),
			balance_due_date=date(2030, 1, 5),
		)

		request = self.factory.delete('/api/children/%d/' % child_id)
		force_authenticate(request, user=self.parent)
		response = ChildDetailView.as_view()(request, child_id=child_id)

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['cancelled_bookings'], 1)
		self.assertFalse(Child.objects.filter(id=child_id).exists())

		booking.refresh_from_db()
		self.assertEqual(booking.status, 'cancelled')
		self.assertIsNone(booking.child_id)
		self.assertEqual(PaymentTransaction.objects.get(booking=booking).status, 'failed')

	def test_other_parent_cannot_see_child(self):
		child_id = self._create_child().data['id']
		other = User.objects.create_user(username='other', password='pass1234', role='parent')

		request = self.factory.get('/api/children/%d/' % child_id)
		force_authenticate(request, user=other)
		self.assertEqual(ChildDetailView.as_view()(request, child_id=child_id).status_code, 404)
