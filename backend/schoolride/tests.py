from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIRequestFactory

from accounts.models import User
from bookings.models import Booking
from payments.models import PaymentTransaction
from .views import health_check


@patch('schoolride.views.redis.Redis.from_url')
class HealthCheckTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()

	def _get(self):
		return health_check(self.factory.get('/health/'))

	def _plan(self, due, status='partial', booking_status='confirmed'):
		parent = User.objects.create_user(username=f'parent{due}', password='pass1234', role='parent')
		driver = User.objects.create_user(username=f'driver{due}', password='pass1234', role='driver')
		booking = Booking.objects.create(
			parent=parent,
			driver=driver,
			pickup_latitude=Decimal('6.927100'),
			pickup_longitude=Decimal('79.861200'),
			dropoff_latitude=Decimal('6.900000'),
			dropoff_longitude=Decimal('79.870000'),
			ride_date=due - timedelta(days=20),
			end_date=due + timedelta(days=2),
			status=booking_status,
			total_price=Decimal('10000'),
		)
		return PaymentTransaction.objects.create(
			booking=booking,
			parent=parent,
			driver=driver,
			total_amount=Decimal('10000'),
			upfront_amount=Decimal('2500'),
			balance_amount=Decimal('7500'),
			upfront_paid=Decimal('2500'),
			balance_due_date=due,
			status=status,
		)

	def test_healthy(self, mock_from_url):
		response = self._get()

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['status'], 'healthy')
		self.assertEqual(response.data['payments'], {'open_payment_plans': 0, 'overdue_not_suspended': 0})
		self.assertEqual(
			response.data['scheduled_jobs'],
			{
				'send-balance-reminders': True,
				'suspend-overdue-payments': True,
				'complete-finished-bookings': True,
				'process-weekly-payouts': True,
			},
		)
		mock_from_url.return_value.ping.assert_called_once()

	def test_missed_suspensions_degrade(self, mock_from_url):
		today = timezone.localdate()
		self._plan(today - timedelta(days=3))
		self._plan(today - timedelta(days=4), booking_status='cancelled')
		self._plan(today + timedelta(days=3))

		response = self._get()

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['status'], 'degraded')
		self.assertEqual(response.data['payments'], {'open_payment_plans': 3, 'overdue_not_suspended': 1})

	def test_redis_down_is_unhealthy(self, mock_from_url):
		mock_from_url.return_value.ping.side_effect = ConnectionError('refused')

		response = self._get()

		self.assertEqual(response.status_code, 503)
		self.assertTrue(response.data['services']['redis'].startswith('unhealthy'))

	def test_unknown_scheduled_job_is_unhealthy(self, mock_from_url):
		schedule = {'nightly-payouts': {'task': 'payments.tasks.missing_task', 'schedule': timedelta(hours=24)}}
		with override_settings(CELERY_BEAT_SCHEDULE=schedule):
			response = self._get()

		self.assertEqual(response.status_code, 503)
		self.assertEqual(response.data['scheduled_jobs'], {'nightly-payouts': False})
		self.assertIn('nightly-payouts', response.data['services']['celery'])
