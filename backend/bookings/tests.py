from datetime import date, timedelta
from decimal import Decimal

from django.test import SimpleTestCase, TestCase
from django.utils import timezone
from rest_framework.test import APIRequestFactory, force_authenticate

from accounts.models import User
from children.models import Child
from drivers.models import DriverProfile
from notifications.models import Notification
from payments.models import PaymentTransaction
from services.booking_management import (
	BookingValidationError,
	DriverUnavailableError,
	InvalidBookingTransitionError,
	RouteNotCompatibleError,
	RouteConfirmationRequiredError,
	cancel_rides_for_date,
	complete_finished_bookings,
	create_booking,
	extend_booking,
	update_booking_status,
)
from .pricing import (
	calculate_driver_availability_percentage,
	calculate_extension_price,
	calculate_ride_price,
	count_school_days,
	format_price,
)
from .views import ParentBookingListCreateView, BookingStatusView

MONDAY = date(2030, 1, 7)
FRIDAY_NEXT_WEEK = date(2030, 1, 18)


def make_parent(username='parent'):
	return User.objects.create_user(username=username, password='pass1234', role='parent')


def make_driver(username='driver', capacity=4, route_offset=0.0, **profile_fields):
	driver = User.objects.create_user(username=username, password='pass1234', role='driver')
	DriverProfile.objects.create(
		user=driver,
		status=profile_fields.pop('status', 'approved'),
		vehicle_type='van',
		vehicle_number='WP-1234',
		vehicle_capacity=capacity,
		route_start_latitude=Decimal('6.928000') + Decimal(str(route_offset)),
		route_start_longitude=Decimal('79.861500'),
		route_end_latitude=Decimal('6.901000'),
		route_end_longitude=Decimal('79.870500'),
		**profile_fields
	)
	return driver


def make_child(parent, name='Nimali'):
	return Child.objects.create(
		parent=parent,
		full_name=name,
		date_of_birth=date(2018, 5, 1),
		gender='female',
		school_name='Royal Primary',
		school_latitude=Decimal('6.900000'),
		school_longitude=Decimal('79.870000'),
		pickup_latitude=Decimal('6.927100'),
		pickup_longitude=Decimal('79.861200'),
	)


class PricingTests(SimpleTestCase):
	def test_full_week_has_five_school_days(self):
		self.assertEqual(count_school_days(date(2024, 1, 1), date(2024, 1, 7)), 5)

	def test_weekend_only_range_has_no_school_days(self):
		self.assertEqual(count_school_days(date(2024, 1, 6), date(2024, 1, 7)), 0)

	def test_reversed_range_has_no_school_days(self):
		self.assertEqual(count_school_days(date(2024, 1, 7), date(2024, 1, 1)), 0)

	def test_availability_percentage_is_clamped(self):
		self.assertEqual(calculate_driver_availability_percentage(4, 1), 75)
		self.assertEqual(calculate_driver_availability_percentage(4, 6), 0)
		self.assertEqual(calculate_driver_availability_percentage(0, 0), 0)

	def test_ride_price_adds_availability_bonus(self):
		pricing = calculate_ride_price(10, 20, 50)

		self.assertEqual(pricing.base_price, Decimal('5000'))
		self.assertEqual(pricing.availability_bonus, Decimal('500'))
		self.assertEqual(pricing.total_price, Decimal('5500'))

	def test_fully_free_driver_has_no_bonus(self):
		pricing = calculate_ride_price(4, 5, 100)
		self.assertEqual(pricing.availability_bonus, Decimal('0'))
		self.assertEqual(pricing.total_price, Decimal('500'))

	def test_extension_uses_existing_daily_rate(self):
		self.assertEqual(calculate_extension_price(5000, 20, 5), Decimal('1250.00'))

	def test_extension_without_day_count_falls_back_to_distance(self):
		self.assertEqual(calculate_extension_price(0, 0, 2, fallback_distance_km=4), Decimal('200.00'))

	def test_format_price(self):
		self.assertEqual(format_price(Decimal('12500')), 'Rs.12,500')
		self.assertEqual(format_price(Decimal('10.5')), 'Rs.10.50')


class BookingServiceTests(TestCase):
	def setUp(self):
		self.parent = make_parent()
		self.driver = make_driver()
		self.child = make_child(self.parent)

	def test_create_booking_creates_payment_plan(self):
		with self.captureOnCommitCallbacks(execute=True):
			booking = create_booking(self.parent, self.child.id, self.driver.id, MONDAY, FRIDAY_NEXT_WEEK)

		self.assertEqual(booking.status, 'pending')
		self.assertEqual(booking.recurring_days, 10)
		self.assertEqual(booking.route_quality, 'Excellent')
		self.assertEqual(booking.dropoff_latitude, self.child.school_latitude)

		payment = PaymentTransaction.objects.get(booking=booking)
		self.assertEqual(payment.total_amount, booking.total_price)
		self.assertEqual(payment.upfront_amount + payment.balance_amount, payment.total_amount)
		self.assertEqual(payment.balance_due_date, FRIDAY_NEXT_WEEK - timedelta(days=2))

		self.assertTrue(Notification.objects.filter(recipient=self.driver, type='booking').exists())

	def test_weekend_only_booking_is_rejected(self):
		with self.assertRaises(BookingValidationError):
			create_booking(self.parent, self.child.id, self.driver.id, date(2030, 1, 5), date(2030, 1, 6))

	def test_past_start_date_is_rejected(self):
		yesterday = timezone.localdate() - timedelta(days=1)
		with self.assertRaises(BookingValidationError):
			create_booking(self.parent, self.child.id, self.driver.id, yesterday, yesterday + timedelta(days=10))

	def test_other_parents_child_is_rejected(self):
		other = make_parent('other')
		with self.assertRaises(BookingValidationError):
			create_booking(other, self.child.id, self.driver.id, MONDAY)

	def test_full_driver_is_unavailable(self):
		full_driver = make_driver('full', capacity=1)
		create_booking(self.parent, self.child.id, full_driver.id, MONDAY)

		second_child = make_child(self.parent, name='Kasun')
		with self.assertRaises(DriverUnavailableError):
			create_booking(self.parent, second_child.id, full_driver.id, MONDAY)

	def test_closed_driver_is_unavailable(self):
		closed = make_driver('closed', booking_open=False)
		with self.assertRaises(DriverUnavailableError):
			create_booking(self.parent, self.child.id, closed.id, MONDAY)

	def test_good_route_requires_confirmation(self):
		# ~3 km away from the pickup
		good = make_driver('good', route_offset=0.027)

		with self.assertRaises(RouteConfirmationRequiredError) as ctx:
			create_booking(self.parent, self.child.id, good.id, MONDAY)
		self.assertEqual(ctx.exception.compatibility.quality, 'Good')

		booking = create_booking(self.parent, self.child.id, good.id, MONDAY, confirm_route_warning=True)
		self.assertEqual(booking.route_quality, 'Good')

	def test_poor_route_is_rejected(self):
		poor = make_driver('poor', route_offset=0.2)
		with self.assertRaises(RouteNotCompatibleError):
			create_booking(self.parent, self.child.id, poor.id, MONDAY, confirm_route_warning=True)

	def test_driver_confirms_and_parent_cannot(self):
		booking = create_booking(self.parent, self.child.id, self.driver.id, MONDAY)

		with self.assertRaises(InvalidBookingTransitionError):
			update_booking_status(self.parent, booking.id, 'confirmed')

		with self.captureOnCommitCallbacks(execute=True):
			booking = update_booking_status(self.driver, booking.id, 'confirmed')

		self.assertEqual(booking.status, 'confirmed')
		self.assertIsNotNone(booking.confirmed_at)
		self.assertTrue(Notification.objects.filter(recipient=self.parent, title='Booking Confirmed').exists())

	def test_cancel_fails_unpaid_payment(self):
		booking = create_booking(self.parent, self.child.id, self.driver.id, MONDAY)
		update_booking_status(self.parent, booking.id, 'cancelled', reason='Moved house')

		booking.refresh_from_db()
		self.assertEqual(booking.status, 'cancelled')
		self.assertEqual(booking.cancellation_reason, 'Moved house')
		self.assertEqual(PaymentTransaction.objects.get(booking=booking).status, 'failed')

		with self.assertRaises(InvalidBookingTransitionError):
			update_booking_status(self.driver, booking.id, 'confirmed')

	def test_extend_booking_grows_payment_plan(self):
		booking = create_booking(self.parent, self.child.id, self.driver.id, MONDAY, FRIDAY_NEXT_WEEK)
		booking.total_price = Decimal('5000')
		booking.recurring_days = 20
		booking.save()

		booking, price = extend_booking(self.parent, booking.id, 5)

		self.assertEqual(price, Decimal('1250.00'))
		self.assertEqual(booking.recurring_days, 25)
		self.assertEqual(booking.end_date, FRIDAY_NEXT_WEEK + timedelta(days=5))
		self.assertEqual(booking.total_price, Decimal('6250.00'))

		payment = PaymentTransaction.objects.get(booking=booking)
		self.assertEqual(payment.balance_due_date, booking.end_date - timedelta(days=2))

	def test_cancel_day_skips_one_date(self):
		booking = create_booking(self.parent, self.child.id, self.driver.id, MONDAY, FRIDAY_NEXT_WEEK)
		update_booking_status(self.driver, booking.id, 'confirmed')
		tuesday = MONDAY + timedelta(days=1)

		with self.captureOnCommitCallbacks(execute=True):
			affected = cancel_rides_for_date(self.driver, tuesday, reason='Vehicle service')

		self.assertEqual([b.id for b in affected], [booking.id])
		booking.refresh_from_db()
		self.assertFalse(booking.is_scheduled_on(tuesday))
		self.assertTrue(booking.is_scheduled_on(MONDAY))
		self.assertTrue(Notification.objects.filter(recipient=self.parent, type='ride_cancellation').exists())

	def test_finished_bookings_complete(self):
		booking = create_booking(self.parent, self.child.id, self.driver.id, MONDAY, FRIDAY_NEXT_WEEK)
		update_booking_status(self.driver, booking.id, 'confirmed')

		self.assertEqual(complete_finished_bookings(today=FRIDAY_NEXT_WEEK), 0)
		self.assertEqual(complete_finished_bookings(today=FRIDAY_NEXT_WEEK + timedelta(days=1)), 1)

		booking.refresh_from_db()
		self.assertEqual(booking.status, 'completed')


class BookingViewTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()
		self.parent = make_parent()
		self.driver = make_driver()
		self.child = make_child(self.parent)

	def _create(self, user, payload):
		request = self.factory.post('/api/bookings/', payload, format='json')
		force_authenticate(request, user=user)
		return ParentBookingListCreateView.as_view()(request)

	def test_parent_creates_booking(self):
		response = self._create(self.parent, {
			'child_id': self.child.id,
			'driver_id': self.driver.id,
			'ride_date': MONDAY.isoformat(),
		})

		self.assertEqual(response.status_code, 201)
		self.assertEqual(response.data['status'], 'pending')
		self.assertIsNotNone(response.data['payment'])

	def test_past_start_date_is_a_bad_request(self):
		response = self._create(self.parent, {
			'child_id': self.child.id,
			'driver_id': self.driver.id,
			'ride_date': (timezone.localdate() - timedelta(days=3)).isoformat(),
		})

		self.assertEqual(response.status_code, 400)
		self.assertIn('ride_date', response.data)
		self.assertFalse(PaymentTransaction.objects.exists())

	def test_driver_cannot_create_booking(self):
		response = self._create(self.driver, {
			'child_id': self.child.id,
			'driver_id': self.driver.id,
			'ride_date': MONDAY.isoformat(),
		})
		self.assertEqual(response.status_code, 403)

	def test_route_warning_returns_conflict(self):
		good = make_driver('good', route_offset=0.027)
		response = self._create(self.parent, {
			'child_id': self.child.id,
			'driver_id': good.id,
			'ride_date': MONDAY.isoformat(),
		})

		self.assertEqual(response.status_code, 409)
		self.assertTrue(response.data['requires_confirmation'])
		self.assertEqual(response.data['route']['quality'], 'Good')

	def test_unrelated_user_gets_not_found(self):
		booking = create_booking(self.parent, self.child.id, self.driver.id, MONDAY)
		stranger = make_parent('stranger')

		request = self.factory.post('/api/bookings/%d/status/' % booking.id, {'status': 'cancelled'}, format='json')
		force_authenticate(request, user=stranger)
		response = BookingStatusView.as_view()(request, booking_id=booking.id)

		self.assertEqual(response.status_code, 404)
		booking.refresh_from_db()
		self.assertEqual(booking.status, 'pending')
