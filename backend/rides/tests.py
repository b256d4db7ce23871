from datetime import date, timedelta
from decimal import Decimal
from io import StringIO
from unittest.mock import MagicMock, patch

from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIRequestFactory, force_authenticate

from accounts.models import User
from bookings.models import Booking
from children.models import Child
from common.maps import MapsResult
from drivers.models import DriverProfile
from notifications.models import Notification
from payments.models import PaymentTransaction
from services.ride_management import (
	ActiveRideExistsError,
	InvalidAttendanceTransitionError,
	LocationTracker,
	NoBookingsTodayError,
	RideAlreadyCompletedError,
	RideNotFoundError,
	TrackingNotActiveError,
	complete_ride_early,
	start_ride,
	trigger_emergency_alert,
	update_child_status,
)
from services.ride_management import ride_lifecycle
from .models import ActiveRide, EmergencyAlert, RideChild, TrackingSession
from . import views

MONDAY = date(2030, 1, 7)


class RideFixtureMixin:
	def setUp(self):
		self.driver = User.objects.create_user(username='driver', password='pass1234', role='driver',
											   first_name='Sunil')
		DriverProfile.objects.create(user=self.driver, status='approved', vehicle_capacity=4)
		self.parent_one = User.objects.create_user(username='parent_one', password='pass1234', role='parent')
		self.parent_two = User.objects.create_user(username='parent_two', password='pass1234', role='parent')

		self.child_one = self.make_child(self.parent_one, 'Nimali')
		self.child_two = self.make_child(self.parent_two, 'Kasun')
		self.booking_one = self.make_booking(self.child_one)
		self.booking_two = self.make_booking(self.child_two)

	def make_child(self, parent, name):
		return Child.objects.create(
			parent=parent,
			full_name=name,
			date_of_birth=date(2018, 5, 1),
			gender='other',
			school_name='Royal Primary',
			school_latitude=Decimal('6.931900'),
			school_longitude=Decimal('79.847800'),
			pickup_latitude=Decimal('6.927100'),
			pickup_longitude=Decimal('79.861200'),
		)

	def make_booking(self, child, ride_date=MONDAY, end_date=MONDAY + timedelta(days=11), status='confirmed'):
		return Booking.objects.create(
			parent=child.parent,
			driver=self.driver,
			child=child,
			pickup_latitude=child.pickup_latitude,
			pickup_longitude=child.pickup_longitude,
			dropoff_latitude=child.school_latitude,
			dropoff_longitude=child.school_longitude,
			ride_date=ride_date,
			end_date=end_date,
			status=status,
		)


class StartRideTests(RideFixtureMixin, TestCase):
	def test_start_ride_adds_todays_children(self):
		with self.captureOnCommitCallbacks(execute=True):
			result = start_ride(self.driver, day=MONDAY)

		ride = result.ride
		self.assertEqual(ride.status, 'in_progress')
		self.assertEqual(ride.total_children, 2)
		self.assertEqual(ride.ride_key, f'{self.driver.id}_2030-01-07')
		self.assertEqual(
			list(ride.children.values_list('full_name', flat=True)),
			['Nimali', 'Kasun'],
		)

	def test_one_ride_per_day(self):
		start_ride(self.driver, day=MONDAY)
		with self.assertRaises(ActiveRideExistsError):
			start_ride(self.driver, day=MONDAY)

	def test_concurrent_start_reports_existing_ride(self):
		real_lookup = ride_lifecycle.get_bookings_for_day

		def lookup_while_another_request_starts(driver, day):
			ActiveRide.objects.create(driver=driver, date=day, status='in_progress')
			return real_lookup(driver, day)

		with patch('services.ride_management.ride_lifecycle.get_bookings_for_day', side_effect=lookup_while_another_request_starts):
			with self.assertRaises(ActiveRideExistsError):
				start_ride(self.driver, day=MONDAY)

	def test_no_rides_on_weekend_for_recurring_bookings(self):
		with self.assertRaises(NoBookingsTodayError):
			start_ride(self.driver, day=MONDAY + timedelta(days=5))

	def test_skipped_dates_and_suspended_payments_are_left_out(self):
		self.booking_one.cancelled_dates = [MONDAY.isoformat()]
		self.booking_one.save()
		PaymentTransaction.objects.create(
			booking=self.booking_two,
			parent=self.parent_two,
			driver=self.driver,
			total_amount=Decimal('1000'),
			upfront_amount=Decimal('250'),
			balance_amount=Decimal('750'),
			balance_due_date=MONDAY,
			status='suspended',
		)

		with self.assertRaises(NoBookingsTodayError):
			start_ride(self.driver, day=MONDAY)

	def test_pending_bookings_are_not_driven(self):
		self.booking_two.status = 'pending'
		self.booking_two.save()

		result = start_ride(self.driver, day=MONDAY)
		self.assertEqual(result.ride.total_children, 1)


class AttendanceTests(RideFixtureMixin, TestCase):
	def setUp(self):
		super().setUp()
		self.ride = start_ride(self.driver, day=MONDAY).ride
		self.rc_one = self.ride.children.get(child=self.child_one)
		self.rc_two = self.ride.children.get(child=self.child_two)

	def test_pickup_notifies_parent(self):
		with self.captureOnCommitCallbacks(execute=True):
			result = update_child_status(self.driver, self.ride.id, self.rc_one.id, 'picked_up')

		self.assertFalse(result.ride_completed)
		self.assertEqual(result.ride.picked_up_count, 1)
		self.assertIsNotNone(result.ride_child.picked_up_at)

		notification = Notification.objects.get(recipient=self.parent_one, type='attendance')
		self.assertEqual(notification.title, 'Child Picked Up')
		self.assertEqual(notification.data['status'], 'present')
		self.assertFalse(Notification.objects.filter(recipient=self.parent_two).exists())

	def test_invalid_transitions_are_rejected(self):
		with self.assertRaises(InvalidAttendanceTransitionError):
			update_child_status(self.driver, self.ride.id, self.rc_one.id, 'dropped_off')

		update_child_status(self.driver, self.ride.id, self.rc_one.id, 'absent')
		with self.assertRaises(InvalidAttendanceTransitionError):
			update_child_status(self.driver, self.ride.id, self.rc_one.id, 'picked_up')

	def test_ride_completes_when_every_child_is_done(self):
		update_child_status(self.driver, self.ride.id, self.rc_one.id, 'absent')
		update_child_status(self.driver, self.ride.id, self.rc_two.id, 'picked_up')

		with self.captureOnCommitCallbacks(execute=True):
			result = update_child_status(self.driver, self.ride.id, self.rc_two.id, 'dropped_off')

		self.assertTrue(result.ride_completed)
		ride = ActiveRide.objects.get(id=self.ride.id)
		self.assertEqual(ride.status, 'completed')
		self.assertFalse(ride.completed_early)
		self.assertEqual(ride.absent_count, 1)
		self.assertEqual(ride.picked_up_count, 1)
		self.assertEqual(ride.dropped_off_count, 1)

		self.assertTrue(Notification.objects.filter(recipient=self.parent_one, type='trip_end').exists())
		self.assertTrue(Notification.objects.filter(recipient=self.parent_two, type='trip_end').exists())

		with self.assertRaises(RideAlreadyCompletedError):
			update_child_status(self.driver, self.ride.id, self.rc_one.id, 'picked_up')

	def test_other_driver_cannot_update(self):
		other = User.objects.create_user(username='other', password='pass1234', role='driver')
		with self.assertRaises(RideNotFoundError):
			update_child_status(other, self.ride.id, self.rc_one.id, 'picked_up')

	def test_complete_early(self):
		with self.captureOnCommitCallbacks(execute=True):
			result = complete_ride_early(self.driver, self.ride.id)

		self.assertTrue(result.ride.completed_early)
		self.assertEqual(Notification.objects.filter(type='trip_end').count(), 2)
		self.assertEqual(RideChild.objects.filter(ride=self.ride, status='pending').count(), 2)

		with self.assertRaises(RideAlreadyCompletedError):
			complete_ride_early(self.driver, self.ride.id)

	@patch('services.ride_management.ride_lifecycle.broadcast_ride_update')
	def test_snapshot_is_broadcast_after_commit(self, mock_broadcast):
		with self.captureOnCommitCallbacks(execute=True):
			update_child_status(self.driver, self.ride.id, self.rc_one.id, 'picked_up')

		mock_broadcast.assert_called_once()
		self.assertEqual(mock_broadcast.call_args.kwargs['event'], 'child_status_updated')

	@patch('services.ride_management.ride_lifecycle.send_attendance_notification', side_effect=RuntimeError('boom'))
	def test_notification_failure_keeps_attendance(self, mock_notify):
		with self.captureOnCommitCallbacks(execute=True):
			update_child_status(self.driver, self.ride.id, self.rc_one.id, 'picked_up')

		mock_notify.assert_called_once()
		self.rc_one.refresh_from_db()
		self.assertEqual(self.rc_one.status, 'picked_up')


class EmergencyTests(RideFixtureMixin, TestCase):
	def setUp(self):
		super().setUp()
		self.ride = start_ride(self.driver, day=MONDAY).ride

	def test_sos_alerts_every_parent(self):
		maps = MagicMock()
		maps.reverse_geocode.return_value = MapsResult(ok=True, value='Galle Road, Colombo 03')
		maps.nearby_places.return_value = MapsResult(ok=True, value=[
			{'name': 'Place %d' % i, 'lat': 6.9, 'lng': 79.85} for i in range(5)
		])

		with self.captureOnCommitCallbacks(execute=True):
			alert = trigger_emergency_alert(self.driver, self.ride.id, 6.9271, 79.8612, 'Flat tyre', maps_client=maps)

		self.assertEqual(alert.address, 'Galle Road, Colombo 03')
		self.assertEqual(alert.parent_ids, [self.parent_one.id, self.parent_two.id])
		self.assertEqual(len(alert.nearby_services), 6)
		self.assertEqual(Notification.objects.filter(type='emergency_sos').count(), 2)

	def test_sos_without_location_skips_maps(self):
		maps = MagicMock()
		alert = trigger_emergency_alert(self.driver, self.ride.id, maps_client=maps)

		maps.reverse_geocode.assert_not_called()
		self.assertEqual(alert.message, 'Emergency alert triggered by driver')

	def test_maps_failure_still_raises_alert(self):
		maps = MagicMock()
		maps.reverse_geocode.return_value = MapsResult(ok=False, error='quota')
		maps.nearby_places.return_value = MapsResult(ok=False, error='quota')

		alert = trigger_emergency_alert(self.driver, self.ride.id, 6.9, 79.8, maps_client=maps)

		self.assertEqual(alert.address, '')
		self.assertEqual(alert.nearby_services, [])
		self.assertTrue(EmergencyAlert.objects.filter(id=alert.id).exists())


class TrackingTests(RideFixtureMixin, TestCase):
	def setUp(self):
		super().setUp()
		self.ride = start_ride(self.driver, day=MONDAY).ride

	@patch('drivers.services.broadcast_driver_location')
	def test_tracking_accumulates_distance(self, mock_broadcast):
		tracker = LocationTracker(self.driver)
		tracker.start(self.ride.id)

		tracker.update(6.9271, 79.8612)
		tracker.update(6.9361, 79.8612)
		session = tracker.stop()

		self.assertFalse(session.is_active)
		self.assertAlmostEqual(session.total_distance_km, 1.0, delta=0.05)
		self.assertEqual(mock_broadcast.call_count, 2)
		mock_broadcast.assert_called_with(self.ride.id, self.driver.id, 6.9361, 79.8612)

	def test_resume_and_restart(self):
		first = LocationTracker(self.driver).start(self.ride.id)
		second = LocationTracker(self.driver).start(self.ride.id)

		first.refresh_from_db()
		self.assertFalse(first.is_active)
		self.assertEqual(LocationTracker.resume(self.driver, self.ride.id).session, second)

	def test_update_without_session(self):
		with self.assertRaises(TrackingNotActiveError):
			LocationTracker(self.driver).update(6.9, 79.8)

	@patch('drivers.services.broadcast_driver_location')
	def test_completing_ride_stops_tracking(self, mock_broadcast):
		tracker = LocationTracker(self.driver)
		session = tracker.start(self.ride.id)
		tracker.update(6.9271, 79.8612)

		complete_ride_early(self.driver, self.ride.id)

		session.refresh_from_db()
		self.assertFalse(session.is_active)
		self.assertIsNotNone(session.stopped_at)
		self.assertFalse(LocationTracker.resume(self.driver, self.ride.id).is_tracking)
		with self.assertRaises(TrackingNotActiveError):
			tracker.update(6.9361, 79.8612)
		self.assertEqual(mock_broadcast.call_count, 1)

	def test_completed_ride_cannot_be_tracked(self):
		complete_ride_early(self.driver, self.ride.id)
		with self.assertRaises(RideAlreadyCompletedError):
			LocationTracker(self.driver).start(self.ride.id)


class RideViewTests(RideFixtureMixin, TestCase):
	def setUp(self):
		super().setUp()
		self.factory = APIRequestFactory()
		today = timezone.localdate()
		self.booking_one.ride_date = today
		self.booking_one.end_date = None
		self.booking_one.save()

	def test_driver_starts_todays_ride(self):
		request = self.factory.post('/api/rides/start/')
		force_authenticate(request, user=self.driver)
		response = views.start_ride(request)

		self.assertEqual(response.status_code, 201)
		self.assertEqual(response.data['total_children'], 1)

		request = self.factory.post('/api/rides/start/')
		force_authenticate(request, user=self.driver)
		self.assertEqual(views.start_ride(request).status_code, 409)

	def test_parent_cannot_start_ride(self):
		request = self.factory.post('/api/rides/start/')
		force_authenticate(request, user=self.parent_one)
		self.assertEqual(views.start_ride(request).status_code, 403)

	def test_ride_detail_is_limited_to_participants(self):
		ride = start_ride(self.driver).ride

		request = self.factory.get('/api/rides/%d/' % ride.id)
		force_authenticate(request, user=self.parent_one)
		self.assertEqual(views.ride_detail(request, ride_id=ride.id).status_code, 200)

		request = self.factory.get('/api/rides/%d/' % ride.id)
		force_authenticate(request, user=self.parent_two)
		self.assertEqual(views.ride_detail(request, ride_id=ride.id).status_code, 404)

	def test_parent_sees_active_rides(self):
		start_ride(self.driver)

		request = self.factory.get('/api/rides/parent/active/')
		force_authenticate(request, user=self.parent_one)
		response = views.parent_active_rides(request)

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['count'], 1)

	def test_child_status_view(self):
		ride = start_ride(self.driver).ride
		ride_child = ride.children.get()

		request = self.factory.post('/status/', {'status': 'absent'}, format='json')
		force_authenticate(request, user=self.driver)
		response = views.update_child_status(request, ride_id=ride.id, ride_child_id=ride_child.id)

		self.assertEqual(response.status_code, 200)
		self.assertTrue(response.data['ride_completed'])

	def test_cleanup_command_dry_run(self):
		out = StringIO()
		call_command('cleanup_old_data', '--dry-run', stdout=out)
		self.assertIn('DRY RUN', out.getvalue())
		self.assertEqual(TrackingSession.objects.count(), 0)
