from datetime import date
from decimal import Decimal
from unittest.mock import patch

from django.test import TestCase, override_settings
from rest_framework.test import APIRequestFactory, force_authenticate

from accounts.models import User
from bookings.models import Booking
from children.models import Child
from services.matching import (
	DriverFilters,
	RatingValidationError,
	TrustedDriverError,
	classify_route_compatibility,
	get_driver_availability,
	get_rating_summary,
	is_route_compatible_by_legs,
	list_available_drivers,
	rate_driver,
	set_trusted_driver,
)
from services.matching.route_compatibility import meets_minimum_quality, tier_for_distance
from .models import DriverProfile, DriverRating, TrustedDriver
from .views import (
	AvailableDriversView,
	DriverLocationUpdateView,
	DriverRatingsView,
	DriverRouteView,
	TrustedDriverListView,
	TrustedDriverView,
)

PICKUP = {'lat': 6.9271, 'lng': 79.8612}
SCHOOL = {'lat': 6.9319, 'lng': 79.8478}
ROUTE_START = {'lat': 6.9280, 'lng': 79.8600}
ROUTE_END = {'lat': 6.9310, 'lng': 79.8490}


class RouteCompatibilityTests(TestCase):
	def test_close_route_is_excellent(self):
		compatibility = classify_route_compatibility(PICKUP, SCHOOL, ROUTE_START, ROUTE_END)

		self.assertEqual(compatibility.quality, 'Excellent')
		self.assertAlmostEqual(compatibility.pickup_distance, 0.16, delta=0.05)
		self.assertAlmostEqual(compatibility.school_distance, 0.16, delta=0.05)
		self.assertLess(compatibility.total_distance, 2)
		self.assertFalse(compatibility.requires_confirmation)

	def test_missing_route_is_unknown(self):
		compatibility = classify_route_compatibility(PICKUP, SCHOOL, None, ROUTE_END)
		self.assertEqual(compatibility.quality, 'Unknown')
		self.assertIsNone(compatibility.total_distance)
		self.assertFalse(compatibility.is_listable)

	def test_tiers_follow_thresholds(self):
		self.assertEqual(tier_for_distance(1.99), 'Excellent')
		self.assertEqual(tier_for_distance(2), 'Good')
		self.assertEqual(tier_for_distance(4.9), 'Good')
		self.assertEqual(tier_for_distance(5), 'Fair')
		self.assertEqual(tier_for_distance(9.99), 'Fair')
		self.assertEqual(tier_for_distance(10), 'Poor')

	def test_tier_never_improves_with_distance(self):
		order = ['Excellent', 'Good', 'Fair', 'Poor']
		ranks = [order.index(tier_for_distance(km / 2)) for km in range(0, 40)]
		self.assertEqual(ranks, sorted(ranks))

	def test_minimum_quality(self):
		self.assertTrue(meets_minimum_quality('Excellent', 'Good'))
		self.assertFalse(meets_minimum_quality('Fair', 'Good'))
		self.assertTrue(meets_minimum_quality('Fair', None))

	def test_legs_are_screened_independently(self):
		far_start = {'lat': 7.05, 'lng': 79.8612}  # ~13.7 km north of the pickup

		self.assertTrue(is_route_compatible_by_legs(PICKUP, SCHOOL, far_start, ROUTE_END))
		self.assertFalse(is_route_compatible_by_legs(PICKUP, SCHOOL, far_start, ROUTE_END, limit_km=10))
		self.assertEqual(classify_route_compatibility(PICKUP, SCHOOL, far_start, ROUTE_END).quality, 'Poor')


def make_driver(username, capacity=3, start=ROUTE_START, **fields):
	user = User.objects.create_user(username=username, password='pass1234', role='driver')
	return DriverProfile.objects.create(
		user=user,
		status=fields.pop('status', 'approved'),
		vehicle_type=fields.pop('vehicle_type', 'van'),
		vehicle_capacity=capacity,
		route_start_latitude=Decimal(str(start['lat'])),
		route_start_longitude=Decimal(str(start['lng'])),
		route_end_latitude=Decimal(str(ROUTE_END['lat'])),
		route_end_longitude=Decimal(str(ROUTE_END['lng'])),
		**fields
	)


class DriverListingTests(TestCase):
	def setUp(self):
		self.parent = User.objects.create_user(username='parent', password='pass1234', role='parent')
		self.child = Child.objects.create(
			parent=self.parent,
			full_name='Nimali',
			date_of_birth=date(2018, 5, 1),
			gender='female',
			school_name='Royal Primary',
			school_latitude=Decimal(str(SCHOOL['lat'])),
			school_longitude=Decimal(str(SCHOOL['lng'])),
			pickup_latitude=Decimal(str(PICKUP['lat'])),
			pickup_longitude=Decimal(str(PICKUP['lng'])),
		)
		self.excellent = make_driver('excellent', gender='female')
		self.good = make_driver('good', start={'lat': 6.9541, 'lng': 79.8612}, gender='male')
		self.poor = make_driver('poor', start={'lat': 7.05, 'lng': 79.8612})

	def _book(self, profile, status='confirmed'):
		return Booking.objects.create(
			parent=self.parent,
			driver=profile.user,
			pickup_latitude=self.child.pickup_latitude,
			pickup_longitude=self.child.pickup_longitude,
			dropoff_latitude=self.child.school_latitude,
			dropoff_longitude=self.child.school_longitude,
			ride_date=date(2030, 1, 7),
			status=status,
		)

	def test_availability_counts_pending_and_confirmed(self):
		self._book(self.excellent, 'pending')
		self._book(self.excellent, 'confirmed')
		self._book(self.excellent, 'cancelled')

		availability = get_driver_availability(self.excellent.user_id)

		self.assertEqual(availability.total_seats, 3)
		self.assertEqual(availability.booked_seats, 2)
		self.assertEqual(availability.available_seats, 1)
		self.assertEqual(availability.percentage, 33)

	def test_overbooked_driver_goes_negative(self):
		for _ in range(4):
			self._book(self.excellent)

		availability = get_driver_availability(self.excellent.user_id)
		self.assertEqual(availability.available_seats, -1)
		self.assertFalse(availability.has_capacity)

	def test_listing_ranks_and_drops_poor_routes(self):
		listings = list_available_drivers(self.child)

		self.assertEqual([l.profile for l in listings], [self.excellent, self.good])
		self.assertEqual(listings[1].compatibility.quality, 'Good')

	def test_listing_skips_closed_unapproved_and_full_drivers(self):
		self.good.booking_open = False
		self.good.save()
		make_driver('pending', status='pending')
		for _ in range(3):
			self._book(self.excellent)

		self.assertEqual(list_available_drivers(self.child), [])

	def test_listing_filters(self):
		self.assertEqual(
			[l.profile for l in list_available_drivers(self.child, DriverFilters(gender='male'))],
			[self.good],
		)
		self.assertEqual(
			[l.profile for l in list_available_drivers(self.child, DriverFilters(route_quality='Excellent'))],
			[self.excellent],
		)
		self.assertEqual(list_available_drivers(self.child, DriverFilters(min_seats=4)), [])

	@override_settings(SCHOOLRIDE={'ROUTE_COMPATIBILITY_RULE': 'legs'})
	def test_legs_rule_lists_distant_routes(self):
		listings = list_available_drivers(self.child)
		self.assertIn(self.poor, [l.profile for l in listings])

	def test_available_drivers_view(self):
		factory = APIRequestFactory()
		request = factory.get('/api/drivers/available/', {'child_id': self.child.id})
		force_authenticate(request, user=self.parent)
		response = AvailableDriversView.as_view()(request)

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['count'], 2)
		self.assertEqual(response.data['drivers'][0]['route']['quality'], 'Excellent')
		self.assertEqual(response.data['drivers'][0]['availability']['available_seats'], 3)

	def test_drivers_cannot_browse_drivers(self):
		factory = APIRequestFactory()
		request = factory.get('/api/drivers/available/')
		force_authenticate(request, user=self.good.user)
		response = AvailableDriversView.as_view()(request)
		self.assertEqual(response.status_code, 403)


class DriverSelfServiceTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()
		self.profile = make_driver('driver')

	def test_route_update(self):
		request = self.factory.put('/api/driver/route/', {
			'start': {'lat': 6.95, 'lng': 79.85, 'address': 'Wattala'},
			'end': {'lat': 6.90, 'lng': 79.86, 'address': 'Bambalapitiya'},
		}, format='json')
		force_authenticate(request, user=self.profile.user)
		response = DriverRouteView.as_view()(request)

		self.assertEqual(response.status_code, 200)
		self.profile.refresh_from_db()
		self.assertEqual(self.profile.route_start_address, 'Wattala')
		self.assertEqual(self.profile.route_end, {'lat': 6.9, 'lng': 79.86, 'address': 'Bambalapitiya'})

	@patch('drivers.services.broadcast_driver_location')
	def test_location_update_without_tracking(self, mock_broadcast):
		request = self.factory.post('/api/driver/location/', {'latitude': 6.93, 'longitude': 79.85}, format='json')
		force_authenticate(request, user=self.profile.user)
		response = DriverLocationUpdateView.as_view()(request)

		self.assertEqual(response.status_code, 200)
		self.assertFalse(response.data['tracking'])
		mock_broadcast.assert_not_called()

		self.profile.refresh_from_db()
		self.assertEqual(self.profile.current_latitude, Decimal('6.930000'))
		self.assertIsNotNone(self.profile.last_location_update)


class DriverRatingTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()
		self.parent = User.objects.create_user(username='parent', password='pass1234', role='parent')
		self.child = Child.objects.create(
			parent=self.parent,
			full_name='Nimali',
			date_of_birth=date(2018, 5, 1),
			gender='female',
			school_name='Royal Primary',
			school_latitude=Decimal(str(SCHOOL['lat'])),
			school_longitude=Decimal(str(SCHOOL['lng'])),
			pickup_latitude=Decimal(str(PICKUP['lat'])),
			pickup_longitude=Decimal(str(PICKUP['lng'])),
		)
		# Same route, so both fall in the same tier at the same distance
		self.first = make_driver('first')
		self.second = make_driver('second')

	def _book(self, profile, status='confirmed'):
		return Booking.objects.create(
			parent=self.parent,
			driver=profile.user,
			pickup_latitude=self.child.pickup_latitude,
			pickup_longitude=self.child.pickup_longitude,
			dropoff_latitude=self.child.school_latitude,
			dropoff_longitude=self.child.school_longitude,
			ride_date=date(2030, 1, 7),
			status=status,
		)

	def _rate(self, profile, rating):
		booking = self._book(profile, status='completed')
		return rate_driver(self.parent, profile.user_id, booking.id, rating)

	def _listing(self, **filters):
		return [l.profile for l in list_available_drivers(self.child, DriverFilters(**filters))]

	def test_only_confirmed_bookings_with_the_driver_can_be_rated(self):
		pending = self._book(self.first, status='pending')
		with self.assertRaises(RatingValidationError):
			rate_driver(self.parent, self.first.user_id, pending.id, 5)

		confirmed = self._book(self.first)
		with self.assertRaises(RatingValidationError):
			rate_driver(self.parent, self.second.user_id, confirmed.id, 5)

		rating = rate_driver(self.parent, self.first.user_id, confirmed.id, 4, 'Always on time')
		self.assertEqual(rating.driver, self.first.user)

		with self.assertRaises(RatingValidationError):
			rate_driver(self.parent, self.first.user_id, confirmed.id, 5)
		self.assertEqual(DriverRating.objects.count(), 1)

	def test_other_parents_booking_cannot_be_rated(self):
		other = User.objects.create_user(username='other', password='pass1234', role='parent')
		booking = self._book(self.first)

		with self.assertRaises(RatingValidationError):
			rate_driver(other, self.first.user_id, booking.id, 1)

	def test_average_rounds_half_up(self):
		for value in (5, 4, 4, 4):
			self._rate(self.first, value)

		self.assertEqual(get_rating_summary(self.first.user_id), {'average_rating': 4.3, 'rating_count': 4})
		self.assertEqual(get_rating_summary(self.second.user_id), {'average_rating': None, 'rating_count': 0})

	def test_listing_ranks_rated_drivers_first(self):
		self.assertEqual(self._listing(), [self.first, self.second])

		self._rate(self.first, 3)
		self._rate(self.second, 5)
		listings = list_available_drivers(self.child)

		self.assertEqual([l.profile for l in listings], [self.second, self.first])
		self.assertEqual(listings[0].average_rating, 5.0)
		self.assertEqual(listings[0].rating_count, 1)

	def test_trusted_drivers_rank_above_better_rated(self):
		third = make_driver('third')
		self._rate(self.second, 5)
		set_trusted_driver(self.parent, self.first.user_id)
		set_trusted_driver(self.parent, third.user_id, is_priority=True)

		listings = list_available_drivers(self.child)

		self.assertEqual([l.profile for l in listings], [third, self.first, self.second])
		self.assertEqual([l.trust for l in listings], ['priority', 'preferred', None])

	def test_route_tier_still_comes_first(self):
		good = make_driver('good', start={'lat': 6.9541, 'lng': 79.8612})
		self._rate(good, 5)
		set_trusted_driver(self.parent, good.user_id, is_priority=True)

		self.assertEqual(self._listing()[-1], good)

	def test_minimum_rating_filter(self):
		self._rate(self.first, 3)
		self._rate(self.second, 4)

		self.assertEqual(self._listing(min_rating=4.0), [self.second])
		self.assertEqual(self._listing(min_rating=4.5), [])

	def test_only_approved_drivers_can_be_trusted(self):
		pending = make_driver('pending', status='pending')
		with self.assertRaises(TrustedDriverError):
			set_trusted_driver(self.parent, pending.user_id)

		set_trusted_driver(self.parent, self.first.user_id, notes='Drives carefully')
		trusted = set_trusted_driver(self.parent, self.first.user_id, is_priority=True)

		self.assertEqual(TrustedDriver.objects.count(), 1)
		self.assertTrue(trusted.is_priority)
		self.assertEqual(trusted.notes, '')

	def test_rate_driver_view(self):
		booking = self._book(self.first)
		request = self.factory.post(
			'/api/drivers/%d/ratings/' % self.first.user_id,
			{'booking_id': booking.id, 'rating': 5, 'comment': 'Great'},
			format='json',
		)
		force_authenticate(request, user=self.parent)
		response = DriverRatingsView.as_view()(request, driver_id=self.first.user_id)

		self.assertEqual(response.status_code, 201)
		self.assertEqual(response.data['average_rating'], 5.0)
		self.assertEqual(response.data['rating']['comment'], 'Great')

		request = self.factory.get('/api/drivers/%d/ratings/' % self.first.user_id)
		force_authenticate(request, user=self.second.user)
		response = DriverRatingsView.as_view()(request, driver_id=self.first.user_id)

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['rating_count'], 1)
		self.assertEqual(response.data['ratings'][0]['parent_name'], 'parent')

	def test_driver_cannot_rate(self):
		booking = self._book(self.first)
		request = self.factory.post(
			'/api/drivers/%d/ratings/' % self.first.user_id,
			{'booking_id': booking.id, 'rating': 1},
			format='json',
		)
		force_authenticate(request, user=self.second.user)
		response = DriverRatingsView.as_view()(request, driver_id=self.first.user_id)

		self.assertEqual(response.status_code, 403)
		self.assertFalse(DriverRating.objects.exists())

	def test_out_of_range_rating_is_bad_request(self):
		booking = self._book(self.first)
		request = self.factory.post(
			'/api/drivers/%d/ratings/' % self.first.user_id,
			{'booking_id': booking.id, 'rating': 6},
			format='json',
		)
		force_authenticate(request, user=self.parent)
		response = DriverRatingsView.as_view()(request, driver_id=self.first.user_id)

		self.assertEqual(response.status_code, 400)

	def test_trusted_driver_views(self):
		path = '/api/drivers/trusted/%d/' % self.second.user_id
		request = self.factory.put(path, {'is_priority': True}, format='json')
		force_authenticate(request, user=self.parent)
		response = TrustedDriverView.as_view()(request, driver_id=self.second.user_id)
		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['driver']['user_id'], self.second.user_id)

		request = self.factory.get('/api/drivers/trusted/')
		force_authenticate(request, user=self.parent)
		response = TrustedDriverListView.as_view()(request)
		self.assertEqual(response.data['count'], 1)

		request = self.factory.get('/api/drivers/available/', {'child_id': self.child.id})
		force_authenticate(request, user=self.parent)
		response = AvailableDriversView.as_view()(request)
		self.assertEqual(response.data['drivers'][0]['user_id'], self.second.user_id)
		self.assertEqual(response.data['drivers'][0]['trusted'], 'priority')
		self.assertEqual(response.data['drivers'][0]['rating'], {'average': None, 'count': 0})

		request = self.factory.delete(path)
		force_authenticate(request, user=self.parent)
		self.assertEqual(TrustedDriverView.as_view()(request, driver_id=self.second.user_id).status_code, 204)
		request = self.factory.delete(path)
		force_authenticate(request, user=self.parent)
		self.assertEqual(TrustedDriverView.as_view()(request, driver_id=self.second.user_id).status_code, 404)

	def test_recommended_drivers_view(self):
		self._rate(self.first, 4)
		request = self.factory.get('/api/drivers/available/', {'recommended': 'true'})
		force_authenticate(request, user=self.parent)
		response = AvailableDriversView.as_view()(request)

		self.assertEqual(response.status_code, 200)
		self.assertEqual([d['user_id'] for d in response.data['drivers']], [self.first.user_id])
