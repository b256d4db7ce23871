from datetime import date
from decimal import Decimal

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from channels.testing import WebsocketCommunicator
from django.contrib.auth.models import AnonymousUser
from django.test import SimpleTestCase, TestCase

from accounts.models import User
from bookings.models import Booking
from children.models import Child
from rides.models import ActiveRide, RideChild
from .consumers import RideConsumer
from .middleware import JWTAuthMiddleware
from .notifications import broadcast_driver_location, ride_group
from .utils import is_ride_participant, ride_parent_ids


class FakeUser:
	is_anonymous = False

	def __init__(self, user_id, role):
		self.id = user_id
		self.role = role


def communicator_for(user, path='/ws/ride/'):
	communicator = WebsocketCommunicator(RideConsumer.as_asgi(), path)
	communicator.scope['user'] = user
	return communicator


class RideConsumerTests(SimpleTestCase):
	# channels closes stale DB connections on every dispatch
	databases = {'default'}

	def test_anonymous_is_rejected(self):
		async def run():
			communicator = communicator_for(AnonymousUser())
			connected, _ = await communicator.connect()
			self.assertFalse(connected)

		async_to_sync(run)()

	def test_connect_and_receive_notification(self):
		async def run():
			communicator = communicator_for(FakeUser(41, 'parent'))
			connected, _ = await communicator.connect()
			self.assertTrue(connected)

			hello = await communicator.receive_json_from()
			self.assertEqual(hello['type'], 'connection_established')
			self.assertEqual(hello['role'], 'parent')

			await get_channel_layer().group_send('user_41', {
				'type': 'notification',
				'notification_id': 9,
				'notification_type': 'attendance',
				'title': 'Child Picked Up',
				'message': 'Nimali has been safely picked up by the driver.',
				'data': {'child_id': 3},
			})
			message = await communicator.receive_json_from()
			self.assertEqual(message['type'], 'notification')
			self.assertEqual(message['data'], {'child_id': 3})

			await communicator.disconnect()

		async_to_sync(run)()

	def test_unknown_role_is_rejected(self):
		async def run():
			communicator = communicator_for(FakeUser(40, 'guest'))
			connected, code = await communicator.connect()
			self.assertFalse(connected)
			self.assertEqual(code, 4003)

		async_to_sync(run)()

	def test_ping(self):
		async def run():
			communicator = communicator_for(FakeUser(44, 'driver'))
			await communicator.connect()
			await communicator.receive_json_from()

			await communicator.send_json_to({'type': 'ping'})
			self.assertEqual(await communicator.receive_json_from(), {'type': 'pong'})

			await communicator.disconnect()

		async_to_sync(run)()

	def test_message_validation(self):
		async def run():
			communicator = communicator_for(FakeUser(42, 'parent'))
			await communicator.connect()
			await communicator.receive_json_from()

			await communicator.send_json_to({'type': 'start_tracking'})
			self.assertEqual((await communicator.receive_json_from())['message'], 'start_tracking requires ride_id')

			await communicator.send_json_to({'type': 'tracking_update', 'ride_id': 1, 'latitude': 6.9, 'longitude': 79.8})
			self.assertEqual((await communicator.receive_json_from())['message'], 'Only drivers can send tracking updates')

			await communicator.send_json_to({'type': 'dance'})
			self.assertEqual((await communicator.receive_json_from())['type'], 'error')

			await communicator.disconnect()

		async_to_sync(run)()

	def test_location_event_is_forwarded(self):
		async def run():
			communicator = communicator_for(FakeUser(43, 'parent'))
			await communicator.connect()
			await communicator.receive_json_from()

			# Joining ride_<id> needs the database, so deliver on the personal group
			await get_channel_layer().group_send('user_43', {
				'type': 'driver_track_location',
				'user_id': 7,
				'latitude': 6.93,
				'longitude': 79.85,
			})

			message = await communicator.receive_json_from()
			self.assertEqual(message['type'], 'driver_track_location')
			self.assertEqual(message['latitude'], 6.93)

			await communicator.disconnect()

		async_to_sync(run)()

	def test_invalid_token_is_anonymous(self):
		seen = {}

		async def app(scope, receive, send):
			seen['user'] = scope['user']

		async def run():
			await JWTAuthMiddleware(app)({'type': 'websocket', 'query_string': b'token=garbage'}, None, None)

		async_to_sync(run)()
		self.assertTrue(seen['user'].is_anonymous)


class BroadcastTests(SimpleTestCase):
	def test_location_reaches_ride_group(self):
		channel_layer = get_channel_layer()
		channel_name = async_to_sync(channel_layer.new_channel)()
		async_to_sync(channel_layer.group_add)(ride_group(12), channel_name)

		self.assertTrue(broadcast_driver_location(12, 3, 6.9, 79.8))

		message = async_to_sync(channel_layer.receive)(channel_name)
		self.assertEqual(message['type'], 'driver_track_location')
		self.assertEqual(message['user_id'], 3)


class ParticipantTests(TestCase):
	def setUp(self):
		self.driver = User.objects.create_user(username='driver', password='pass1234', role='driver')
		self.parent = User.objects.create_user(username='parent', password='pass1234', role='parent')
		self.stranger = User.objects.create_user(username='stranger', password='pass1234', role='parent')
		child = Child.objects.create(
			parent=self.parent,
			full_name='Nimali',
			date_of_birth=date(2018, 5, 1),
			gender='female',
			school_name='Royal Primary',
			school_latitude=Decimal('6.9'),
			school_longitude=Decimal('79.87'),
			pickup_latitude=Decimal('6.9271'),
			pickup_longitude=Decimal('79.8612'),
		)
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
		self.ride = ActiveRide.objects.create(driver=self.driver, date=date(2030, 1, 7))
		RideChild.objects.create(
			ride=self.ride,
			child=child,
			booking=booking,
			full_name=child.full_name,
			pickup_latitude=child.pickup_latitude,
			pickup_longitude=child.pickup_longitude,
			dropoff_latitude=child.school_latitude,
			dropoff_longitude=child.school_longitude,
		)

	def test_participants(self):
		self.assertTrue(is_ride_participant(self.ride, self.driver.id))
		self.assertTrue(is_ride_participant(self.ride, self.parent.id))
		self.assertFalse(is_ride_participant(self.ride, self.stranger.id))
		self.assertEqual(ride_parent_ids(self.ride), [self.parent.id])
