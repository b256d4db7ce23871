from unittest.mock import patch

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.test import TestCase
from rest_framework.test import APIRequestFactory, force_authenticate

from accounts.models import User
from .models import Notification
from .services import notify_safely, send_emergency_notifications, send_notification
from .views import NotificationListView, NotificationMarkAllReadView, NotificationMarkReadView


class NotificationServiceTests(TestCase):
	def setUp(self):
		self.parent = User.objects.create_user(username='parent', password='pass1234', role='parent')
		self.driver = User.objects.create_user(username='driver', password='pass1234', role='driver')

	def test_notification_is_stored_and_pushed(self):
		channel_layer = get_channel_layer()
		channel_name = async_to_sync(channel_layer.new_channel)()
		async_to_sync(channel_layer.group_add)(f'user_{self.parent.id}', channel_name)

		notification = send_notification(self.parent.id, 'Hello', 'World', data={'k': 1}, sender_id=self.driver.id)
		message = async_to_sync(channel_layer.receive)(channel_name)

		self.assertEqual(notification.sender, self.driver)
		self.assertEqual(message['type'], 'notification')
		self.assertEqual(message['notification_id'], notification.id)
		self.assertEqual(message['data'], {'k': 1})

	@patch('notifications.services.get_channel_layer', side_effect=RuntimeError('redis down'))
	def test_notify_safely_swallows_failures(self, mock_layer):
		self.assertIsNone(notify_safely(self.parent.id, 'Hello', 'World'))

	def test_emergency_counts_delivered(self):
		sent = send_emergency_notifications([self.parent.id], self.driver.id, 'Sunil', ride_id=7)

		self.assertEqual(sent, 1)
		notification = Notification.objects.get(recipient=self.parent)
		self.assertEqual(notification.type, 'emergency_sos')
		self.assertEqual(notification.data['ride_id'], 7)


class NotificationViewTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()
		self.user = User.objects.create_user(username='parent', password='pass1234', role='parent')
		self.other = User.objects.create_user(username='other', password='pass1234', role='parent')
		self.first = Notification.objects.create(recipient=self.user, type='booking', title='One', message='1')
		self.second = Notification.objects.create(recipient=self.user, type='payment', title='Two', message='2')
		Notification.objects.create(recipient=self.other, type='booking', title='Theirs', message='3')

	def test_list_only_own(self):
		request = self.factory.get('/api/notifications/')
		force_authenticate(request, user=self.user)
		response = NotificationListView.as_view()(request)

		self.assertEqual(response.data['count'], 2)
		self.assertEqual(response.data['unread'], 2)

	def test_mark_read(self):
		request = self.factory.post('/api/notifications/%d/read/' % self.first.id)
		force_authenticate(request, user=self.user)
		response = NotificationMarkReadView.as_view()(request, notification_id=self.first.id)

		self.assertEqual(response.status_code, 200)
		self.first.refresh_from_db()
		self.assertTrue(self.first.read)

		request = self.factory.get('/api/notifications/', {'unread': 'true'})
		force_authenticate(request, user=self.user)
		self.assertEqual(NotificationListView.as_view()(request).data['count'], 1)

	def test_cannot_mark_someone_elses(self):
		theirs = Notification.objects.get(recipient=self.other)
		request = self.factory.post('/read/')
		force_authenticate(request, user=self.user)
		response = NotificationMarkReadView.as_view()(request, notification_id=theirs.id)
		self.assertEqual(response.status_code, 404)

	def test_mark_all_read(self):
		request = self.factory.post('/api/notifications/read-all/')
		force_authenticate(request, user=self.user)
		response = NotificationMarkAllReadView.as_view()(request)

		self.assertEqual(response.data['updated'], 2)
		self.assertFalse(Notification.objects.filter(recipient=self.user, read=False).exists())
