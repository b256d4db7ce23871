from django.test import TestCase
from rest_framework.test import APIRequestFactory, force_authenticate

from drivers.models import DriverProfile
from notifications.models import Notification
from .models import User
from .views import (
	AdminDriverApprovalView,
	AdminUserActivationView,
	AdminUserListView,
	LoginView,
	RefreshTokenView,
	RegisterView,
)


class AuthTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()

	def test_register_parent(self):
		request = self.factory.post('/api/auth/register/', {
			'username': 'amara',
			'password': 'password123',
			'email': 'amara@example.com',
			'role': 'parent',
		}, format='json')
		response = RegisterView.as_view()(request)

		self.assertEqual(response.status_code, 201)
		self.assertEqual(response.data['user']['role'], 'parent')
		self.assertIn('access', response.data['tokens'])
		self.assertFalse(DriverProfile.objects.exists())

	def test_register_driver_starts_pending(self):
		request = self.factory.post('/api/auth/register/', {
			'username': 'sunil',
			'password': 'password123',
			'role': 'driver',
			'vehicle_number': 'WP-1234',
		}, format='json')
		response = RegisterView.as_view()(request)

		self.assertEqual(response.status_code, 201)
		profile = DriverProfile.objects.get(user__username='sunil')
		self.assertEqual(profile.status, 'pending')
		self.assertEqual(profile.vehicle_number, 'WP-1234')

	def test_cannot_register_as_admin(self):
		request = self.factory.post('/api/auth/register/', {
			'username': 'mallory',
			'password': 'password123',
			'role': 'admin',
		}, format='json')
		response = RegisterView.as_view()(request)
		self.assertEqual(response.status_code, 400)

	def test_login_and_refresh(self):
		User.objects.create_user(username='amara', password='password123', role='parent')

		request = self.factory.post('/api/auth/login/', {'username': 'amara', 'password': 'password123'}, format='json')
		response = LoginView.as_view()(request)
		self.assertEqual(response.status_code, 200)

		refresh = response.data['tokens']['refresh']
		request = self.factory.post('/api/auth/refresh/', {'refresh': refresh}, format='json')
		response = RefreshTokenView.as_view()(request)
		self.assertEqual(response.status_code, 200)
		self.assertIn('access', response.data)

	def test_bad_login(self):
		User.objects.create_user(username='amara', password='password123', role='parent')
		request = self.factory.post('/api/auth/login/', {'username': 'amara', 'password': 'wrong'}, format='json')
		self.assertEqual(LoginView.as_view()(request).status_code, 400)

	def test_bad_refresh_token(self):
		request = self.factory.post('/api/auth/refresh/', {'refresh': 'not-a-token'}, format='json')
		self.assertEqual(RefreshTokenView.as_view()(request).status_code, 401)


class AdminTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()
		self.admin = User.objects.create_user(username='admin', password='pass1234', role='admin')
		self.parent = User.objects.create_user(username='parent', password='pass1234', role='parent')
		self.driver = User.objects.create_user(username='driver', password='pass1234', role='driver')
		DriverProfile.objects.create(user=self.driver)

	def test_approve_driver_notifies(self):
		request = self.factory.post('/approval/', {'approved': True}, format='json')
		force_authenticate(request, user=self.admin)
		response = AdminDriverApprovalView.as_view()(request, user_id=self.driver.id)

		self.assertEqual(response.status_code, 200)
		self.assertEqual(DriverProfile.objects.get(user=self.driver).status, 'approved')
		self.assertTrue(Notification.objects.filter(recipient=self.driver, type='approval').exists())

	def test_non_admin_cannot_approve(self):
		request = self.factory.post('/approval/', {'approved': True}, format='json')
		force_authenticate(request, user=self.parent)
		response = AdminDriverApprovalView.as_view()(request, user_id=self.driver.id)
		self.assertEqual(response.status_code, 403)

	def test_user_list_by_role(self):
		request = self.factory.get('/api/auth/admin/users/', {'role': 'driver'})
		force_authenticate(request, user=self.admin)
		response = AdminUserListView.as_view()(request)

		self.assertEqual(response.data['count'], 1)
		self.assertEqual(response.data['users'][0]['driver_status'], 'pending')

	def test_deactivate_user(self):
		request = self.factory.post('/activation/', {'is_active': False}, format='json')
		force_authenticate(request, user=self.admin)
		response = AdminUserActivationView.as_view()(request, user_id=self.parent.id)

		self.assertEqual(response.status_code, 200)
		self.parent.refresh_from_db()
		self.assertFalse(self.parent.is_active)

	def test_admin_cannot_deactivate_self(self):
		request = self.factory.post('/activation/', {'is_active': False}, format='json')
		force_authenticate(request, user=self.admin)
		response = AdminUserActivationView.as_view()(request, user_id=self.admin.id)
		self.assertEqual(response.status_code, 400)
