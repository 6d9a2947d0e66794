"""Accounts app tests."""

import io
import shutil
import tempfile

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase, override_settings
from PIL import Image
from rest_framework import serializers
from rest_framework.test import APIClient

from accounts.context import AuthContext, build_auth_context
from accounts.models import UserRole
from accounts.serializers import normalize_phone

TEST_MEDIA_ROOT = tempfile.mkdtemp()


def make_image(name='avatar.png', size=(8, 8)):
	buf = io.BytesIO()
	Image.new('RGB', size, color=(200, 30, 30)).save(buf, format='PNG')
	return SimpleUploadedFile(name, buf.getvalue(), content_type='image/png')


class PhoneNormalizationTests(TestCase):

	def test_local_number_defaults_to_india(self):
		self.assertEqual(normalize_phone('98765 43210'), '+919876543210')

	def test_double_zero_prefix_is_international(self):
		self.assertEqual(normalize_phone('00919876543210'), '+919876543210')

	def test_blank_is_none(self):
		self.assertIsNone(normalize_phone('   '))

	def test_garbage_is_rejected(self):
		with self.assertRaises(serializers.ValidationError):
			normalize_phone('12')


@override_settings(ALLOWED_HOSTS=['testserver', 'localhost', '127.0.0.1'])
class RegistrationAndLoginTests(TestCase):

	def setUp(self):
		self.client = APIClient()

	def test_register_creates_customer_with_user_role(self):
		res = self.client.post('/api/accounts/register/', data={
			'email': 'Asha@Example.com',
			'password': 'secret1',
			'full_name': 'Asha Verma',
			'phone': '9876543210',
		}, format='json')
		self.assertEqual(res.status_code, 201, res.data)

		user = get_user_model().objects.get(email='asha@example.com')
		self.assertEqual(user.username, 'asha@example.com')
		self.assertEqual(user.phone, '+919876543210')
		self.assertTrue(user.roles.filter(role=UserRole.USER).exists())
		self.assertFalse(user.is_admin)

	def test_register_rejects_short_password(self):
		res = self.client.post('/api/accounts/register/', data={
			'email': 'short@example.com',
			'password': '12345',
			'full_name': 'Short',
		}, format='json')
		self.assertEqual(res.status_code, 400)
		self.assertIn('password', res.data)
		self.assertFalse(get_user_model().objects.filter(email='short@example.com').exists())

	def test_register_rejects_bad_phone_before_writing(self):
		res = self.client.post('/api/accounts/register/', data={
			'email': 'phone@example.com',
			'password': 'secret1',
			'full_name': 'Phone',
			'phone': 'call me',
		}, format='json')
		self.assertEqual(res.status_code, 400)
		self.assertIn('phone', res.data)
		self.assertFalse(get_user_model().objects.filter(email='phone@example.com').exists())

	def test_register_rejects_duplicate_email(self):
		get_user_model().objects.create_user(username='dup@example.com', email='dup@example.com', password='secret1')
		res = self.client.post('/api/accounts/register/', data={
			'email': 'DUP@example.com',
			'password': 'secret1',
			'full_name': 'Dup',
		}, format='json')
		self.assertEqual(res.status_code, 400)
		self.assertIn('email', res.data)

	def test_login_with_email_returns_tokens_and_opens_session(self):
		get_user_model().objects.create_user(username='login@example.com', email='login@example.com', password='secret1')
		res = self.client.post('/api/accounts/login/', data={
			'email': 'login@example.com',
			'password': 'secret1',
		}, format='json')
		self.assertEqual(res.status_code, 200, res.data)
		self.assertIn('access', res.data)
		self.assertIn('refresh', res.data)
		self.assertIn('_auth_user_id', self.client.session)

	def test_refresh_and_logout(self):
		get_user_model().objects.create_user(username='out@example.com', email='out@example.com', password='secret1')
		res = self.client.post('/api/accounts/login/', data={'email': 'out@example.com', 'password': 'secret1'}, format='json')
		refresh = res.data['refresh']

		res = self.client.post('/api/accounts/token/refresh/', data={'refresh': refresh}, format='json')
		self.assertEqual(res.status_code, 200)
		self.assertIn('access', res.data)

		res = self.client.post('/api/accounts/logout/')
		self.assertEqual(res.status_code, 204)
		self.assertNotIn('_auth_user_id', self.client.session)

	def test_login_with_wrong_password_is_rejected(self):
		get_user_model().objects.create_user(username='wrong@example.com', email='wrong@example.com', password='secret1')
		res = self.client.post('/api/accounts/login/', data={
			'email': 'wrong@example.com',
			'password': 'nope-nope',
		}, format='json')
		self.assertEqual(res.status_code, 401)
		self.assertNotIn('_auth_user_id', self.client.session)

	def test_auth_context_for_anonymous_caller(self):
		res = self.client.get('/api/accounts/auth-context/')
		self.assertEqual(res.status_code, 200)
		self.assertIsNone(res.data['user'])
		self.assertFalse(res.data['is_admin'])
		self.assertFalse(res.data['is_loading'])


class AuthContextTests(TestCase):

	def test_admin_flag_comes_from_role_rows(self):
		User = get_user_model()
		user = User.objects.create_user(username='ctx@example.com', email='ctx@example.com', password='secret1')
		self.assertFalse(build_auth_context(user).is_admin)

		UserRole.objects.create(user=user, role=UserRole.ADMIN)
		ctx = build_auth_context(user)
		self.assertTrue(ctx.is_admin)
		self.assertTrue(ctx.is_authenticated)
		self.assertEqual(ctx.user_id, user.pk)

	def test_anonymous_context(self):
		ctx = build_auth_context(None)
		self.assertEqual(ctx, AuthContext(user=None))
		self.assertFalse(ctx.is_authenticated)
		self.assertIsNone(ctx.user_id)


@override_settings(ALLOWED_HOSTS=['testserver', 'localhost', '127.0.0.1'], MEDIA_ROOT=TEST_MEDIA_ROOT)
class ProfileApiTests(TestCase):

	@classmethod
	def setUpTestData(cls):
		cls.user = get_user_model().objects.create_user(
			username='me@example.com',
			email='me@example.com',
			password='secret1',
			full_name='Me Myself',
		)

	@classmethod
	def tearDownClass(cls):
		super().tearDownClass()
		shutil.rmtree(TEST_MEDIA_ROOT, ignore_errors=True)

	def setUp(self):
		self.client = APIClient()
		self.client.force_authenticate(user=self.user)

	def test_profile_requires_authentication(self):
		res = APIClient().get('/api/accounts/profile/me/')
		self.assertEqual(res.status_code, 401)

	def test_get_and_update_profile(self):
		res = self.client.get('/api/accounts/profile/me/')
		self.assertEqual(res.status_code, 200)
		self.assertEqual(res.data['full_name'], 'Me Myself')
		self.assertFalse(res.data['is_admin'])

		res = self.client.patch('/api/accounts/profile/me/', data={
			'full_name': 'Me Renamed',
			'address': '12 Station Road, Bhopal',
			'phone': '+91 98765 43210',
			'email': 'other@example.com',
		}, format='json')
		self.assertEqual(res.status_code, 200, res.data)
		self.user.refresh_from_db()
		self.assertEqual(self.user.full_name, 'Me Renamed')
		self.assertEqual(self.user.phone, '+919876543210')
		self.assertEqual(self.user.email, 'me@example.com')

	def test_change_password_requires_matching_confirmation(self):
		res = self.client.post('/api/accounts/profile/change-password/', data={
			'new_password': 'newsecret',
			'confirm_password': 'different',
		}, format='json')
		self.assertEqual(res.status_code, 400)
		self.assertEqual(res.data['confirm_password'][0], 'Passwords do not match')

	def test_change_password_rejects_short_password(self):
		res = self.client.post('/api/accounts/profile/change-password/', data={
			'new_password': 'abc',
			'confirm_password': 'abc',
		}, format='json')
		self.assertEqual(res.status_code, 400)
		self.assertIn('new_password', res.data)

	def test_change_password(self):
		res = self.client.post('/api/accounts/profile/change-password/', data={
			'new_password': 'newsecret',
			'confirm_password': 'newsecret',
		}, format='json')
		self.assertEqual(res.status_code, 200, res.data)
		self.user.refresh_from_db()
		self.assertTrue(self.user.check_password('newsecret'))

	def test_avatar_upload_accepts_images(self):
		res = self.client.post('/api/accounts/profile/avatar/', data={'avatar': make_image()}, format='multipart')
		self.assertEqual(res.status_code, 200, res.data)
		self.user.refresh_from_db()
		self.assertTrue(self.user.avatar.name.startswith(f'avatars/{self.user.pk}/'))
		self.assertTrue(res.data['avatar_url'])

	def test_avatar_upload_rejects_non_images(self):
		bogus = SimpleUploadedFile('notes.txt', b'hello', content_type='text/plain')
		res = self.client.post('/api/accounts/profile/avatar/', data={'avatar': bogus}, format='multipart')
		self.assertEqual(res.status_code, 400)

	@override_settings(DASTAWEZ={'AVATAR_MAX_BYTES': 10})
	def test_avatar_upload_rejects_large_images(self):
		res = self.client.post('/api/accounts/profile/avatar/', data={'avatar': make_image()}, format='multipart')
		self.assertEqual(res.status_code, 400)
		self.assertIn('avatar', res.data)


@override_settings(ALLOWED_HOSTS=['testserver', 'localhost', '127.0.0.1'])
class AdminUserApiTests(TestCase):

	@classmethod
	def setUpTestData(cls):
		User = get_user_model()
		cls.admin = User.objects.create_user(username='admin@example.com', email='admin@example.com', password='secret1')
		UserRole.objects.create(user=cls.admin, role=UserRole.ADMIN)
		cls.customer = User.objects.create_user(username='cust@example.com', email='cust@example.com', password='secret1')
		UserRole.objects.create(user=cls.customer, role=UserRole.USER)

	def setUp(self):
		self.client = APIClient()
		self.client.force_authenticate(user=self.admin)

	def test_customers_cannot_list_users(self):
		client = APIClient()
		client.force_authenticate(user=self.customer)
		res = client.get('/api/admin/users/')
		self.assertEqual(res.status_code, 403)

	def test_list_users_with_admin_flag_and_order_count(self):
		res = self.client.get('/api/admin/users/')
		self.assertEqual(res.status_code, 200)
		rows = {row['email']: row for row in res.data}
		self.assertTrue(rows['admin@example.com']['is_admin'])
		self.assertFalse(rows['cust@example.com']['is_admin'])
		self.assertEqual(rows['cust@example.com']['orders_count'], 0)

	def test_set_admin_grants_and_revokes(self):
		res = self.client.post(f'/api/admin/users/{self.customer.pk}/set-admin/', data={'is_admin': True}, format='json')
		self.assertEqual(res.status_code, 200)
		self.assertTrue(res.data['is_admin'])
		self.assertTrue(self.customer.is_admin)

		res = self.client.post(f'/api/admin/users/{self.customer.pk}/set-admin/', data={'is_admin': False}, format='json')
		self.assertEqual(res.status_code, 200)
		self.assertFalse(res.data['is_admin'])

	def test_form_encoded_false_revokes_admin(self):
		UserRole.objects.create(user=self.customer, role=UserRole.ADMIN)
		res = self.client.post(f'/api/admin/users/{self.customer.pk}/set-admin/', data={'is_admin': 'false'}, format='multipart')
		self.assertEqual(res.status_code, 200)
		self.assertFalse(res.data['is_admin'])
		self.assertFalse(UserRole.objects.filter(user=self.customer, role=UserRole.ADMIN).exists())

	def test_set_admin_defaults_to_grant_and_rejects_garbage(self):
		res = self.client.post(f'/api/admin/users/{self.customer.pk}/set-admin/', data={}, format='multipart')
		self.assertEqual(res.status_code, 200)
		self.assertTrue(res.data['is_admin'])

		res = self.client.post(f'/api/admin/users/{self.customer.pk}/set-admin/', data={'is_admin': 'maybe'}, format='multipart')
		self.assertEqual(res.status_code, 400)
		self.assertIn('is_admin', res.data)

	def test_admin_cannot_revoke_own_role(self):
		res = self.client.post(f'/api/admin/users/{self.admin.pk}/set-admin/', data={'is_admin': False}, format='json')
		self.assertEqual(res.status_code, 400)
		self.assertTrue(self.admin.is_admin)

	def test_admin_cannot_delete_self(self):
		res = self.client.delete(f'/api/admin/users/{self.admin.pk}/')
		self.assertEqual(res.status_code, 400)
		self.assertTrue(get_user_model().objects.filter(pk=self.admin.pk).exists())

	def test_delete_user_removes_roles(self):
		res = self.client.delete(f'/api/admin/users/{self.customer.pk}/')
		self.assertEqual(res.status_code, 204)
		self.assertFalse(get_user_model().objects.filter(pk=self.customer.pk).exists())
		self.assertFalse(UserRole.objects.filter(user_id=self.customer.pk).exists())

	def test_user_detail_bundles_orders_and_documents(self):
		res = self.client.get(f'/api/admin/users/{self.customer.pk}/')
		self.assertEqual(res.status_code, 200)
		self.assertEqual(res.data['profile']['email'], 'cust@example.com')
		self.assertEqual(res.data['orders'], [])
		self.assertEqual(res.data['user_documents'], [])
		self.assertEqual(res.data['order_documents'], [])


class GrantAdminCommandTests(TestCase):

	def test_grant_and_revoke(self):
		user = get_user_model().objects.create_user(username='ops@example.com', email='ops@example.com', password='secret1')
		out = io.StringIO()
		call_command('grant_admin', 'OPS@example.com', stdout=out)
		self.assertTrue(user.is_admin)
		self.assertIn('Granted', out.getvalue())

		call_command('grant_admin', 'ops@example.com', '--revoke', stdout=io.StringIO())
		self.assertFalse(user.is_admin)

	def test_unknown_email(self):
		with self.assertRaises(CommandError):
			call_command('grant_admin', 'ghost@example.com', stdout=io.StringIO())


@override_settings(ALLOWED_HOSTS=['testserver', 'localhost', '127.0.0.1'])
class AuthPageTests(TestCase):

	def test_anonymous_sees_auth_page(self):
		res = self.client.get('/auth/')
		self.assertEqual(res.status_code, 200)
		self.assertTemplateUsed(res, 'pages/auth.html')

	def test_signed_in_customer_is_sent_to_dashboard(self):
		user = get_user_model().objects.create_user(username='in@example.com', email='in@example.com', password='secret1')
		self.client.force_login(user)
		res = self.client.get('/auth/')
		self.assertRedirects(res, '/dashboard/', fetch_redirect_response=False)

	def test_signed_in_admin_is_sent_to_admin_dashboard(self):
		user = get_user_model().objects.create_user(username='boss@example.com', email='boss@example.com', password='secret1')
		UserRole.objects.create(user=user, role=UserRole.ADMIN)
		self.client.force_login(user)
		res = self.client.get('/auth/')
		self.assertRedirects(res, '/admin/', fetch_redirect_response=False)
