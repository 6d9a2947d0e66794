"""Service catalog tests."""

import io
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from accounts.models import UserRole
from services.fields import DEFAULT_CATEGORY_FIELDS, parse_custom_fields, required_field_ids, service_fields
from services.models import Service


class ServiceFieldsTests(TestCase):

	def test_custom_fields_take_precedence(self):
		service = Service(
			name='Marriage Certificate',
			category=Service.CERTIFICATES,
			price=Decimal('250.00'),
			custom_fields=[{'id': 'spouseName', 'label': 'Spouse Name', 'required': True}],
		)
		fields = service_fields(service)
		self.assertEqual([f['id'] for f in fields], ['spouseName'])
		self.assertEqual(fields[0]['type'], 'text')
		self.assertEqual(fields[0]['placeholder'], '')

	def test_empty_custom_fields_fall_back_to_category_defaults(self):
		for custom in (None, [], {'not': 'a list'}):
			service = Service(name='Docs', category=Service.PRINTING, price=Decimal('5.00'), custom_fields=custom)
			ids = [f['id'] for f in service_fields(service)]
			self.assertEqual(ids, ['copies', 'paperSize', 'colorType'])

	def test_defaults_exist_for_every_category(self):
		for category, _ in Service.CATEGORY_CHOICES:
			self.assertTrue(DEFAULT_CATEGORY_FIELDS[category])

	def test_required_field_ids(self):
		service = Service(name='Income', category=Service.CERTIFICATES, price=Decimal('100.00'))
		required = required_field_ids(service)
		self.assertIn('aadharNumber', required)
		self.assertNotIn('samagraId', required)

	def test_parse_custom_fields_skips_entries_without_id(self):
		parsed = parse_custom_fields([{'label': 'No id'}, {'id': 'ok', 'label': 'Ok'}])
		self.assertEqual([f['id'] for f in parsed], ['ok'])


@override_settings(ALLOWED_HOSTS=['testserver', 'localhost', '127.0.0.1'])
class ServiceApiTests(TestCase):

	@classmethod
	def setUpTestData(cls):
		User = get_user_model()
		cls.customer = User.objects.create_user(username='c@example.com', email='c@example.com', password='secret1')
		cls.admin = User.objects.create_user(username='a@example.com', email='a@example.com', password='secret1')
		UserRole.objects.create(user=cls.admin, role=UserRole.ADMIN)

		cls.id_card = Service.objects.create(
			name='ID Card Printing', category=Service.PRINTING, price=Decimal('50.00'), price_per_copy=True,
		)
		cls.income = Service.objects.create(
			name='Income Certificate', category=Service.CERTIFICATES, price=Decimal('100.00'),
		)
		cls.retired = Service.objects.create(
			name='Fax', category=Service.PRINTING, price=Decimal('15.00'), is_active=False,
		)

	def setUp(self):
		self.customer_client = APIClient()
		self.customer_client.force_authenticate(user=self.customer)
		self.admin_client = APIClient()
		self.admin_client.force_authenticate(user=self.admin)

	def test_catalog_requires_authentication(self):
		res = APIClient().get('/api/services/')
		self.assertEqual(res.status_code, 401)

	def test_customers_see_active_services_only(self):
		res = self.customer_client.get('/api/services/')
		self.assertEqual(res.status_code, 200)
		names = {row['name'] for row in res.data}
		self.assertEqual(names, {'ID Card Printing', 'Income Certificate'})

		res = self.customer_client.get(f'/api/services/{self.retired.pk}/')
		self.assertEqual(res.status_code, 404)

	def test_admins_see_all_services(self):
		res = self.admin_client.get('/api/services/')
		self.assertEqual(res.status_code, 200)
		self.assertEqual(len(res.data), 3)

	def test_filter_by_category(self):
		res = self.customer_client.get('/api/services/', {'category': Service.CERTIFICATES})
		self.assertEqual([row['name'] for row in res.data], ['Income Certificate'])

	def test_toggle_hides_service_from_customers_but_not_admins(self):
		res = self.admin_client.post(f'/api/services/{self.id_card.pk}/toggle/')
		self.assertEqual(res.status_code, 200)
		self.assertFalse(res.data['is_active'])

		customer_names = {row['name'] for row in self.customer_client.get('/api/services/').data}
		admin_names = {row['name'] for row in self.admin_client.get('/api/services/').data}
		self.assertNotIn('ID Card Printing', customer_names)
		self.assertIn('ID Card Printing', admin_names)

	def test_customers_cannot_write(self):
		res = self.customer_client.post('/api/services/', data={
			'name': 'Sneaky', 'category': Service.BILLS, 'price': '1.00',
		}, format='json')
		self.assertEqual(res.status_code, 403)
		res = self.customer_client.post(f'/api/services/{self.id_card.pk}/toggle/')
		self.assertEqual(res.status_code, 403)
		res = self.customer_client.delete(f'/api/services/{self.id_card.pk}/')
		self.assertEqual(res.status_code, 403)

	def test_admin_creates_service_with_custom_fields(self):
		res = self.admin_client.post('/api/services/', data={
			'name': 'Electricity Bill',
			'category': Service.BILLS,
			'price': '10.00',
			'custom_fields': [
				{'id': 'consumerNo', 'label': 'Consumer Number', 'required': True},
				{'id': 'amount', 'label': 'Amount', 'type': 'number'},
			],
		}, format='json')
		self.assertEqual(res.status_code, 201, res.data)
		service = Service.objects.get(name='Electricity Bill')
		self.assertEqual([f['id'] for f in service.custom_fields], ['consumerNo', 'amount'])
		self.assertEqual(service.custom_fields[1]['type'], 'number')
		self.assertFalse(service.custom_fields[1]['required'])

	def test_duplicate_custom_field_ids_are_rejected(self):
		res = self.admin_client.post('/api/services/', data={
			'name': 'Broken',
			'category': Service.BILLS,
			'price': '10.00',
			'custom_fields': [
				{'id': 'x', 'label': 'X'},
				{'id': 'x', 'label': 'X again'},
			],
		}, format='json')
		self.assertEqual(res.status_code, 400)
		self.assertIn('custom_fields', res.data)

	def test_negative_price_is_rejected(self):
		res = self.admin_client.patch(f'/api/services/{self.income.pk}/', data={'price': '-1.00'}, format='json')
		self.assertEqual(res.status_code, 400)

	def test_admin_updates_service(self):
		res = self.admin_client.patch(f'/api/services/{self.income.pk}/', data={
			'price': '120.00', 'show_upload_section': False,
		}, format='json')
		self.assertEqual(res.status_code, 200, res.data)
		self.income.refresh_from_db()
		self.assertEqual(self.income.price, Decimal('120.00'))
		self.assertFalse(self.income.show_upload_section)

	def test_fields_endpoint_resolves_defaults(self):
		res = self.customer_client.get(f'/api/services/{self.income.pk}/fields/')
		self.assertEqual(res.status_code, 200)
		self.assertFalse(res.data['custom'])
		self.assertEqual(res.data['fields'][0]['id'], 'applicantName')

	def test_grouped_catalog(self):
		res = self.customer_client.get('/api/services/grouped/')
		self.assertEqual(res.status_code, 200)
		categories = [group['category'] for group in res.data]
		self.assertEqual(categories, [Service.CERTIFICATES, Service.PRINTING])
		printing = res.data[1]
		self.assertEqual([s['name'] for s in printing['services']], ['ID Card Printing'])


class SeedServicesCommandTests(TestCase):

	def test_seed_is_idempotent(self):
		call_command('seed_services', stdout=io.StringIO())
		count = Service.objects.count()
		self.assertGreater(count, 10)
		call_command('seed_services', stdout=io.StringIO())
		self.assertEqual(Service.objects.count(), count)
		self.assertTrue(Service.objects.get(name='ID Card Printing').price_per_copy)
