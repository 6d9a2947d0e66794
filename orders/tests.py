"""Orders app tests."""

import shutil
import tempfile
from decimal import Decimal
from unittest import mock

import requests
from django.contrib.auth import get_user_model
from django.core.files.storage import FileSystemStorage, default_storage
from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import connection
from django.test import TestCase, override_settings
from django.test.utils import CaptureQueriesContext
from rest_framework.test import APIClient

from accounts.models import UserRole
from orders.models import Order, OrderDocument
from orders.payments import QRCodeUnavailable, fetch_qr_image, qr_code_url, upi_link
from orders.pricing import calculate_total, parse_copies
from orders.wizard import InvalidTransition, MissingFields, OrderWizard, RejectedFile, Step, WizardError
from services.models import Service

TEST_MEDIA_ROOT = tempfile.mkdtemp()


def pdf(name='aadhar.pdf', content=b'%PDF-1.4 test'):
	return SimpleUploadedFile(name, content, content_type='application/pdf')


class PricingTests(TestCase):

	def setUp(self):
		self.per_copy = Service(name='ID Card Printing', category=Service.PRINTING, price=Decimal('50.00'), price_per_copy=True)
		self.flat = Service(name='Income Certificate', category=Service.CERTIFICATES, price=Decimal('100.00'))

	def test_per_copy_multiplies(self):
		self.assertEqual(calculate_total(self.per_copy, {'copies': '3'}), Decimal('150.00'))

	def test_bad_copies_fall_back_to_price(self):
		for copies in (None, '', 'abc', '0', '-2'):
			details = {} if copies is None else {'copies': copies}
			self.assertEqual(calculate_total(self.per_copy, details), Decimal('50.00'), copies)

	def test_flat_price_ignores_copies(self):
		self.assertEqual(calculate_total(self.flat, {'copies': '7'}), Decimal('100.00'))

	def test_parse_copies_reads_leading_digits(self):
		self.assertEqual(parse_copies('4 sets'), 4)
		self.assertEqual(parse_copies(' 12 '), 12)
		self.assertIsNone(parse_copies('x4'))


@override_settings(MEDIA_ROOT=TEST_MEDIA_ROOT)
class OrderWizardTests(TestCase):

	@classmethod
	def setUpTestData(cls):
		User = get_user_model()
		cls.customer = User.objects.create_user(
			username='wiz@example.com',
			email='wiz@example.com',
			password='secret1',
			full_name='Ravi Kumar',
			phone='+919876543210',
			address='MG Road, Indore',
		)
		cls.id_card = Service.objects.create(
			name='ID Card Printing', category=Service.PRINTING, price=Decimal('50.00'), price_per_copy=True,
		)

	@classmethod
	def tearDownClass(cls):
		super().tearDownClass()
		shutil.rmtree(TEST_MEDIA_ROOT, ignore_errors=True)

	def _fill(self, wizard, **details):
		wizard.select_service(self.id_card)
		wizard.set_details(dict({'copies': '3', 'paperSize': 'A4', 'colorType': 'Color'}, **details))

	def test_select_service_seeds_profile_and_lists_fields(self):
		wizard = OrderWizard(self.customer)
		fields = wizard.select_service(self.id_card)
		self.assertEqual(wizard.step, Step.FILL_DETAILS)
		self.assertEqual(wizard.details['name'], 'Ravi Kumar')
		self.assertEqual(wizard.details['address'], 'MG Road, Indore')
		self.assertEqual([f['id'] for f in fields], ['copies', 'paperSize', 'colorType'])

	def test_inactive_service_cannot_be_selected(self):
		self.id_card.is_active = False
		wizard = OrderWizard(self.customer)
		with self.assertRaises(WizardError):
			wizard.select_service(self.id_card)
		self.assertEqual(wizard.step, Step.SELECT_SERVICE)

	def test_confirm_requires_required_fields(self):
		wizard = OrderWizard(self.customer)
		wizard.select_service(self.id_card)
		wizard.set_details({'copies': '2'})
		with self.assertRaises(MissingFields) as cm:
			wizard.confirm()
		self.assertEqual(cm.exception.fields, ['paperSize', 'colorType'])
		self.assertEqual(wizard.step, Step.FILL_DETAILS)

	def test_transitions_are_linear(self):
		wizard = OrderWizard(self.customer)
		with self.assertRaises(InvalidTransition):
			wizard.confirm()
		with self.assertRaises(InvalidTransition):
			wizard.back()

		self._fill(wizard)
		wizard.confirm()
		self.assertEqual(wizard.step, Step.CONFIRM)
		with self.assertRaises(InvalidTransition):
			wizard.set_details({'copies': '9'})

		wizard.back()
		self.assertEqual(wizard.step, Step.FILL_DETAILS)
		wizard.confirm()
		with self.assertRaises(InvalidTransition):
			wizard.complete_payment()

	def test_attach_rejects_large_and_unsupported_files(self):
		wizard = OrderWizard(self.customer)
		wizard.select_service(self.id_card)
		with self.assertRaises(RejectedFile):
			wizard.attach(SimpleUploadedFile('run.exe', b'MZ', content_type='application/octet-stream'))
		with override_settings(DASTAWEZ={'ORDER_UPLOAD_MAX_BYTES': 4, 'ORDER_UPLOAD_EXTENSIONS': ['pdf']}):
			with self.assertRaises(RejectedFile):
				wizard.attach(pdf())
		self.assertEqual(wizard.files, [])

	def test_attach_flags_images_and_detach(self):
		wizard = OrderWizard(self.customer)
		wizard.select_service(self.id_card)
		photo = wizard.attach(SimpleUploadedFile('photo.jpg', b'\xff\xd8\xff', content_type='image/jpeg'))
		doc = wizard.attach(pdf())
		self.assertTrue(photo.is_image)
		self.assertEqual(doc.kind, 'document')
		self.assertIs(wizard.detach(0), photo)
		self.assertEqual(wizard.files, [doc])
		with self.assertRaises(WizardError):
			wizard.detach(5)

	def test_submit_freezes_total_and_snapshots_details(self):
		wizard = OrderWizard(self.customer)
		self._fill(wizard)
		wizard.set_notes('  Laminate please ')
		wizard.attach(pdf())
		wizard.confirm()
		result = wizard.submit()

		order = result.order
		self.assertEqual(wizard.step, Step.PAY)
		self.assertEqual(order.total_amount, Decimal('150.00'))
		self.assertEqual(order.details['copies'], '3')
		self.assertEqual(order.details['name'], 'Ravi Kumar')
		self.assertEqual(order.notes, 'Laminate please')
		self.assertEqual(order.status, Order.PENDING)
		self.assertTrue(result.complete)

		document = result.documents[0]
		self.assertEqual(document.document_type, OrderDocument.UPLOADED)
		prefix = f'documents/{self.customer.pk}/{order.pk}/'
		self.assertTrue(document.file.name.startswith(prefix), document.file.name)
		self.assertTrue(document.file.name.endswith('-aadhar.pdf'))
		self.assertTrue(default_storage.exists(document.file.name))

		self.id_card.price = Decimal('75.00')
		self.id_card.save()
		order.refresh_from_db()
		self.assertEqual(order.total_amount, Decimal('150.00'))

		self.assertEqual(wizard.complete_payment(), order)
		self.assertEqual(wizard.step, Step.SUBMITTED)

	def test_placed_order_resumes_on_pay_step(self):
		order = Order.objects.create(user=self.customer, service=self.id_card, details={'copies': '2'}, total_amount=Decimal('100.00'))
		wizard = OrderWizard.for_payment(order)
		self.assertEqual(wizard.step, Step.PAY)
		self.assertEqual(wizard.details, {'copies': '2'})
		with self.assertRaises(InvalidTransition):
			wizard.back()
		self.assertIs(wizard.complete_payment(), order)
		self.assertEqual(wizard.step, Step.SUBMITTED)
		with self.assertRaises(InvalidTransition):
			wizard.complete_payment()

	def test_failed_upload_is_reported_and_order_kept(self):
		wizard = OrderWizard(self.customer)
		self._fill(wizard)
		wizard.attach(pdf('a.pdf'))
		wizard.attach(pdf('b.pdf'))
		wizard.confirm()

		real_save = FileSystemStorage.save
		calls = []

		def flaky_save(storage, name, content, max_length=None):
			calls.append(name)
			if len(calls) == 1:
				raise OSError('disk full')
			return real_save(storage, name, content, max_length=max_length)

		with mock.patch.object(FileSystemStorage, 'save', autospec=True, side_effect=flaky_save):
			with self.assertLogs('orders.wizard', level='ERROR'):
				result = wizard.submit()

		self.assertTrue(Order.objects.filter(pk=result.order.pk).exists())
		self.assertEqual(result.failed_uploads, [{'file_name': 'a.pdf', 'error': 'disk full'}])
		self.assertEqual([d.file_name for d in result.documents], ['b.pdf'])
		self.assertEqual(result.order.documents.count(), 1)


class PaymentLinkTests(TestCase):

	def _order(self):
		service = Service(name='ID Card Printing', category=Service.PRINTING, price=Decimal('50.00'))
		order = Order(service=service, total_amount=Decimal('150.00'))
		order.id = 'a1b2c3d4-0000-4000-8000-000000000000'
		return order

	def test_upi_link(self):
		link = upi_link(self._order())
		self.assertEqual(
			link,
			'upi://pay?pa=8878502349%40ybl&pn=Dastawez&am=150'
			'&tn=Order%3A%20ID%20Card%20Printing%20-%20a1b2c3d4&cu=INR',
		)

	def test_qr_url_encodes_link(self):
		url = qr_code_url(self._order())
		self.assertTrue(url.startswith('https://api.qrserver.com/v1/create-qr-code/?size=200x200&data=upi%3A%2F%2Fpay'))

	@mock.patch('orders.payments.requests.get')
	def test_fetch_qr_image(self, mock_get):
		mock_get.return_value.content = b'PNG'
		mock_get.return_value.headers = {'Content-Type': 'image/png'}
		mock_get.return_value.raise_for_status.return_value = None
		self.assertEqual(fetch_qr_image(self._order()), (b'PNG', 'image/png'))

	@mock.patch('orders.payments.requests.get', side_effect=requests.ConnectionError('offline'))
	def test_fetch_qr_image_failure(self, mock_get):
		with self.assertRaises(QRCodeUnavailable):
			fetch_qr_image(self._order())


@override_settings(ALLOWED_HOSTS=['testserver', 'localhost', '127.0.0.1'], MEDIA_ROOT=TEST_MEDIA_ROOT)
class OrderApiTests(TestCase):

	@classmethod
	def setUpTestData(cls):
		User = get_user_model()
		cls.customer = User.objects.create_user(
			username='cust@example.com', email='cust@example.com', password='secret1', full_name='Sita',
		)
		cls.other = User.objects.create_user(username='other@example.com', email='other@example.com', password='secret1')
		cls.admin = User.objects.create_user(username='admin@example.com', email='admin@example.com', password='secret1')
		UserRole.objects.create(user=cls.admin, role=UserRole.ADMIN)

		cls.id_card = Service.objects.create(
			name='ID Card Printing', category=Service.PRINTING, price=Decimal('50.00'), price_per_copy=True,
		)
		cls.income = Service.objects.create(
			name='Income Certificate', category=Service.CERTIFICATES, price=Decimal('100.00'),
		)

	def setUp(self):
		self.client = APIClient()
		self.client.force_authenticate(user=self.customer)
		self.admin_client = APIClient()
		self.admin_client.force_authenticate(user=self.admin)

	def _place(self, client=None, **extra):
		data = {
			'service': str(self.id_card.pk),
			'details': '{"copies": "50", "paperSize": "A4", "colorType": "Color"}',
			'notes': 'Urgent',
		}
		data.update(extra)
		return (client or self.client).post('/api/orders/', data=data, format='multipart')

	def test_id_card_order_for_fifty_copies(self):
		res = self._place(files=[pdf()])
		self.assertEqual(res.status_code, 201, res.data)
		self.assertEqual(res.data['total_amount'], '2500.00')
		self.assertEqual(res.data['failed_uploads'], [])
		self.assertIn('upi://pay', res.data['payment']['upi_link'])

		order = Order.objects.get(pk=res.data['id'])
		self.assertEqual(order.total_amount, Decimal('2500.00'))
		self.assertEqual(order.user, self.customer)
		self.assertEqual(order.documents.get().file_name, 'aadhar.pdf')

	def test_three_copies_cost_one_fifty(self):
		res = self._place(details='{"copies": "3", "paperSize": "A4", "colorType": "BW"}')
		self.assertEqual(res.status_code, 201, res.data)
		order = Order.objects.get(pk=res.data['id'])
		self.assertEqual(order.total_amount, Decimal('150.00'))

		self.id_card.price = Decimal('60.00')
		self.id_card.save()
		order.refresh_from_db()
		self.assertEqual(order.total_amount, Decimal('150.00'))

	def test_missing_required_fields_writes_nothing(self):
		res = self._place(details='{"copies": "3"}')
		self.assertEqual(res.status_code, 400)
		self.assertEqual(res.data['missing_fields'], ['paperSize', 'colorType'])
		self.assertFalse(Order.objects.exists())

	def test_rejected_file_writes_nothing(self):
		bad = SimpleUploadedFile('virus.exe', b'MZ', content_type='application/octet-stream')
		res = self._place(files=[bad])
		self.assertEqual(res.status_code, 400)
		self.assertEqual(res.data['file_name'], 'virus.exe')
		self.assertFalse(Order.objects.exists())

	def test_inactive_service_is_rejected(self):
		self.income.is_active = False
		self.income.save()
		res = self.client.post('/api/orders/', data={'service': str(self.income.pk)}, format='json')
		self.assertEqual(res.status_code, 400)

	def test_quote(self):
		res = self.client.post('/api/orders/quote/', data={
			'service': str(self.id_card.pk),
			'details': {'copies': '4'},
		}, format='json')
		self.assertEqual(res.status_code, 200)
		self.assertEqual(res.data['total_amount'], Decimal('200.00'))
		self.assertEqual(res.data['missing_fields'], ['paperSize', 'colorType'])

	def test_customers_only_see_their_orders(self):
		mine = Order.objects.create(user=self.customer, service=self.income, total_amount=Decimal('100.00'))
		theirs = Order.objects.create(user=self.other, service=self.income, total_amount=Decimal('100.00'))

		res = self.client.get('/api/orders/')
		self.assertEqual([row['id'] for row in res.data], [str(mine.pk)])
		self.assertEqual(self.client.get(f'/api/orders/{theirs.pk}/').status_code, 404)

		res = self.admin_client.get('/api/orders/')
		self.assertEqual(len(res.data), 2)

	def test_filter_by_status(self):
		Order.objects.create(user=self.customer, service=self.income, status=Order.DELIVERED)
		Order.objects.create(user=self.customer, service=self.income)
		res = self.client.get('/api/orders/', {'status': Order.DELIVERED})
		self.assertEqual(len(res.data), 1)

	def test_admin_sets_status_and_delivery_date(self):
		order = Order.objects.create(user=self.customer, service=self.income)

		res = self.client.patch(f'/api/orders/{order.pk}/set-status/', data={'status': Order.READY}, format='json')
		self.assertEqual(res.status_code, 403)

		res = self.admin_client.patch(f'/api/orders/{order.pk}/set-status/', data={'status': Order.DELIVERED}, format='json')
		self.assertEqual(res.status_code, 200)
		res = self.admin_client.patch(f'/api/orders/{order.pk}/set-status/', data={'status': Order.PENDING}, format='json')
		self.assertEqual(res.status_code, 200)
		res = self.admin_client.patch(f'/api/orders/{order.pk}/set-status/', data={'status': 'lost'}, format='json')
		self.assertEqual(res.status_code, 400)

		res = self.admin_client.patch(
			f'/api/orders/{order.pk}/set-delivery-date/', data={'expected_delivery_date': '2026-11-02'}, format='json',
		)
		self.assertEqual(res.status_code, 200)
		order.refresh_from_db()
		self.assertEqual(order.status, Order.PENDING)
		self.assertEqual(str(order.expected_delivery_date), '2026-11-02')

	def test_document_types_follow_uploader(self):
		order = Order.objects.create(user=self.customer, service=self.income)
		res = self.client.post(f'/api/orders/{order.pk}/documents/', data={'file': pdf('photo-id.pdf')}, format='multipart')
		self.assertEqual(res.status_code, 201, res.data)
		self.assertEqual(res.data['document_type'], OrderDocument.UPLOADED)

		res = self.admin_client.post(f'/api/orders/{order.pk}/documents/', data={'file': pdf('certificate.pdf')}, format='multipart')
		self.assertEqual(res.status_code, 201, res.data)
		self.assertEqual(res.data['document_type'], OrderDocument.COMPLETED)

		res = self.client.get(f'/api/orders/{order.pk}/documents/', {'document_type': OrderDocument.COMPLETED})
		self.assertEqual([d['file_name'] for d in res.data], ['certificate.pdf'])

	def test_customer_cannot_delete_completed_document(self):
		order = Order.objects.create(user=self.customer, service=self.income)
		res = self.admin_client.post(f'/api/orders/{order.pk}/documents/', data={'file': pdf('certificate.pdf')}, format='multipart')
		res = self.client.delete(f'/api/order-documents/{res.data["id"]}/')
		self.assertEqual(res.status_code, 403)
		self.assertEqual(order.documents.count(), 1)

	def test_deleting_document_removes_stored_file(self):
		order = Order.objects.create(user=self.customer, service=self.income)
		res = self.client.post(f'/api/orders/{order.pk}/documents/', data={'file': pdf()}, format='multipart')
		stored = OrderDocument.objects.get(pk=res.data['id']).file.name
		self.assertTrue(default_storage.exists(stored))

		res = self.client.delete(f'/api/order-documents/{res.data["id"]}/')
		self.assertEqual(res.status_code, 204)
		self.assertFalse(default_storage.exists(stored))

	def test_admin_delete_cascades_documents_and_files(self):
		res = self._place(files=[pdf('one.pdf'), pdf('two.pdf')])
		order = Order.objects.get(pk=res.data['id'])
		stored = [d.file.name for d in order.documents.all()]
		self.assertEqual(len(stored), 2)

		self.assertEqual(self.client.delete(f'/api/orders/{order.pk}/').status_code, 403)

		res = self.admin_client.delete(f'/api/orders/{order.pk}/')
		self.assertEqual(res.status_code, 204)
		self.assertFalse(Order.objects.filter(pk=order.pk).exists())
		self.assertFalse(OrderDocument.objects.filter(order_id=order.pk).exists())
		for name in stored:
			self.assertFalse(default_storage.exists(name))

	def test_payment_details_and_mark_paid(self):
		order = Order.objects.create(user=self.customer, service=self.income, total_amount=Decimal('100.00'))
		res = self.client.get(f'/api/orders/{order.pk}/payment/')
		self.assertEqual(res.status_code, 200)
		self.assertIn('am=100', res.data['upi_link'])
		self.assertEqual(res.data['upi_id'], '8878502349@ybl')

		res = self.client.post(f'/api/orders/{order.pk}/mark-paid/')
		self.assertEqual(res.status_code, 200)
		self.assertEqual(res.data['step'], 'submitted')
		order.refresh_from_db()
		self.assertEqual(order.status, Order.PENDING)

		res = self.admin_client.post(f'/api/orders/{order.pk}/mark-paid/')
		self.assertEqual(res.status_code, 403)

	@mock.patch('orders.payments.requests.get')
	def test_qr_proxy(self, mock_get):
		mock_get.return_value.content = b'\x89PNG'
		mock_get.return_value.headers = {'Content-Type': 'image/png'}
		mock_get.return_value.raise_for_status.return_value = None
		order = Order.objects.create(user=self.customer, service=self.income, total_amount=Decimal('100.00'))

		res = self.client.get(f'/api/orders/{order.pk}/payment/qr/')
		self.assertEqual(res.status_code, 200)
		self.assertEqual(res['Content-Type'], 'image/png')
		self.assertEqual(res.content, b'\x89PNG')

		mock_get.side_effect = requests.Timeout('slow')
		res = self.client.get(f'/api/orders/{order.pk}/payment/qr/')
		self.assertEqual(res.status_code, 502)


@override_settings(ALLOWED_HOSTS=['testserver', 'localhost', '127.0.0.1'])
class PageGuardTests(TestCase):

	@classmethod
	def setUpTestData(cls):
		User = get_user_model()
		cls.customer = User.objects.create_user(username='c@example.com', email='c@example.com', password='secret1')
		cls.admin = User.objects.create_user(username='a@example.com', email='a@example.com', password='secret1')
		UserRole.objects.create(user=cls.admin, role=UserRole.ADMIN)
		service = Service.objects.create(name='Water Bill', category=Service.BILLS, price=Decimal('10.00'))
		cls.order = Order.objects.create(user=cls.customer, service=service)

	def test_anonymous_visitors_go_to_auth(self):
		res = self.client.get('/dashboard/orders/')
		self.assertEqual(res.status_code, 302)
		self.assertTrue(res['Location'].startswith('/auth/'))
		res = self.client.get('/admin/analytics/')
		self.assertTrue(res['Location'].startswith('/auth/'))

	def test_customer_pages_render(self):
		self.client.force_login(self.customer)
		for url in ('/dashboard/', '/dashboard/new-order/', '/dashboard/orders/', f'/dashboard/orders/{self.order.pk}/',
					'/dashboard/documents/', '/dashboard/profile/'):
			res = self.client.get(url)
			self.assertEqual(res.status_code, 200, url)
		self.assertContains(res, 'data-page="customer_profile"')

	def test_customer_is_redirected_from_admin_pages_before_any_order_query(self):
		self.client.force_login(self.customer)
		for url in ('/admin/', '/admin/orders/', f'/admin/orders/{self.order.pk}/', '/admin/users/',
					f'/admin/users/{self.customer.pk}/', '/admin/services/', '/admin/analytics/'):
			with CaptureQueriesContext(connection) as ctx:
				res = self.client.get(url)
			self.assertRedirects(res, '/dashboard/', fetch_redirect_response=False)
			touched = ' '.join(q['sql'] for q in ctx.captured_queries)
			self.assertNotIn('orders_order', touched, url)
			self.assertNotIn('services_service', touched, url)

	def test_admin_pages_render_for_admins(self):
		self.client.force_login(self.admin)
		res = self.client.get(f'/admin/orders/{self.order.pk}/')
		self.assertEqual(res.status_code, 200)
		self.assertContains(res, f'data-order-id="{self.order.pk}"')

	def test_home_lists_active_services(self):
		res = self.client.get('/')
		self.assertContains(res, 'Water Bill')
