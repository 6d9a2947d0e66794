import shutil
import tempfile

from django.contrib.auth import get_user_model
from django.core.files.storage import default_storage
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from documents.models import UserDocument

TEST_MEDIA_ROOT = tempfile.mkdtemp()


@override_settings(ALLOWED_HOSTS=['testserver', 'localhost', '127.0.0.1'], MEDIA_ROOT=TEST_MEDIA_ROOT)
class UserDocumentApiTests(TestCase):

	@classmethod
	def setUpTestData(cls):
		User = get_user_model()
		cls.owner = User.objects.create_user(username='owner@example.com', email='owner@example.com', password='secret1')
		cls.stranger = User.objects.create_user(username='stranger@example.com', email='stranger@example.com', password='secret1')

	@classmethod
	def tearDownClass(cls):
		super().tearDownClass()
		shutil.rmtree(TEST_MEDIA_ROOT, ignore_errors=True)

	def setUp(self):
		self.client = APIClient()
		self.client.force_authenticate(user=self.owner)

	def _upload(self, name='pan-card.pdf', content=b'%PDF-1.4', content_type='application/pdf', client=None):
		upload = SimpleUploadedFile(name, content, content_type=content_type)
		return (client or self.client).post('/api/documents/', data={'file': upload}, format='multipart')

	def test_upload_stores_file_under_user_folder(self):
		res = self._upload()
		self.assertEqual(res.status_code, 201, res.data)
		self.assertEqual(res.data['file_name'], 'pan-card.pdf')
		self.assertEqual(res.data['document_type'], 'application/pdf')
		self.assertNotIn('file', res.data)
		self.assertTrue(res.data['file_url'].startswith('http://testserver/media/documents/'))

		doc = UserDocument.objects.get(pk=res.data['id'])
		self.assertEqual(doc.user, self.owner)
		self.assertTrue(doc.file.name.startswith(f'documents/{self.owner.pk}/'))
		self.assertTrue(doc.file.name.endswith('.pdf'))
		self.assertTrue(default_storage.exists(doc.file.name))

	def test_images_are_accepted(self):
		res = self._upload(name='photo.png', content=b'\x89PNG', content_type='image/png')
		self.assertEqual(res.status_code, 201, res.data)

	def test_unsupported_type_is_rejected(self):
		res = self._upload(name='notes.txt', content=b'hello', content_type='text/plain')
		self.assertEqual(res.status_code, 400)
		self.assertIn('file', res.data)
		self.assertFalse(UserDocument.objects.exists())

	def test_list_shows_only_own_documents(self):
		self._upload(name='mine.pdf')
		other = APIClient()
		other.force_authenticate(user=self.stranger)
		theirs = self._upload(name='theirs.pdf', client=other)

		res = self.client.get('/api/documents/')
		self.assertEqual([d['file_name'] for d in res.data], ['mine.pdf'])
		self.assertEqual(self.client.get(f'/api/documents/{theirs.data["id"]}/').status_code, 404)
		self.assertEqual(self.client.delete(f'/api/documents/{theirs.data["id"]}/').status_code, 404)

	def test_delete_removes_stored_file(self):
		res = self._upload()
		stored = UserDocument.objects.get(pk=res.data['id']).file.name

		res = self.client.delete(f'/api/documents/{res.data["id"]}/')
		self.assertEqual(res.status_code, 204)
		self.assertFalse(UserDocument.objects.exists())
		self.assertFalse(default_storage.exists(stored))

	def test_requires_login(self):
		res = APIClient().get('/api/documents/')
		self.assertEqual(res.status_code, 401)
