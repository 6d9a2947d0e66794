from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIClient

from accounts.models import UserRole
from notifications import alerts
from notifications.channels import CHANNELS, connect_channels, disconnect_channels
from notifications.models import Notification
from notifications.realtime import ChangeEvent, ChangeFeed, feed
from notifications.store import ORDER, NotificationFeed, cap, prune
from orders.models import Order, OrderDocument
from services.models import Service


def make_user(email):
	return get_user_model().objects.create_user(username=email, email=email, password='secret1')


def backdate(notification, hours):
	Notification.objects.filter(pk=notification.pk).update(created_at=timezone.now() - timedelta(hours=hours))


class ChangeFeedTests(TestCase):

	def test_subscribers_get_events_they_asked_for(self):
		hub = ChangeFeed()
		seen = []
		hub.subscribe(ChangeEvent.ORDER_INSERT, seen.append)
		hub.publish(ChangeEvent.ORDER_UPDATE, {'id': 1})
		change = hub.publish(ChangeEvent.ORDER_INSERT, {'id': 2})
		self.assertEqual(seen, [change])
		self.assertEqual(change.new['id'], 2)
		self.assertIsNone(change.old)

	def test_payloads_are_read_only(self):
		change = ChangeFeed().publish('orders.UPDATE', {'status': 'ready'}, {'status': 'pending'})
		with self.assertRaises(TypeError):
			change.new['status'] = 'delivered'
		self.assertTrue(change.changed('status'))
		self.assertFalse(change.changed('user_id'))

	def test_unsubscribe(self):
		hub = ChangeFeed()
		seen = []
		sub = hub.subscribe(ChangeEvent.ORDER_INSERT, seen.append)
		self.assertTrue(sub.active)
		sub.unsubscribe()
		self.assertFalse(sub.active)
		hub.publish(ChangeEvent.ORDER_INSERT, {'id': 1})
		self.assertEqual(seen, [])

	def test_failing_handler_does_not_stop_others(self):
		hub = ChangeFeed()
		seen = []

		def broken(change):
			raise RuntimeError('boom')

		hub.subscribe(ChangeEvent.ORDER_INSERT, broken)
		hub.subscribe(ChangeEvent.ORDER_INSERT, seen.append)
		with self.assertLogs('notifications.realtime', level='ERROR'):
			hub.publish(ChangeEvent.ORDER_INSERT, {'id': 1})
		self.assertEqual(len(seen), 1)

	def test_unknown_event_is_rejected(self):
		with self.assertRaises(ValueError):
			ChangeFeed().subscribe('payments.INSERT', print)


class NotificationStoreTests(TestCase):

	@classmethod
	def setUpTestData(cls):
		cls.user = make_user('feed@example.com')

	def setUp(self):
		self.feed = NotificationFeed(self.user.pk)

	def test_add_prepends_unread_item(self):
		first = self.feed.add('First', 'one')
		backdate(first, 1)
		second = self.feed.add('Second', 'two', type=ORDER, order_id='6f1c1a52-4a4e-4b52-9d7e-3f0e2f6e9a10')
		items = self.feed.load()
		self.assertEqual([i.pk for i in items], [second.pk, first.pk])
		self.assertEqual(str(items[0].order_id), '6f1c1a52-4a4e-4b52-9d7e-3f0e2f6e9a10')
		self.assertEqual(self.feed.unread_count(), 2)
		self.assertEqual(self.feed.unread_count(items), 2)

	def test_unknown_type_falls_back_to_info(self):
		self.assertEqual(self.feed.add('x', 'y', type='weird').type, 'info')

	def test_mark_as_read(self):
		item = self.feed.add('Hello', 'there')
		self.assertTrue(self.feed.mark_as_read(item.pk))
		self.assertTrue(self.feed.mark_as_read(str(item.pk)))
		self.assertFalse(self.feed.mark_as_read('missing'))
		self.assertFalse(self.feed.mark_as_read('6f1c1a52-4a4e-4b52-9d7e-3f0e2f6e9a10'))
		self.assertEqual(self.feed.unread_count(), 0)

	def test_mark_all_and_clear(self):
		for n in range(3):
			self.feed.add(f'n{n}', 'm')
		self.assertEqual(self.feed.mark_all_as_read(), 3)
		self.feed.add('fresh', 'unread')
		self.assertEqual(self.feed.clear(), 3)
		self.assertEqual([i.title for i in self.feed.load()], ['fresh'])

	def test_load_drops_only_old_read_items(self):
		old_unread = self.feed.add('old unread', 'm')
		old_read = self.feed.add('old read', 'm')
		recent_read = self.feed.add('recent read', 'm')
		self.feed.mark_as_read(old_read.pk)
		self.feed.mark_as_read(recent_read.pk)
		backdate(old_unread, 48)
		backdate(old_read, 48)
		backdate(recent_read, 1)

		titles = {i.title for i in self.feed.load()}
		self.assertEqual(titles, {'old unread', 'recent read'})
		self.assertFalse(Notification.objects.filter(pk=old_read.pk).exists())

	def test_prune_returns_removed_count(self):
		item = self.feed.add('seen', 'm')
		self.feed.mark_as_read(item.pk)
		backdate(item, 25)
		self.assertEqual(prune(self.feed.queryset), 1)

	def test_cap_keeps_unread_and_newest_read(self):
		items = [self.feed.add(f'n{n}', 'm') for n in range(5)]
		for hours, item in zip((5, 4, 3, 2, 1), items):
			backdate(item, hours)
		Notification.objects.filter(pk__in=[items[0].pk, items[2].pk, items[3].pk]).update(read=True)

		self.assertEqual(cap(self.feed.queryset, max_read=2), 1)
		self.assertEqual({i.title for i in self.feed.load()}, {'n1', 'n2', 'n3', 'n4'})

	@override_settings(DASTAWEZ={'NOTIFICATION_TTL_HOURS': 24, 'NOTIFICATION_MAX_READ_ITEMS': 1, 'NOTIFICATION_ALERTS': []})
	def test_add_applies_read_cap(self):
		for n in range(3):
			self.feed.mark_as_read(self.feed.add(f'n{n}', 'm').pk)
		self.assertEqual(len(self.feed.load()), 1)

	def test_unread_items_survive_many_other_feeds(self):
		self.feed.add('Keep me', 'unread')
		User = get_user_model()
		User.objects.bulk_create([User(username=f'bulk{n}@example.com', email=f'bulk{n}@example.com') for n in range(400)])
		for pk in User.objects.filter(username__startswith='bulk').values_list('pk', flat=True):
			NotificationFeed(pk).add('Other', 'noise')
		self.assertEqual(NotificationFeed(self.user.pk).unread_count(), 1)
		self.assertEqual([i.title for i in NotificationFeed(self.user.pk).load()], ['Keep me'])

	def test_interleaved_writers_keep_every_item(self):
		first = NotificationFeed(self.user.pk)
		second = NotificationFeed(self.user.pk)
		first.load()
		second.load()
		a = first.add('From first', 'm')
		b = second.add('From second', 'm')
		first.mark_as_read(a.pk)
		second.add('Third', 'm')

		items = first.load()
		self.assertEqual({i.title for i in items}, {'From first', 'From second', 'Third'})
		self.assertEqual(second.unread_count(), 2)
		self.assertTrue(Notification.objects.get(pk=a.pk).read)
		self.assertFalse(Notification.objects.get(pk=b.pk).read)

	def test_permission_flag(self):
		other = make_user('other@example.com')
		self.assertFalse(self.feed.permission_granted())
		self.feed.set_permission(True)
		self.assertTrue(NotificationFeed(self.user.pk).permission_granted())
		self.assertFalse(NotificationFeed(other.pk).permission_granted())
		self.feed.set_permission(False)
		self.assertFalse(self.feed.permission_granted())


class AlertTests(TestCase):

	@classmethod
	def setUpTestData(cls):
		cls.user = make_user('alerts@example.com')

	def setUp(self):
		self.notification = NotificationFeed(self.user.pk).add('Hi', 'there')

	def test_platform_alert_needs_permission(self):
		with self.assertNoLogs('notifications.alerts', level='INFO'):
			alerts.platform_notification(self.user.pk, self.notification)
		NotificationFeed(self.user.pk).set_permission(True)
		with self.assertLogs('notifications.alerts', level='INFO') as logs:
			alerts.platform_notification(self.user.pk, self.notification)
		self.assertIn('[platform]', logs.output[0])

	@override_settings(DASTAWEZ={'NOTIFICATION_ALERTS': ['notifications.alerts.toast']})
	def test_dispatch_uses_configured_backends(self):
		self.assertEqual(alerts.get_alert_backends(), [alerts.toast])
		with self.assertLogs('notifications.alerts', level='INFO') as logs:
			alerts.dispatch(self.user.pk, self.notification)
		self.assertEqual(len(logs.output), 1)

	def test_failing_backend_does_not_stop_the_rest(self):
		seen = []

		def broken(user_id, notification):
			raise RuntimeError('speaker unplugged')

		with mock.patch.object(alerts, 'get_alert_backends', return_value=[broken, lambda u, n: seen.append(u)]):
			with self.assertLogs('notifications.alerts', level='ERROR'):
				alerts.dispatch(self.user.pk, self.notification)
		self.assertEqual(seen, [self.user.pk])


class ChannelTests(TestCase):

	@classmethod
	def setUpTestData(cls):
		User = get_user_model()
		cls.customer = User.objects.create_user(
			username='meera@example.com', email='meera@example.com', password='secret1', full_name='Meera',
		)
		cls.admin = make_user('boss@example.com')
		UserRole.objects.create(user=cls.admin, role=UserRole.ADMIN)
		cls.second_admin = make_user('deputy@example.com')
		UserRole.objects.create(user=cls.second_admin, role=UserRole.ADMIN)
		cls.service = Service.objects.create(name='Domicile Certificate', category=Service.CERTIFICATES, price=Decimal('100.00'))

	def _messages(self, user):
		return [n.message for n in NotificationFeed(user.pk).load()]

	def _reset(self):
		Notification.objects.all().delete()

	def test_channels_are_connected_once(self):
		self.assertEqual(len(connect_channels()), len(CHANNELS))
		self.assertEqual(len(feed.subscriptions(ChangeEvent.ORDER_UPDATE)), 2)

	def test_new_order_notifies_admins(self):
		order = Order.objects.create(user=self.customer, service=self.service, total_amount=Decimal('100.00'))
		items = NotificationFeed(self.admin.pk).load()
		self.assertEqual(len(items), 1)
		self.assertEqual(items[0].title, '🆕 New Order Received!')
		self.assertEqual(items[0].message, 'Meera ordered Domicile Certificate')
		self.assertEqual(items[0].order_id, order.pk)
		self.assertEqual(items[0].type, 'order')
		self.assertEqual(self._messages(self.second_admin), ['Meera ordered Domicile Certificate'])
		self.assertEqual(self._messages(self.customer), [])

	def test_two_orders_both_reach_every_admin(self):
		Order.objects.create(user=self.customer, service=self.service)
		Order.objects.create(user=self.customer, service=self.service)
		self.assertEqual(NotificationFeed(self.admin.pk).unread_count(), 2)
		self.assertEqual(NotificationFeed(self.second_admin.pk).unread_count(), 2)

	def test_status_change_notifies_owner_and_admins(self):
		order = Order.objects.create(user=self.customer, service=self.service)
		self._reset()
		order.status = Order.READY
		order.save()

		self.assertEqual(self._messages(self.customer), ['Your order "Domicile Certificate" is now Ready for Pickup'])
		self.assertEqual(self._messages(self.admin), ['Order by Meera (Domicile Certificate) → Ready'])

	def test_save_without_status_change_is_silent(self):
		order = Order.objects.create(user=self.customer, service=self.service)
		self._reset()
		order.notes = 'call before delivery'
		order.save()
		self.assertEqual(self._messages(self.customer), [])
		self.assertEqual(self._messages(self.admin), [])

	def test_admin_owner_gets_no_customer_status_notification(self):
		order = Order.objects.create(user=self.admin, service=self.service)
		self._reset()
		order.status = Order.DELIVERED
		order.save()
		self.assertEqual([n.title for n in NotificationFeed(self.admin.pk).load()], ['📋 Order Status Changed'])

	def test_new_document_notifies_admins(self):
		order = Order.objects.create(user=self.customer, service=self.service)
		self._reset()
		with mock.patch('django.core.files.storage.FileSystemStorage.save', return_value='documents/x/aadhar.pdf'):
			OrderDocument.objects.create(
				order=order,
				file_name='aadhar.pdf',
				file=SimpleUploadedFile('aadhar.pdf', b'%PDF'),
			)
		items = NotificationFeed(self.admin.pk).load()
		self.assertEqual(items[0].message, 'A customer uploaded a new document: aadhar.pdf')
		self.assertEqual(items[0].order_id, order.pk)

	def test_failing_alert_still_reaches_every_admin(self):
		with mock.patch('notifications.alerts.toast', side_effect=RuntimeError('boom')):
			with self.assertLogs('notifications.alerts', level='ERROR'):
				Order.objects.create(user=self.customer, service=self.service)
		self.assertEqual(NotificationFeed(self.admin.pk).unread_count(), 1)
		self.assertEqual(NotificationFeed(self.second_admin.pk).unread_count(), 1)

	def test_disconnect_stops_delivery(self):
		disconnect_channels()
		try:
			Order.objects.create(user=self.customer, service=self.service)
			self.assertEqual(self._messages(self.admin), [])
		finally:
			connect_channels()


@override_settings(ALLOWED_HOSTS=['testserver', 'localhost', '127.0.0.1'])
class NotificationApiTests(TestCase):

	@classmethod
	def setUpTestData(cls):
		cls.user = make_user('n@example.com')
		cls.other = make_user('other@example.com')

	def setUp(self):
		self.client = APIClient()
		self.client.force_authenticate(user=self.user)
		self.feed = NotificationFeed(self.user.pk)

	def test_list(self):
		backdate(self.feed.add('One', 'first'), 1)
		self.feed.add('Two', 'second')
		res = self.client.get('/api/notifications/')
		self.assertEqual(res.status_code, 200)
		self.assertEqual(res.data['unread_count'], 2)
		self.assertFalse(res.data['permission'])
		self.assertEqual([n['title'] for n in res.data['notifications']], ['Two', 'One'])

	def test_read_one_and_all(self):
		one = self.feed.add('One', 'first')
		self.feed.add('Two', 'second')
		res = self.client.post(f'/api/notifications/{one.pk}/read/')
		self.assertEqual(res.data['unread_count'], 1)
		self.assertEqual(self.client.post('/api/notifications/nope/read/').status_code, 404)

		res = self.client.post('/api/notifications/read-all/')
		self.assertEqual(res.data['unread_count'], 0)

	def test_cannot_read_someone_elses_notification(self):
		theirs = NotificationFeed(self.other.pk).add('Other', 'not yours')
		self.assertEqual(self.client.post(f'/api/notifications/{theirs.pk}/read/').status_code, 404)
		self.assertFalse(Notification.objects.get(pk=theirs.pk).read)

	def test_clear_keeps_unread(self):
		read = self.feed.add('Old', 'seen')
		self.feed.mark_as_read(read.pk)
		self.feed.add('New', 'unseen')
		res = self.client.post('/api/notifications/clear/')
		self.assertEqual(res.data['removed'], 1)
		self.assertEqual([n['title'] for n in res.data['notifications']], ['New'])

	def test_permission(self):
		res = self.client.post('/api/notifications/permission/', data={'granted': True}, format='json')
		self.assertEqual(res.data, {'granted': True})
		self.assertTrue(self.client.get('/api/notifications/permission/').data['granted'])

	def test_feeds_are_per_user(self):
		NotificationFeed(self.other.pk).add('Other', 'not yours')
		res = self.client.get('/api/notifications/')
		self.assertEqual(res.data['notifications'], [])
