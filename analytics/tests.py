from datetime import date, datetime, time
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIClient

from accounts.models import UserRole
from analytics.aggregates import (
	build_analytics,
	dashboard_stats,
	monthly_revenue,
	orders_over_time,
	revenue_by_category,
	revenue_by_service,
	service_popularity,
	status_breakdown,
	summary,
)
from orders.models import Order
from services.models import Service

TODAY = date(2026, 3, 15)


def _at(day):
	return timezone.make_aware(datetime.combine(day, time(11, 30)))


class AggregateTests(TestCase):

	@classmethod
	def setUpTestData(cls):
		User = get_user_model()
		cls.customer = User.objects.create_user(username='a@example.com', email='a@example.com', password='secret1')
		cls.printing = Service.objects.create(name='Photocopy', category=Service.PRINTING, price=Decimal('2.00'), price_per_copy=True)
		cls.income = Service.objects.create(name='Income Certificate', category=Service.CERTIFICATES, price=Decimal('100.00'))
		cls.bill = Service.objects.create(name='Electricity Bill', category=Service.BILLS, price=Decimal('20.00'))

		rows = [
			(cls.income, Order.DELIVERED, '100.00', date(2026, 3, 15)),
			(cls.income, Order.PENDING, '100.00', date(2026, 3, 10)),
			(cls.printing, Order.DELIVERED, '40.00', date(2026, 3, 1)),
			(cls.bill, Order.CANCELLED, '20.00', date(2026, 2, 20)),
			(cls.printing, Order.IN_PROGRESS, '60.00', date(2026, 2, 14)),
			(cls.income, Order.DELIVERED, '100.00', date(2025, 8, 1)),
		]
		for service, status, amount, day in rows:
			order = Order.objects.create(user=cls.customer, service=service, status=status, total_amount=Decimal(amount))
			Order.objects.filter(pk=order.pk).update(created_at=_at(day))

	def setUp(self):
		self.orders = list(Order.objects.select_related('service'))

	def test_orders_over_time_covers_thirty_days(self):
		rows = orders_over_time(self.orders, today=TODAY)
		self.assertEqual(len(rows), 30)
		self.assertEqual(rows[0]['day'], '2026-02-14')
		self.assertEqual(rows[-1]['date'], 'Mar 15')
		self.assertEqual(rows[0]['orders'], 1)
		self.assertEqual(rows[0]['revenue'], Decimal('60.00'))
		self.assertEqual(sum(r['orders'] for r in rows), 5)

	def test_monthly_revenue(self):
		rows = monthly_revenue(self.orders, today=TODAY)
		self.assertEqual([r['month'] for r in rows], ['Oct 2025', 'Nov 2025', 'Dec 2025', 'Jan 2026', 'Feb 2026', 'Mar 2026'])
		march = rows[-1]
		self.assertEqual(march['total'], Decimal('240.00'))
		self.assertEqual(march['delivered'], Decimal('140.00'))
		self.assertEqual(march['pending'], Decimal('100.00'))
		feb = rows[-2]
		self.assertEqual(feb['total'], Decimal('80.00'))
		self.assertEqual(feb['pending'], Decimal('60.00'))
		self.assertEqual(feb['delivered'], Decimal('0'))

	def test_revenue_by_service_and_category(self):
		services = revenue_by_service(self.orders)
		self.assertEqual(services[0], {'name': 'Income Certificate', 'revenue': Decimal('300.00'), 'orders': 3})
		categories = revenue_by_category(self.orders)
		self.assertEqual([c['name'] for c in categories], ['Certificates', 'Printing', 'Bills'])

	def test_popularity_and_status_breakdown(self):
		self.assertEqual(service_popularity(self.orders)[0], {'name': 'Income Certificate', 'count': 3})
		breakdown = {row['status']: row['value'] for row in status_breakdown(self.orders)}
		self.assertEqual(breakdown, {
			Order.PENDING: 1,
			Order.IN_PROGRESS: 1,
			Order.DELIVERED: 3,
			Order.CANCELLED: 1,
		})

	def test_summary(self):
		result = summary(self.orders, today=TODAY)
		self.assertEqual(result['total_orders'], 6)
		self.assertEqual(result['total_revenue'], Decimal('420.00'))
		self.assertEqual(result['delivered_revenue'], Decimal('240.00'))
		self.assertEqual(result['pending_revenue'], Decimal('160.00'))
		self.assertEqual(result['cancelled_revenue'], Decimal('20.00'))
		self.assertEqual(result['avg_order_value'], Decimal('70'))
		self.assertEqual(result['this_month_revenue'], Decimal('240.00'))
		self.assertEqual(result['last_month_revenue'], Decimal('80.00'))
		self.assertEqual(result['revenue_growth'], 200.0)
		self.assertEqual(result['completion_rate'], 50.0)

	def test_summary_without_orders(self):
		result = summary([], today=TODAY)
		self.assertEqual(result['avg_order_value'], Decimal('0'))
		self.assertEqual(result['revenue_growth'], 0.0)
		self.assertEqual(result['completion_rate'], 0.0)

	def test_growth_without_last_month(self):
		march_only = [o for o in self.orders if o.created_at.month == 3 and o.created_at.year == 2026]
		self.assertEqual(summary(march_only, today=TODAY)['revenue_growth'], 100.0)

	def test_dashboard_stats_count_delivered_revenue_only(self):
		stats = dashboard_stats(self.orders, customers=4)
		self.assertEqual(stats['total_orders'], 6)
		self.assertEqual(stats['pending'], 1)
		self.assertEqual(stats['in_progress'], 1)
		self.assertEqual(stats['delivered'], 3)
		self.assertEqual(stats['revenue'], Decimal('240.00'))
		self.assertEqual(stats['customers'], 4)

	def test_orders_without_service_are_skipped_by_service_charts(self):
		Order.objects.filter(service=self.bill).update(service=None)
		orders = list(Order.objects.select_related('service'))
		self.assertNotIn('Bills', [c['name'] for c in revenue_by_category(orders)])
		self.assertEqual(build_analytics(orders, today=TODAY)['summary']['total_orders'], 6)


@override_settings(ALLOWED_HOSTS=['testserver', 'localhost', '127.0.0.1'])
class AdminAnalyticsApiTests(TestCase):

	@classmethod
	def setUpTestData(cls):
		User = get_user_model()
		cls.customer = User.objects.create_user(username='c@example.com', email='c@example.com', password='secret1')
		User.objects.create_user(username='c2@example.com', email='c2@example.com', password='secret1')
		cls.admin = User.objects.create_user(username='adm@example.com', email='adm@example.com', password='secret1')
		UserRole.objects.create(user=cls.admin, role=UserRole.ADMIN)
		service = Service.objects.create(name='Passport Photo', category=Service.PRINTING, price=Decimal('30.00'))
		for n in range(6):
			Order.objects.create(user=cls.customer, service=service, total_amount=Decimal('30.00'))

	def setUp(self):
		self.client = APIClient()

	def test_dashboard(self):
		self.client.force_authenticate(user=self.admin)
		res = self.client.get('/api/admin/dashboard/')
		self.assertEqual(res.status_code, 200)
		self.assertEqual(res.data['stats']['total_orders'], 6)
		self.assertEqual(res.data['stats']['customers'], 2)
		self.assertEqual(len(res.data['recent_orders']), 5)

	def test_analytics(self):
		self.client.force_authenticate(user=self.admin)
		res = self.client.get('/api/admin/analytics/')
		self.assertEqual(res.status_code, 200)
		self.assertEqual(res.data['summary']['total_orders'], 6)
		self.assertEqual(res.data['service_popularity'], [{'name': 'Passport Photo', 'count': 6}])
		self.assertEqual(len(res.data['orders_over_time']), 30)

	def test_customers_are_forbidden(self):
		self.client.force_authenticate(user=self.customer)
		self.assertEqual(self.client.get('/api/admin/dashboard/').status_code, 403)
		self.assertEqual(self.client.get('/api/admin/analytics/').status_code, 403)
