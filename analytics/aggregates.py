"""Revenue and order aggregates for the admin analytics page.

Every function takes the full list of orders (with ``service`` loaded) and
works in memory. That is fine for a shop-sized order book; beyond a few tens
of thousands of orders these should move into database aggregation.
"""

from collections import OrderedDict
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal

from django.utils import timezone

from orders.models import Order
from services.models import Service

ZERO = Decimal('0')

STATUS_NAMES = OrderedDict([
    (Order.PENDING, 'Pending'),
    (Order.IN_PROGRESS, 'In Progress'),
    (Order.READY, 'Ready'),
    (Order.DELIVERED, 'Delivered'),
    (Order.CANCELLED, 'Cancelled'),
])

CATEGORY_NAMES = {
    Service.PRINTING: 'Printing',
    Service.CERTIFICATES: 'Certificates',
    Service.BILLS: 'Bills',
    Service.MP_ONLINE: 'CSC Service',
}


def _amount(order):
    return order.total_amount if order.total_amount is not None else ZERO


def _local_date(order):
    return timezone.localtime(order.created_at).date()


def _today(today):
    return today or timezone.localdate()


def _month_start(day, shift=0):
    month_index = day.year * 12 + (day.month - 1) + shift
    return date(month_index // 12, month_index % 12 + 1, 1)


def _is_open(order):
    return order.status not in (Order.DELIVERED, Order.CANCELLED)


def _percent(part, whole):
    if not whole:
        return 0.0
    return round(float(part) / float(whole) * 100, 1)


def orders_over_time(orders, today=None, days=30):
    """Order count and revenue per day for the last ``days`` days, oldest first."""
    end = _today(today)
    start = end - timedelta(days=days - 1)
    buckets = OrderedDict()
    for offset in range(days):
        day = start + timedelta(days=offset)
        buckets[day] = {'date': day.strftime('%b %d'), 'day': day.isoformat(), 'orders': 0, 'revenue': ZERO}
    for order in orders:
        bucket = buckets.get(_local_date(order))
        if bucket is not None:
            bucket['orders'] += 1
            bucket['revenue'] += _amount(order)
    return list(buckets.values())


def monthly_revenue(orders, today=None, months=6):
    """Totals for the last ``months`` calendar months including the current one."""
    end = _today(today)
    rows = OrderedDict()
    for shift in range(-(months - 1), 1):
        start = _month_start(end, shift)
        rows[(start.year, start.month)] = {
            'month': start.strftime('%b %Y'),
            'total': ZERO,
            'delivered': ZERO,
            'pending': ZERO,
            'orders': 0,
        }
    for order in orders:
        day = _local_date(order)
        row = rows.get((day.year, day.month))
        if row is None:
            continue
        amount = _amount(order)
        row['orders'] += 1
        row['total'] += amount
        if order.status == Order.DELIVERED:
            row['delivered'] += amount
        elif _is_open(order):
            row['pending'] += amount
    return list(rows.values())


def revenue_by_service(orders, limit=10):
    totals = OrderedDict()
    for order in orders:
        if order.service is None:
            continue
        row = totals.setdefault(order.service.name, {'name': order.service.name, 'revenue': ZERO, 'orders': 0})
        row['revenue'] += _amount(order)
        row['orders'] += 1
    return sorted(totals.values(), key=lambda r: r['revenue'], reverse=True)[:limit]


def revenue_by_category(orders):
    totals = OrderedDict()
    for order in orders:
        if order.service is None:
            continue
        category = order.service.category
        row = totals.setdefault(category, {
            'category': category,
            'name': CATEGORY_NAMES.get(category, category),
            'revenue': ZERO,
            'orders': 0,
        })
        row['revenue'] += _amount(order)
        row['orders'] += 1
    return sorted(totals.values(), key=lambda r: r['revenue'], reverse=True)


def service_popularity(orders, limit=7):
    counts = OrderedDict()
    for order in orders:
        if order.service is None:
            continue
        row = counts.setdefault(order.service.name, {'name': order.service.name, 'count': 0})
        row['count'] += 1
    return sorted(counts.values(), key=lambda r: r['count'], reverse=True)[:limit]


def status_breakdown(orders):
    """Order count per status; statuses without orders are left out."""
    counts = OrderedDict((status, 0) for status in STATUS_NAMES)
    for order in orders:
        if order.status in counts:
            counts[order.status] += 1
    return [
        {'status': status, 'name': STATUS_NAMES[status], 'value': value}
        for status, value in counts.items() if value > 0
    ]


def revenue_by_status(orders):
    totals = OrderedDict((status, ZERO) for status in STATUS_NAMES)
    for order in orders:
        if order.status in totals:
            totals[order.status] += _amount(order)
    return [
        {'status': status, 'name': STATUS_NAMES[status], 'value': value}
        for status, value in totals.items() if value > 0
    ]


def summary(orders, today=None):
    end = _today(today)
    this_month = _month_start(end)
    last_month = _month_start(end, -1)

    total = sum((_amount(o) for o in orders), ZERO)
    delivered = [o for o in orders if o.status == Order.DELIVERED]
    pending = [o for o in orders if _is_open(o)]
    cancelled = [o for o in orders if o.status == Order.CANCELLED]

    this_month_revenue = ZERO
    last_month_revenue = ZERO
    for order in orders:
        day = _local_date(order)
        if day >= this_month:
            this_month_revenue += _amount(order)
        elif last_month <= day < this_month:
            last_month_revenue += _amount(order)

    if last_month_revenue > 0:
        growth = _percent(this_month_revenue - last_month_revenue, last_month_revenue)
    else:
        growth = 100.0 if this_month_revenue > 0 else 0.0

    avg = (total / len(orders)).quantize(Decimal('1'), rounding=ROUND_HALF_UP) if orders else ZERO

    return {
        'total_orders': len(orders),
        'total_revenue': total,
        'delivered_revenue': sum((_amount(o) for o in delivered), ZERO),
        'pending_revenue': sum((_amount(o) for o in pending), ZERO),
        'cancelled_revenue': sum((_amount(o) for o in cancelled), ZERO),
        'avg_order_value': avg,
        'this_month_revenue': this_month_revenue,
        'last_month_revenue': last_month_revenue,
        'revenue_growth': growth,
        'completion_rate': _percent(len(delivered), len(orders)),
        'pending_orders': len(pending),
        'delivered_orders': len(delivered),
    }


def dashboard_stats(orders, customers=0):
    """Counters shown on the admin landing page."""
    return {
        'total_orders': len(orders),
        'pending': sum(1 for o in orders if o.status == Order.PENDING),
        'in_progress': sum(1 for o in orders if o.status == Order.IN_PROGRESS),
        'delivered': sum(1 for o in orders if o.status == Order.DELIVERED),
        'revenue': sum((_amount(o) for o in orders if o.status == Order.DELIVERED), ZERO),
        'customers': customers,
    }


def build_analytics(orders, today=None):
    orders = list(orders)
    return {
        'summary': summary(orders, today=today),
        'orders_over_time': orders_over_time(orders, today=today),
        'monthly_revenue': monthly_revenue(orders, today=today),
        'revenue_by_service': revenue_by_service(orders),
        'revenue_by_category': revenue_by_category(orders),
        'service_popularity': service_popularity(orders),
        'status_breakdown': status_breakdown(orders),
        'revenue_by_status': revenue_by_status(orders),
    }
