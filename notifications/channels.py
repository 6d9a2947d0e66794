"""Notification channels.

Each channel listens to one change-feed event, builds a human readable
notification (looking up the service and customer names where it can) and
appends it to the recipients' feeds.

- admin-new-order: every new order, to all admins
- user-order-status-changed: status changes, to the order owner unless they are an admin
- admin-order-status-changed: status changes, to all admins
- admin-new-document: every document attached to an order, to all admins
"""

import logging

from django.contrib.auth import get_user_model

from accounts.models import UserRole
from services.models import Service

from . import alerts
from .realtime import ChangeEvent, feed
from .store import ORDER, NotificationFeed

logger = logging.getLogger(__name__)

USER_STATUS_LABELS = {
    'pending': 'Pending',
    'in_progress': 'In Progress',
    'ready': 'Ready for Pickup',
    'delivered': 'Delivered',
    'cancelled': 'Cancelled',
}

ADMIN_STATUS_LABELS = dict(USER_STATUS_LABELS, ready='Ready')

_subscriptions = []


def admin_ids():
    return list(UserRole.objects.filter(role=UserRole.ADMIN).values_list('user_id', flat=True))


def service_name(service_id):
    if not service_id:
        return None
    return Service.objects.filter(pk=service_id).values_list('name', flat=True).first()


def customer_name(user_id):
    row = get_user_model().objects.filter(pk=user_id).values('full_name', 'email').first()
    if not row:
        return None
    return row['full_name'] or row['email'] or None


def notify(user_ids, title, message, order_id=None):
    for user_id in user_ids:
        notification = NotificationFeed(user_id).add(title, message, type=ORDER, order_id=order_id)
        alerts.dispatch(user_id, notification)


def on_new_order(change):
    new = change.new
    message = "{} ordered {}".format(
        customer_name(new['user_id']) or 'A customer',
        service_name(new['service_id']) or 'a service',
    )
    notify(admin_ids(), '🆕 New Order Received!', message, order_id=new['id'])


def on_user_order_status_changed(change):
    if not change.changed('status'):
        return
    new = change.new
    owner_id = new['user_id']
    if owner_id in admin_ids():
        return
    status = USER_STATUS_LABELS.get(new['status'], new['status'])
    message = f'Your order "{service_name(new["service_id"]) or "service"}" is now {status}'
    notify([owner_id], '📦 Order Status Updated', message, order_id=new['id'])


def on_admin_order_status_changed(change):
    if not change.changed('status'):
        return
    new = change.new
    status = ADMIN_STATUS_LABELS.get(new['status'], new['status'])
    message = "Order by {} ({}) → {}".format(
        customer_name(new['user_id']) or 'customer',
        service_name(new['service_id']) or 'service',
        status,
    )
    notify(admin_ids(), '📋 Order Status Changed', message, order_id=new['id'])


def on_new_document(change):
    new = change.new
    message = f"A customer uploaded a new document: {new['file_name']}"
    notify(admin_ids(), '📄 New Document Uploaded', message, order_id=new['order_id'])


CHANNELS = (
    ('admin-new-order', ChangeEvent.ORDER_INSERT, on_new_order),
    ('user-order-status-changed', ChangeEvent.ORDER_UPDATE, on_user_order_status_changed),
    ('admin-order-status-changed', ChangeEvent.ORDER_UPDATE, on_admin_order_status_changed),
    ('admin-new-document', ChangeEvent.ORDER_DOCUMENT_INSERT, on_new_document),
)


def connect_channels(change_feed=None):
    """Subscribe every channel once; repeated calls are no-ops."""
    change_feed = change_feed or feed
    if _subscriptions:
        return list(_subscriptions)
    for name, event, handler in CHANNELS:
        _subscriptions.append(change_feed.subscribe(event, handler, name=name))
    logger.debug("Connected %d notification channels", len(_subscriptions))
    return list(_subscriptions)


def disconnect_channels():
    while _subscriptions:
        _subscriptions.pop().unsubscribe()
