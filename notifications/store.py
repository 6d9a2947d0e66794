"""Per-user notification feed.

Notifications are rows of :class:`~notifications.models.Notification`,
newest first. Read notifications expire after ``NOTIFICATION_TTL_HOURS`` and
only the newest ``NOTIFICATION_MAX_READ_ITEMS`` read rows are kept; unread
notifications are never dropped. Every mutation is a single row-level
statement, so concurrent writers to the same feed do not overwrite each other.
"""

import uuid
from datetime import timedelta

from django.conf import settings
from django.utils import timezone

from .models import Notification, NotificationPermission

ORDER = Notification.ORDER
SYSTEM = Notification.SYSTEM
INFO = Notification.INFO
NOTIFICATION_TYPES = (ORDER, SYSTEM, INFO)


def _as_uuid(value):
    if value is None or value == '':
        return None
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def prune(queryset, now=None, ttl=None):
    """Delete read notifications older than ``ttl``; returns the number removed."""
    now = now or timezone.now()
    ttl = ttl if ttl is not None else timedelta(hours=settings.DASTAWEZ['NOTIFICATION_TTL_HOURS'])
    removed, _ = queryset.filter(read=True, created_at__lt=now - ttl).delete()
    return removed


def cap(queryset, max_read=None):
    """Keep every unread row and only the newest ``max_read`` read rows."""
    max_read = max_read if max_read is not None else settings.DASTAWEZ['NOTIFICATION_MAX_READ_ITEMS']
    overflow = list(
        queryset.filter(read=True).order_by('-created_at').values_list('pk', flat=True)[max_read:]
    )
    if not overflow:
        return 0
    removed, _ = queryset.filter(pk__in=overflow).delete()
    return removed


class NotificationFeed:
    """Access to one user's notifications."""

    def __init__(self, user_id):
        self.user_id = user_id

    @property
    def queryset(self):
        return Notification.objects.filter(user_id=self.user_id)

    def load(self):
        prune(self.queryset)
        return list(self.queryset.order_by('-created_at'))

    def unread_count(self, items=None):
        if items is not None:
            return sum(1 for item in items if not item.read)
        return self.queryset.filter(read=False).count()

    def add(self, title, message, type=INFO, order_id=None):
        notification = Notification.objects.create(
            user_id=self.user_id,
            title=title,
            message=message,
            type=type if type in NOTIFICATION_TYPES else INFO,
            order_id=_as_uuid(order_id),
        )
        cap(self.queryset)
        return notification

    def mark_as_read(self, notification_id):
        pk = _as_uuid(notification_id)
        if pk is None:
            return False
        found = self.queryset.filter(pk=pk).update(read=True) > 0
        if found:
            cap(self.queryset)
        return found

    def mark_all_as_read(self):
        changed = self.queryset.filter(read=False).update(read=True)
        cap(self.queryset)
        return changed

    def clear(self):
        """Remove read notifications; unread ones stay."""
        removed, _ = self.queryset.filter(read=True).delete()
        return removed

    def permission_granted(self):
        return NotificationPermission.objects.filter(user_id=self.user_id, granted=True).exists()

    def set_permission(self, granted):
        NotificationPermission.objects.update_or_create(user_id=self.user_id, defaults={'granted': bool(granted)})
        return bool(granted)
