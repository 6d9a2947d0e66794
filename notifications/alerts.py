"""Alert backends fired when a notification arrives.

A backend is a callable ``(user_id, notification)``. The defaults write to
the log; ``DASTAWEZ['NOTIFICATION_ALERTS']`` lists the dotted paths in use.
"""

import logging

from django.conf import settings
from django.utils.module_loading import import_string

from .store import NotificationFeed

logger = logging.getLogger(__name__)


def toast(user_id, notification):
    logger.info("[toast] user=%s %s: %s", user_id, notification.title, notification.message)


def platform_notification(user_id, notification):
    """Only for users who granted notification permission."""
    if not NotificationFeed(user_id).permission_granted():
        return
    logger.info("[platform] user=%s %s: %s", user_id, notification.title, notification.message)


def tone(user_id, notification):
    logger.debug("[tone] user=%s notification=%s", user_id, notification.pk)


def get_alert_backends():
    return [import_string(path) for path in settings.DASTAWEZ.get('NOTIFICATION_ALERTS', [])]


def dispatch(user_id, notification):
    """Run every backend; a failing backend is logged and the rest still run."""
    for backend in get_alert_backends():
        try:
            backend(user_id, notification)
        except Exception:
            logger.exception("Alert backend %s failed for user %s", getattr(backend, '__name__', backend), user_id)
