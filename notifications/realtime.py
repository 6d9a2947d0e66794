"""In-process change feed.

Model signals publish row changes here; notification channels subscribe to
the events they care about. Payloads are read-only snapshots of the row
(``new``) and, for updates, of the row as it was before the save (``old``).
"""

import enum
import logging
import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Mapping, Optional

logger = logging.getLogger(__name__)


class ChangeEvent(str, enum.Enum):
    ORDER_INSERT = 'orders.INSERT'
    ORDER_UPDATE = 'orders.UPDATE'
    ORDER_DOCUMENT_INSERT = 'order_documents.INSERT'


def _freeze(row):
    if row is None:
        return None
    return MappingProxyType(dict(row))


@dataclass(frozen=True)
class Change:
    event: ChangeEvent
    new: Mapping
    old: Optional[Mapping] = None

    def changed(self, column):
        if self.old is None:
            return True
        return self.old.get(column) != self.new.get(column)


Handler = Callable[[Change], None]


class Subscription:
    """Handle returned by :meth:`ChangeFeed.subscribe`."""

    def __init__(self, feed, event, handler, name=None):
        self.feed = feed
        self.event = event
        self.handler = handler
        self.name = name or getattr(handler, '__name__', repr(handler))

    def __repr__(self):
        return f"<Subscription {self.name} on {self.event.value}>"

    @property
    def active(self):
        return self in self.feed.subscriptions(self.event)

    def unsubscribe(self):
        self.feed.unsubscribe(self)


class ChangeFeed:
    """Publish/subscribe hub keyed by :class:`ChangeEvent`.

    Handlers run synchronously in the publishing thread. A failing handler is
    logged and does not affect the other handlers or the publisher.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._subscriptions = {}

    def subscribe(self, event, handler, name=None) -> Subscription:
        event = ChangeEvent(event)
        subscription = Subscription(self, event, handler, name=name)
        with self._lock:
            self._subscriptions.setdefault(event, []).append(subscription)
        logger.debug("Subscribed %s", subscription)
        return subscription

    def unsubscribe(self, subscription):
        with self._lock:
            subs = self._subscriptions.get(subscription.event, [])
            if subscription in subs:
                subs.remove(subscription)
                logger.debug("Unsubscribed %s", subscription)

    def subscriptions(self, event):
        with self._lock:
            return tuple(self._subscriptions.get(ChangeEvent(event), ()))

    def publish(self, event, new, old=None) -> Change:
        change = Change(event=ChangeEvent(event), new=_freeze(new), old=_freeze(old))
        for subscription in self.subscriptions(change.event):
            try:
                subscription.handler(change)
            except Exception:
                logger.exception("Change handler %s failed for %s", subscription.name, change.event.value)
        return change


feed = ChangeFeed()
