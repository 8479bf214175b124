"""
Store-change notifier — publish/subscribe keyed by collection name.

Mutations publish the keys they touched (e.g. 'otr-leads', 'lead-notes').
In-process subscribers are called synchronously; the same event goes to a
Redis channel so dashboards in other processes can refetch.

Publishing never raises: a broken subscriber or an unreachable Redis only
produces a log line.
"""
import json
import logging
import threading
from collections import defaultdict
from datetime import datetime, timezone

from otr_crm import extensions
from otr_crm.config import CHANGES_CHANNEL

logger = logging.getLogger('services.changes')

OTR_LEADS = 'otr-leads'
ADMIN_CONTACTS = 'admin-contacts'
LEAD_NOTES = 'lead-notes'
CONVERSION_GOALS = 'conversion-goals'
NOTIFICATION_WEBHOOKS = 'notification-webhooks'
NEWSLETTER_SUBSCRIBERS = 'newsletter-subscribers'
MARKETPLACE_REGISTRATIONS = 'marketplace-registrations'


class ChangeNotifier:
    """Keyed observer registry."""

    def __init__(self, channel=CHANGES_CHANNEL):
        self.channel = channel
        self._subscribers = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, key, callback):
        """Register callback(key, payload) for key. Returns an unsubscribe function."""
        with self._lock:
            self._subscribers[key].append(callback)

        def _unsubscribe():
            with self._lock:
                try:
                    self._subscribers[key].remove(callback)
                except ValueError:
                    pass

        return _unsubscribe

    def subscriber_count(self, key):
        with self._lock:
            return len(self._subscribers.get(key, []))

    def publish(self, *keys, **payload):
        """Notify subscribers of every key, then fan the event out over Redis."""
        for key in keys:
            with self._lock:
                callbacks = list(self._subscribers.get(key, []))
            for callback in callbacks:
                try:
                    callback(key, payload)
                except Exception:
                    logger.error("Change subscriber for %s failed", key, exc_info=True)

        if not keys:
            return

        message = json.dumps({
            'keys': list(keys),
            'payload': payload,
            'at': datetime.now(timezone.utc).isoformat(),
        }, default=str)
        try:
            extensions.redis_client.publish(self.channel, message)
        except Exception as e:
            logger.warning("Could not publish change %s to Redis: %s", ','.join(keys), e)


notifier = ChangeNotifier()


def publish(*keys, **payload):
    notifier.publish(*keys, **payload)


def subscribe(key, callback):
    return notifier.subscribe(key, callback)
