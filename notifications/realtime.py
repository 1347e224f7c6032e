"""
Realtime push channel.

Anything that wants to push an event to a user depends only on
``notify(user_id, payload)``. The default backend fans events out in memory
to every session the user has subscribed (one queue per open stream).
Delivery is fire-and-forget: at most once per subscription, never blocking
the caller.
"""

import itertools
import logging
import queue
import threading
from typing import Protocol

from django.conf import settings

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def notify(self, user_id, payload: dict) -> None:
        ...


class Subscription:
    def __init__(self, session_id, user_id, maxsize):
        self.session_id = session_id
        self.user_id = user_id
        self.queue = queue.Queue(maxsize=maxsize)

    def get(self, timeout=None):
        """Next payload, or None if nothing arrived within ``timeout`` seconds."""
        try:
            return self.queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def __repr__(self):
        return f"<Subscription {self.session_id} user={self.user_id}>"


class InMemoryNotifier:
    """Per-process fan-out keyed by connected-session id."""

    def __init__(self, queue_size=None):
        self.queue_size = queue_size or getattr(settings, "HOMEFINDER_STREAM_QUEUE_SIZE", 100)
        self._lock = threading.Lock()
        self._sessions = {}  # user_id -> {session_id: Subscription}
        self._ids = itertools.count(1)

    def subscribe(self, user_id) -> Subscription:
        key = str(user_id)
        with self._lock:
            sub = Subscription(next(self._ids), key, self.queue_size)
            self._sessions.setdefault(key, {})[sub.session_id] = sub
        logger.debug("Realtime subscribe user_id=%s session=%s", key, sub.session_id)
        return sub

    def unsubscribe(self, subscription: Subscription):
        with self._lock:
            sessions = self._sessions.get(subscription.user_id, {})
            sessions.pop(subscription.session_id, None)
            if not sessions:
                self._sessions.pop(subscription.user_id, None)
        logger.debug("Realtime unsubscribe user_id=%s session=%s", subscription.user_id, subscription.session_id)

    def connected_sessions(self, user_id) -> int:
        with self._lock:
            return len(self._sessions.get(str(user_id), {}))

    def notify(self, user_id, payload: dict) -> None:
        with self._lock:
            targets = list(self._sessions.get(str(user_id), {}).values())
        for sub in targets:
            try:
                sub.queue.put_nowait(payload)
            except queue.Full:
                logger.warning("Realtime queue full, event dropped user_id=%s session=%s", user_id, sub.session_id)


class NullNotifier:
    """Drops every event. For deployments without a realtime channel."""

    def notify(self, user_id, payload: dict) -> None:
        return None
