"""In-process live query feeds.

A topic (``chat:<id>``, ``chats:<principal>``, ``global``) maps to a set of
subscribers. Subscribing delivers the current snapshot at once; writers
publish a fresh snapshot after each commit that changes the topic. The
returned :class:`Subscription` must be released, either with ``unsubscribe()``
or by leaving a ``with`` block.
"""

from __future__ import annotations

import itertools
import logging
from collections import defaultdict
from collections.abc import Callable
from threading import Lock
from typing import Any

logger = logging.getLogger(__name__)

Callback = Callable[[list[Any]], None]


def chat_topic(chat_id: int) -> str:
    """Topic carrying the ordered messages of one chat."""
    return f"chat:{chat_id}"


def chat_list_topic(principal_id: str) -> str:
    """Topic carrying a principal's chat list."""
    return f"chats:{principal_id}"


GLOBAL_TOPIC = "global"


class Subscription:
    """Handle for one live subscription."""

    def __init__(self, hub: LiveFeedHub, topic: str, token: int) -> None:
        self._hub = hub
        self.topic = topic
        self._token = token
        self._active = True

    @property
    def active(self) -> bool:
        """Return True until the subscription has been released."""
        return self._active

    def unsubscribe(self) -> None:
        """Detach from the hub; later calls are no-ops."""
        if not self._active:
            return
        self._active = False
        self._hub._remove(self.topic, self._token)

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.unsubscribe()


class LiveFeedHub:
    """Fan-out of query snapshots to subscribers, keyed by topic."""

    def __init__(self) -> None:
        self._subscribers: dict[str, dict[int, Callback]] = defaultdict(dict)
        self._tokens = itertools.count(1)
        self._lock = Lock()

    def subscribe(self, topic: str, callback: Callback, snapshot: list[Any]) -> Subscription:
        """Register ``callback`` and deliver ``snapshot`` to it immediately."""
        with self._lock:
            token = next(self._tokens)
            self._subscribers[topic][token] = callback
        subscription = Subscription(self, topic, token)
        try:
            callback(snapshot)
        except Exception:
            subscription.unsubscribe()
            raise
        return subscription

    def publish(self, topic: str, snapshot: list[Any]) -> int:
        """Deliver ``snapshot`` to every subscriber of ``topic``.

        Returns:
            Number of subscribers that received the snapshot.
        """
        with self._lock:
            callbacks = list(self._subscribers.get(topic, {}).values())
        delivered = 0
        for callback in callbacks:
            try:
                callback(snapshot)
            except Exception:
                logger.exception("Live feed subscriber failed on topic %s", topic)
                continue
            delivered += 1
        return delivered

    def has_subscribers(self, topic: str) -> bool:
        """Return True if anyone is listening on ``topic``."""
        with self._lock:
            return bool(self._subscribers.get(topic))

    def subscriber_count(self, topic: str) -> int:
        """Return the number of live subscriptions on ``topic``."""
        with self._lock:
            return len(self._subscribers.get(topic, {}))

    def _remove(self, topic: str, token: int) -> None:
        with self._lock:
            listeners = self._subscribers.get(topic)
            if listeners is None:
                return
            listeners.pop(token, None)
            if not listeners:
                self._subscribers.pop(topic, None)


_HUB = LiveFeedHub()


def get_live_feed_hub() -> LiveFeedHub:
    """Return the process-wide hub used by the API layer."""
    return _HUB
