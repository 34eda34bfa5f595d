"""Publish/subscribe bus for user-visible alerts.

The panel host subscribes renderers to the alert events; the client only
emits them. Events:

- ``alert-success`` / ``alert-error``: connection state messages (list of lines)
- ``alert-warning``: configuration problems (list of lines)
- ``hastic-datasource-status-changed``: endpoint URL whose availability flipped
"""

from __future__ import annotations

import threading
from collections import defaultdict
from collections.abc import Callable
from typing import Any

from hastic_client.logging import get_logger

logger = get_logger(__name__)

ALERT_SUCCESS = "alert-success"
ALERT_ERROR = "alert-error"
ALERT_WARNING = "alert-warning"
DATASOURCE_STATUS_CHANGED = "hastic-datasource-status-changed"

Subscriber = Callable[[Any], None]


class NotificationBus:
    """Synchronous in-process event bus.

    Subscribers are called in registration order. A subscriber that raises
    is logged and skipped so one broken renderer cannot hide alerts from
    the others.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscribers: dict[str, list[Subscriber]] = defaultdict(list)

    def subscribe(self, event: str, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback`` for ``event``.

        Returns:
            A function that removes the subscription when called.
        """
        with self._lock:
            self._subscribers[event].append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers[event]:
                    self._subscribers[event].remove(callback)

        return unsubscribe

    def emit(self, event: str, payload: Any = None) -> None:
        with self._lock:
            subscribers = list(self._subscribers.get(event, ()))

        logger.debug("Emitting %s to %d subscriber(s)", event, len(subscribers))
        for callback in subscribers:
            try:
                callback(payload)
            except Exception:
                logger.exception("Subscriber for %s failed", event)
