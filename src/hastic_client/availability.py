"""Availability state of Hastic datasources.

``AvailabilityRegistry`` records the last known availability per endpoint
URL. Every service pointed at the same endpoint should share one registry
so that a connection alert is only shown when that endpoint's state
actually changes, not once per panel.

Lifecycle: create one registry at application start and pass it to every
``AnalyticService``. Services built without one share the lazily created
process-wide instance returned by :func:`get_default_registry`.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum

from hastic_client.logging import get_logger

logger = get_logger(__name__)


class DatasourceAvailability(Enum):
    """Availability of a Hastic datasource.

    Values double as the suffix of the alert event name (``alert-success``).
    """

    AVAILABLE = "success"
    NOT_AVAILABLE = "error"


@dataclass
class DatasourceStatus:
    """Per-service view of the datasource connection.

    Attributes:
        testing: True while an availability check is running.
        availability: Availability from the most recent alert.
        message: Most recent alert lines joined for display.
    """

    testing: bool = False
    availability: DatasourceAvailability = DatasourceAvailability.NOT_AVAILABLE
    message: str = ""


class AvailabilityRegistry:
    """Last recorded availability per endpoint URL.

    Thread-safe: updates are serialized by a single lock, so the
    check-and-set in :meth:`update` is atomic per key.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._states: dict[str, DatasourceAvailability] = {}

    def update(self, endpoint: str, availability: DatasourceAvailability) -> tuple[bool, bool]:
        """Record ``availability`` for ``endpoint``.

        Returns:
            ``(changed, flipped)``: ``changed`` is True when the recorded value
            differs from the previous one, and the first observation of an
            endpoint always counts as a change. ``flipped`` is True only when
            a previously known value was replaced.
        """
        with self._lock:
            previous = self._states.get(endpoint)
            if previous is availability:
                return False, False
            self._states[endpoint] = availability

        if previous is None:
            logger.debug("First availability for %s: %s", endpoint, availability.name)
            return True, False

        logger.info(
            "Availability of %s changed: %s -> %s", endpoint, previous.name, availability.name
        )
        return True, True

    def get(self, endpoint: str) -> DatasourceAvailability | None:
        with self._lock:
            return self._states.get(endpoint)

    def snapshot(self) -> dict[str, DatasourceAvailability]:
        with self._lock:
            return dict(self._states)

    def clear(self) -> None:
        with self._lock:
            self._states.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)


_default_registry: AvailabilityRegistry | None = None
_default_registry_lock = threading.Lock()


def get_default_registry() -> AvailabilityRegistry:
    """Return the process-wide registry, creating it on first use."""
    global _default_registry
    with _default_registry_lock:
        if _default_registry is None:
            _default_registry = AvailabilityRegistry()
        return _default_registry
