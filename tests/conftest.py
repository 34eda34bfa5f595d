"""Shared pytest fixtures for Hastic client tests.

``FakeTransport`` stands in for the HTTP layer: responses are registered per
``(method, path)`` and every request is recorded, so tests can assert on the
exact payload the client sent.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

import pytest

from hastic_client.availability import AvailabilityRegistry
from hastic_client.exceptions import TransportError
from hastic_client.notifications import NotificationBus
from hastic_client.service import AnalyticService

BASE_URL = "http://hastic.test:8000"

SUPPORTED_VERSION = "0.4.1-beta"

SERVER_ROOT = {
    "nodeVersion": "v8.11.3",
    "packageVersion": SUPPORTED_VERSION,
    "npmUserAgent": "npm/6.1.0 node/v8.11.3 linux x64",
    "docker": True,
    "zmqConectionString": "tcp://analytics:8002",
    "serverPort": 8000,
    "git": {"branch": "master", "commitHash": "4f1c2e9"},
}


class FakeTransport:
    """Transport returning canned responses for testing."""

    def __init__(self, base_url: str = BASE_URL) -> None:
        self.base_url = base_url
        self.responses: dict[tuple[str, str], Any] = {}
        self.calls: list[tuple[str, str, Mapping[str, Any] | None, Any]] = []

    def respond(self, method: str, path: str, result: Any) -> None:
        """Register a body, an exception to raise, or a callable producing either."""
        self.responses[(method.upper(), path)] = result

    def fail(self, method: str, path: str, status: int, completion: str = "complete") -> None:
        self.respond(method, path, TransportError(status, "", completion=completion))

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        path = url.removeprefix(self.base_url)
        self.calls.append((method, path, params, json))
        result = self.responses.get((method, path))
        if callable(result) and not isinstance(result, BaseException):
            result = result()
        if isinstance(result, BaseException):
            raise result
        return result

    def last_call(self) -> tuple[str, str, Mapping[str, Any] | None, Any]:
        return self.calls[-1]


class AlertRecorder:
    """Collects every event emitted on a notification bus."""

    EVENTS = ("alert-success", "alert-error", "alert-warning", "hastic-datasource-status-changed")

    def __init__(self, bus: NotificationBus) -> None:
        self.events: list[tuple[str, Any]] = []
        for event in self.EVENTS:
            bus.subscribe(event, self._recorder(event))

    def _recorder(self, event: str) -> Callable[[Any], None]:
        def record(payload: Any) -> None:
            self.events.append((event, payload))

        return record

    def of(self, event: str) -> list[Any]:
        return [payload for name, payload in self.events if name == event]


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def registry() -> AvailabilityRegistry:
    return AvailabilityRegistry()


@pytest.fixture
def bus() -> NotificationBus:
    return NotificationBus()


@pytest.fixture
def alerts(bus: NotificationBus) -> AlertRecorder:
    return AlertRecorder(bus)


@pytest.fixture
def service(
    transport: FakeTransport, registry: AvailabilityRegistry, bus: NotificationBus
) -> AnalyticService:
    return AnalyticService(
        BASE_URL,
        transport=transport,
        registry=registry,
        bus=bus,
        supported_version=SUPPORTED_VERSION,
    )
