"""Cancellable polling streams.

A :class:`PollingStream` is an unbounded async iterator that calls a fetch
function, yields its result, and waits ``interval`` seconds before the
next fetch when the consumer asks for another element. The wait starts
after the previous fetch completed, so the period between fetch starts is
``interval`` plus fetch latency. The first element is fetched without delay.

The stream never ends on its own. Stop it explicitly with :meth:`stop` (or
by leaving ``async with``); a pending wait is woken immediately and the
iteration ends. A fetch that raises ends the stream and the exception
propagates to the consumer.

Usage::

    async with poll(unit_id, 1.0, service.get_status) as statuses:
        async for status in statuses:
            if status.status == "READY":
                break
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, Generic, Self, TypeVar

from hastic_client.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class PollingStream(Generic[T]):
    """Lazy, infinite, stoppable sequence of fetch results.

    Attributes:
        id: Identifier passed as the first argument to every fetch.
        interval: Seconds to wait after a fetch before the next one.
    """

    def __init__(
        self,
        id: Any,
        interval: float,
        fetch: Callable[..., Awaitable[T]],
        *args: Any,
    ) -> None:
        if id is None:
            raise ValueError("id is undefined")
        if interval < 0:
            raise ValueError(f"interval must be non-negative, got {interval}")
        self.id = id
        self.interval = interval
        self._fetch = fetch
        self._args = args
        self._stop_event = asyncio.Event()
        self._fetched = 0

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    @property
    def fetch_count(self) -> int:
        """Number of fetches completed so far."""
        return self._fetched

    def stop(self) -> None:
        """Stop the stream. Safe to call more than once."""
        if not self._stop_event.is_set():
            logger.debug("Stopping poll for %s after %d fetch(es)", self.id, self._fetched)
            self._stop_event.set()

    async def aclose(self) -> None:
        self.stop()

    def __aiter__(self) -> Self:
        return self

    async def __anext__(self) -> T:
        if self.stopped:
            raise StopAsyncIteration

        if self._fetched > 0 and await self._wait_interval():
            raise StopAsyncIteration

        logger.debug(
            "Polling %s (fetch #%d)",
            self.id,
            self._fetched + 1,
            extra={"diagnostic_tag": "polling"},
        )
        try:
            result = await self._fetch(self.id, *self._args)
        except BaseException:
            self.stop()
            raise
        self._fetched += 1
        return result

    async def _wait_interval(self) -> bool:
        """Sleep for ``interval`` seconds.

        Returns:
            True if the stream was stopped while waiting.
        """
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval)
        except TimeoutError:
            return False
        return True

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: Any) -> None:
        self.stop()


def poll(
    id: Any,
    interval: float,
    fetch: Callable[..., Awaitable[T]],
    *args: Any,
) -> PollingStream[T]:
    """Create a polling stream calling ``fetch(id, *args)`` every ``interval`` seconds.

    Raises:
        ValueError: If ``id`` is None, before anything is fetched.
    """
    return PollingStream(id, interval, fetch, *args)
