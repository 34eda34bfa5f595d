"""Tests for cancellable polling streams."""

from __future__ import annotations

import asyncio
import time
from typing import Any

import pytest

from hastic_client.polling import PollingStream, poll


class Counter:
    """Fetch function returning an increasing counter and recording its args."""

    def __init__(self, fail_on: int | None = None) -> None:
        self.calls: list[tuple[Any, ...]] = []
        self.fail_on = fail_on

    async def __call__(self, *args: Any) -> int:
        self.calls.append(args)
        if self.fail_on is not None and len(self.calls) == self.fail_on:
            raise RuntimeError("fetch failed")
        return len(self.calls)


class TestPoll:
    """Tests for poll() and PollingStream."""

    def test_none_id_fails_before_fetching(self) -> None:
        fetch = Counter()

        with pytest.raises(ValueError, match="id is undefined"):
            poll(None, 1.0, fetch)

        assert fetch.calls == []

    def test_negative_interval_rejected(self) -> None:
        with pytest.raises(ValueError):
            poll("u1", -1.0, Counter())

    @pytest.mark.asyncio
    async def test_passes_id_and_extra_args(self) -> None:
        fetch = Counter()
        stream = poll("u1", 0.0, fetch, 100, 200)

        assert await anext(stream) == 1
        assert await anext(stream) == 2
        stream.stop()

        assert fetch.calls == [("u1", 100, 200), ("u1", 100, 200)]

    @pytest.mark.asyncio
    async def test_first_element_without_delay_then_interval(self) -> None:
        stream = poll("u1", 0.3, Counter())

        start = time.monotonic()
        await anext(stream)
        first = time.monotonic() - start
        await anext(stream)
        second = time.monotonic() - start
        stream.stop()

        assert first < 0.1
        assert 0.25 <= second - first < 0.6

    @pytest.mark.asyncio
    async def test_interval_measured_after_fetch_completes(self) -> None:
        async def slow_fetch(_id: str) -> str:
            await asyncio.sleep(0.2)
            return _id

        stream = poll("u1", 0.2, slow_fetch)

        start = time.monotonic()
        await anext(stream)
        await anext(stream)
        elapsed = time.monotonic() - start
        stream.stop()

        # two fetches plus one interval
        assert elapsed >= 0.55

    @pytest.mark.asyncio
    async def test_never_ends_on_its_own(self) -> None:
        fetch = Counter()
        results = []
        async for value in poll("u1", 0.0, fetch):
            results.append(value)
            if len(results) == 5:
                break

        assert results == [1, 2, 3, 4, 5]

    @pytest.mark.asyncio
    async def test_stop_ends_iteration(self) -> None:
        fetch = Counter()
        stream = poll("u1", 0.0, fetch)
        await anext(stream)

        stream.stop()
        stream.stop()

        with pytest.raises(StopAsyncIteration):
            await anext(stream)
        assert stream.stopped is True
        assert len(fetch.calls) == 1

    @pytest.mark.asyncio
    async def test_stop_wakes_pending_wait(self) -> None:
        fetch = Counter()
        stream = poll("u1", 60.0, fetch)
        await anext(stream)

        waiter = asyncio.create_task(anext(stream))
        await asyncio.sleep(0.05)
        stream.stop()

        with pytest.raises(StopAsyncIteration):
            await asyncio.wait_for(waiter, timeout=1.0)
        assert len(fetch.calls) == 1

    @pytest.mark.asyncio
    async def test_context_manager_stops_stream(self) -> None:
        fetch = Counter()
        async with poll("u1", 0.0, fetch) as stream:
            await anext(stream)

        assert stream.stopped is True
        with pytest.raises(StopAsyncIteration):
            await anext(stream)

    @pytest.mark.asyncio
    async def test_fetch_error_propagates_and_ends_stream(self) -> None:
        fetch = Counter(fail_on=2)
        stream = poll("u1", 0.0, fetch)

        assert await anext(stream) == 1
        with pytest.raises(RuntimeError, match="fetch failed"):
            await anext(stream)

        assert stream.stopped is True
        with pytest.raises(StopAsyncIteration):
            await anext(stream)

    @pytest.mark.asyncio
    async def test_cancelling_consumer_stops_stream(self) -> None:
        stream = poll("u1", 60.0, Counter())
        await anext(stream)

        consumer = asyncio.create_task(anext(stream))
        await asyncio.sleep(0.05)
        consumer.cancel()
        with pytest.raises(asyncio.CancelledError):
            await consumer

        assert stream.stopped is False
        await stream.aclose()
        assert stream.stopped is True

    @pytest.mark.asyncio
    async def test_independent_streams_interleave(self) -> None:
        a, b = Counter(), Counter()
        async with poll("a", 0.01, a) as first, poll("b", 0.01, b) as second:
            results = await asyncio.gather(anext(first), anext(second))

        assert results == [1, 1]
        assert a.calls == [("a",)] and b.calls == [("b",)]

    def test_fetch_count(self) -> None:
        stream: PollingStream[int] = PollingStream("u1", 1.0, Counter())
        assert stream.fetch_count == 0
        assert stream.stopped is False
