"""Async HTTP transport used by the request dispatcher.

The dispatcher only depends on the :class:`Transport` protocol. The
default implementation, :class:`HttpxTransport`, wraps a pooled
``httpx.AsyncClient`` and reports every non-2xx outcome as a
:class:`TransportError` carrying the HTTP status, or -1 together with the
way the request ended when no response arrived.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, Self, runtime_checkable

import httpx

from hastic_client.exceptions import TransportError
from hastic_client.logging import get_logger

logger = get_logger(__name__)

# Default timeout for HTTP requests (connect, read, write, pool)
DEFAULT_TIMEOUT = httpx.Timeout(10.0)

# Status reported when no response was received
NO_RESPONSE_STATUS = -1


@runtime_checkable
class Transport(Protocol):
    """Protocol for sending a single HTTP request.

    Implementations return the decoded response body and raise
    :class:`TransportError` for any failure.
    """

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
    ) -> Any: ...


def _clean_params(params: Mapping[str, Any] | None) -> dict[str, Any] | None:
    """Drop unset query parameters."""
    if params is None:
        return None
    return {key: value for key, value in params.items() if value is not None}


class HttpxTransport:
    """Transport backed by a reusable ``httpx.AsyncClient``.

    The client is created lazily on first use and released by
    :meth:`aclose` or by leaving the async context manager.
    """

    def __init__(
        self,
        timeout: httpx.Timeout | float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if isinstance(timeout, (int, float)):
            timeout = httpx.Timeout(timeout)
        self.timeout = timeout or DEFAULT_TIMEOUT
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        client = self._get_client()
        try:
            response = await client.request(method, url, params=_clean_params(params), json=json)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise TransportError(NO_RESPONSE_STATUS, str(e), completion="timeout") from e
        except httpx.HTTPStatusError as e:
            raise TransportError(
                e.response.status_code, e.response.reason_phrase, completion="complete"
            ) from e
        except httpx.RequestError as e:
            raise TransportError(NO_RESPONSE_STATUS, str(e), completion="error") from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            # Non-JSON body, e.g. a plain-text root page from another server
            return response.text

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
