"""Request dispatcher for the Hastic server.

Every call to the server goes through :meth:`RequestDispatcher.send`, which
classifies failures and keeps the ``is_up`` flag current:

1. No response (aborted, timed out, network error) or status above 500:
   the server is unreachable. ``is_up`` is cleared, a connection alert is
   shown (timeout wording for 504 and -1) and :class:`ConnectivityError`
   is raised.
2. A response with status 500 or below: the server is reachable. ``is_up``
   is set and the call resolves to ``None`` without raising, unless the
   caller passed ``raise_server_errors=True``, in which case
   :class:`ServerError` is raised so it can look at the status itself.
3. Success: ``is_up`` is set and the decoded body is returned.

Case 2 means a generic call cannot tell "404" from "empty success". Callers
that care must check the response shape or ask for :class:`ServerError`.
"""

from __future__ import annotations

from typing import Any

from hastic_client.alerts import ConnectionAlerts
from hastic_client.exceptions import ConnectivityError, ServerError, TransportError
from hastic_client.logging import get_logger
from hastic_client.transport import NO_RESPONSE_STATUS, Transport

logger = get_logger(__name__)

# Methods whose payload is sent as query parameters
QUERY_METHODS = frozenset({"GET", "DELETE"})

GATEWAY_TIMEOUT = 504

# Highest status still treated as "server reachable"
MAX_REACHABLE_STATUS = 500


def format_status_text(status: int, status_text: str = "") -> str:
    """Render ``status`` with its reason phrase, e.g. ``"502 (Bad Gateway)"``."""
    if status_text:
        return f"{status} ({status_text})"
    return str(status)


class RequestDispatcher:
    """Sends requests to one Hastic server and tracks its reachability."""

    def __init__(self, base_url: str, transport: Transport, alerts: ConnectionAlerts) -> None:
        self.base_url = base_url
        self.transport = transport
        self.alerts = alerts
        self.is_up = False
        self._logger = logger.with_context(endpoint=base_url)

    async def send(
        self,
        method: str,
        path: str,
        payload: Any = None,
        *,
        raise_server_errors: bool = False,
    ) -> Any:
        """Send a request and return the decoded response body.

        Args:
            method: HTTP verb; GET and DELETE send ``payload`` as query
                parameters, other verbs as a JSON body.
            path: Path relative to the datasource URL, e.g. ``"/segments"``.
            payload: Query parameters or request body.
            raise_server_errors: Raise :class:`ServerError` for responses with
                status 500 or below instead of resolving to ``None``.

        Returns:
            The response body, or ``None`` for a suppressed server error.

        Raises:
            ConnectivityError: If the server could not be reached.
            ServerError: If ``raise_server_errors`` is set and the server
                answered with an error status of 500 or below.
        """
        method = method.upper()
        url = self.base_url + path
        self._logger.debug(
            "%s %s",
            method,
            path,
            extra={"method": method, "path": path, "diagnostic_tag": "dispatch"},
        )

        try:
            if method in QUERY_METHODS:
                body = await self.transport.request(method, url, params=payload)
            else:
                body = await self.transport.request(method, url, json=payload)
        except TransportError as e:
            if not e.completed or e.status > MAX_REACHABLE_STATUS:
                raise self._connectivity_failure(method, path, e) from e
            self.is_up = True
            self._logger.info(
                "%s %s answered with %s", method, path, e.status, extra={"status": e.status}
            )
            if raise_server_errors:
                raise ServerError(e.status, e.status_text) from e
            return None

        self.is_up = True
        return body

    def _connectivity_failure(
        self, method: str, path: str, error: TransportError
    ) -> ConnectivityError:
        """Alert about an unreachable server and build the error to raise."""
        status_text = format_status_text(error.status, error.status_text)
        if error.status in (GATEWAY_TIMEOUT, NO_RESPONSE_STATUS):
            self.alerts.connection_timeout(status_text)
        else:
            self.alerts.no_connection(status_text)
        self.is_up = False
        self._logger.warning(
            "%s %s failed: %s (%s)",
            method,
            path,
            status_text,
            error.completion,
            extra={"status": error.status},
        )
        return ConnectivityError(error.status, status_text)

    async def get(self, path: str, params: Any = None, **kwargs: Any) -> Any:
        return await self.send("GET", path, params, **kwargs)

    async def post(self, path: str, data: Any = None, **kwargs: Any) -> Any:
        return await self.send("POST", path, data, **kwargs)

    async def patch(self, path: str, data: Any = None, **kwargs: Any) -> Any:
        return await self.send("PATCH", path, data, **kwargs)

    async def delete(self, path: str, params: Any = None, **kwargs: Any) -> Any:
        return await self.send("DELETE", path, params, **kwargs)
