"""Connection health monitor for a Hastic datasource.

``check_availability`` probes the server root and decides whether the
configured URL points at a supported Hastic server:

1. No URL configured: a configuration warning is shown, no request is sent.
2. Root request fails to connect: the dispatcher already alerted, the
   failure is logged. Any other error raised by the transport is logged
   and reported as "no connection".
3. Something answers but it is not a Hastic server: "wrong URL" alert.
4. A Hastic server with an unsupported version: "unsupported version" alert.
5. Otherwise: "connected" alert.

The probe reports through alerts and its boolean result and never raises
for these outcomes. ``status.testing`` is True for the duration of the probe.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from hastic_client.alerts import ConnectionAlerts
from hastic_client.config import DEFAULT_SUPPORTED_SERVER_VERSION
from hastic_client.dispatcher import RequestDispatcher
from hastic_client.exceptions import ConnectivityError
from hastic_client.logging import get_logger
from hastic_client.models import ServerInfo

logger = get_logger(__name__)

ServerResponsePredicate = Callable[[Any], bool]
VersionPredicate = Callable[[Any, str], bool]


def is_hastic_server_response(response: Any) -> bool:
    """Check whether a root response looks like it came from a Hastic server."""
    return isinstance(response, Mapping) and response.get("packageVersion") is not None


def is_supported_server_version(response: Mapping[str, Any], supported_version: str) -> bool:
    return response.get("packageVersion") == supported_version


class ConnectionHealthMonitor:
    """Probes a Hastic server and reports its availability.

    Attributes:
        dispatcher: Dispatcher bound to the datasource URL.
        alerts: Alerts for the same datasource; shares its status object.
        supported_version: Server package version this client supports.
    """

    def __init__(
        self,
        dispatcher: RequestDispatcher,
        alerts: ConnectionAlerts,
        supported_version: str = DEFAULT_SUPPORTED_SERVER_VERSION,
        is_server_response: ServerResponsePredicate = is_hastic_server_response,
        is_supported_version: VersionPredicate = is_supported_server_version,
    ) -> None:
        self.dispatcher = dispatcher
        self.alerts = alerts
        self.supported_version = supported_version
        self._is_server_response = is_server_response
        self._is_supported_version = is_supported_version

    @property
    def endpoint(self) -> str:
        return self.dispatcher.base_url

    async def check_availability(self) -> bool:
        """Probe the datasource and update availability.

        Returns:
            True if a supported Hastic server answered at the configured URL.
        """
        status = self.alerts.status
        status.testing = True
        try:
            available = await self._is_datasource_available()
            # is_up follows the probe result, not just the root GET outcome
            self.dispatcher.is_up = available
            return available
        finally:
            status.testing = False

    async def get_server_info(self) -> ServerInfo:
        data = await self.dispatcher.get("/")
        if not isinstance(data, Mapping):
            return ServerInfo.unknown()
        return ServerInfo.from_api_response(data)

    def _check_datasource_config(self) -> bool:
        if not self.endpoint:
            self.alerts.missing_config()
            return False
        return True

    async def _is_datasource_available(self) -> bool:
        if not self._check_datasource_config():
            return False

        try:
            response = await self.dispatcher.get("/")
        except ConnectivityError as e:
            logger.error("Hastic datasource %s is not reachable: %s", self.endpoint, e)
            return False
        except Exception as e:
            logger.exception("Probing Hastic datasource %s failed", self.endpoint)
            self.alerts.no_connection(str(e))
            return False

        if not self._is_server_response(response):
            logger.warning("%s did not answer like a Hastic server", self.endpoint)
            self.alerts.wrong_url()
            return False

        if not self._is_supported_version(response, self.supported_version):
            actual = response.get("packageVersion")
            logger.warning(
                "Hastic server at %s has unsupported version %s (expected %s)",
                self.endpoint,
                actual,
                self.supported_version,
            )
            self.alerts.unsupported_version(actual, self.supported_version)
            return False

        logger.info("Connected to Hastic datasource at %s", self.endpoint)
        self.alerts.connected()
        return True
