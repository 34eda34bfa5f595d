"""Connection alerts for a single Hastic datasource.

Every alert updates the service's :class:`DatasourceStatus` and the shared
:class:`AvailabilityRegistry`. The alert is only published on the
notification bus when the endpoint's recorded availability changed.
"""

from __future__ import annotations

from hastic_client.availability import (
    AvailabilityRegistry,
    DatasourceAvailability,
    DatasourceStatus,
)
from hastic_client.logging import get_logger
from hastic_client.notifications import (
    ALERT_WARNING,
    DATASOURCE_STATUS_CHANGED,
    NotificationBus,
)

logger = get_logger(__name__)

GETTING_STARTED_URL = "https://github.com/hastic/hastic-grafana-app/wiki/Getting-started"

MESSAGE_SEPARATOR = "<br /> "


class ConnectionAlerts:
    """Builds and publishes connection alerts for one endpoint."""

    def __init__(
        self,
        endpoint: str,
        status: DatasourceStatus,
        registry: AvailabilityRegistry,
        bus: NotificationBus,
    ) -> None:
        self.endpoint = endpoint
        self.status = status
        self.registry = registry
        self.bus = bus

    def no_connection(self, status_text: str) -> None:
        self._display(
            DatasourceAvailability.NOT_AVAILABLE,
            [
                f"No connection to Hastic Server. Status: {status_text}",
                f'Hastic Datasource URL: "{self.endpoint}"',
            ],
        )

    def connection_timeout(self, status_text: str) -> None:
        self._display(
            DatasourceAvailability.NOT_AVAILABLE,
            [
                f"Timeout when connecting to Hastic Server. Status: {status_text}",
                f'Hastic Datasource URL: "{self.endpoint}"',
            ],
        )

    def wrong_url(self) -> None:
        self._display(
            DatasourceAvailability.NOT_AVAILABLE,
            [
                "Please check Hastic Server URL",
                f'Something is working at "{self.endpoint}" but it\'s not Hastic Server',
            ],
        )

    def unsupported_version(self, actual: str | None, expected: str) -> None:
        self._display(
            DatasourceAvailability.NOT_AVAILABLE,
            [
                "Unsupported Hastic Server version",
                f'Hastic Server at "{self.endpoint}" has unsupported version '
                f"(got {actual}, should be {expected})",
            ],
        )

    def connected(self) -> None:
        self._display(
            DatasourceAvailability.AVAILABLE,
            [
                "Connected to Hastic Datasource",
                f'Hastic datasource URL: "{self.endpoint}"',
            ],
        )

    def missing_config(self) -> None:
        """Warn that no datasource URL is configured.

        Not de-duplicated: there is no endpoint to key the registry by.
        """
        logger.warning("Hastic Datasource is missing")
        self.bus.emit(
            ALERT_WARNING,
            [
                "Hastic Datasource is missing",
                f"Please setup Hastic Datasource. More info: {GETTING_STARTED_URL}",
            ],
        )

    def _display(self, availability: DatasourceAvailability, message: list[str]) -> None:
        self.status.availability = availability
        self.status.message = MESSAGE_SEPARATOR.join(message)

        changed, flipped = self.registry.update(self.endpoint, availability)
        if flipped:
            self.bus.emit(DATASOURCE_STATUS_CHANGED, self.endpoint)
        if not changed:
            logger.debug("Suppressing repeated %s alert for %s", availability.name, self.endpoint)
            return

        self.bus.emit(f"alert-{availability.value}", message)
