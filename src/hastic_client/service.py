"""Analytic service: the client-side gateway to a Hastic server.

``AnalyticService`` ties together the request dispatcher, the connection
health monitor, the segment synchronizer and the polling streams for one
datasource URL. Panels talk to the server only through this class.

Usage:
    from hastic_client import AnalyticService, AvailabilityRegistry, NotificationBus

    registry = AvailabilityRegistry()
    bus = NotificationBus()
    async with AnalyticService("http://localhost:8000", registry=registry, bus=bus) as service:
        if await service.check_datasource_availability():
            units = await service.get_analytic_units(panel_id="1")
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Self

from hastic_client.alerts import ConnectionAlerts
from hastic_client.availability import (
    AvailabilityRegistry,
    DatasourceStatus,
    get_default_registry,
)
from hastic_client.config import DEFAULT_SUPPORTED_SERVER_VERSION, Config
from hastic_client.dispatcher import RequestDispatcher
from hastic_client.exceptions import ConfigurationError, DataContractError, ServerError
from hastic_client.health import ConnectionHealthMonitor
from hastic_client.logging import get_logger
from hastic_client.models import (
    AnalyticSegment,
    AnalyticUnitId,
    AnalyticUnitLike,
    AnalyticUnitStatus,
    DatasourceRequest,
    DetectionSpan,
    HSRResult,
    MetricLike,
    PanelTemplate,
    SegmentId,
    ServerInfo,
    TemplateVariables,
    serialize_analytic_unit,
    serialize_metric,
)
from hastic_client.notifications import NotificationBus
from hastic_client.polling import PollingStream, poll
from hastic_client.segments import SegmentSynchronizer
from hastic_client.transport import HttpxTransport, Transport

logger = get_logger(__name__)

NOT_FOUND = 404

# Default intervals (seconds) for the polling streams
DEFAULT_STATUS_POLL_INTERVAL = 1.0
DEFAULT_DETECTIONS_POLL_INTERVAL = 5.0


class AnalyticService:
    """Client for one Hastic datasource.

    Attributes:
        registry: Availability registry shared with other services.
        bus: Notification bus receiving connection alerts.
    """

    def __init__(
        self,
        hastic_datasource_url: str | None,
        transport: Transport | None = None,
        registry: AvailabilityRegistry | None = None,
        bus: NotificationBus | None = None,
        supported_version: str = DEFAULT_SUPPORTED_SERVER_VERSION,
        status_poll_interval: float = DEFAULT_STATUS_POLL_INTERVAL,
        detections_poll_interval: float = DEFAULT_DETECTIONS_POLL_INTERVAL,
        request_timeout: float | None = None,
        grafana_url: str = "",
    ) -> None:
        """Initialize the service.

        Args:
            hastic_datasource_url: Base URL of the Hastic server.
            transport: HTTP transport. If not provided, an ``HttpxTransport``
                owned by this service is created.
            registry: Availability registry. Defaults to the process-wide one.
            bus: Notification bus for alerts. A private bus is created if omitted.
            supported_version: Server package version accepted by the probe.
            status_poll_interval: Default seconds between status polls.
            detections_poll_interval: Default seconds between detection polls.
            request_timeout: Timeout in seconds for the owned transport.
            grafana_url: Grafana URL sent with new analytic units when the
                caller does not pass one.

        Raises:
            ConfigurationError: If ``hastic_datasource_url`` is None or empty.
        """
        if not hastic_datasource_url:
            raise ConfigurationError("hastic_datasource_url is undefined")

        self._hastic_datasource_url = hastic_datasource_url
        self._owns_transport = transport is None
        self._transport: Transport = (
            transport if transport is not None else HttpxTransport(timeout=request_timeout)
        )
        self.registry = registry if registry is not None else get_default_registry()
        self.bus = bus if bus is not None else NotificationBus()
        self.status_poll_interval = status_poll_interval
        self.detections_poll_interval = detections_poll_interval
        self.grafana_url = grafana_url

        self._status = DatasourceStatus()
        self._alerts = ConnectionAlerts(
            hastic_datasource_url, self._status, self.registry, self.bus
        )
        self._dispatcher = RequestDispatcher(hastic_datasource_url, self._transport, self._alerts)
        self._monitor = ConnectionHealthMonitor(
            self._dispatcher, self._alerts, supported_version=supported_version
        )
        self._segments = SegmentSynchronizer(self._dispatcher)

    @classmethod
    def from_config(
        cls,
        config: Config,
        registry: AvailabilityRegistry | None = None,
        bus: NotificationBus | None = None,
        transport: Transport | None = None,
    ) -> AnalyticService:
        """Create a service from application Config.

        Raises:
            ConfigurationError: If the config has no datasource URL.
        """
        return cls(
            config.datasource_url,
            transport=transport,
            registry=registry,
            bus=bus,
            supported_version=config.supported_server_version,
            status_poll_interval=config.status_poll_interval,
            detections_poll_interval=config.detections_poll_interval,
            request_timeout=config.request_timeout,
            grafana_url=config.grafana_url,
        )

    @property
    def hastic_datasource_url(self) -> str:
        return self._hastic_datasource_url

    @property
    def hastic_datasource_status(self) -> DatasourceStatus:
        return self._status

    @property
    def is_up(self) -> bool:
        """Whether the last request reached the server."""
        return self._dispatcher.is_up

    @property
    def dispatcher(self) -> RequestDispatcher:
        return self._dispatcher

    async def check_datasource_availability(self) -> bool:
        """Probe the server root; see :class:`ConnectionHealthMonitor`."""
        return await self._monitor.check_availability()

    async def get_server_info(self) -> ServerInfo:
        return await self._monitor.get_server_info()

    # Analytic units

    async def get_analytic_unit_types(self) -> dict[str, Any]:
        resp = await self._dispatcher.get("/analyticUnits/types")
        if resp is None:
            return {}
        return resp

    async def get_analytic_units(self, panel_id: str) -> list[dict[str, Any]]:
        resp = await self._dispatcher.get("/analyticUnits/units", {"panelId": panel_id})
        if resp is None:
            return []
        return resp.get("analyticUnits", [])

    async def post_new_analytic_unit(
        self,
        analytic_unit: AnalyticUnitLike | Mapping[str, Any],
        metric: MetricLike | Mapping[str, Any],
        datasource: DatasourceRequest,
        grafana_url: str | None,
        panel_id: str,
    ) -> AnalyticUnitId:
        """Create an analytic unit on the server.

        ``grafana_url`` falls back to the service default when None.

        Returns:
            The id assigned by the server.

        Raises:
            DataContractError: If the server did not return an id.
        """
        payload = {
            "grafanaUrl": grafana_url if grafana_url is not None else self.grafana_url,
            "panelId": panel_id,
            "metric": serialize_metric(metric),
            "datasource": datasource,
            **serialize_analytic_unit(analytic_unit),
        }
        resp = await self._dispatcher.post("/analyticUnits", payload)
        if not isinstance(resp, Mapping) or resp.get("id") is None:
            raise DataContractError("Server didn't return analytic unit id")
        logger.info("Created analytic unit %s", resp["id"], extra={"analytic_unit_id": resp["id"]})
        return resp["id"]

    async def update_metric(
        self,
        analytic_unit_id: AnalyticUnitId,
        metric: MetricLike | Mapping[str, Any],
        datasource: DatasourceRequest,
    ) -> None:
        await self._dispatcher.patch(
            "/analyticUnits/metric",
            {
                "analyticUnitId": analytic_unit_id,
                "metric": serialize_metric(metric),
                "datasource": datasource,
            },
        )

    async def update_analytic_unit(self, update: Mapping[str, Any]) -> Any:
        return await self._dispatcher.patch("/analyticUnits", dict(update))

    async def set_analytic_unit_alert(self, analytic_unit: AnalyticUnitLike) -> Any:
        return await self._dispatcher.patch(
            "/analyticUnits/alert",
            {"analyticUnitId": analytic_unit.id, "alert": analytic_unit.alert},
        )

    async def remove_analytic_unit(self, analytic_unit_id: AnalyticUnitId) -> Any:
        return await self._dispatcher.delete("/analyticUnits", {"id": analytic_unit_id})

    async def run_detect(
        self,
        ids: AnalyticUnitId | Iterable[AnalyticUnitId],
        from_: int | None = None,
        to: int | None = None,
    ) -> Any:
        if isinstance(ids, str):
            ids = [ids]
        payload: dict[str, Any] = {"ids": list(ids)}
        if from_ is not None:
            payload["from"] = from_
        if to is not None:
            payload["to"] = to
        return await self._dispatcher.post("/analyticUnits/detect", payload)

    async def get_status(self, analytic_unit_id: AnalyticUnitId) -> AnalyticUnitStatus:
        """Fetch the status of a unit; a 404 maps to status ``"404"``.

        Raises:
            ServerError: For error statuses other than 404.
            DataContractError: If the response has no status.
        """
        try:
            data = await self._dispatcher.get(
                "/analyticUnits/status", {"id": analytic_unit_id}, raise_server_errors=True
            )
        except ServerError as e:
            if e.status == NOT_FOUND:
                return AnalyticUnitStatus(status=AnalyticUnitStatus.NOT_FOUND)
            raise
        if not isinstance(data, Mapping) or "status" not in data:
            raise DataContractError("Server didn't return analytic unit status")
        return AnalyticUnitStatus.from_api_response(data)

    # Segments and detections

    async def update_segments(
        self,
        analytic_unit_id: AnalyticUnitId,
        added_segments: Iterable[AnalyticSegment],
        removed_segments: Iterable[AnalyticSegment],
    ) -> list[SegmentId]:
        return await self._segments.sync(analytic_unit_id, added_segments, removed_segments)

    async def get_segments(
        self,
        analytic_unit_id: AnalyticUnitId,
        from_: int | None = None,
        to: int | None = None,
    ) -> list[AnalyticSegment]:
        return await self._segments.fetch(analytic_unit_id, from_, to)

    async def get_detection_spans(
        self, analytic_unit_id: AnalyticUnitId, from_: int, to: int
    ) -> list[DetectionSpan]:
        """Fetch detection spans of a unit within ``[from_, to)``.

        Raises:
            ValueError: If ``analytic_unit_id`` is None.
            DataContractError: If the response has no ``spans``.
        """
        if analytic_unit_id is None:
            raise ValueError("id is undefined")
        data = await self._dispatcher.get(
            "/detections/spans", {"id": analytic_unit_id, "from": from_, "to": to}
        )
        if not isinstance(data, Mapping) or data.get("spans") is None:
            raise DataContractError("Server didn't return spans array")
        return list(data["spans"])

    async def get_hsr(
        self, analytic_unit_id: AnalyticUnitId, from_: int, to: int
    ) -> HSRResult | None:
        data = await self._dispatcher.get(
            "/query", {"analyticUnitId": analytic_unit_id, "from": from_, "to": to}
        )
        if not isinstance(data, Mapping) or data.get("results") is None:
            return None
        return HSRResult.from_api_response(data["results"])

    # Panels

    async def export_panel(self, panel_id: str) -> PanelTemplate:
        resp = await self._dispatcher.get("/panels/template", {"panelId": panel_id})
        if resp is None:
            return {}
        return resp

    async def import_panel(
        self, panel_template: PanelTemplate, template_variables: TemplateVariables
    ) -> None:
        await self._dispatcher.post(
            "/panels/template",
            {"panelTemplate": panel_template, "templateVariables": template_variables},
        )

    # Polling

    def get_status_generator(
        self, analytic_unit_id: AnalyticUnitId, interval: float | None = None
    ) -> PollingStream[AnalyticUnitStatus]:
        """Poll the status of a unit until the stream is stopped.

        Raises:
            ValueError: If ``analytic_unit_id`` is None.
        """
        if interval is None:
            interval = self.status_poll_interval
        return poll(analytic_unit_id, interval, self.get_status)

    def get_detections_generator(
        self,
        analytic_unit_id: AnalyticUnitId,
        from_: int,
        to: int,
        interval: float | None = None,
    ) -> PollingStream[list[DetectionSpan]]:
        """Poll detection spans of the fixed ``[from_, to)`` window.

        Every tick re-queries the same window. To follow new data, stop the
        stream and start another one with the new bounds.

        Raises:
            ValueError: If ``analytic_unit_id`` is None.
        """
        if interval is None:
            interval = self.detections_poll_interval
        return poll(analytic_unit_id, interval, self.get_detection_spans, from_, to)

    # Lifecycle

    async def aclose(self) -> None:
        """Release the transport if this service created it."""
        if self._owns_transport and isinstance(self._transport, HttpxTransport):
            await self._transport.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
