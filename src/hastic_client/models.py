"""Typed request/response records exchanged with the Hastic server.

Responses are parsed with ``from_api_response`` classmethods and requests are
built with explicit ``to_payload`` methods, so every endpoint sends exactly
the field set it consumes.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

AnalyticUnitId = str
SegmentId = str

# Server-reported anomalous interval; its shape belongs to the panel layer
DetectionSpan = dict[str, Any]

# Datasource request forwarded verbatim to the server
DatasourceRequest = dict[str, Any]

# Panel template import/export payloads are opaque at this layer
PanelTemplate = dict[str, Any]
TemplateVariables = dict[str, Any]


class AnalyticUnitLike(Protocol):
    """Analytic unit domain object as seen by the client."""

    id: AnalyticUnitId | None
    alert: bool

    def to_json(self) -> dict[str, Any]: ...


class MetricLike(Protocol):
    """Metric domain object as seen by the client."""

    def to_json(self) -> dict[str, Any]: ...


def serialize_analytic_unit(unit: AnalyticUnitLike | Mapping[str, Any]) -> dict[str, Any]:
    """Return the fields of an analytic unit sent on creation."""
    if isinstance(unit, Mapping):
        return dict(unit)
    return dict(unit.to_json())


def serialize_metric(metric: MetricLike | Mapping[str, Any]) -> dict[str, Any]:
    """Return the metric fields sent on creation and metric updates."""
    if isinstance(metric, Mapping):
        return dict(metric)
    return dict(metric.to_json())


@dataclass
class AnalyticSegment:
    """A labeled or deleted interval attached to an analytic unit.

    ``id`` is ``None`` until the server assigns one.
    """

    from_: int
    to: int
    labeled: bool = False
    deleted: bool = False
    id: SegmentId | None = None

    def to_payload(self) -> dict[str, Any]:
        """Serialize the fields the server needs to create this segment."""
        return {
            "from": self.from_,
            "to": self.to,
            "labeled": self.labeled,
            "deleted": self.deleted,
        }

    @classmethod
    def from_api_response(cls, data: Mapping[str, Any]) -> AnalyticSegment:
        return cls(
            from_=data["from"],
            to=data["to"],
            labeled=bool(data.get("labeled", False)),
            deleted=bool(data.get("deleted", False)),
            id=data.get("id"),
        )


@dataclass
class SegmentDiff:
    """Segments added and removed since the last synchronization.

    Added segments are sent in full; removed segments only by identifier.
    """

    added: list[AnalyticSegment] = field(default_factory=list)
    removed: list[AnalyticSegment] = field(default_factory=list)

    @classmethod
    def of(
        cls,
        added: Iterable[AnalyticSegment],
        removed: Iterable[AnalyticSegment],
    ) -> SegmentDiff:
        return cls(added=list(added), removed=list(removed))

    def to_payload(self, unit_id: AnalyticUnitId) -> dict[str, Any]:
        return {
            "id": unit_id,
            "addedSegments": [segment.to_payload() for segment in self.added],
            "removedSegments": [segment.id for segment in self.removed],
        }


@dataclass(frozen=True)
class AnalyticUnitStatus:
    """Learning/detection status of an analytic unit."""

    NOT_FOUND = "404"

    status: str
    error_message: str | None = None

    @property
    def not_found(self) -> bool:
        return self.status == self.NOT_FOUND

    @classmethod
    def from_api_response(cls, data: Mapping[str, Any]) -> AnalyticUnitStatus:
        return cls(status=str(data["status"]), error_message=data.get("errorMessage"))


@dataclass(frozen=True)
class TableTimeSeries:
    """A series of ``(timestamp, value)`` rows with column names."""

    values: list[tuple[float, float]]
    columns: list[str]

    @classmethod
    def from_api_response(cls, data: Mapping[str, Any]) -> TableTimeSeries:
        return cls(
            values=[tuple(row) for row in data.get("values", [])],  # type: ignore[misc]
            columns=list(data.get("columns", [])),
        )


@dataclass(frozen=True)
class HSRResult:
    """Time-series result bundle for an analytic unit (HSR plus optional bounds)."""

    hsr: TableTimeSeries
    lower_bound: TableTimeSeries | None = None
    upper_bound: TableTimeSeries | None = None

    @classmethod
    def from_api_response(cls, data: Mapping[str, Any]) -> HSRResult:
        lower = data.get("lowerBound")
        upper = data.get("upperBound")
        return cls(
            hsr=TableTimeSeries.from_api_response(data["hsr"]),
            lower_bound=TableTimeSeries.from_api_response(lower) if lower else None,
            upper_bound=TableTimeSeries.from_api_response(upper) if upper else None,
        )


@dataclass(frozen=True)
class ServerInfo:
    """Build and runtime metadata reported by the Hastic server root."""

    node_version: str | None = None
    package_version: str | None = None
    npm_user_agent: str | None = None
    docker: bool | None = None
    zmq_connection_string: str | None = None
    server_port: int | None = None
    git_branch: str | None = None
    git_commit_hash: str | None = None

    @classmethod
    def unknown(cls) -> ServerInfo:
        """Info used when the server did not answer with anything."""
        return cls()

    @property
    def is_unknown(self) -> bool:
        return self == ServerInfo.unknown()

    @classmethod
    def from_api_response(cls, data: Mapping[str, Any]) -> ServerInfo:
        git = data.get("git") or {}
        return cls(
            node_version=data.get("nodeVersion"),
            package_version=data.get("packageVersion"),
            npm_user_agent=data.get("npmUserAgent"),
            docker=data.get("docker"),
            # Server spells the key "zmqConectionString"
            zmq_connection_string=data.get("zmqConectionString", data.get("zmqConnectionString")),
            server_port=data.get("serverPort"),
            git_branch=git.get("branch"),
            git_commit_hash=git.get("commitHash"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodeVersion": self.node_version,
            "packageVersion": self.package_version,
            "npmUserAgent": self.npm_user_agent,
            "docker": self.docker,
            "zmqConnectionString": self.zmq_connection_string,
            "serverPort": self.server_port,
            "gitBranch": self.git_branch,
            "gitCommitHash": self.git_commit_hash,
        }
