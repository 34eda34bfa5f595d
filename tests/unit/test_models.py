"""Tests for request/response records."""

from __future__ import annotations

import pytest

from hastic_client.models import (
    AnalyticSegment,
    AnalyticUnitStatus,
    SegmentDiff,
    ServerInfo,
    serialize_analytic_unit,
    serialize_metric,
)


class TestSegmentDiff:
    """Tests for SegmentDiff serialization."""

    def test_added_in_full_removed_by_id(self) -> None:
        diff = SegmentDiff.of(
            [AnalyticSegment(from_=10, to=20, labeled=True, deleted=False, id="ignored")],
            [AnalyticSegment(from_=1, to=2, id="s1")],
        )

        assert diff.to_payload("u1") == {
            "id": "u1",
            "addedSegments": [{"from": 10, "to": 20, "labeled": True, "deleted": False}],
            "removedSegments": ["s1"],
        }

    def test_empty_diff(self) -> None:
        assert SegmentDiff().to_payload("u1") == {
            "id": "u1",
            "addedSegments": [],
            "removedSegments": [],
        }


class TestAnalyticSegment:
    """Tests for AnalyticSegment."""

    def test_from_api_response_defaults(self) -> None:
        segment = AnalyticSegment.from_api_response({"id": "s1", "from": 1, "to": 2})
        assert segment == AnalyticSegment(from_=1, to=2, labeled=False, deleted=False, id="s1")

    def test_from_api_response_requires_bounds(self) -> None:
        with pytest.raises(KeyError):
            AnalyticSegment.from_api_response({"id": "s1"})


class TestAnalyticUnitStatus:
    """Tests for AnalyticUnitStatus."""

    def test_from_api_response(self) -> None:
        status = AnalyticUnitStatus.from_api_response({"status": "READY"})
        assert status == AnalyticUnitStatus(status="READY", error_message=None)
        assert status.not_found is False


class TestServerInfo:
    """Tests for ServerInfo."""

    def test_missing_git_block(self) -> None:
        info = ServerInfo.from_api_response({"packageVersion": "0.4.1-beta"})
        assert info.package_version == "0.4.1-beta"
        assert info.git_branch is None
        assert info.is_unknown is False

    def test_unknown(self) -> None:
        assert ServerInfo.unknown().is_unknown is True

    def test_to_dict(self) -> None:
        info = ServerInfo(package_version="0.4.1-beta", git_branch="master")
        data = info.to_dict()
        assert data["packageVersion"] == "0.4.1-beta"
        assert data["gitBranch"] == "master"
        assert data["docker"] is None


class TestSerialization:
    """Tests for domain object serialization helpers."""

    def test_mapping_is_copied(self) -> None:
        unit = {"name": "spikes"}
        payload = serialize_analytic_unit(unit)
        payload["name"] = "changed"
        assert unit == {"name": "spikes"}

    def test_to_json_objects(self) -> None:
        class Metric:
            def to_json(self) -> dict[str, object]:
                return {"targets": ["cpu"]}

        assert serialize_metric(Metric()) == {"targets": ["cpu"]}
