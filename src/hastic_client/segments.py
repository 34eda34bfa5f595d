"""Segment synchronization with the Hastic server."""

from __future__ import annotations

from collections.abc import Iterable

from hastic_client.dispatcher import RequestDispatcher
from hastic_client.exceptions import DataContractError
from hastic_client.logging import get_logger
from hastic_client.models import AnalyticSegment, AnalyticUnitId, SegmentDiff, SegmentId

logger = get_logger(__name__)


class SegmentSynchronizer:
    """Pushes segment diffs for analytic units and reads segments back."""

    def __init__(self, dispatcher: RequestDispatcher) -> None:
        self.dispatcher = dispatcher

    async def sync(
        self,
        unit_id: AnalyticUnitId,
        added: Iterable[AnalyticSegment],
        removed: Iterable[AnalyticSegment],
    ) -> list[SegmentId]:
        """Send added and removed segments in one request.

        Added segments are sent in full, removed ones by id only.

        Returns:
            Server-assigned ids of the added segments, in the order sent.

        Raises:
            DataContractError: If the response has no ``addedIds``.
        """
        diff = SegmentDiff.of(added, removed)
        payload = diff.to_payload(unit_id)
        logger.debug(
            "Syncing segments: %d added, %d removed",
            len(diff.added),
            len(diff.removed),
            extra={"analytic_unit_id": unit_id},
        )

        data = await self.dispatcher.patch("/segments", payload)
        if not isinstance(data, dict) or data.get("addedIds") is None:
            raise DataContractError("Server didn't send addedIds")
        return list(data["addedIds"])

    async def fetch(
        self,
        unit_id: AnalyticUnitId,
        from_: int | None = None,
        to: int | None = None,
    ) -> list[AnalyticSegment]:
        """Fetch segments of a unit, optionally restricted to ``[from_, to]``.

        Raises:
            ValueError: If ``unit_id`` is None.
            DataContractError: If the response has no ``segments``.
        """
        if unit_id is None:
            raise ValueError("id is undefined")

        params: dict[str, object] = {"id": unit_id}
        if from_ is not None:
            params["from"] = from_
        if to is not None:
            params["to"] = to

        data = await self.dispatcher.get("/segments", params)
        if not isinstance(data, dict) or data.get("segments") is None:
            raise DataContractError("Server didn't return segments array")
        return [AnalyticSegment.from_api_response(s) for s in data["segments"]]
