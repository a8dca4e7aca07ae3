"""Inspection completion history and analytics."""

import logging
from collections import Counter
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, Field

from ..events.models import EventStatus, OpaqueId

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 50
TOP_FINDINGS_LIMIT = 10


class InspectionCompletion(BaseModel):
    """Outcome recorded when an inspection is completed."""

    inspection_id: str
    asset_id: OpaqueId
    inspection_type: Optional[str] = None
    completed_at: datetime = Field(default_factory=datetime.now)
    completed_by: str = ""
    status: EventStatus = EventStatus.COMPLETED
    findings: list[str] = Field(default_factory=list)
    action_items: list[str] = Field(default_factory=list)
    notes: str = ""
    score: Optional[float] = None
    next_inspection_date: Optional[datetime] = None


class MonthlyCount(BaseModel):
    month: str
    count: int


class FindingCount(BaseModel):
    finding: str
    count: int


class InspectionAnalytics(BaseModel):
    """Aggregates over a set of completions.

    ``average_score`` ignores completions without a score; how many were left
    out is reported in ``unscored_count``.
    """

    total_inspections: int = 0
    completion_rate: float = 0.0
    average_score: Optional[float] = None
    unscored_count: int = 0
    by_type: dict[str, int] = Field(default_factory=dict)
    monthly_trend: list[MonthlyCount] = Field(default_factory=list)
    top_findings: list[FindingCount] = Field(default_factory=list)


def _in_range(
    completion: InspectionCompletion, start: Optional[datetime], end: Optional[datetime]
) -> bool:
    if start and completion.completed_at < start:
        return False
    return not (end and completion.completed_at > end)


class InspectionHistory:
    """Per-asset record of completed inspections."""

    def __init__(self) -> None:
        self._by_asset: dict[str, list[InspectionCompletion]] = {}

    def record(
        self, completion: Union[InspectionCompletion, Mapping[str, Any]]
    ) -> InspectionCompletion:
        completion = InspectionCompletion.model_validate(completion)
        self._by_asset.setdefault(completion.asset_id, []).append(completion)
        logger.debug(
            "Recorded %s for asset %s (status=%s)",
            completion.inspection_id,
            completion.asset_id,
            completion.status.value,
        )
        return completion

    def history(
        self,
        asset_id: str,
        inspection_type: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> list[InspectionCompletion]:
        """Completions for ``asset_id``, newest first."""
        entries = [
            completion
            for completion in self._by_asset.get(asset_id, [])
            if (inspection_type is None or completion.inspection_type == inspection_type)
            and _in_range(completion, start, end)
        ]
        entries.sort(key=lambda completion: completion.completed_at, reverse=True)
        return entries[:limit]

    def completions(self, asset_ids: Optional[Iterable[str]] = None) -> list[InspectionCompletion]:
        if asset_ids is None:
            return [c for entries in self._by_asset.values() for c in entries]
        return [c for asset_id in asset_ids for c in self._by_asset.get(asset_id, [])]

    def analytics(
        self,
        asset_ids: Optional[Iterable[str]] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> InspectionAnalytics:
        """Aggregate completions for ``asset_ids`` (all assets when omitted)."""
        entries = [c for c in self.completions(asset_ids) if _in_range(c, start, end)]
        if not entries:
            return InspectionAnalytics()

        completed = sum(1 for c in entries if c.status == EventStatus.COMPLETED)
        scores = [c.score for c in entries if c.score is not None]
        unscored = len(entries) - len(scores)
        if unscored:
            logger.debug("Excluding %d unscored inspections from the average score", unscored)

        months = Counter(c.completed_at.strftime("%Y-%m") for c in entries)
        findings = Counter(finding for c in entries for finding in c.findings)

        return InspectionAnalytics(
            total_inspections=len(entries),
            completion_rate=completed / len(entries) * 100,
            average_score=sum(scores) / len(scores) if scores else None,
            unscored_count=unscored,
            by_type=dict(Counter(c.inspection_type or "Unknown" for c in entries)),
            monthly_trend=[
                MonthlyCount(month=month, count=count) for month, count in sorted(months.items())
            ],
            top_findings=[
                FindingCount(finding=finding, count=count)
                for finding, count in findings.most_common(TOP_FINDINGS_LIMIT)
            ],
        )
