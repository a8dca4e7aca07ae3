"""Detection and resolution of same-day, same-assignee inspection conflicts."""

import logging
from collections.abc import Iterable, Sequence
from datetime import date, timedelta
from enum import Enum
from math import ceil
from typing import TYPE_CHECKING, Optional, Union

from pydantic import BaseModel, Field

from ..exceptions import ValidationError
from .models import InspectionOccurrence

if TYPE_CHECKING:
    from ..config.settings import AssetCalSettings

logger = logging.getLogger(__name__)

ConflictKey = tuple[date, str]


class ConflictStrategy(str, Enum):
    """How colliding occurrences are adjusted."""

    SPREAD = "spread"
    STACK = "stack"
    MANUAL = "manual"


class ConflictGroup(BaseModel):
    """Two or more occurrences sharing a calendar date and assignee."""

    date: date
    assignee: str
    occurrence_ids: list[str]
    count: int


class ResolutionResult(BaseModel):
    """Adjusted schedule plus the conflicts found in the input."""

    schedule: list[InspectionOccurrence]
    conflicts: list[ConflictGroup] = Field(default_factory=list)
    strategy: ConflictStrategy

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)


def conflict_key(occurrence: InspectionOccurrence) -> ConflictKey:
    return occurrence.scheduled_date.date(), occurrence.assignee_key


def _group(occurrences: Sequence[InspectionOccurrence]) -> dict[ConflictKey, list[int]]:
    groups: dict[ConflictKey, list[int]] = {}
    for index, occurrence in enumerate(occurrences):
        groups.setdefault(conflict_key(occurrence), []).append(index)
    return groups


class ConflictResolver:
    """Group occurrences by (date, assignee) and apply a resolution strategy.

    Detection always runs; ``resolve`` never raises because occurrences
    collide. Input occurrences are not modified, adjusted copies are returned
    in input order.

    ``spread`` keeps each group's first member and moves the i-th member
    ``i`` days later, skipping further ahead past any day on which the same
    assignee is already booked, so a spread schedule has no remaining
    conflicts. ``stack`` assigns sequential start times within the workday and
    wraps to the next day once the workday ends. It does not re-check the
    slots it creates.
    """

    def __init__(self, settings: Optional["AssetCalSettings"] = None) -> None:
        self.workday_start_hour = settings.workday_start_hour if settings else 9
        self.workday_end_hour = settings.workday_end_hour if settings else 17
        self.default_strategy = (
            ConflictStrategy(settings.default_conflict_strategy)
            if settings
            else ConflictStrategy.SPREAD
        )

    def detect(self, occurrences: Iterable[InspectionOccurrence]) -> list[ConflictGroup]:
        """Conflict groups in order of first appearance."""
        occurrences = list(occurrences)
        conflicts = []
        for (day, assignee), indexes in _group(occurrences).items():
            if len(indexes) > 1:
                conflicts.append(
                    ConflictGroup(
                        date=day,
                        assignee=assignee,
                        occurrence_ids=[occurrences[i].id for i in indexes],
                        count=len(indexes),
                    )
                )
        return conflicts

    def resolve(
        self,
        occurrences: Iterable[InspectionOccurrence],
        strategy: Union[ConflictStrategy, str, None] = None,
    ) -> ResolutionResult:
        """Detect conflicts and adjust the schedule per ``strategy``.

        Raises:
            ValidationError: If ``strategy`` is not a known strategy name
        """
        strategy = self._coerce_strategy(strategy)
        schedule = list(occurrences)
        groups = _group(schedule)
        conflicts = self.detect(schedule)

        if conflicts:
            logger.info(
                "Detected %d scheduling conflicts across %d occurrences (strategy=%s)",
                len(conflicts),
                len(schedule),
                strategy.value,
            )

        if strategy == ConflictStrategy.SPREAD:
            occupied = set(groups)
            for indexes in groups.values():
                if len(indexes) > 1:
                    self._spread(schedule, indexes, occupied)
        elif strategy == ConflictStrategy.STACK:
            for indexes in groups.values():
                if len(indexes) > 1:
                    self._stack(schedule, indexes)

        return ResolutionResult(schedule=schedule, conflicts=conflicts, strategy=strategy)

    def _coerce_strategy(self, strategy: Union[ConflictStrategy, str, None]) -> ConflictStrategy:
        if strategy is None:
            return self.default_strategy
        try:
            return ConflictStrategy(strategy)
        except ValueError:
            raise ValidationError(
                f"Unknown conflict strategy: {strategy}",
                field_name="strategy",
                field_value=strategy,
                validation_errors=[f"expected one of {[s.value for s in ConflictStrategy]}"],
            ) from None

    def _spread(
        self,
        schedule: list[InspectionOccurrence],
        indexes: list[int],
        occupied: set[ConflictKey],
    ) -> None:
        for offset, index in enumerate(indexes[1:], start=1):
            occurrence = schedule[index]
            moved = occurrence.scheduled_date + timedelta(days=offset)
            while (moved.date(), occurrence.assignee_key) in occupied:
                moved += timedelta(days=1)
            occupied.add((moved.date(), occurrence.assignee_key))
            schedule[index] = occurrence.moved_to(moved)
            logger.debug("Spread %s to %s", occurrence.id, moved.date().isoformat())

    def _stack(self, schedule: list[InspectionOccurrence], indexes: list[int]) -> None:
        clock = self.workday_start_hour
        day_offset = 0
        for index in indexes:
            occurrence = schedule[index]
            slot = occurrence.scheduled_date.replace(
                hour=clock, minute=0, second=0, microsecond=0
            ) + timedelta(days=day_offset)
            schedule[index] = occurrence.moved_to(slot)
            logger.debug("Stacked %s at %s", occurrence.id, slot.isoformat())

            clock += ceil(occurrence.duration_minutes / 60) + 1
            if clock >= self.workday_end_hour:
                clock = self.workday_start_hour
                day_offset += 1
