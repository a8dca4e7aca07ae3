"""Recurrence expansion: turn a seed occurrence plus a rule into concrete start times."""

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from math import ceil
from typing import TYPE_CHECKING, Optional, Union

from dateutil.relativedelta import relativedelta

from ..calendar.grid import sunday_index
from ..exceptions import ValidationError
from .models import AfterCount, MonthlyPattern, OnDate, RecurrenceFrequency, RecurrenceRule

if TYPE_CHECKING:
    from ..config.settings import AssetCalSettings

logger = logging.getLogger(__name__)

DEFAULT_HARD_CAP = 365


@dataclass(frozen=True)
class ExpansionResult:
    """Ordered, finite occurrence starts produced by ``RecurrenceExpander.expand``.

    ``cap_tripped`` is set when the hard cap stopped expansion before the rule's
    own end condition did. That is normal for rules that never end and is not an
    error; the occurrences are still valid and sorted.
    """

    occurrences: tuple[datetime, ...]
    duration: timedelta
    cap_tripped: bool = False

    def __len__(self) -> int:
        return len(self.occurrences)

    def __iter__(self) -> Iterator[datetime]:
        return iter(self.occurrences)

    def __getitem__(self, index: int) -> datetime:
        return self.occurrences[index]

    def spans(self) -> list[tuple[datetime, datetime]]:
        """(start, end) pairs, each preserving the seed's duration."""
        return [(start, start + self.duration) for start in self.occurrences]


class RecurrenceExpander:
    """Expand recurrence rules into occurrence start times.

    Daily and weekly rules step from the previous occurrence. Monthly and yearly
    rules are computed from the seed (the k-th occurrence is ``seed + k * interval``
    months or years), so a month-end seed is clamped per month without drifting:
    Jan 31 -> Feb 28 -> Mar 31.
    """

    def __init__(self, settings: Optional["AssetCalSettings"] = None) -> None:
        self.hard_cap = settings.recurrence_hard_cap if settings else DEFAULT_HARD_CAP

    def expand(
        self,
        seed_start: Union[datetime, date],
        rule: RecurrenceRule,
        seed_duration: timedelta = timedelta(0),
        hard_cap: Optional[int] = None,
    ) -> ExpansionResult:
        """Expand ``rule`` starting at ``seed_start``.

        Args:
            seed_start: First occurrence; always returned as element 0
            rule: Recurrence rule to apply
            seed_duration: Duration carried onto every occurrence
            hard_cap: Upper bound on emitted occurrences (defaults to settings)

        Returns:
            ExpansionResult with the occurrences and the cap flag

        Raises:
            ValidationError: If ``hard_cap`` is less than 1
        """
        cap = self.hard_cap if hard_cap is None else hard_cap
        if cap < 1:
            raise ValidationError("hard_cap must be >= 1", field_name="hard_cap", field_value=cap)

        seed = _as_datetime(seed_start)
        end = rule.end
        occurrences: list[datetime] = []
        cap_tripped = False

        if (
            rule.frequency == RecurrenceFrequency.WEEKLY
            and rule.days_of_week
            and rule.interval > 1
        ):
            logger.debug(
                "Weekly rule with days_of_week ignores interval=%d between weeks", rule.interval
            )

        for occurrence in self.iter_occurrences(seed, rule):
            if occurrences:
                if isinstance(end, OnDate) and end.is_past(occurrence):
                    break
                if isinstance(end, AfterCount) and len(occurrences) >= end.count:
                    break
            if len(occurrences) >= cap:
                cap_tripped = True
                break
            occurrences.append(occurrence)

        if cap_tripped:
            logger.info(
                "Recurrence expansion stopped at hard cap of %d occurrences (seed=%s, frequency=%s)",
                cap,
                seed.isoformat(),
                rule.frequency.value,
            )

        return ExpansionResult(
            occurrences=tuple(occurrences), duration=seed_duration, cap_tripped=cap_tripped
        )

    def iter_occurrences(self, seed: datetime, rule: RecurrenceRule) -> Iterator[datetime]:
        """Yield occurrences forever, seed first. Callers bound the iteration."""
        current = seed
        step = 0
        while True:
            yield current
            step += 1
            current = self.next_occurrence(current, seed, rule, step)

    def next_occurrence(
        self, current: datetime, seed: datetime, rule: RecurrenceRule, step: int
    ) -> datetime:
        """Compute occurrence number ``step`` given the previous one."""
        if rule.frequency == RecurrenceFrequency.DAILY:
            return current + timedelta(days=rule.interval)

        if rule.frequency == RecurrenceFrequency.WEEKLY:
            if rule.days_of_week:
                return _next_weekday_in_set(current, rule.days_of_week)
            return current + timedelta(days=7 * rule.interval)

        if rule.frequency == RecurrenceFrequency.MONTHLY:
            if rule.monthly_pattern == MonthlyPattern.BY_DAY:
                return _nth_weekday_like(seed, months_ahead=rule.interval * step)
            return seed + relativedelta(months=rule.interval * step)

        return seed + relativedelta(years=rule.interval * step)


def _as_datetime(value: Union[datetime, date]) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def _next_weekday_in_set(current: datetime, days_of_week: list[int]) -> datetime:
    """Smallest listed weekday after ``current``'s, wrapping into next week."""
    current_day = sunday_index(current)
    later = [day for day in days_of_week if day > current_day]
    if later:
        return current + timedelta(days=later[0] - current_day)
    return current + timedelta(days=7 - current_day + days_of_week[0])


def _nth_weekday_like(seed: datetime, months_ahead: int) -> datetime:
    """Same (week-of-month, weekday) as ``seed``, ``months_ahead`` months later.

    A fifth weekday that the target month lacks falls back to the month's last
    matching weekday.
    """
    week_of_month = ceil(seed.day / 7)
    first = seed.replace(day=1) + relativedelta(months=months_ahead)
    offset = (seed.weekday() - first.weekday()) % 7
    candidate = first + timedelta(days=offset + 7 * (week_of_month - 1))
    if candidate.month != first.month:
        candidate -= timedelta(days=7)
    return candidate
