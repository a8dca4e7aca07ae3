"""Date-grid utilities for month, week and day calendar views.

All functions are pure and operate on naive local dates. Weeks start on Sunday.
Passing something that is not a ``date``/``datetime`` is a caller error and is
not checked.
"""

from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Union

from dateutil.relativedelta import relativedelta

DateLike = Union[date, datetime]

GRID_WEEKS = 6
DAYS_PER_WEEK = 7


class ViewMode(str, Enum):
    """Calendar view modes used for navigation."""

    MONTH = "month"
    WEEK = "week"
    DAY = "day"


def _as_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def sunday_index(value: DateLike) -> int:
    """Return the weekday index with Sunday as 0 and Saturday as 6."""
    return (_as_date(value).weekday() + 1) % 7


def start_of_week(value: DateLike) -> date:
    """Return the Sunday on or before ``value``."""
    day = _as_date(value)
    return day - timedelta(days=sunday_index(day))


def month_bounds(anchor: DateLike) -> tuple[date, date]:
    """Return the first and last calendar day of ``anchor``'s month."""
    first = _as_date(anchor).replace(day=1)
    last = first + relativedelta(months=1, days=-1)
    return first, last


def month_grid(anchor: DateLike) -> list[date]:
    """Return the 42 dates (6 weeks x 7 days) of the month view around ``anchor``.

    The grid starts on the Sunday on/before the first of the month. It always has
    six rows, so trailing days of the following month pad short months; days
    outside the month are returned, never omitted.
    """
    first, _ = month_bounds(anchor)
    grid_start = start_of_week(first)
    return [grid_start + timedelta(days=offset) for offset in range(GRID_WEEKS * DAYS_PER_WEEK)]


def month_weeks(anchor: DateLike) -> list[list[date]]:
    """Return ``month_grid`` split into six Sunday-first rows."""
    days = month_grid(anchor)
    return [days[row : row + DAYS_PER_WEEK] for row in range(0, len(days), DAYS_PER_WEEK)]


def week_days(anchor: DateLike) -> list[date]:
    """Return the seven Sunday-first dates of the week containing ``anchor``."""
    week_start = start_of_week(anchor)
    return [week_start + timedelta(days=offset) for offset in range(DAYS_PER_WEEK)]


def is_same_calendar_day(a: DateLike, b: DateLike) -> bool:
    """Compare year, month and day only."""
    return _as_date(a) == _as_date(b)


def is_today(value: DateLike, today: DateLike) -> bool:
    """Return True when ``value`` falls on ``today``.

    ``today`` is passed in rather than read from the clock so callers and tests
    control it.
    """
    return is_same_calendar_day(value, today)


def day_bounds(value: DateLike) -> tuple[datetime, datetime]:
    """Return the first and last representable instants of ``value``'s day."""
    day = _as_date(value)
    return datetime.combine(day, time.min), datetime.combine(day, time.max)


def shift_anchor(anchor: DateLike, view_mode: Union[ViewMode, str], step: int = 1) -> DateLike:
    """Move the view anchor ``step`` months, weeks or days forward (negative for back).

    Month steps clamp to the last valid day, e.g. Jan 31 + 1 month is Feb 28/29.
    """
    mode = ViewMode(view_mode)
    if mode is ViewMode.MONTH:
        return anchor + relativedelta(months=step)
    if mode is ViewMode.WEEK:
        return anchor + timedelta(days=DAYS_PER_WEEK * step)
    return anchor + timedelta(days=step)


def visible_range(anchor: DateLike, view_mode: Union[ViewMode, str]) -> tuple[datetime, datetime]:
    """Return the inclusive datetime range a view needs events for."""
    mode = ViewMode(view_mode)
    if mode is ViewMode.MONTH:
        days = month_grid(anchor)
    elif mode is ViewMode.WEEK:
        days = week_days(anchor)
    else:
        days = [_as_date(anchor)]
    return day_bounds(days[0])[0], day_bounds(days[-1])[1]
