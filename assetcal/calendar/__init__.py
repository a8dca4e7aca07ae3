"""Calendar grid math."""

from .grid import (
    ViewMode,
    day_bounds,
    is_same_calendar_day,
    is_today,
    month_bounds,
    month_grid,
    month_weeks,
    shift_anchor,
    start_of_week,
    sunday_index,
    visible_range,
    week_days,
)

__all__ = [
    "ViewMode",
    "day_bounds",
    "is_same_calendar_day",
    "is_today",
    "month_bounds",
    "month_grid",
    "month_weeks",
    "shift_anchor",
    "start_of_week",
    "sunday_index",
    "visible_range",
    "week_days",
]
