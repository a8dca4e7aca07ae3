"""Unit tests for calendar grid math."""

from datetime import date, datetime, time

import pytest

from assetcal.calendar.grid import (
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


class TestMonthGrid:
    """Tests for the 6-week month grid."""

    def test_march_2025_starts_on_preceding_sunday(self):
        """March 1, 2025 is a Saturday, so the grid opens on Feb 23."""
        grid = month_grid(date(2025, 3, 15))

        assert len(grid) == 42
        assert grid[0] == date(2025, 2, 23)
        assert grid[-1] == date(2025, 4, 5)
        assert grid[21] == date(2025, 3, 16)

    def test_four_week_month_still_has_six_rows(self):
        """February 2015 fits in exactly four weeks but the grid keeps six rows."""
        weeks = month_weeks(date(2015, 2, 10))

        assert len(weeks) == 6
        assert all(len(week) == 7 for week in weeks)
        assert weeks[0][0] == date(2015, 2, 1)
        assert weeks[-1][-1] == date(2015, 3, 14)

    @pytest.mark.parametrize(
        "anchor",
        [
            date(2024, 2, 29),
            date(2025, 1, 31),
            date(2025, 6, 1),
            date(2025, 12, 31),
            date(2026, 8, 15),
        ],
    )
    def test_grid_is_contiguous_sunday_first(self, anchor):
        """Every grid is 42 consecutive days opening on a Sunday and covering the month."""
        grid = month_grid(anchor)
        first, last = month_bounds(anchor)

        assert len(grid) == 42
        assert sunday_index(grid[0]) == 0
        assert sunday_index(grid[-1]) == 6
        assert all((b - a).days == 1 for a, b in zip(grid, grid[1:]))
        assert first in grid and last in grid
        assert grid[21] is not None

    def test_accepts_datetime_anchor(self):
        """Datetime anchors behave like their date."""
        assert month_grid(datetime(2025, 3, 15, 18, 30)) == month_grid(date(2025, 3, 15))


class TestWeekMath:
    """Tests for weekday indexing and week ranges."""

    def test_sunday_index(self):
        """Sunday maps to 0 and Saturday to 6."""
        assert sunday_index(date(2025, 3, 9)) == 0
        assert sunday_index(date(2025, 3, 10)) == 1
        assert sunday_index(date(2025, 3, 15)) == 6

    def test_week_days_contains_anchor(self):
        """The week of Wednesday Mar 12, 2025 runs Sunday Mar 9 to Saturday Mar 15."""
        days = week_days(date(2025, 3, 12))

        assert days[0] == date(2025, 3, 9)
        assert days[-1] == date(2025, 3, 15)
        assert date(2025, 3, 12) in days

    def test_start_of_week_on_sunday_is_identity(self):
        """A Sunday is its own week start."""
        assert start_of_week(date(2025, 3, 9)) == date(2025, 3, 9)


class TestDayComparisons:
    """Tests for calendar-day comparisons and bounds."""

    def test_same_calendar_day_ignores_time(self):
        """Only year, month and day are compared."""
        assert is_same_calendar_day(datetime(2025, 3, 10, 23, 59), date(2025, 3, 10))
        assert not is_same_calendar_day(datetime(2025, 3, 10), datetime(2025, 3, 11))

    def test_is_today_uses_given_today(self):
        """The reference day is supplied by the caller."""
        assert is_today(datetime(2025, 3, 10, 9), date(2025, 3, 10))
        assert not is_today(date(2025, 3, 9), date(2025, 3, 10))

    def test_day_bounds(self):
        """Bounds span midnight to the last representable instant."""
        start, end = day_bounds(date(2025, 3, 10))

        assert start == datetime(2025, 3, 10, 0, 0)
        assert end == datetime.combine(date(2025, 3, 10), time.max)

    def test_month_bounds_leap_year(self):
        """February 2024 ends on the 29th."""
        assert month_bounds(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))


class TestNavigation:
    """Tests for view navigation helpers."""

    def test_shift_month_clamps_to_month_end(self):
        """Jan 31 moves to the last day of February."""
        assert shift_anchor(date(2025, 1, 31), ViewMode.MONTH) == date(2025, 2, 28)

    def test_shift_week_backwards(self):
        """Negative steps move back."""
        assert shift_anchor(date(2025, 3, 12), "week", -1) == date(2025, 3, 5)

    def test_shift_day(self):
        """Day view moves one day per step."""
        assert shift_anchor(date(2025, 2, 28), ViewMode.DAY, 1) == date(2025, 3, 1)

    def test_visible_range_month(self):
        """Month view needs the whole 42-day grid."""
        start, end = visible_range(date(2025, 3, 15), ViewMode.MONTH)

        assert start == datetime(2025, 2, 23)
        assert end.date() == date(2025, 4, 5)

    def test_unknown_view_mode_rejected(self):
        """Unknown view modes raise ValueError from the enum."""
        with pytest.raises(ValueError):
            shift_anchor(date(2025, 3, 1), "year")
