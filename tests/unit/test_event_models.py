"""Unit tests for calendar event records."""

from datetime import datetime, timedelta

import pytest

from assetcal.events.models import (
    COMPLETED_COLOR,
    Event,
    EventFilters,
    EventStatus,
    EventTemplate,
    Priority,
    Reminder,
    default_templates,
    event_color,
)
from assetcal.exceptions import ValidationError
from assetcal.recurrence.models import RecurrenceRule


def make_event(**overrides):
    data = {
        "title": "Boiler service",
        "start": datetime(2025, 3, 10, 9),
        "end": datetime(2025, 3, 10, 10),
    }
    data.update(overrides)
    return Event(**data)


class TestEvent:
    """Tests for event validation."""

    def test_end_must_follow_start(self):
        """Zero-length and inverted events are rejected."""
        with pytest.raises(ValidationError):
            make_event(end=datetime(2025, 3, 10, 9))
        with pytest.raises(ValidationError):
            make_event(end=datetime(2025, 3, 10, 8))

    def test_blank_title_rejected(self):
        """Titles must contain text."""
        with pytest.raises(ValidationError):
            make_event(title="   ")

    def test_all_day_truncates_to_midnight(self):
        """All-day events run from midnight to an exclusive midnight."""
        event = make_event(
            all_day=True, start=datetime(2025, 3, 10, 9), end=datetime(2025, 3, 11, 17)
        )

        assert event.start == datetime(2025, 3, 10)
        assert event.end == datetime(2025, 3, 11)
        assert event.duration == timedelta(days=1)

    def test_all_day_same_day_end_spans_one_day(self):
        """An all-day event ending later on its start day covers that whole day."""
        event = make_event(
            title="Site closed",
            all_day=True,
            start=datetime(2025, 3, 10),
            end=datetime(2025, 3, 10, 23, 59),
        )

        assert event.start == datetime(2025, 3, 10)
        assert event.end == datetime(2025, 3, 11)

    def test_all_day_end_before_start_is_not_rejected(self):
        """All-day events are exempt from the end-after-start check."""
        event = make_event(all_day=True, start=datetime(2025, 3, 10, 9), end=datetime(2025, 3, 9))

        assert event.duration == timedelta(days=1)

    def test_integer_asset_id_is_stored_as_text(self):
        """Numeric asset ids are accepted and kept as strings."""
        assert make_event(asset_id=17).asset_id == "17"
        assert EventFilters(asset_id=17).matches(make_event(asset_id="17"))

    def test_color_derived_from_priority(self):
        """Unset colours follow priority."""
        assert make_event(priority=Priority.HIGH).color == "#f59e0b"
        assert make_event(priority=Priority.LOW).color == "#6b7280"

    def test_completed_color_wins(self):
        """Completed events are green regardless of priority."""
        event = make_event(priority=Priority.HIGH, status=EventStatus.COMPLETED)

        assert event.color == COMPLETED_COLOR
        assert event_color(Priority.LOW, EventStatus.COMPLETED) == COMPLETED_COLOR

    def test_explicit_color_kept(self):
        """An explicit colour is never replaced."""
        assert make_event(color="#123456").color == "#123456"

    def test_is_instance(self):
        """Only generated series members count as instances."""
        rule = RecurrenceRule(frequency="daily", count=2)

        assert not make_event(recurring=rule).is_instance
        assert make_event(recurring=rule.as_instance("parent")).is_instance

    def test_serializes_datetimes_as_iso(self):
        """Dumps carry ISO 8601 timestamps."""
        assert make_event().model_dump()["start"] == "2025-03-10T09:00:00"


class TestReminderAndTemplate:
    """Tests for reminder and template validation."""

    def test_negative_reminder_rejected(self):
        with pytest.raises(ValidationError):
            Reminder(minutes_before=-5)

    def test_template_duration_must_be_positive(self):
        with pytest.raises(ValidationError):
            EventTemplate(name="Broken", duration_minutes=0)

    def test_default_templates(self):
        """Four built-in templates are provided."""
        templates = {t.id: t for t in default_templates()}

        assert set(templates) == {
            "template_inspection",
            "template_maintenance",
            "template_meeting",
            "template_emergency",
        }
        assert templates["template_inspection"].duration_minutes == 120


class TestEventFilters:
    """Tests for conjunctive event filters."""

    def test_empty_filters_match_everything(self):
        assert EventFilters().matches(make_event())

    def test_all_fields_must_match(self):
        """Every set field has to match."""
        event = make_event(type="Inspection", asset_id="A1", priority=Priority.HIGH)

        assert EventFilters(type="Inspection", asset_id="A1").matches(event)
        assert not EventFilters(type="Inspection", asset_id="A2").matches(event)
        assert not EventFilters(priority=Priority.LOW).matches(event)

    def test_date_bounds_apply_to_start(self):
        """Date bounds are inclusive and compare the event start."""
        event = make_event()

        assert EventFilters(start_date=datetime(2025, 3, 10, 9)).matches(event)
        assert EventFilters(end_date=datetime(2025, 3, 10, 9)).matches(event)
        assert not EventFilters(start_date=datetime(2025, 3, 10, 9, 1)).matches(event)
