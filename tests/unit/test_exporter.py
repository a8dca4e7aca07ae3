"""Unit tests for ICS, CSV and JSON export."""

import json
from datetime import datetime, timezone

import pytest
from icalendar import Calendar

from assetcal.config.settings import AssetCalSettings
from assetcal.events.models import Event, EventStatus, Priority
from assetcal.exceptions import UnsupportedFormatError, ValidationError
from assetcal.export.exporter import CSV_HEADERS, Exporter


@pytest.fixture
def event():
    return Event(
        id="evt1",
        title="Safety Check - Maple House",
        description="Monthly safety inspection",
        location="12 Maple St",
        start=datetime(2025, 3, 10, 9),
        end=datetime(2025, 3, 10, 10),
        type="Inspection",
        priority=Priority.HIGH,
        asset_name="Maple House",
        assigned_to="J. Smith",
    )


@pytest.fixture
def exporter():
    return Exporter()


class TestIcs:
    """Tests for iCalendar output."""

    def test_calendar_properties(self, exporter, event):
        """The calendar carries PRODID and VERSION and one VEVENT per event."""
        text = exporter.to_ics([event])
        calendar = Calendar.from_ical(text)

        assert str(calendar["prodid"]) == "-//Asset Tracker//Calendar//EN"
        assert str(calendar["version"]) == "2.0"
        assert len(calendar.walk("VEVENT")) == 1

    def test_event_properties(self, exporter, event):
        """Each VEVENT has a UID, UTC times, summary, status and priority."""
        text = exporter.to_ics([event])
        vevent = Calendar.from_ical(text).walk("VEVENT")[0]

        assert str(vevent["uid"]) == "evt1@assettracker.com"
        assert "DTSTART:20250310T090000Z" in text
        assert "DTEND:20250310T100000Z" in text
        assert str(vevent["summary"]) == "Safety Check - Maple House"
        assert str(vevent["location"]) == "12 Maple St"
        assert str(vevent["status"]) == "SCHEDULED"
        assert int(vevent["priority"]) == 1

    def test_naive_times_use_configured_zone(self, tmp_path, event):
        """Naive timestamps are read in the configured timezone."""
        settings = AssetCalSettings(
            timezone="America/New_York",
            config_dir=tmp_path / "config",
            data_dir=tmp_path / "data",
        )

        text = Exporter(settings).to_ics([event])

        assert "DTSTART:20250310T130000Z" in text

    def test_uid_domain_from_settings(self, tmp_path, event):
        settings = AssetCalSettings(
            ics_uid_domain="example.org",
            config_dir=tmp_path / "config",
            data_dir=tmp_path / "data",
        )

        assert "evt1@example.org" in Exporter(settings).to_ics([event])

    def test_empty_calendar(self, exporter):
        """No events still yields a valid calendar."""
        calendar = Calendar.from_ical(exporter.to_ics([]))

        assert calendar.walk("VEVENT") == []


class TestCsv:
    """Tests for CSV output."""

    def test_header_and_row(self, exporter, event):
        """The header is plain and every row field is quoted."""
        lines = exporter.to_csv([event]).splitlines()

        assert lines[0] == ",".join(CSV_HEADERS)
        assert lines[1] == (
            '"Safety Check - Maple House","Monthly safety inspection",'
            '"2025-03-10T09:00:00Z","2025-03-10T10:00:00Z","Inspection",'
            '"Scheduled","High","Maple House","J. Smith","12 Maple St"'
        )

    def test_embedded_quotes_doubled(self, exporter, event):
        """Quotes inside a field are doubled."""
        quoted = event.model_copy(update={"title": 'The "big" check'})

        assert '"The ""big"" check"' in exporter.to_csv([quoted])

    def test_parse_round_trip(self, exporter, event):
        """Exported CSV reads back into UTC rows."""
        rows = exporter.parse_csv(exporter.to_csv([event]))

        assert len(rows) == 1
        assert rows[0].title == event.title
        assert rows[0].start == datetime(2025, 3, 10, 9, tzinfo=timezone.utc)
        assert rows[0].status == EventStatus.SCHEDULED
        assert rows[0].assigned_to == "J. Smith"

    def test_parse_rejects_foreign_header(self, exporter):
        with pytest.raises(ValidationError):
            exporter.parse_csv("Name,When\n\"x\",\"y\"\n")

    def test_parse_empty_text(self, exporter):
        assert exporter.parse_csv("") == []


class TestExportDispatch:
    """Tests for format selection."""

    def test_json(self, exporter, event):
        data = json.loads(exporter.export([event], "json"))

        assert data[0]["id"] == "evt1"
        assert data[0]["start"] == "2025-03-10T09:00:00"

    def test_format_is_case_insensitive(self, exporter, event):
        assert exporter.export([event], "CSV").startswith("Title,")

    def test_unsupported_format(self, exporter, event):
        with pytest.raises(UnsupportedFormatError):
            exporter.export([event], "xlsx")
