"""Serialize events to ICS, CSV and JSON text."""

import csv
import io
import json
import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional
from zoneinfo import ZoneInfo

from dateutil import parser as date_parser
from icalendar import Calendar, Event as ICalEvent
from pydantic import BaseModel

from ..events.models import Event, EventStatus, Priority
from ..exceptions import UnsupportedFormatError, ValidationError

if TYPE_CHECKING:
    from ..config.settings import AssetCalSettings

logger = logging.getLogger(__name__)

DEFAULT_PRODID = "-//Asset Tracker//Calendar//EN"
DEFAULT_UID_DOMAIN = "assettracker.com"

CSV_HEADERS = (
    "Title",
    "Description",
    "Start",
    "End",
    "Type",
    "Status",
    "Priority",
    "Asset",
    "Assigned To",
    "Location",
)
CSV_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

ICS_PRIORITY = {Priority.HIGH: 1, Priority.MEDIUM: 5, Priority.LOW: 9}

EXPORT_FORMATS = ("ics", "csv", "json")


class CsvRow(BaseModel):
    """One event as read back from exported CSV. Timestamps are UTC."""

    title: str
    description: str
    start: datetime
    end: datetime
    type: str
    status: EventStatus
    priority: Priority
    asset: str
    assigned_to: str
    location: str


class Exporter:
    """Render events as interchange text.

    Naive timestamps are read in the configured timezone; ICS and CSV output
    is always UTC. Recurring series are exported as their concrete instances.
    """

    def __init__(self, settings: Optional["AssetCalSettings"] = None) -> None:
        self.timezone = ZoneInfo(settings.timezone) if settings else timezone.utc
        self.prodid = settings.ics_prodid if settings else DEFAULT_PRODID
        self.uid_domain = settings.ics_uid_domain if settings else DEFAULT_UID_DOMAIN

    def to_utc(self, value: datetime) -> datetime:
        if value.tzinfo is None:
            value = value.replace(tzinfo=self.timezone)
        return value.astimezone(timezone.utc).replace(microsecond=0)

    def to_ics(self, events: Iterable[Event]) -> str:
        """One VCALENDAR with a VEVENT per event."""
        calendar = Calendar()
        calendar.add("prodid", self.prodid)
        calendar.add("version", "2.0")
        calendar.add("calscale", "GREGORIAN")

        stamp = datetime.now(timezone.utc).replace(microsecond=0)
        count = 0
        for event in events:
            component = ICalEvent()
            component.add("uid", f"{event.id}@{self.uid_domain}")
            component.add("dtstamp", stamp)
            component.add("dtstart", self.to_utc(event.start))
            component.add("dtend", self.to_utc(event.end))
            component.add("summary", event.title)
            component.add("description", event.description)
            component.add("location", event.location)
            component.add("status", event.status.value.upper())
            component.add("priority", ICS_PRIORITY[event.priority])
            calendar.add_component(component)
            count += 1

        logger.debug("Rendered %d events as ICS", count)
        return calendar.to_ical().decode("utf-8")

    def to_csv(self, events: Iterable[Event]) -> str:
        """Header line followed by one fully quoted row per event."""
        buffer = io.StringIO()
        csv.writer(buffer, lineterminator="\n").writerow(CSV_HEADERS)
        writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
        for event in events:
            writer.writerow(
                [
                    event.title,
                    event.description,
                    self.to_utc(event.start).strftime(CSV_TIMESTAMP_FORMAT),
                    self.to_utc(event.end).strftime(CSV_TIMESTAMP_FORMAT),
                    event.type,
                    event.status.value,
                    event.priority.value,
                    event.asset_name,
                    event.assigned_to,
                    event.location,
                ]
            )
        return buffer.getvalue()

    def to_json(self, events: Iterable[Event]) -> str:
        return json.dumps([event.model_dump(mode="json") for event in events], indent=2)

    def export(self, events: Iterable[Event], fmt: str = "ics") -> str:
        """Render ``events`` in ``fmt`` (``ics``, ``csv`` or ``json``).

        Raises:
            UnsupportedFormatError: For any other format
        """
        fmt = fmt.lower()
        if fmt == "ics":
            return self.to_ics(events)
        if fmt == "csv":
            return self.to_csv(events)
        if fmt == "json":
            return self.to_json(events)
        raise UnsupportedFormatError(
            f"Unsupported export format: {fmt}", details={"supported": list(EXPORT_FORMATS)}
        )

    def parse_csv(self, text: str) -> list[CsvRow]:
        """Read rows written by ``to_csv``.

        Raises:
            ValidationError: If the header does not match the export columns
        """
        reader = csv.reader(io.StringIO(text))
        header = next(reader, None)
        if header is None:
            return []
        if tuple(header) != CSV_HEADERS:
            raise ValidationError(
                "CSV header does not match export columns",
                field_name="header",
                field_value=header,
            )

        rows = []
        for values in reader:
            if not values:
                continue
            record = dict(zip(CSV_HEADERS, values))
            rows.append(
                CsvRow(
                    title=record["Title"],
                    description=record["Description"],
                    start=date_parser.isoparse(record["Start"]),
                    end=date_parser.isoparse(record["End"]),
                    type=record["Type"],
                    status=EventStatus(record["Status"]),
                    priority=Priority(record["Priority"]),
                    asset=record["Asset"],
                    assigned_to=record["Assigned To"],
                    location=record["Location"],
                )
            )
        return rows
