"""In-memory event store with series bookkeeping and inspection integration."""

import logging
from collections import Counter
from collections.abc import Callable, Iterable, Mapping
from datetime import date, datetime, time, timedelta
from typing import Any, Optional, Union

from pydantic import BaseModel, Field

from ..calendar.grid import is_same_calendar_day
from ..config.settings import AssetCalSettings, get_settings
from ..exceptions import NotFoundError, ValidationError
from ..export.exporter import Exporter
from ..inspections.generator import (
    INSPECTION_EVENT_TYPE,
    AssetLike,
    InspectionScheduleGenerator,
    ScheduleBatch,
    ScheduleOptions,
)
from ..inspections.history import InspectionCompletion, InspectionHistory
from ..recurrence.expander import RecurrenceExpander
from .models import (
    Event,
    EventFilters,
    EventStats,
    EventStatus,
    EventTemplate,
    Reminder,
    SeriesRecord,
    default_templates,
    event_color,
    new_id,
)

logger = logging.getLogger(__name__)

EventData = Union[Event, Mapping[str, Any]]
_CLOSED_STATUSES = (EventStatus.COMPLETED, EventStatus.CANCELLED)


class ScheduleRecord(BaseModel):
    """Inspection schedule currently stored for one asset."""

    asset_id: str
    asset_name: str
    start_date: datetime
    inspection_types: list[str] = Field(default_factory=list)
    series_ids: list[str] = Field(default_factory=list)
    event_ids: list[str] = Field(default_factory=list)
    updated_at: datetime = Field(default_factory=datetime.now)


class EventStore:
    """Keyed in-memory collection of manual and generated events.

    Each instance is independent. Recurring events are expanded on create and
    every member of a series carries the parent's ``series_id``. Updates apply
    to a single event only.

    Args:
        settings: Settings instance (defaults to ``get_settings()``)
        generator: Inspection schedule generator used by ``schedule_inspections``
        clock: Callable returning "now", used for timestamps
        with_default_templates: Seed the built-in event templates
    """

    def __init__(
        self,
        settings: Optional[AssetCalSettings] = None,
        generator: Optional[InspectionScheduleGenerator] = None,
        clock: Callable[[], datetime] = datetime.now,
        with_default_templates: bool = True,
    ) -> None:
        self.settings = settings or get_settings()
        self.expander = RecurrenceExpander(self.settings)
        self.generator = generator or InspectionScheduleGenerator(settings=self.settings)
        self.history = InspectionHistory()
        self._clock = clock

        self._events: dict[str, Event] = {}
        self._series: dict[str, SeriesRecord] = {}
        self._schedules: dict[str, ScheduleRecord] = {}
        self._templates: dict[str, EventTemplate] = {}
        if with_default_templates:
            for template in default_templates():
                self._templates[template.id] = template

    def __len__(self) -> int:
        return len(self._events)

    def __contains__(self, event_id: object) -> bool:
        return event_id in self._events

    # Events

    def get(self, event_id: str) -> Event:
        """Stored event by id.

        Raises:
            NotFoundError: If no event has this id
        """
        try:
            return self._events[event_id]
        except KeyError:
            raise NotFoundError(
                f"Event not found: {event_id}", resource_type="event", resource_id=event_id
            ) from None

    def all(self) -> list[Event]:
        return sorted(self._events.values(), key=lambda event: event.start)

    def create(self, event_data: EventData) -> Event:
        """Store a new event and, when it recurs, its whole expanded series.

        A new id is always assigned. Returns the stored (parent) event.

        Raises:
            ValidationError: If the event data is malformed
        """
        if isinstance(event_data, Event):
            data = event_data.model_dump(exclude={"id", "created_at", "updated_at"})
        else:
            data = dict(event_data)
        now = self._clock()
        data.update(id=new_id(), created_at=now, updated_at=now)
        event = Event.model_validate(data)

        if event.recurring is None or event.recurring.is_instance:
            self._events[event.id] = event
            logger.debug("Created event %s (%s)", event.id, event.title)
            return event

        event.series_id = event.id
        self._events[event.id] = event
        expansion = self.expander.expand(event.start, event.recurring, event.duration)
        instance_rule = event.recurring.as_instance(event.id)
        for start, end in expansion.spans()[1:]:
            instance = event.model_copy(
                update={
                    "id": new_id(),
                    "start": start,
                    "end": end,
                    "recurring": instance_rule,
                    "parent_event_id": event.id,
                },
                deep=True,
            )
            self._events[instance.id] = instance

        self._series[event.id] = SeriesRecord(
            series_id=event.id,
            parent_event_id=event.id,
            occurrence_count=len(expansion),
            cap_tripped=expansion.cap_tripped,
            created_at=now,
        )
        logger.info(
            "Created recurring series %s with %d occurrences%s",
            event.id,
            len(expansion),
            " (hard cap reached)" if expansion.cap_tripped else "",
        )
        return event

    def add_events(self, events: Iterable[Event]) -> list[Event]:
        """Store pre-built events under their own ids, replacing same-id events."""
        stored = []
        for event in events:
            self._events[event.id] = event
            stored.append(event)
        return stored

    def update(self, event_id: str, patch: Mapping[str, Any]) -> Event:
        """Merge ``patch`` into one event and bump ``updated_at``.

        A colour that was derived from priority/status is re-derived.

        Raises:
            NotFoundError: If no event has this id
            ValidationError: If the merged event is invalid
        """
        existing = self.get(event_id)
        data = existing.model_dump()
        data.update(patch)
        data.update(id=existing.id, created_at=existing.created_at, updated_at=self._clock())
        if "color" not in patch and existing.color == event_color(
            existing.priority, existing.status
        ):
            data["color"] = None

        updated = Event.model_validate(data)
        self._events[event_id] = updated
        logger.debug("Updated event %s: %s", event_id, sorted(patch))
        return updated

    def delete(self, event_id: str, delete_all: bool = False) -> list[str]:
        """Remove an event, or its whole series when ``delete_all`` is set.

        Returns:
            Ids of the removed events

        Raises:
            NotFoundError: If no event has this id
        """
        target = self.get(event_id)
        if delete_all and target.series_id:
            removed = [e.id for e in self._events.values() if e.series_id == target.series_id]
            self._series.pop(target.series_id, None)
        else:
            removed = [event_id]

        for removed_id in removed:
            del self._events[removed_id]
        logger.debug("Deleted %d events starting from %s", len(removed), event_id)
        return removed

    def query_range(self, start: datetime, end: datetime) -> list[Event]:
        """Events whose start lies in ``[start, end]``."""
        return sorted(
            (e for e in self._events.values() if start <= e.start <= end),
            key=lambda event: event.start,
        )

    def events_for_date(self, day: Union[date, datetime]) -> list[Event]:
        return sorted(
            (e for e in self._events.values() if is_same_calendar_day(e.start, day)),
            key=lambda event: event.start,
        )

    def search(self, text: str = "", filters: Optional[EventFilters] = None) -> list[Event]:
        """Case-insensitive text match on title/description/asset name, ANDed with filters."""
        needle = text.strip().lower()
        filters = filters or EventFilters()
        results = []
        for event in self._events.values():
            if needle and not any(
                needle in field.lower()
                for field in (event.title, event.description, event.asset_name)
            ):
                continue
            if filters.matches(event):
                results.append(event)
        return sorted(results, key=lambda event: event.start)

    def export(
        self, fmt: str = "ics", filters: Optional[EventFilters] = None, text: str = ""
    ) -> str:
        """Render the events matching ``text`` and ``filters`` as ``fmt`` text.

        Raises:
            UnsupportedFormatError: If ``fmt`` is not ics, csv or json
        """
        events = self.search(text, filters)
        logger.debug("Exporting %d events as %s", len(events), fmt)
        return Exporter(self.settings).export(events, fmt)

    # Series

    def series(self, series_id: str) -> SeriesRecord:
        """Bookkeeping record for a recurring series.

        Raises:
            NotFoundError: If the series is unknown
        """
        try:
            return self._series[series_id]
        except KeyError:
            raise NotFoundError(
                f"Series not found: {series_id}", resource_type="series", resource_id=series_id
            ) from None

    def series_events(self, series_id: str) -> list[Event]:
        self.series(series_id)
        return sorted(
            (e for e in self._events.values() if e.series_id == series_id),
            key=lambda event: event.start,
        )

    # Reminders

    def add_reminder(self, event_id: str, reminder: Union[Reminder, Mapping[str, Any]]) -> Reminder:
        event = self.get(event_id)
        reminder = Reminder.model_validate(reminder)
        event.reminders.append(reminder)
        event.updated_at = self._clock()
        return reminder

    def update_reminder(
        self, event_id: str, reminder_id: str, patch: Mapping[str, Any]
    ) -> Reminder:
        event = self.get(event_id)
        index = self._reminder_index(event, reminder_id)
        updated = Reminder.model_validate(
            {**event.reminders[index].model_dump(), **patch, "id": reminder_id}
        )
        event.reminders[index] = updated
        event.updated_at = self._clock()
        return updated

    def remove_reminder(self, event_id: str, reminder_id: str) -> None:
        event = self.get(event_id)
        del event.reminders[self._reminder_index(event, reminder_id)]
        event.updated_at = self._clock()

    def _reminder_index(self, event: Event, reminder_id: str) -> int:
        for index, reminder in enumerate(event.reminders):
            if reminder.id == reminder_id:
                return index
        raise NotFoundError(
            f"Reminder not found: {reminder_id}",
            resource_type="reminder",
            resource_id=reminder_id,
            details={"event_id": event.id},
        )

    # Templates

    def templates(self) -> list[EventTemplate]:
        return list(self._templates.values())

    def get_template(self, template_id: str) -> EventTemplate:
        try:
            return self._templates[template_id]
        except KeyError:
            raise NotFoundError(
                f"Template not found: {template_id}",
                resource_type="template",
                resource_id=template_id,
            ) from None

    def create_template(self, template_data: Mapping[str, Any]) -> EventTemplate:
        now = self._clock()
        template = EventTemplate.model_validate(
            {**template_data, "id": new_id(), "created_at": now, "updated_at": now}
        )
        self._templates[template.id] = template
        return template

    def update_template(self, template_id: str, patch: Mapping[str, Any]) -> EventTemplate:
        existing = self.get_template(template_id)
        updated = EventTemplate.model_validate(
            {**existing.model_dump(), **patch, "id": template_id, "updated_at": self._clock()}
        )
        self._templates[template_id] = updated
        return updated

    def delete_template(self, template_id: str) -> None:
        self.get_template(template_id)
        del self._templates[template_id]

    def create_from_template(
        self, template_id: str, start: datetime, overrides: Optional[Mapping[str, Any]] = None
    ) -> Event:
        """Create an event from a template; ``overrides`` win over template defaults."""
        template = self.get_template(template_id)
        data: dict[str, Any] = {
            "title": template.name,
            "description": template.description,
            "type": template.type,
            "category": template.category,
            "priority": template.priority,
            "assigned_to": template.default_assignee,
            "location": template.default_location,
            "reminders": [
                r.model_copy(update={"id": new_id()}) for r in template.default_reminders
            ],
            "color": template.color,
            "start": start,
            "end": start + timedelta(minutes=template.duration_minutes),
        }
        data.update(overrides or {})
        return self.create(data)

    # Statistics

    def stats(self, now: Optional[datetime] = None) -> EventStats:
        """Dashboard counts relative to ``now``."""
        now = now or self._clock()
        today = datetime.combine(now.date(), time.min, tzinfo=now.tzinfo)
        tomorrow = today + timedelta(days=1)
        week_end = today + timedelta(days=7)
        events = list(self._events.values())

        return EventStats(
            total=len(events),
            today=sum(1 for e in events if e.start.date() == today.date()),
            tomorrow=sum(1 for e in events if e.start.date() == tomorrow.date()),
            this_week=sum(1 for e in events if today <= e.start <= week_end),
            overdue=sum(1 for e in events if e.start < now and e.status != EventStatus.COMPLETED),
            by_status={s.value: sum(1 for e in events if e.status == s) for s in EventStatus},
            by_type=dict(Counter(e.type for e in events)),
            by_priority=dict(Counter(e.priority.value for e in events)),
        )

    # Inspections

    def schedule_record(self, asset_id: str) -> ScheduleRecord:
        try:
            return self._schedules[asset_id]
        except KeyError:
            raise NotFoundError(
                f"No inspection schedule for asset: {asset_id}",
                resource_type="asset",
                resource_id=asset_id,
            ) from None

    def schedule_records(self) -> list[ScheduleRecord]:
        return list(self._schedules.values())

    def schedule_inspections(
        self,
        assets: Iterable[AssetLike],
        start_date: Union[date, datetime],
        options: Optional[ScheduleOptions] = None,
    ) -> ScheduleBatch:
        """Generate and store inspection events for ``assets``.

        Inspection events previously stored for any of these assets are
        replaced; other events are untouched.
        """
        batch = self.generator.generate_for_assets(assets, start_date, options)
        now = self._clock()

        events_by_asset: dict[str, list[Event]] = {}
        for event in batch.events:
            events_by_asset.setdefault(event.asset_id or "", []).append(event)

        for asset_id, events in events_by_asset.items():
            self._replace_asset_schedule(asset_id, events[0].asset_name, start_date, events, now)
        return batch

    def regenerate_asset(
        self,
        asset: AssetLike,
        start_date: Union[date, datetime],
        options: Optional[ScheduleOptions] = None,
    ) -> ScheduleBatch:
        """Replace one asset's stored inspections with a fresh schedule."""
        return self.schedule_inspections([asset], start_date, options)

    def _replace_asset_schedule(
        self,
        asset_id: str,
        asset_name: str,
        start_date: Union[date, datetime],
        events: list[Event],
        now: datetime,
    ) -> None:
        previous = self._schedules.pop(asset_id, None)
        if previous:
            for event_id in previous.event_ids:
                self._events.pop(event_id, None)
            for series_id in previous.series_ids:
                self._series.pop(series_id, None)
            logger.debug(
                "Replacing %d inspection events for asset %s", len(previous.event_ids), asset_id
            )

        self.add_events(events)
        series_ids = list(dict.fromkeys(e.series_id for e in events if e.series_id))
        for series_id in series_ids:
            members = [e for e in events if e.series_id == series_id]
            head = next((e for e in members if e.parent_event_id is None), members[0])
            self._series[series_id] = SeriesRecord(
                series_id=series_id,
                parent_event_id=head.id,
                occurrence_count=len(members),
                created_at=now,
            )

        if not isinstance(start_date, datetime):
            start_date = datetime.combine(start_date, time.min)
        inspection_types = [e.inspection.inspection_type for e in events if e.inspection]
        self._schedules[asset_id] = ScheduleRecord(
            asset_id=asset_id,
            asset_name=asset_name,
            start_date=start_date,
            inspection_types=list(dict.fromkeys(inspection_types)),
            series_ids=series_ids,
            event_ids=[e.id for e in events],
            updated_at=now,
        )

    def _open_inspections(self) -> list[Event]:
        return [
            e
            for e in self._events.values()
            if e.type == INSPECTION_EVENT_TYPE and e.status not in _CLOSED_STATUSES
        ]

    def upcoming_inspections(
        self, now: Optional[datetime] = None, days_ahead: Optional[int] = None
    ) -> list[Event]:
        """Open inspections starting within ``days_ahead`` days of ``now``."""
        now = now or self._clock()
        days = self.settings.upcoming_days_ahead if days_ahead is None else days_ahead
        cutoff = now + timedelta(days=days)
        return sorted(
            (e for e in self._open_inspections() if now <= e.start <= cutoff),
            key=lambda event: event.start,
        )

    def overdue_inspections(self, now: Optional[datetime] = None) -> list[Event]:
        """Open inspections whose start has passed."""
        now = now or self._clock()
        return sorted(
            (e for e in self._open_inspections() if e.start < now),
            key=lambda event: event.start,
        )

    def complete_inspection(
        self, event_id: str, completion: Optional[Mapping[str, Any]] = None
    ) -> InspectionCompletion:
        """Mark an inspection event completed and record it in the history.

        Raises:
            NotFoundError: If no event has this id
            ValidationError: If the event is not an inspection
        """
        event = self.get(event_id)
        if event.type != INSPECTION_EVENT_TYPE or event.inspection is None:
            raise ValidationError(
                f"Event {event_id} is not an inspection",
                field_name="type",
                field_value=event.type,
            )

        record = self.history.record(
            {
                "completed_at": self._clock(),
                **(completion or {}),
                "inspection_id": event.id,
                "asset_id": event.asset_id or "",
                "inspection_type": event.inspection.inspection_type,
            }
        )
        details = event.inspection.model_copy(update={"completion": record.model_dump(mode="json")})
        self.update(event_id, {"status": EventStatus.COMPLETED, "inspection": details})
        logger.info("Completed inspection %s for asset %s", event_id, event.asset_id)
        return record
