"""Data models for calendar events, reminders, templates and queries."""

import uuid
from datetime import datetime, time, timedelta
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)

from ..exceptions import ValidationError
from ..recurrence.models import RecurrenceRule


def new_id() -> str:
    """Opaque identifier for events, reminders and templates."""
    return uuid.uuid4().hex


def coerce_id(v: Any) -> Any:
    """Integer ids (asset providers, YAML files) are stored as strings."""
    if isinstance(v, int) and not isinstance(v, bool):
        return str(v)
    return v


OpaqueId = Annotated[str, BeforeValidator(coerce_id)]


class Priority(str, Enum):
    """Event priority."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class EventStatus(str, Enum):
    """Event lifecycle status."""

    SCHEDULED = "Scheduled"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class ReminderType(str, Enum):
    """Reminder delivery channel."""

    EMAIL = "email"
    SMS = "sms"
    POPUP = "popup"
    PUSH = "push"


COMPLETED_COLOR = "#10b981"
PRIORITY_COLORS = {
    Priority.HIGH: "#f59e0b",
    Priority.MEDIUM: "#3b82f6",
    Priority.LOW: "#6b7280",
}


def event_color(priority: Priority, status: EventStatus) -> str:
    """Display colour derived from status first, then priority."""
    if status == EventStatus.COMPLETED:
        return COMPLETED_COLOR
    return PRIORITY_COLORS.get(priority, PRIORITY_COLORS[Priority.LOW])


class Reminder(BaseModel):
    """Reminder attached to an event."""

    id: str = Field(default_factory=new_id)
    type: ReminderType = ReminderType.EMAIL
    minutes_before: int = Field(default=15, description="Minutes before the event start")
    message: str = ""
    is_active: bool = True

    @field_validator("minutes_before")
    @classmethod
    def validate_minutes_before(cls, v: int) -> int:
        if v < 0:
            raise ValidationError(
                "minutes_before cannot be negative", field_name="minutes_before", field_value=v
            )
        return v


class InspectionDetails(BaseModel):
    """Inspection metadata carried by events generated from an inspection schedule."""

    inspection_type: str
    asset_type: Optional[str] = None
    required_fields: list[str] = Field(default_factory=list)
    occurrence_id: Optional[str] = None
    completion: Optional[dict[str, Any]] = None


class Event(BaseModel):
    """A single occurrence on the calendar.

    ``start < end`` always holds. All-day events are truncated to midnight and
    their ``end`` is exclusive, so a one-day event ends at the next midnight; an
    all-day end on or before the start day becomes that next midnight.
    ``recurring`` is set on a series parent and on its generated instances; all
    members of a series share ``series_id``.
    """

    id: str = Field(default_factory=new_id)
    title: str
    description: str = ""
    location: str = ""

    start: datetime
    end: datetime
    all_day: bool = False

    type: str = "custom"
    category: str = "general"
    priority: Priority = Priority.MEDIUM
    status: EventStatus = EventStatus.SCHEDULED

    asset_id: Optional[OpaqueId] = None
    asset_name: str = ""
    assigned_to: str = ""

    color: Optional[str] = None
    reminders: list[Reminder] = Field(default_factory=list)
    notes: str = ""

    recurring: Optional[RecurrenceRule] = None
    parent_event_id: Optional[str] = None
    series_id: Optional[str] = None

    inspection: Optional[InspectionDetails] = None

    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    model_config = ConfigDict(use_enum_values=False)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        if not v.strip():
            raise ValidationError("Event title cannot be empty", field_name="title", field_value=v)
        return v.strip()

    @model_validator(mode="after")
    def validate_time_span(self) -> "Event":
        if self.all_day:
            self.start = datetime.combine(self.start.date(), time.min, tzinfo=self.start.tzinfo)
            self.end = datetime.combine(self.end.date(), time.min, tzinfo=self.end.tzinfo)
            if self.end <= self.start:
                self.end = self.start + timedelta(days=1)
        elif self.end <= self.start:
            raise ValidationError(
                "Event end must be after its start",
                field_name="end",
                field_value=self.end,
                details={"start": self.start.isoformat()},
            )
        if self.color is None:
            self.color = event_color(self.priority, self.status)
        return self

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def is_instance(self) -> bool:
        """True for generated (non-parent) members of a series."""
        return bool(self.recurring and self.recurring.is_instance)

    @field_serializer("start", "end", "created_at", "updated_at")
    def serialize_datetime(self, dt: datetime) -> str:
        """Serialize datetime fields to ISO format."""
        return dt.isoformat()


class EventFilters(BaseModel):
    """Conjunctive search filters; unset fields do not constrain results."""

    type: Optional[str] = None
    category: Optional[str] = None
    asset_id: Optional[OpaqueId] = None
    status: Optional[EventStatus] = None
    priority: Optional[Priority] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    def matches(self, event: Event) -> bool:
        if self.type and event.type != self.type:
            return False
        if self.category and event.category != self.category:
            return False
        if self.asset_id and event.asset_id != self.asset_id:
            return False
        if self.status and event.status != self.status:
            return False
        if self.priority and event.priority != self.priority:
            return False
        if self.start_date and event.start < self.start_date:
            return False
        return not (self.end_date and event.start > self.end_date)


class EventTemplate(BaseModel):
    """Reusable defaults for creating events."""

    id: str = Field(default_factory=new_id)
    name: str
    description: str = ""
    type: str = "custom"
    category: str = "general"
    duration_minutes: int = 60
    priority: Priority = Priority.MEDIUM
    default_assignee: str = ""
    default_location: str = ""
    default_reminders: list[Reminder] = Field(default_factory=list)
    color: Optional[str] = None
    is_public: bool = False
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @field_validator("duration_minutes")
    @classmethod
    def validate_duration(cls, v: int) -> int:
        if v <= 0:
            raise ValidationError(
                "Template duration must be positive", field_name="duration_minutes", field_value=v
            )
        return v


def default_templates() -> list[EventTemplate]:
    """Built-in templates offered to new stores."""
    return [
        EventTemplate(
            id="template_inspection",
            name="Property Inspection",
            description="Standard property inspection appointment",
            type="Inspection",
            category="maintenance",
            duration_minutes=120,
            priority=Priority.HIGH,
            color="#3b82f6",
            default_reminders=[
                Reminder(type=ReminderType.EMAIL, minutes_before=1440),
                Reminder(type=ReminderType.POPUP, minutes_before=60),
            ],
        ),
        EventTemplate(
            id="template_maintenance",
            name="Maintenance Work",
            description="Scheduled maintenance work",
            type="Maintenance",
            category="maintenance",
            duration_minutes=180,
            priority=Priority.MEDIUM,
            color="#f59e0b",
            default_reminders=[
                Reminder(type=ReminderType.EMAIL, minutes_before=720),
                Reminder(type=ReminderType.POPUP, minutes_before=30),
            ],
        ),
        EventTemplate(
            id="template_meeting",
            name="Client Meeting",
            description="Meeting with property owner or tenant",
            type="Meeting",
            category="business",
            duration_minutes=60,
            priority=Priority.MEDIUM,
            color="#8b5cf6",
            default_reminders=[
                Reminder(type=ReminderType.EMAIL, minutes_before=60),
                Reminder(type=ReminderType.POPUP, minutes_before=15),
            ],
        ),
        EventTemplate(
            id="template_emergency",
            name="Emergency Response",
            description="Emergency repair or response",
            type="Emergency",
            category="urgent",
            duration_minutes=240,
            priority=Priority.HIGH,
            color="#ef4444",
            default_reminders=[Reminder(type=ReminderType.POPUP, minutes_before=5)],
        ),
    ]


class SeriesRecord(BaseModel):
    """Bookkeeping for a recurring series created through the store."""

    series_id: str
    parent_event_id: str
    occurrence_count: int
    cap_tripped: bool = False
    created_at: datetime = Field(default_factory=datetime.now)


class EventStats(BaseModel):
    """Counts backing dashboard summaries."""

    total: int = 0
    today: int = 0
    tomorrow: int = 0
    this_week: int = 0
    overdue: int = 0
    by_status: dict[str, int] = Field(default_factory=dict)
    by_type: dict[str, int] = Field(default_factory=dict)
    by_priority: dict[str, int] = Field(default_factory=dict)
