"""Asset and inspection-occurrence records."""

from datetime import date, datetime, time, timedelta
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..events.models import EventStatus, OpaqueId, Priority
from ..exceptions import ValidationError
from .catalog import InspectionFrequency, PolicyOverride

UNASSIGNED = "unassigned"

_ASSET_KEYS = {
    "customPolicy": "custom_policy",
    "inspectionSchedule": "custom_policy",
    "inspection_schedule": "custom_policy",
}


class Asset(BaseModel):
    """Asset as supplied by the asset provider. Never mutated by the engine."""

    id: OpaqueId
    name: str
    type: Optional[str] = None
    manager: Optional[str] = None
    location: Optional[str] = None
    custom_policy: dict[str, PolicyOverride] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def normalize_keys(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        return {_ASSET_KEYS.get(key, key): value for key, value in values.items()}

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not v.strip():
            raise ValidationError("Asset id cannot be empty", field_name="id", field_value=v)
        return v


class InspectionOccurrence(BaseModel):
    """One scheduled inspection, before it becomes a calendar event.

    ``series_index == 0`` marks the head of the ``series_id`` series.
    """

    id: str
    series_id: str
    series_index: int
    series_length: int = 1

    asset_id: str
    asset_name: str
    asset_type: Optional[str] = None
    inspection_type: str

    scheduled_date: datetime
    duration_minutes: int
    priority: Priority
    assigned_to: Optional[str] = None

    frequency: InspectionFrequency
    description: str = ""
    color: str = ""
    category: str = ""
    location: str = ""
    required_fields: tuple[str, ...] = ()
    status: EventStatus = EventStatus.SCHEDULED

    model_config = ConfigDict(use_enum_values=False)

    @field_validator("scheduled_date", mode="before")
    @classmethod
    def coerce_date(cls, v: Any) -> Any:
        if isinstance(v, date) and not isinstance(v, datetime):
            return datetime.combine(v, time.min)
        return v

    @property
    def assignee_key(self) -> str:
        """Assignee used for conflict grouping."""
        return self.assigned_to or UNASSIGNED

    @property
    def end(self) -> datetime:
        return self.scheduled_date + timedelta(minutes=self.duration_minutes)

    @property
    def is_series_head(self) -> bool:
        return self.series_index == 0

    def moved_to(self, when: datetime) -> "InspectionOccurrence":
        """Copy of this occurrence rescheduled to ``when``."""
        return self.model_copy(update={"scheduled_date": when})
