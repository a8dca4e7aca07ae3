"""Recurrence rule records."""

from datetime import date, datetime
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..exceptions import ValidationError


class RecurrenceFrequency(str, Enum):
    """Base repetition unit of a rule."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class MonthlyPattern(str, Enum):
    """How a monthly rule picks its day.

    ``BY_DATE`` repeats on the same day-of-month, ``BY_DAY`` on the same
    (week-of-month, weekday) pair, e.g. "third Tuesday".
    """

    BY_DATE = "byDate"
    BY_DAY = "byDay"


class NeverEnd(BaseModel):
    """Series with no declared end; bounded only by the expansion hard cap."""

    kind: Literal["never"] = "never"


class AfterCount(BaseModel):
    """Series that stops after ``count`` occurrences (the seed included)."""

    kind: Literal["after_count"] = "after_count"
    count: int

    @field_validator("count")
    @classmethod
    def validate_count(cls, v: int) -> int:
        if v < 1:
            raise ValidationError("count must be >= 1", field_name="count", field_value=v)
        return v


class OnDate(BaseModel):
    """Series that stops once an occurrence would start after ``until``.

    A date-only ``until`` includes every occurrence on that day.
    """

    kind: Literal["on_date"] = "on_date"
    until: Union[datetime, date]

    def is_past(self, occurrence: datetime) -> bool:
        if isinstance(self.until, datetime):
            return occurrence > self.until
        return occurrence.date() > self.until


EndCondition = Annotated[Union[NeverEnd, AfterCount, OnDate], Field(discriminator="kind")]

# camelCase keys accepted from callers that pass loosely shaped dicts
_LEGACY_KEYS = {
    "daysOfWeek": "days_of_week",
    "monthlyPattern": "monthly_pattern",
    "isInstance": "is_instance",
    "parentEventId": "parent_event_id",
    "endDate": "end_date",
}


class RecurrenceRule(BaseModel):
    """Declarative description of how a parent event repeats.

    Exactly one end condition is active. Callers may either pass ``end``
    directly or one of the shorthand keys ``count`` / ``end_date``; supplying
    more than one is rejected.

    Example:
        >>> rule = RecurrenceRule(frequency="weekly", days_of_week=[1, 3], count=4)
        >>> rule.end
        AfterCount(kind='after_count', count=4)
    """

    frequency: RecurrenceFrequency
    interval: int = 1
    days_of_week: list[int] = Field(default_factory=list)
    monthly_pattern: Optional[MonthlyPattern] = None
    end: EndCondition = Field(default_factory=NeverEnd)

    # Set on generated series members
    is_instance: bool = False
    parent_event_id: Optional[str] = None

    model_config = ConfigDict(use_enum_values=False, frozen=True)

    @model_validator(mode="before")
    @classmethod
    def normalize_end_condition(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values

        values = {_LEGACY_KEYS.get(key, key): value for key, value in values.items()}

        given = [key for key in ("end", "count", "end_date") if values.get(key) is not None]
        if len(given) > 1:
            raise ValidationError(
                "Recurrence rule may declare only one end condition",
                field_name="end",
                validation_errors=[f"conflicting end keys: {', '.join(given)}"],
            )

        count = values.pop("count", None)
        end_date = values.pop("end_date", None)
        if count is not None:
            values["end"] = {"kind": "after_count", "count": count}
        elif end_date is not None:
            values["end"] = {"kind": "on_date", "until": end_date}
        return values

    @field_validator("interval")
    @classmethod
    def validate_interval(cls, v: int) -> int:
        if v < 1:
            raise ValidationError("interval must be >= 1", field_name="interval", field_value=v)
        return v

    @field_validator("days_of_week")
    @classmethod
    def validate_days_of_week(cls, v: list[int]) -> list[int]:
        """Weekday indices run 0 (Sunday) to 6 (Saturday); duplicates collapse."""
        invalid = [day for day in v if not 0 <= day <= 6]
        if invalid:
            raise ValidationError(
                "days_of_week entries must be between 0 (Sunday) and 6 (Saturday)",
                field_name="days_of_week",
                field_value=invalid,
            )
        return sorted(set(v))

    def as_instance(self, parent_event_id: str) -> "RecurrenceRule":
        """Copy of this rule tagged as belonging to a generated series member."""
        return self.model_copy(update={"is_instance": True, "parent_event_id": parent_event_id})
