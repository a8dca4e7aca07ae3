"""Calendar event records.

The store lives in :mod:`assetcal.events.store`; it depends on the inspection
package, which in turn builds on these records.
"""

from .models import (
    Event,
    EventFilters,
    EventStats,
    EventStatus,
    EventTemplate,
    InspectionDetails,
    Priority,
    Reminder,
    ReminderType,
    SeriesRecord,
    default_templates,
    event_color,
)

__all__ = [
    "Event",
    "EventFilters",
    "EventStats",
    "EventStatus",
    "EventTemplate",
    "InspectionDetails",
    "Priority",
    "Reminder",
    "ReminderType",
    "SeriesRecord",
    "default_templates",
    "event_color",
]
