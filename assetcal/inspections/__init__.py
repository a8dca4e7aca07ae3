"""Inspection policies, schedule generation, conflict resolution and history."""

from .catalog import (
    DEFAULT_ASSET_TYPES,
    DEFAULT_POLICIES,
    FALLBACK_ASSET_TYPE,
    InspectionFrequency,
    InspectionPolicy,
    InspectionPolicyCatalog,
    PolicyOverride,
)
from .conflicts import ConflictGroup, ConflictResolver, ConflictStrategy, ResolutionResult
from .generator import (
    InspectionScheduleGenerator,
    ScheduleBatch,
    ScheduleOptions,
    default_reminders,
    occurrence_to_event,
    occurrences_to_events,
)
from .history import InspectionAnalytics, InspectionCompletion, InspectionHistory
from .models import Asset, InspectionOccurrence

__all__ = [
    "DEFAULT_ASSET_TYPES",
    "DEFAULT_POLICIES",
    "FALLBACK_ASSET_TYPE",
    "Asset",
    "ConflictGroup",
    "ConflictResolver",
    "ConflictStrategy",
    "InspectionAnalytics",
    "InspectionCompletion",
    "InspectionFrequency",
    "InspectionHistory",
    "InspectionOccurrence",
    "InspectionPolicy",
    "InspectionPolicyCatalog",
    "InspectionScheduleGenerator",
    "PolicyOverride",
    "ResolutionResult",
    "ScheduleBatch",
    "ScheduleOptions",
    "default_reminders",
    "occurrence_to_event",
    "occurrences_to_events",
]
