"""Recurrence rules and their expansion."""

from .expander import ExpansionResult, RecurrenceExpander
from .models import (
    AfterCount,
    MonthlyPattern,
    NeverEnd,
    OnDate,
    RecurrenceFrequency,
    RecurrenceRule,
)

__all__ = [
    "AfterCount",
    "ExpansionResult",
    "MonthlyPattern",
    "NeverEnd",
    "OnDate",
    "RecurrenceExpander",
    "RecurrenceFrequency",
    "RecurrenceRule",
]
