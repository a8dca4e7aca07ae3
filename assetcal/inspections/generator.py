"""Inspection schedule generation for one or many assets."""

import logging
from collections.abc import Iterable, Mapping
from datetime import date, datetime, time, timedelta
from typing import Any, Optional, Union

from pydantic import BaseModel, Field

from ..config.settings import AssetCalSettings, get_settings
from ..events.models import Event, InspectionDetails, Priority, Reminder, ReminderType
from ..recurrence.expander import RecurrenceExpander
from .catalog import InspectionPolicyCatalog
from .conflicts import ConflictGroup, ConflictResolver, ConflictStrategy
from .models import Asset, InspectionOccurrence

logger = logging.getLogger(__name__)

INSPECTION_EVENT_TYPE = "Inspection"
INSPECTION_EVENT_PREFIX = "inspection_"

AssetLike = Union[Asset, Mapping[str, Any]]


class ScheduleOptions(BaseModel):
    """Per-call generation options. Unset values come from settings."""

    occurrence_count: Optional[int] = Field(default=None, ge=1)
    conflict_strategy: Optional[ConflictStrategy] = None


class ScheduleBatch(BaseModel):
    """Result of batch generation across assets."""

    schedule: list[InspectionOccurrence]
    conflicts: list[ConflictGroup] = Field(default_factory=list)
    events: list[Event] = Field(default_factory=list)
    fallback_asset_ids: list[str] = Field(default_factory=list)
    strategy: ConflictStrategy


def _as_datetime(value: Union[date, datetime]) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def default_reminders(inspection_type: str, priority: Priority) -> list[Reminder]:
    """One day and one hour ahead, plus a week ahead for high priority."""
    reminders = [
        Reminder(
            type=ReminderType.EMAIL,
            minutes_before=1440,
            message=f"{inspection_type} scheduled for tomorrow",
        ),
        Reminder(
            type=ReminderType.POPUP,
            minutes_before=60,
            message=f"{inspection_type} starting in 1 hour",
        ),
    ]
    if priority == Priority.HIGH:
        reminders.insert(
            0,
            Reminder(
                type=ReminderType.EMAIL,
                minutes_before=10080,
                message=f"{inspection_type} scheduled for next week",
            ),
        )
    return reminders


def occurrence_event_id(occurrence_id: str) -> str:
    return f"{INSPECTION_EVENT_PREFIX}{occurrence_id}"


def occurrence_to_event(occurrence: InspectionOccurrence) -> Event:
    """Calendar event for an inspection occurrence.

    Series members share ``series_id``; non-head members link back to the
    head's event id.
    """
    head_id = occurrence_event_id(f"{occurrence.series_id}_0")
    rule = occurrence.frequency.to_rule(occurrence.series_length)
    if not occurrence.is_series_head:
        rule = rule.as_instance(head_id)

    return Event(
        id=occurrence_event_id(occurrence.id),
        title=f"{occurrence.inspection_type} - {occurrence.asset_name}",
        description=occurrence.description,
        location=occurrence.location,
        start=occurrence.scheduled_date,
        end=occurrence.end,
        type=INSPECTION_EVENT_TYPE,
        category=occurrence.category,
        priority=occurrence.priority,
        status=occurrence.status,
        asset_id=occurrence.asset_id,
        asset_name=occurrence.asset_name,
        assigned_to=occurrence.assigned_to or "",
        color=occurrence.color or None,
        reminders=default_reminders(occurrence.inspection_type, occurrence.priority),
        notes=f"Required fields: {', '.join(occurrence.required_fields)}",
        recurring=rule,
        parent_event_id=None if occurrence.is_series_head else head_id,
        series_id=occurrence.series_id,
        inspection=InspectionDetails(
            inspection_type=occurrence.inspection_type,
            asset_type=occurrence.asset_type,
            required_fields=list(occurrence.required_fields),
            occurrence_id=occurrence.id,
        ),
    )


def occurrences_to_events(occurrences: Iterable[InspectionOccurrence]) -> list[Event]:
    return [occurrence_to_event(occurrence) for occurrence in occurrences]


class InspectionScheduleGenerator:
    """Build inspection schedules from the policy catalog and recurrence expansion."""

    def __init__(
        self,
        catalog: Optional[InspectionPolicyCatalog] = None,
        settings: Optional[AssetCalSettings] = None,
        expander: Optional[RecurrenceExpander] = None,
        resolver: Optional[ConflictResolver] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.catalog = catalog or InspectionPolicyCatalog()
        self.expander = expander or RecurrenceExpander(self.settings)
        self.resolver = resolver or ConflictResolver(self.settings)

    def uses_fallback(self, asset: AssetLike) -> bool:
        """True when the asset's type is missing or not in the asset-type table."""
        asset = Asset.model_validate(asset)
        return not self.catalog.is_known_asset_type(asset.type)

    def generate(
        self,
        asset: AssetLike,
        start_date: Union[date, datetime],
        options: Optional[ScheduleOptions] = None,
    ) -> list[InspectionOccurrence]:
        """Schedule every applicable inspection for ``asset``, sorted by date.

        Args:
            asset: Asset record or mapping
            start_date: Seed for every inspection series
            options: Generation options

        Returns:
            Occurrences sorted ascending by ``scheduled_date``

        Raises:
            ValidationError: If a custom policy names an unknown inspection type
        """
        asset = Asset.model_validate(asset)
        options = options or ScheduleOptions()
        seed = _as_datetime(start_date)

        if not self.catalog.is_known_asset_type(asset.type):
            logger.warning(
                "Asset %s has unrecognized type %r, using the Other inspection bucket",
                asset.id,
                asset.type,
            )

        inspection_types = self.catalog.applicable_types(asset.type, list(asset.custom_policy))
        schedule: list[InspectionOccurrence] = []
        for inspection_type in inspection_types:
            schedule.extend(self._generate_series(asset, inspection_type, seed, options))

        schedule.sort(key=lambda occurrence: occurrence.scheduled_date)
        logger.debug(
            "Generated %d inspections for asset %s (%d types)",
            len(schedule),
            asset.id,
            len(inspection_types),
        )
        return schedule

    def _generate_series(
        self,
        asset: Asset,
        inspection_type: str,
        seed: datetime,
        options: ScheduleOptions,
    ) -> list[InspectionOccurrence]:
        override = asset.custom_policy.get(inspection_type)
        policy = self.catalog.merge(inspection_type, override)

        count = (
            (override.occurrence_count if override else None)
            or options.occurrence_count
            or self.settings.default_occurrence_count
        )
        rule = policy.frequency.to_rule(count)
        expansion = self.expander.expand(
            seed, rule, seed_duration=timedelta(minutes=policy.duration_minutes)
        )

        assigned_to = (override.default_inspector if override else None) or asset.manager or None
        series_id = f"{asset.id}_{inspection_type}"
        return [
            InspectionOccurrence(
                id=f"{series_id}_{index}",
                series_id=series_id,
                series_index=index,
                series_length=len(expansion),
                asset_id=asset.id,
                asset_name=asset.name,
                asset_type=asset.type,
                inspection_type=inspection_type,
                scheduled_date=start,
                duration_minutes=policy.duration_minutes,
                priority=policy.priority,
                assigned_to=assigned_to,
                frequency=policy.frequency,
                description=policy.description,
                color=policy.color,
                category=policy.category,
                location=asset.location or "",
                required_fields=policy.required_fields,
            )
            for index, start in enumerate(expansion)
        ]

    def generate_for_assets(
        self,
        assets: Iterable[AssetLike],
        start_date: Union[date, datetime],
        options: Optional[ScheduleOptions] = None,
    ) -> ScheduleBatch:
        """Generate, resolve conflicts and convert to events for many assets.

        The combined schedule is resolved with the configured strategy and
        returned sorted ascending by date. Assets that fell back to the
        ``"Other"`` bucket are listed in ``fallback_asset_ids``.
        """
        options = options or ScheduleOptions()
        combined: list[InspectionOccurrence] = []
        fallback_asset_ids: list[str] = []

        for raw_asset in assets:
            asset = Asset.model_validate(raw_asset)
            if self.uses_fallback(asset):
                fallback_asset_ids.append(asset.id)
            combined.extend(self.generate(asset, start_date, options))

        result = self.resolver.resolve(combined, options.conflict_strategy)
        schedule = sorted(result.schedule, key=lambda occurrence: occurrence.scheduled_date)

        logger.info(
            "Generated %d inspections for %d assets with %d conflicts",
            len(schedule),
            len({occurrence.asset_id for occurrence in schedule}),
            len(result.conflicts),
        )
        return ScheduleBatch(
            schedule=schedule,
            conflicts=result.conflicts,
            events=occurrences_to_events(schedule),
            fallback_asset_ids=fallback_asset_ids,
            strategy=result.strategy,
        )
