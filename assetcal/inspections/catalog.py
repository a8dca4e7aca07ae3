"""Inspection policy catalog: per-type defaults, asset-type mapping and override merging."""

import logging
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..events.models import Priority
from ..exceptions import NotFoundError, ValidationError
from ..recurrence.models import RecurrenceFrequency, RecurrenceRule

logger = logging.getLogger(__name__)

FALLBACK_ASSET_TYPE = "Other"


class InspectionFrequency(str, Enum):
    """Inspection cadence vocabulary."""

    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    BIANNUAL = "biannual"
    YEARLY = "yearly"
    AS_NEEDED = "as_needed"

    def to_rule(self, count: int) -> RecurrenceRule:
        """Recurrence rule producing ``count`` occurrences at this cadence.

        ``AS_NEEDED`` always yields a single-occurrence rule.
        """
        if self == InspectionFrequency.AS_NEEDED:
            return RecurrenceRule(frequency=RecurrenceFrequency.DAILY, count=1)
        frequency, interval = _FREQUENCY_RULES[self]
        return RecurrenceRule(frequency=frequency, interval=interval, count=count)


_FREQUENCY_RULES = {
    InspectionFrequency.WEEKLY: (RecurrenceFrequency.WEEKLY, 1),
    InspectionFrequency.BIWEEKLY: (RecurrenceFrequency.WEEKLY, 2),
    InspectionFrequency.MONTHLY: (RecurrenceFrequency.MONTHLY, 1),
    InspectionFrequency.QUARTERLY: (RecurrenceFrequency.MONTHLY, 3),
    InspectionFrequency.BIANNUAL: (RecurrenceFrequency.MONTHLY, 6),
    InspectionFrequency.YEARLY: (RecurrenceFrequency.YEARLY, 1),
}


# camelCase keys used by asset records from other tools
_OVERRIDE_KEYS = {
    "duration": "duration_minutes",
    "durationMinutes": "duration_minutes",
    "requiredFields": "required_fields",
    "defaultInspector": "default_inspector",
    "occurrenceCount": "occurrence_count",
}


def _unique(values: Sequence[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(values))


class InspectionPolicy(BaseModel):
    """Fully populated policy for one inspection type."""

    frequency: InspectionFrequency
    duration_minutes: int
    priority: Priority
    description: str
    color: str
    category: str
    required_fields: tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True, use_enum_values=False)

    @field_validator("duration_minutes")
    @classmethod
    def validate_duration(cls, v: int) -> int:
        if v <= 0:
            raise ValidationError(
                "duration_minutes must be positive", field_name="duration_minutes", field_value=v
            )
        return v

    @field_validator("required_fields", mode="before")
    @classmethod
    def dedupe_required_fields(cls, v: Sequence[str]) -> tuple[str, ...]:
        return _unique(list(v))


class PolicyOverride(BaseModel):
    """Partial policy supplied per (asset, inspection type).

    Unset policy fields fall back to the catalog entry. ``occurrence_count``
    and ``default_inspector`` only affect schedule generation.
    """

    frequency: Optional[InspectionFrequency] = None
    duration_minutes: Optional[int] = None
    priority: Optional[Priority] = None
    description: Optional[str] = None
    color: Optional[str] = None
    category: Optional[str] = None
    required_fields: Optional[tuple[str, ...]] = None

    occurrence_count: Optional[int] = Field(default=None, alias="count")
    default_inspector: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True, use_enum_values=False)

    @model_validator(mode="before")
    @classmethod
    def normalize_keys(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        return {_OVERRIDE_KEYS.get(key, key): value for key, value in values.items()}

    @field_validator("occurrence_count")
    @classmethod
    def validate_occurrence_count(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 1:
            raise ValidationError(
                "occurrence_count must be >= 1", field_name="occurrence_count", field_value=v
            )
        return v

    def policy_fields(self) -> dict:
        """Policy fields explicitly set on this override."""
        return self.model_dump(
            exclude_none=True, exclude={"occurrence_count", "default_inspector"}
        )


DEFAULT_POLICIES: dict[str, InspectionPolicy] = {
    "Safety Check": InspectionPolicy(
        frequency=InspectionFrequency.MONTHLY,
        duration_minutes=60,
        priority=Priority.HIGH,
        description="Monthly safety inspection to ensure asset compliance",
        color="#ef4444",
        category="safety",
        required_fields=("checklist", "certifications"),
    ),
    "Maintenance Inspection": InspectionPolicy(
        frequency=InspectionFrequency.QUARTERLY,
        duration_minutes=120,
        priority=Priority.MEDIUM,
        description="Quarterly maintenance inspection for preventive care",
        color="#f59e0b",
        category="maintenance",
        required_fields=("condition_assessment", "maintenance_log"),
    ),
    "Compliance Audit": InspectionPolicy(
        frequency=InspectionFrequency.YEARLY,
        duration_minutes=180,
        priority=Priority.HIGH,
        description="Annual compliance audit for regulatory requirements",
        color="#3b82f6",
        category="compliance",
        required_fields=("documentation", "certifications", "compliance_report"),
    ),
    "Condition Assessment": InspectionPolicy(
        frequency=InspectionFrequency.BIANNUAL,
        duration_minutes=90,
        priority=Priority.MEDIUM,
        description="Semi-annual condition assessment for asset lifecycle management",
        color="#8b5cf6",
        category="assessment",
        required_fields=("condition_report", "photos", "recommendations"),
    ),
    "Emergency Inspection": InspectionPolicy(
        frequency=InspectionFrequency.AS_NEEDED,
        duration_minutes=45,
        priority=Priority.HIGH,
        description="Emergency inspection following incidents or reports",
        color="#dc2626",
        category="emergency",
        required_fields=("incident_report", "immediate_actions"),
    ),
}

DEFAULT_ASSET_TYPES: dict[str, tuple[str, ...]] = {
    "Residential Property": ("Safety Check", "Maintenance Inspection", "Compliance Audit"),
    "Commercial Property": (
        "Safety Check",
        "Maintenance Inspection",
        "Compliance Audit",
        "Condition Assessment",
    ),
    "Industrial Equipment": ("Safety Check", "Maintenance Inspection", "Condition Assessment"),
    "Vehicle": ("Safety Check", "Maintenance Inspection"),
    "IT Equipment": ("Maintenance Inspection", "Condition Assessment"),
    "Furniture": ("Condition Assessment",),
    FALLBACK_ASSET_TYPE: ("Condition Assessment",),
}


class InspectionPolicyCatalog:
    """Lookup of inspection policies and the inspection types each asset type needs.

    The catalog is immutable after construction; pass ``policies`` or
    ``asset_types`` to replace the built-in tables.
    """

    def __init__(
        self,
        policies: Optional[Mapping[str, InspectionPolicy]] = None,
        asset_types: Optional[Mapping[str, Sequence[str]]] = None,
    ) -> None:
        self._policies = dict(DEFAULT_POLICIES if policies is None else policies)
        self._asset_types = {
            name: tuple(types)
            for name, types in (DEFAULT_ASSET_TYPES if asset_types is None else asset_types).items()
        }
        if FALLBACK_ASSET_TYPE not in self._asset_types:
            raise ValidationError(
                f"Asset type table must define the '{FALLBACK_ASSET_TYPE}' bucket",
                field_name="asset_types",
            )
        unknown = sorted(
            {t for types in self._asset_types.values() for t in types} - set(self._policies)
        )
        if unknown:
            raise ValidationError(
                "Asset type table references unknown inspection types",
                field_name="asset_types",
                field_value=unknown,
            )

    @property
    def inspection_types(self) -> list[str]:
        return list(self._policies)

    @property
    def asset_types(self) -> list[str]:
        return list(self._asset_types)

    def __contains__(self, inspection_type: object) -> bool:
        return inspection_type in self._policies

    def get(self, inspection_type: str) -> InspectionPolicy:
        """Catalog policy for ``inspection_type``.

        Raises:
            NotFoundError: If the type is not in the catalog
        """
        try:
            return self._policies[inspection_type]
        except KeyError:
            raise NotFoundError(
                f"Unknown inspection type: {inspection_type}",
                resource_type="inspection_type",
                resource_id=inspection_type,
            ) from None

    def is_known_asset_type(self, asset_type: Optional[str]) -> bool:
        return asset_type is not None and asset_type in self._asset_types

    def applicable_types(
        self, asset_type: Optional[str], custom_types: Sequence[str] = ()
    ) -> list[str]:
        """Inspection types for ``asset_type`` followed by any extra ``custom_types``.

        Unrecognized or missing asset types use the ``"Other"`` bucket. Custom
        types already in the bucket are not repeated.
        """
        if self.is_known_asset_type(asset_type):
            base = self._asset_types[asset_type]  # type: ignore[index]
        else:
            base = self._asset_types[FALLBACK_ASSET_TYPE]
        extras = [t for t in custom_types if t not in base]
        return list(_unique([*base, *extras]))

    def merge(
        self, inspection_type: str, override: Optional[PolicyOverride] = None
    ) -> InspectionPolicy:
        """Catalog policy for ``inspection_type`` with ``override`` fields applied.

        Raises:
            ValidationError: If ``inspection_type`` has no catalog entry
        """
        if inspection_type not in self._policies:
            raise ValidationError(
                f"Override for unknown inspection type: {inspection_type}",
                field_name="custom_policy",
                field_value=inspection_type,
                validation_errors=[f"known types: {', '.join(self._policies)}"],
            )
        base = self._policies[inspection_type]
        if override is None:
            return base
        fields = override.policy_fields()
        if not fields:
            return base
        merged = InspectionPolicy.model_validate({**base.model_dump(), **fields})
        logger.debug("Merged override for %s: %s", inspection_type, sorted(fields))
        return merged
