"""
Engine-wide exceptions for assetcal.

Validation and lookup failures are raised synchronously to the immediate caller.
Scheduling conflicts are never raised; they are returned as data by the
conflict resolver, and a recurrence expansion that hits its hard cap is
reported through ``ExpansionResult.cap_tripped``.
"""

from typing import Any, Optional


class AssetCalError(Exception):
    """Base exception for all assetcal errors.

    Args:
        message: Human-readable error description
        details: Optional dictionary containing additional error context

    Example:
        >>> raise AssetCalError("Schedule failed", {"asset_id": "A-1"})
    """

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class ValidationError(AssetCalError):
    """Raised when a record or rule violates one of its invariants.

    Deliberately not a ``ValueError``: pydantic validators re-raise it unchanged
    instead of folding it into ``pydantic.ValidationError``.

    Example:
        >>> raise ValidationError(
        ...     "interval must be >= 1",
        ...     field_name="interval",
        ...     field_value=0,
        ... )
    """

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        field_value: Optional[Any] = None,
        validation_errors: Optional[list[str]] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.field_name = field_name
        self.field_value = field_value
        self.validation_errors = validation_errors or []

        error_details = details or {}
        if field_name:
            error_details["field_name"] = field_name
        if field_value is not None:
            error_details["field_value"] = str(field_value)
        if self.validation_errors:
            error_details["validation_errors"] = self.validation_errors

        super().__init__(message, error_details)


class NotFoundError(AssetCalError):
    """Raised when an event, asset, template or series id is unknown."""

    def __init__(
        self,
        message: str,
        resource_type: Optional[str] = None,
        resource_id: Optional[Any] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id

        error_details = details or {}
        if resource_type:
            error_details["resource_type"] = resource_type
        if resource_id is not None:
            error_details["resource_id"] = str(resource_id)

        super().__init__(message, error_details)


class UnsupportedFormatError(AssetCalError):
    """Raised when an export format is not one of ics, csv or json."""
