"""Settings management using Pydantic for type validation and configuration."""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, PrivateAttr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

CONFLICT_STRATEGIES = ("spread", "stack", "manual")


class LoggingSettings(BaseModel):
    """Logging configuration settings."""

    # Console Logging
    console_enabled: bool = Field(default=True, description="Enable console logging")
    console_level: str = Field(
        default="INFO",
        description="Console log level: DEBUG, VERBOSE, INFO, WARNING, ERROR, CRITICAL",
    )
    console_colors: bool = Field(
        default=True, description="Enable colored console output (auto-detected)"
    )

    # File Logging
    file_enabled: bool = Field(default=False, description="Enable file logging")
    file_level: str = Field(
        default="DEBUG",
        description="File log level: DEBUG, VERBOSE, INFO, WARNING, ERROR, CRITICAL",
    )
    file_directory: Optional[str] = Field(
        default=None, description="Custom log directory (defaults to data_dir/logs)"
    )
    file_prefix: str = Field(default="assetcal", description="Log file prefix")
    max_log_files: int = Field(default=5, description="Number of rotated log files to keep")
    include_function_names: bool = Field(
        default=True, description="Include function names and line numbers in file logs"
    )

    # Third-party Libraries
    third_party_level: str = Field(
        default="WARNING", description="Log level for third-party libraries"
    )


class AssetCalSettings(BaseSettings):
    """Engine settings with environment variable and YAML support."""

    _explicit_args: set = PrivateAttr(default_factory=set)
    _env_vars_set: set = PrivateAttr(default_factory=set)

    # Time handling
    timezone: str = Field(
        default="UTC", description="IANA zone used to interpret naive timestamps on export"
    )

    # Recurrence / schedule generation
    recurrence_hard_cap: int = Field(
        default=365, ge=1, description="Maximum occurrences produced by one expansion"
    )
    default_occurrence_count: int = Field(
        default=12, ge=1, description="Occurrences generated per inspection type"
    )
    default_conflict_strategy: str = Field(
        default="spread", description="Conflict resolution: spread, stack, manual"
    )
    workday_start_hour: int = Field(default=9, ge=0, le=23, description="Stacking day start")
    workday_end_hour: int = Field(default=17, ge=1, le=24, description="Stacking day end")
    upcoming_days_ahead: int = Field(
        default=30, ge=0, description="Look-ahead window for upcoming inspections"
    )

    # ICS export
    ics_prodid: str = Field(
        default="-//Asset Tracker//Calendar//EN", description="PRODID written to ICS output"
    )
    ics_uid_domain: str = Field(
        default="assettracker.com", description="Domain suffix appended to event UIDs"
    )

    # File Paths
    config_dir: Path = Field(default_factory=lambda: Path.home() / ".config" / "assetcal")
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".local" / "share" / "assetcal")

    # Logging Configuration
    logging: LoggingSettings = Field(
        default_factory=LoggingSettings, description="Logging settings"
    )

    model_config = SettingsConfigDict(
        env_prefix="ASSETCAL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def __init__(self, **kwargs: Any) -> None:
        env_vars_set = {
            key.replace("ASSETCAL_", "").lower()
            for key in os.environ
            if key.startswith("ASSETCAL_")
        }

        super().__init__(**kwargs)

        self._explicit_args = set(kwargs.keys())
        self._env_vars_set = env_vars_set

        self._load_yaml_config()

    @field_validator("default_conflict_strategy")
    @classmethod
    def validate_conflict_strategy(cls, v: str) -> str:
        """Validate conflict strategy name."""
        v = v.lower()
        if v not in CONFLICT_STRATEGIES:
            raise ValueError(f"default_conflict_strategy must be one of {CONFLICT_STRATEGIES}")
        return v

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Validate the IANA timezone name."""
        from zoneinfo import ZoneInfo, ZoneInfoNotFoundError  # noqa: PLC0415

        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    def _find_config_file(self) -> Optional[Path]:
        """Find config file, checking project directory first, then user home."""
        project_root = Path(__file__).parent.parent.parent
        project_config = project_root / "config" / "config.yaml"
        if project_config.exists():
            return project_config

        user_config = self.config_dir / "config.yaml"
        if user_config.exists():
            return user_config

        return None

    def _settable(self, name: str) -> bool:
        return name not in self._explicit_args and name not in self._env_vars_set

    def _load_scheduling_settings(self, config_data: dict) -> None:
        """Load scheduling settings from YAML data."""
        scheduling = config_data.get("scheduling") or {}
        scheduling_settings = [
            "recurrence_hard_cap",
            "default_occurrence_count",
            "default_conflict_strategy",
            "workday_start_hour",
            "workday_end_hour",
            "upcoming_days_ahead",
        ]

        for setting in scheduling_settings:
            if setting in scheduling and self._settable(setting):
                setattr(self, setting, scheduling[setting])

        if "timezone" in config_data and self._settable("timezone"):
            self.timezone = config_data["timezone"]

    def _load_export_settings(self, config_data: dict) -> None:
        """Load ICS export settings from YAML data."""
        export = config_data.get("export") or {}
        for setting in ("prodid", "uid_domain"):
            field = f"ics_{setting}"
            if setting in export and self._settable(field):
                setattr(self, field, export[setting])

    def _load_logging_config(self, config_data: dict) -> None:
        """Load logging configuration from YAML data."""
        if "logging" not in config_data:
            return

        logging_config = config_data["logging"]
        for setting in LoggingSettings.model_fields:
            if setting in logging_config:
                setattr(self.logging, setting, logging_config[setting])

    def _load_yaml_config(self) -> None:
        """Load configuration from YAML file if it exists."""
        config_file = self._find_config_file()
        if not config_file:
            return

        try:
            with config_file.open() as f:
                config_data = yaml.safe_load(f)

            if not config_data:
                return

            self._load_scheduling_settings(config_data)
            self._load_export_settings(config_data)
            self._load_logging_config(config_data)

        except (OSError, yaml.YAMLError, ValueError) as e:
            # Keep defaults/env vars when the YAML file is unusable
            logging.warning(f"Could not load YAML config from {config_file}: {e}")

    @property
    def config_file(self) -> Path:
        """Path to YAML configuration file."""
        return self.config_dir / "config.yaml"


# Global settings management
_settings_instance: Optional[AssetCalSettings] = None


def get_settings() -> AssetCalSettings:
    """Get the global settings instance, creating it lazily if needed."""
    if globals()["_settings_instance"] is None:
        globals()["_settings_instance"] = AssetCalSettings()
    return globals()["_settings_instance"]


def reset_settings() -> None:
    """Reset the global settings instance (primarily for testing)."""
    globals()["_settings_instance"] = None
