"""Configuration package."""

from .settings import AssetCalSettings, LoggingSettings, get_settings, reset_settings

__all__ = [
    "AssetCalSettings",
    "LoggingSettings",
    "get_settings",
    "reset_settings",
]
