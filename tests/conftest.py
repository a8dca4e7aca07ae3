"""Shared fixtures for Asset Calendar tests."""

import logging
import os
from datetime import datetime
from pathlib import Path

import pytest

from assetcal.config.settings import AssetCalSettings, reset_settings
from assetcal.events.store import EventStore
from assetcal.inspections.catalog import InspectionPolicyCatalog
from assetcal.inspections.generator import InspectionScheduleGenerator

FIXED_NOW = datetime(2025, 3, 1, 8, 0)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch):
    """Isolate every test from ASSETCAL_* variables and the global settings instance."""
    for key in list(os.environ):
        if key.startswith("ASSETCAL_"):
            monkeypatch.delenv(key, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture(autouse=True)
def reset_assetcal_logger():
    """Drop handlers installed by ``setup_logging`` so they never outlive a test."""
    yield
    logger = logging.getLogger("assetcal")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


@pytest.fixture
def settings(tmp_path: Path) -> AssetCalSettings:
    """Settings with a throwaway config directory and file logging off."""
    return AssetCalSettings(config_dir=tmp_path / "config", data_dir=tmp_path / "data")


@pytest.fixture
def catalog() -> InspectionPolicyCatalog:
    return InspectionPolicyCatalog()


@pytest.fixture
def generator(
    settings: AssetCalSettings, catalog: InspectionPolicyCatalog
) -> InspectionScheduleGenerator:
    return InspectionScheduleGenerator(catalog=catalog, settings=settings)


@pytest.fixture
def store(settings: AssetCalSettings) -> EventStore:
    """Event store with a fixed clock."""
    return EventStore(settings=settings, clock=lambda: FIXED_NOW)


@pytest.fixture
def residential_asset() -> dict:
    return {
        "id": "A1",
        "name": "Maple House",
        "type": "Residential Property",
        "manager": "J. Smith",
        "location": "12 Maple St",
    }


@pytest.fixture
def fixed_now() -> datetime:
    """The instant returned by the ``store`` fixture's clock."""
    return FIXED_NOW
