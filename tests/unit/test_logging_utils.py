"""Unit tests for logging setup helpers."""

import logging
from argparse import Namespace

import pytest

from assetcal.utils.logging import (
    VERBOSE,
    apply_command_line_overrides,
    get_log_level,
    get_logger,
    setup_logging,
)


class TestLogLevels:
    """Tests for level name handling."""

    @pytest.mark.parametrize(
        ("name", "level"),
        [("debug", logging.DEBUG), ("VERBOSE", VERBOSE), ("Info", logging.INFO)],
    )
    def test_get_log_level(self, name, level):
        assert get_log_level(name) == level

    def test_unknown_level(self):
        with pytest.raises(AttributeError):
            get_log_level("LOUD")

    def test_get_logger_namespacing(self):
        assert get_logger("events.store").name == "assetcal.events.store"
        assert get_logger("assetcal.export").name == "assetcal.export"


class TestSetupLogging:
    """Tests for handler configuration."""

    def test_console_only_by_default(self, settings):
        logger = setup_logging(settings)

        assert logger.name == "assetcal"
        assert len(logger.handlers) == 1
        assert logger.handlers[0].level == logging.INFO

    def test_file_logging(self, settings, tmp_path):
        """File logging writes to the configured directory."""
        settings.logging.file_enabled = True
        settings.logging.file_directory = str(tmp_path / "logs")

        logger = setup_logging(settings)
        logger.info("hello from the test")
        for handler in logger.handlers:
            handler.flush()

        content = (tmp_path / "logs" / "assetcal.log").read_text(encoding="utf-8")
        assert "hello from the test" in content

    def test_file_logging_defaults_to_data_dir(self, settings):
        settings.logging.file_enabled = True
        settings.logging.console_enabled = False

        setup_logging(settings)

        assert (settings.data_dir / "logs" / "assetcal.log").exists()

    def test_repeated_setup_does_not_duplicate_handlers(self, settings):
        setup_logging(settings)

        assert len(setup_logging(settings).handlers) == 1


class TestCommandLineOverrides:
    """Tests for applying CLI flags to logging settings."""

    def test_log_level_sets_both_levels(self, settings):
        apply_command_line_overrides(settings, Namespace(log_level="DEBUG"))

        assert settings.logging.console_level == "DEBUG"
        assert settings.logging.file_level == "DEBUG"

    def test_quiet_wins_over_verbose(self, settings):
        apply_command_line_overrides(settings, Namespace(verbose=True, quiet=True))

        assert settings.logging.console_level == "ERROR"

    def test_log_dir_enables_file_logging(self, settings, tmp_path):
        apply_command_line_overrides(
            settings, Namespace(log_dir=tmp_path / "logs", no_log_colors=True)
        )

        assert settings.logging.file_enabled is True
        assert settings.logging.file_directory == tmp_path / "logs"
        assert settings.logging.console_colors is False
