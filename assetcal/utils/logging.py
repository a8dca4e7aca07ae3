"""Logging configuration and setup utilities."""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..config.settings import AssetCalSettings

# Custom log level between INFO(20) and DEBUG(10)
VERBOSE = 15
logging.addLevelName(VERBOSE, "VERBOSE")


def verbose(self: logging.Logger, message: Any, *args: Any, **kwargs: Any) -> None:
    """Add verbose() method to Logger class for detailed diagnostic logging.

    Example:
        >>> logger = logging.getLogger(__name__)
        >>> logger.verbose("Expanded %d occurrences", count)
    """
    if self.isEnabledFor(VERBOSE):
        self._log(VERBOSE, message, args, **kwargs)


logging.Logger.verbose = verbose  # type: ignore[attr-defined]


def get_log_level(level_name: str) -> int:
    """Get numeric log level from string name, including custom VERBOSE level.

    Args:
        level_name: Log level name (DEBUG, VERBOSE, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Numeric log level value

    Raises:
        AttributeError: If level name is not recognized

    Example:
        >>> get_log_level("verbose")
        15
    """
    level_name = level_name.upper()
    if level_name == "VERBOSE":
        return VERBOSE
    level: int = getattr(logging, level_name)
    return level


class AutoColoredFormatter(logging.Formatter):
    """Formatter that auto-detects terminal color support."""

    COLORS = {
        "ERROR": {"truecolor": "\033[91m", "basic": "\033[31m", "none": ""},
        "INFO": {"truecolor": "\033[94m", "basic": "\033[34m", "none": ""},
        "VERBOSE": {"truecolor": "\033[92m", "basic": "\033[32m", "none": ""},
        "WARNING": {"truecolor": "\033[93m", "basic": "\033[33m", "none": ""},
        "DEBUG": {"truecolor": "\033[95m", "basic": "\033[35m", "none": ""},
        "CRITICAL": {"truecolor": "\033[91m\033[1m", "basic": "\033[31m\033[1m", "none": ""},
        "RESET": {"truecolor": "\033[0m", "basic": "\033[0m", "none": ""},
    }

    def __init__(self, *args: Any, enable_colors: bool = True, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.enable_colors = enable_colors
        self.color_mode = self._detect_color_support() if enable_colors else "none"

    def _detect_color_support(self) -> str:
        """Auto-detect terminal color capabilities."""
        if not hasattr(sys.stderr, "isatty") or not sys.stderr.isatty():
            return "none"

        term = os.environ.get("TERM", "").lower()
        colorterm = os.environ.get("COLORTERM", "").lower()

        if term == "dumb":
            return "none"

        if colorterm in ("truecolor", "24bit") or "256color" in term:
            return "truecolor"

        if term and "color" in term:
            return "basic"

        return "none"

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors if supported."""
        formatted = super().format(record)

        if self.color_mode == "none":
            return formatted

        level_name = record.levelname
        if level_name in self.COLORS:
            color_start = self.COLORS[level_name][self.color_mode]
            color_end = self.COLORS["RESET"][self.color_mode]
            formatted = formatted.replace(level_name, f"{color_start}{level_name}{color_end}", 1)

        return formatted


def setup_logging(settings: "AssetCalSettings") -> logging.Logger:
    """Set up engine logging with console and optional rotating file output.

    Args:
        settings: Engine settings; only ``settings.logging`` and ``data_dir`` are read

    Returns:
        The configured ``assetcal`` root logger
    """
    log_settings = settings.logging

    logger = logging.getLogger("assetcal")
    logger.setLevel(logging.DEBUG)  # handlers filter
    logger.handlers.clear()

    if log_settings.console_enabled:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(get_log_level(log_settings.console_level))
        console_handler.setFormatter(
            AutoColoredFormatter(
                "%(asctime)s - %(levelname)s - %(message)s",
                datefmt="%H:%M:%S",
                enable_colors=log_settings.console_colors,
            )
        )
        logger.addHandler(console_handler)

    if log_settings.file_enabled:
        if log_settings.file_directory:
            log_dir = Path(log_settings.file_directory)
        else:
            log_dir = settings.data_dir / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)

        if log_settings.include_function_names:
            file_format = (
                "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
            )
        else:
            file_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

        file_handler = logging.handlers.RotatingFileHandler(
            log_dir / f"{log_settings.file_prefix}.log",
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=log_settings.max_log_files,
            encoding="utf-8",
        )
        file_handler.setLevel(get_log_level(log_settings.file_level))
        file_handler.setFormatter(logging.Formatter(file_format, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(file_handler)

        logger.info(f"Logging to file: {file_handler.baseFilename}")

    third_party_level = get_log_level(log_settings.third_party_level)
    for lib in ("icalendar", "dateutil"):
        logging.getLogger(lib).setLevel(third_party_level)

    logger.debug("Logging initialized")
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger namespaced under ``assetcal.``.

    Example:
        >>> get_logger("events.store").name
        'assetcal.events.store'
    """
    if name.startswith("assetcal."):
        return logging.getLogger(name)
    return logging.getLogger(f"assetcal.{name}")


def apply_command_line_overrides(
    settings: "AssetCalSettings", args: Any
) -> "AssetCalSettings":
    """Apply command-line argument overrides to logging settings.

    Priority: Command-line > Environment > YAML > Defaults. Modifies ``settings``
    in place and returns it.
    """
    if getattr(args, "log_level", None):
        settings.logging.console_level = args.log_level
        settings.logging.file_level = args.log_level

    if getattr(args, "verbose", False):
        settings.logging.console_level = "VERBOSE"

    if getattr(args, "quiet", False):
        settings.logging.console_level = "ERROR"

    if getattr(args, "log_dir", None):
        settings.logging.file_enabled = True
        settings.logging.file_directory = args.log_dir

    if getattr(args, "no_log_colors", False):
        settings.logging.console_colors = False

    return settings


__all__ = [
    "VERBOSE",
    "AutoColoredFormatter",
    "apply_command_line_overrides",
    "get_log_level",
    "get_logger",
    "setup_logging",
]
