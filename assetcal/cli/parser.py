"""Command-line argument parsing for Asset Calendar.

Builds the ``assetcal`` argument parser with its ``grid``, ``expand`` and
``schedule`` subcommands plus the shared logging options.
"""

import argparse
import logging
from datetime import date, datetime
from pathlib import Path

from .. import __version__
from ..export.exporter import EXPORT_FORMATS
from ..inspections.conflicts import ConflictStrategy
from ..recurrence.models import MonthlyPattern, RecurrenceFrequency

logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "VERBOSE", "INFO", "WARNING", "ERROR", "CRITICAL"]


def parse_date(date_str: str) -> date:
    """Parse a YYYY-MM-DD date for command-line arguments.

    Raises:
        argparse.ArgumentTypeError: If the date is not in YYYY-MM-DD form

    Example:
        >>> parse_date("2025-03-10")
        datetime.date(2025, 3, 10)
    """
    try:
        return datetime.strptime(date_str, "%Y-%m-%d").date()
    except ValueError as err:
        raise argparse.ArgumentTypeError(
            f"Invalid date format: {date_str}. Use YYYY-MM-DD"
        ) from err


def parse_datetime(value: str) -> datetime:
    """Parse an ISO 8601 date or date-time; a bare date means midnight.

    Raises:
        argparse.ArgumentTypeError: If the value is not ISO 8601
    """
    try:
        return datetime.fromisoformat(value)
    except ValueError as err:
        raise argparse.ArgumentTypeError(
            f"Invalid date/time: {value}. Use YYYY-MM-DD or YYYY-MM-DDTHH:MM"
        ) from err


def parse_weekdays(value: str) -> list[int]:
    """Parse a comma-separated list of weekday indices (0=Sunday)."""
    try:
        days = [int(part) for part in value.split(",") if part.strip()]
    except ValueError as err:
        raise argparse.ArgumentTypeError(
            f"Invalid weekday list: {value}. Use e.g. 1,3"
        ) from err
    if any(not 0 <= day <= 6 for day in days):
        raise argparse.ArgumentTypeError("Weekdays must be between 0 (Sunday) and 6 (Saturday)")
    return days


def _add_logging_arguments(parser: argparse.ArgumentParser) -> None:
    logging_group = parser.add_argument_group("logging", "Logging configuration options")

    logging_group.add_argument(
        "--log-level", choices=LOG_LEVELS, help="Set both console and file log levels"
    )
    logging_group.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose logging"
    )
    logging_group.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Only show errors on console (sets console level to ERROR)",
    )
    logging_group.add_argument("--log-dir", type=Path, help="Write log files to this directory")
    logging_group.add_argument(
        "--no-log-colors", action="store_true", help="Disable colored console output"
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the ``assetcal`` argument parser.

    Example:
        >>> parser = create_parser()
        >>> args = parser.parse_args(["grid", "--month", "2025-03-01"])
        >>> args.command
        'grid'
    """
    parser = argparse.ArgumentParser(
        prog="assetcal",
        description="Asset Calendar - recurring events and inspection scheduling",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s grid --month 2025-03-01
  %(prog)s expand --start 2025-01-01T09:00 --frequency weekly --days 1,3 --count 4
  %(prog)s schedule assets.yaml --start 2025-03-10 --format ics --output inspections.ics
        """,
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}", help="Show version"
    )
    _add_logging_arguments(parser)

    subparsers = parser.add_subparsers(dest="command", required=True)

    grid = subparsers.add_parser("grid", help="Print the 6-week grid for a month")
    grid.add_argument(
        "--month",
        type=parse_date,
        default=None,
        help="Any date in the month to show (default: today)",
    )

    expand = subparsers.add_parser("expand", help="Print the occurrences of a recurrence rule")
    expand.add_argument("--start", type=parse_datetime, required=True, help="Seed occurrence")
    expand.add_argument(
        "--frequency",
        choices=[f.value for f in RecurrenceFrequency],
        required=True,
        help="Repetition unit",
    )
    expand.add_argument("--interval", type=int, default=1, help="Step between repetitions")
    expand.add_argument(
        "--days", type=parse_weekdays, default=[], help="Weekdays for weekly rules, e.g. 1,3"
    )
    expand.add_argument(
        "--monthly-pattern",
        choices=[p.value for p in MonthlyPattern],
        default=None,
        help="Monthly rule day selection",
    )
    end_group = expand.add_mutually_exclusive_group()
    end_group.add_argument("--count", type=int, help="Stop after this many occurrences")
    end_group.add_argument("--until", type=parse_datetime, help="Stop after this date")
    expand.add_argument("--cap", type=int, default=None, help="Hard cap on occurrences")
    expand.add_argument(
        "--duration", type=int, default=60, help="Occurrence length in minutes (default: 60)"
    )

    schedule = subparsers.add_parser(
        "schedule", help="Generate inspection schedules for assets in a YAML or JSON file"
    )
    schedule.add_argument("assets", type=Path, help="YAML or JSON file with a list of assets")
    schedule.add_argument(
        "--start", type=parse_datetime, default=None, help="Schedule start (default: today)"
    )
    schedule.add_argument("--count", type=int, default=None, help="Occurrences per inspection")
    schedule.add_argument(
        "--strategy",
        choices=[s.value for s in ConflictStrategy],
        default=None,
        help="Conflict resolution strategy (default from settings)",
    )
    schedule.add_argument(
        "--format", dest="fmt", choices=list(EXPORT_FORMATS), default="ics", help="Output format"
    )
    schedule.add_argument("--output", "-o", type=Path, help="Write output here instead of stdout")

    return parser


__all__ = [
    "create_parser",
    "parse_date",
    "parse_datetime",
    "parse_weekdays",
]
