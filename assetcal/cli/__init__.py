"""CLI module for Asset Calendar.

Dispatches the ``grid``, ``expand`` and ``schedule`` subcommands after
applying command-line logging overrides to the loaded settings.
"""

import argparse
import json
import logging
import sys
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError as PydanticValidationError

from ..calendar.grid import month_weeks
from ..config.settings import AssetCalSettings, get_settings
from ..events.store import EventStore
from ..exceptions import AssetCalError, ValidationError
from ..export.exporter import Exporter
from ..inspections.generator import ScheduleOptions
from ..recurrence.expander import RecurrenceExpander
from ..recurrence.models import RecurrenceRule
from ..utils.logging import apply_command_line_overrides, setup_logging
from .parser import create_parser, parse_date, parse_datetime

logger = logging.getLogger(__name__)

WEEKDAY_HEADER = "Su Mo Tu We Th Fr Sa"


def render_month(anchor: date) -> str:
    """Text rendering of the 6-week grid; days outside the month are dotted."""
    lines = [anchor.strftime("%B %Y").center(len(WEEKDAY_HEADER)).rstrip(), WEEKDAY_HEADER]
    for week in month_weeks(anchor):
        cells = [f"{day.day:2d}" if day.month == anchor.month else " ." for day in week]
        lines.append(" ".join(cells))
    return "\n".join(lines)


def load_assets(path: Path) -> list[dict[str, Any]]:
    """Read assets from a YAML or JSON file.

    The file holds either a list of assets or a mapping with an ``assets`` list.

    Raises:
        ValidationError: If the file does not contain a list of assets
    """
    with path.open(encoding="utf-8") as f:
        if path.suffix.lower() == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f)

    if isinstance(data, dict):
        data = data.get("assets")
    if not isinstance(data, list):
        raise ValidationError(
            f"Asset file must contain a list of assets: {path}",
            field_name="assets",
            details={"path": str(path)},
        )
    return data


def run_grid(args: argparse.Namespace, settings: AssetCalSettings) -> int:
    print(render_month(args.month or date.today()))
    return 0


def run_expand(args: argparse.Namespace, settings: AssetCalSettings) -> int:
    rule = RecurrenceRule(
        frequency=args.frequency,
        interval=args.interval,
        days_of_week=args.days,
        monthly_pattern=args.monthly_pattern,
        count=args.count,
        end_date=args.until,
    )
    result = RecurrenceExpander(settings).expand(
        args.start, rule, timedelta(minutes=args.duration), hard_cap=args.cap
    )
    for start, end in result.spans():
        print(f"{start.isoformat()}  {end.isoformat()}")
    if result.cap_tripped:
        print(f"Stopped at hard cap after {len(result)} occurrences", file=sys.stderr)
    return 0


def run_schedule(args: argparse.Namespace, settings: AssetCalSettings) -> int:
    assets = load_assets(args.assets)
    start = args.start or datetime.combine(date.today(), datetime.min.time())
    options = ScheduleOptions(occurrence_count=args.count, conflict_strategy=args.strategy)

    store = EventStore(settings=settings)
    batch = store.schedule_inspections(assets, start, options)

    for asset_id in batch.fallback_asset_ids:
        print(f"Asset {asset_id}: unrecognized type, used the Other bucket", file=sys.stderr)
    for conflict in batch.conflicts:
        print(
            f"Conflict on {conflict.date.isoformat()} for {conflict.assignee}: "
            f"{conflict.count} inspections ({', '.join(conflict.occurrence_ids)})",
            file=sys.stderr,
        )

    output = Exporter(settings).export(batch.events, args.fmt)
    if args.output:
        args.output.write_text(output, encoding="utf-8")
        logger.info("Wrote %d events to %s", len(batch.events), args.output)
    else:
        sys.stdout.write(output)
        if not output.endswith("\n"):
            sys.stdout.write("\n")
    return 0


COMMANDS = {
    "grid": run_grid,
    "expand": run_expand,
    "schedule": run_schedule,
}


def main_entry(argv: Optional[list[str]] = None) -> int:
    """Parse arguments, configure logging and run the selected subcommand.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    settings = apply_command_line_overrides(get_settings(), args)
    setup_logging(settings)

    try:
        return COMMANDS[args.command](args, settings)
    except AssetCalError as e:
        logger.error("%s", e)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except PydanticValidationError as e:
        logger.error("Invalid input: %s", e)
        print(f"Error: invalid input\n{e}", file=sys.stderr)
        return 1
    except OSError as e:
        logger.error("File error: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        return 1


__all__ = [
    "create_parser",
    "load_assets",
    "main_entry",
    "parse_date",
    "parse_datetime",
    "render_month",
]
