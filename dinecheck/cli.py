"""Command-line interface for dinecheck."""

import argparse
import json
import logging
import sys
from dataclasses import asdict, replace
from pathlib import Path

from dinecheck.availability import estimate_availability, estimate_day
from dinecheck.detector import DetectionConfig, detect_report
from dinecheck.inventory import TableInventory
from dinecheck.output import format_availability, format_plan, format_report, report_to_dict
from dinecheck.parser import (
    SnapshotError,
    create_snapshot_template,
    parse_config_yaml,
    parse_snapshot_yaml,
)
from dinecheck.planner import plan_table_assignments
from dinecheck.timeutil import InvalidTimeFormat

EXIT_OK = 0
EXIT_INPUT_ERROR = 1
EXIT_CONFLICTS = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dinecheck",
        description="Check restaurant bookings for capacity, double-booking and congestion conflicts.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Examples:
  dinecheck snapshot.yaml
  dinecheck snapshot.yaml --config dinecheck.yaml --json
  dinecheck snapshot.yaml --availability 2024-06-01 --slot 19:00
  dinecheck snapshot.yaml --plan
  dinecheck --output-template snapshot.yaml
""",
    )
    parser.add_argument(
        "snapshot",
        type=Path,
        nargs="?",
        help="Path to the snapshot YAML file with tables and bookings",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to a YAML file with congestion thresholds and resolution scores",
    )
    parser.add_argument(
        "--max-slot-bookings",
        type=int,
        help="Bookings per slot before it counts as congested (default: 5)",
    )
    parser.add_argument(
        "--max-slot-guests",
        type=int,
        help="Guests per slot before it counts as congested (default: 50)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON",
    )
    parser.add_argument(
        "--parallel",
        action="store_true",
        help="Run the detection passes in parallel",
    )
    parser.add_argument(
        "--availability",
        metavar="DATE",
        help="Show availability for a date (YYYY-MM-DD) instead of conflicts",
    )
    parser.add_argument(
        "--slot",
        metavar="HH:MM",
        help="With --availability, only show this time slot",
    )
    parser.add_argument(
        "--plan",
        action="store_true",
        help="Also propose tables for unassigned bookings",
    )
    parser.add_argument(
        "--output-template",
        type=Path,
        help="Write a snapshot template to this path and exit",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug output",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for dinecheck CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.output_template:
        create_snapshot_template(args.output_template)
        print(f"Created snapshot template at: {args.output_template}")
        return EXIT_OK

    if args.snapshot is None:
        parser.error("a snapshot file is required")

    if not args.snapshot.exists():
        print(f"Error: Snapshot file not found: {args.snapshot}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    # Parse snapshot and config
    try:
        snapshot = parse_snapshot_yaml(args.snapshot)
        config = parse_config_yaml(args.config) if args.config else DetectionConfig()
    except (OSError, SnapshotError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    if args.max_slot_bookings is not None:
        config = replace(config, max_slot_bookings=args.max_slot_bookings)
    if args.max_slot_guests is not None:
        config = replace(config, max_slot_guests=args.max_slot_guests)

    if args.availability:
        return _show_availability(args, snapshot, config)

    report = detect_report(snapshot.bookings, snapshot.tables, config=config, parallel=args.parallel)
    plan = plan_table_assignments(snapshot.bookings, snapshot.tables) if args.plan else None

    if args.json:
        data = report_to_dict(report)
        if plan is not None:
            data["plan"] = asdict(plan)
        print(json.dumps(data, indent=2))
    else:
        print(format_report(report))
        if plan is not None:
            print()
            print(format_plan(plan))

    return EXIT_OK if report.feasible else EXIT_CONFLICTS


def _show_availability(args, snapshot, config: DetectionConfig) -> int:
    inventory = TableInventory(snapshot.tables)
    try:
        if args.slot:
            slots = [
                estimate_availability(
                    snapshot.bookings,
                    inventory,
                    args.availability,
                    args.slot,
                    opening_hours=snapshot.opening_hours,
                    slot_minutes=config.slot_minutes,
                    default_duration=config.default_duration,
                )
            ]
        else:
            slots = estimate_day(
                snapshot.bookings,
                inventory,
                args.availability,
                opening_hours=snapshot.opening_hours,
                slot_minutes=config.slot_minutes,
                default_duration=config.default_duration,
            )
    except InvalidTimeFormat as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR
    except ValueError as e:
        print(f"Error: invalid date {args.availability!r}: {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    if args.json:
        print(json.dumps([asdict(s) for s in slots], indent=2))
    else:
        print(format_availability(slots))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
