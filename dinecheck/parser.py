"""YAML parsing for dinecheck snapshots and configuration."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path

import yaml

from dinecheck.detector import DetectionConfig
from dinecheck.models import BOOKING_STATUSES, Booking, OpeningHours, Table
from dinecheck.scoring import ScoringTable
from dinecheck.timeutil import minutes_to_time

logger = logging.getLogger(__name__)

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class SnapshotError(ValueError):
    """Raised when a snapshot or config file cannot be understood."""


@dataclass
class Snapshot:
    """Bookings, tables and opening hours loaded from one file."""

    bookings: list[Booking] = field(default_factory=list)
    tables: list[Table] = field(default_factory=list)
    opening_hours: list[OpeningHours] | None = None


def _time_value(value, where: str) -> str | None:
    """Normalize a YAML time value to an "HH:MM" string."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise SnapshotError(f"{where}: invalid time {value!r}")
    if isinstance(value, int):
        # PyYAML reads unquoted 19:00 as the sexagesimal integer 1140
        return minutes_to_time(value)
    return str(value)


def _date_value(value, where: str) -> str:
    """
    Normalize a YAML date value to an ISO "YYYY-MM-DD" string.

    Timestamps, quoted or not, keep only their calendar date so that
    "2024-06-01T00:00:00Z" and "2024-06-01" name the same day.
    """
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text).isoformat()
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date().isoformat()
        except ValueError as e:
            raise SnapshotError(f"{where}: invalid date {value!r}") from e
    raise SnapshotError(f"{where}: invalid date {value!r}")


def _required_int(value, where: str) -> int:
    if value is None:
        raise SnapshotError(f"{where}: id is required")
    return _optional_int(value, where)


def _optional_int(value, where: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise SnapshotError(f"{where}: expected an integer, got {value!r}")
    return value


def parse_table(entry: dict, index: int) -> Table:
    where = f"tables[{index}]"
    if not isinstance(entry, dict):
        raise SnapshotError(f"{where}: expected a mapping")
    try:
        table_id = entry["id"]
        capacity = entry["capacity"]
    except KeyError as e:
        raise SnapshotError(f"{where}: missing field {e.args[0]!r}") from e

    if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity <= 0:
        raise SnapshotError(f"{where}: capacity must be a positive integer, got {capacity!r}")

    return Table(id=_required_int(table_id, where), capacity=capacity, room=entry.get("room"))


def parse_booking(entry: dict, index: int) -> Booking:
    """
    Build a Booking from one YAML entry.

    Only the shape is checked here. Time formats and guest counts are checked
    during detection so that one bad booking doesn't hide the others' conflicts.
    """
    where = f"bookings[{index}]"
    if not isinstance(entry, dict):
        raise SnapshotError(f"{where}: expected a mapping")
    try:
        booking_id = entry["id"]
        booking_date = entry["date"]
        start_time = entry["start_time"]
        guest_count = entry["guest_count"]
    except KeyError as e:
        raise SnapshotError(f"{where}: missing field {e.args[0]!r}") from e

    status = str(entry.get("status", "confirmed")).lower()
    if status not in BOOKING_STATUSES:
        raise SnapshotError(f"{where}: unknown status {status!r}")

    return Booking(
        id=_required_int(booking_id, where),
        date=_date_value(booking_date, where),
        start_time=_time_value(start_time, where),
        end_time=_time_value(entry.get("end_time"), where),
        guest_count=guest_count,
        table_id=_optional_int(entry.get("table_id"), where),
        status=status,
    )


def parse_opening_hours(entry: dict, index: int) -> OpeningHours:
    where = f"opening_hours[{index}]"
    if not isinstance(entry, dict):
        raise SnapshotError(f"{where}: expected a mapping")
    day = str(entry.get("day", "")).lower()
    if day not in WEEKDAYS:
        raise SnapshotError(f"{where}: unknown day {entry.get('day')!r}")

    is_open = bool(entry.get("is_open", True))
    if is_open and ("open" not in entry or "close" not in entry):
        raise SnapshotError(f"{where}: open days need 'open' and 'close' times")

    return OpeningHours(
        day=day,
        is_open=is_open,
        open_time=_time_value(entry.get("open"), where) or "00:00",
        close_time=_time_value(entry.get("close"), where) or "00:00",
    )


def parse_snapshot_yaml(yaml_path: Path) -> Snapshot:
    """Parse a snapshot YAML file with tables, bookings and optional opening hours."""
    with yaml_path.open(encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise SnapshotError(f"Invalid YAML in {yaml_path}: {e}") from e

    if not data:
        return Snapshot()
    if not isinstance(data, dict):
        raise SnapshotError(f"{yaml_path}: expected a mapping at the top level")

    tables = [parse_table(entry, i) for i, entry in enumerate(data.get("tables") or [])]
    bookings = [parse_booking(entry, i) for i, entry in enumerate(data.get("bookings") or [])]

    opening_hours = None
    if data.get("opening_hours") is not None:
        opening_hours = [parse_opening_hours(entry, i) for i, entry in enumerate(data["opening_hours"])]

    logger.debug("Loaded %d tables and %d bookings from %s", len(tables), len(bookings), yaml_path)
    return Snapshot(bookings=bookings, tables=tables, opening_hours=opening_hours)


def parse_config_yaml(yaml_path: Path) -> DetectionConfig:
    """
    Parse a detection config file.

    Every section is optional; anything left out keeps its default.
    """
    with yaml_path.open(encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise SnapshotError(f"Invalid YAML in {yaml_path}: {e}") from e

    if not isinstance(data, dict):
        raise SnapshotError(f"{yaml_path}: expected a mapping at the top level")

    return config_from_dict(data)


def config_from_dict(data: dict) -> DetectionConfig:
    congestion = data.get("congestion") or {}
    defaults = DetectionConfig()

    try:
        scores = ScoringTable().with_overrides(data.get("resolutions") or {})
    except (TypeError, ValueError) as e:
        raise SnapshotError(f"resolutions: {e}") from e

    values = {
        "default_duration": data.get("default_duration", defaults.default_duration),
        "slot_minutes": congestion.get("slot_minutes", defaults.slot_minutes),
        "max_slot_bookings": congestion.get("max_bookings", defaults.max_slot_bookings),
        "max_slot_guests": congestion.get("max_guests", defaults.max_slot_guests),
    }
    for name, value in values.items():
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise SnapshotError(f"{name} must be a non-negative integer, got {value!r}")
    if values["slot_minutes"] == 0:
        raise SnapshotError("slot_minutes must be positive")

    return DetectionConfig(scores=scores, **values)


def create_snapshot_template(output_path: Path, tables: list[Table] | None = None):
    """Create a snapshot template YAML file."""
    template = {
        "tables": [
            {"id": t.id, "capacity": t.capacity, **({"room": t.room} if t.room else {})}
            for t in tables or []
        ]
        or [{"id": 1, "capacity": 4, "room": "main"}],
        "bookings": [
            {
                "id": 101,
                "date": "2024-06-01",
                "start_time": "19:00",
                "end_time": "21:00",
                "guest_count": 4,
                "table_id": 1,
                "status": "confirmed",
            }
        ],
        "opening_hours": [
            {"day": "saturday", "is_open": True, "open": "17:00", "close": "23:00"},
        ],
    }

    # Add a comment header
    header = """\
# Snapshot file for dinecheck
# List the venue's tables and the bookings to check.
#
# Quote dates and times ("2024-06-01", "19:00").
# end_time and table_id are optional: a missing end_time means a
# 2 hour booking, a missing table_id means the booking is unassigned.
#
# Status options:
#   - confirmed, pending, cancelled, completed, no-show
#
# opening_hours is optional and only used for availability.

"""

    with output_path.open("w", encoding="utf-8") as f:
        f.write(header)
        yaml.dump(template, f, default_flow_style=False, sort_keys=False)
