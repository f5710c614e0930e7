"""Wall-clock time arithmetic for dinecheck."""

from dinecheck.models import Booking

DEFAULT_DURATION = 120  # minutes, when a booking has no end time
SLOT_MINUTES = 30
MINUTES_PER_DAY = 24 * 60


class InvalidTimeFormat(ValueError):
    """Raised when a time string is not a valid HH:MM wall-clock time."""


def to_minutes(time_str: str) -> int:
    """
    Convert an "HH:MM" string to minutes since midnight.

    Raises InvalidTimeFormat for anything that is not a valid 24-hour time.
    """
    if not isinstance(time_str, str):
        raise InvalidTimeFormat(f"Expected an HH:MM string, got {time_str!r}")

    parts = time_str.strip().split(":")
    if len(parts) != 2:
        raise InvalidTimeFormat(f"Expected HH:MM, got {time_str!r}")

    hours_str, minutes_str = parts
    # isdigit alone accepts digits such as "²" that int() rejects
    if not all(part.isascii() and part.isdigit() for part in parts):
        raise InvalidTimeFormat(f"Non-numeric time {time_str!r}")
    if len(minutes_str) != 2:
        raise InvalidTimeFormat(f"Minutes must have two digits in {time_str!r}")

    hours = int(hours_str)
    minutes = int(minutes_str)
    if hours > 23 or minutes > 59:
        raise InvalidTimeFormat(f"Time out of range: {time_str!r}")

    return hours * 60 + minutes


def minutes_to_time(minutes: int) -> str:
    """Format minutes since midnight as "HH:MM" (values past midnight keep counting hours)."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def overlaps(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Half-open overlap test: [start_a, end_a) intersects [start_b, end_b)."""
    return start_a < end_b and start_b < end_a


def slot_start(minutes: int, slot_minutes: int = SLOT_MINUTES) -> int:
    """Start of the fixed-width slot containing the given minute."""
    return (minutes // slot_minutes) * slot_minutes


def booking_interval(booking: Booking, default_duration: int = DEFAULT_DURATION) -> tuple[int, int]:
    """
    Return the [start, end) interval of a booking in minutes since midnight.

    A missing end time means start + default_duration, which may run past
    midnight. An explicit end time must come after the start.
    """
    start = to_minutes(booking.start_time)
    if booking.end_time is None:
        return start, start + default_duration

    end = to_minutes(booking.end_time)
    if end <= start:
        raise InvalidTimeFormat(
            f"End time {booking.end_time} is not after start time {booking.start_time}"
        )
    return start, end
