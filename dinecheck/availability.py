"""Availability tiers for calendar rendering."""

from collections.abc import Iterable
from datetime import date as date_cls

from dinecheck.detector import CheckedBooking, DetectionConfig, validate_bookings
from dinecheck.inventory import TableInventory
from dinecheck.models import AvailabilitySlot, AvailabilityTier, Booking, OpeningHours
from dinecheck.timeutil import (
    DEFAULT_DURATION,
    MINUTES_PER_DAY,
    SLOT_MINUTES,
    minutes_to_time,
    overlaps,
    slot_start,
    to_minutes,
)

HIGH_THRESHOLD = 0.7
MEDIUM_THRESHOLD = 0.3


def availability_tier(booked_guests: int, total_capacity: int) -> AvailabilityTier:
    """Map booked vs. total capacity to a tier. Zero capacity is "unavailable"."""
    if total_capacity <= 0:
        return "unavailable"

    ratio = (total_capacity - booked_guests) / total_capacity
    if ratio >= HIGH_THRESHOLD:
        return "high"
    if ratio >= MEDIUM_THRESHOLD:
        return "medium"
    if ratio > 0:
        return "low"
    return "full"


def weekday_name(iso_date: str) -> str:
    return date_cls.fromisoformat(iso_date).strftime("%A").lower()


def _hours_for(opening_hours: Iterable[OpeningHours], iso_date: str) -> OpeningHours | None:
    day = weekday_name(iso_date)
    hours = next((h for h in opening_hours if h.day == day), None)
    if hours is None or not hours.is_open:
        return None
    return hours


def opening_window(hours: OpeningHours) -> tuple[int, int]:
    """
    Opening and closing minute of a day.

    A closing time at or before the opening time (e.g. 17:00-00:00 or
    18:00-01:00) runs past midnight, so the close lands after MINUTES_PER_DAY.
    """
    open_minute = to_minutes(hours.open_time)
    close_minute = to_minutes(hours.close_time)
    if close_minute <= open_minute:
        close_minute += MINUTES_PER_DAY
    return open_minute, close_minute


def is_open(
    opening_hours: Iterable[OpeningHours],
    iso_date: str,
    time_slot: str | None = None,
) -> bool:
    """
    Check whether the venue is open on a date (and at a slot, if given).

    A weekday with no opening hours entry counts as closed. Slots after
    midnight belong to the previous day's hours and are not covered here.
    """
    hours = _hours_for(opening_hours, iso_date)
    if hours is None:
        return False
    if time_slot is None:
        return True

    open_minute, close_minute = opening_window(hours)
    return open_minute <= to_minutes(time_slot) < close_minute


def check_bookings(
    bookings: Iterable[Booking],
    inventory: TableInventory,
    iso_date: str,
    default_duration: int = DEFAULT_DURATION,
) -> tuple[list[CheckedBooking], list[int]]:
    """
    Validate the bookings on a date the same way detection does.

    Returns the bookings that count toward availability and the ids of those
    left out because they are malformed.
    """
    on_date = [b for b in bookings if b.date == iso_date]
    checked, errors = validate_bookings(on_date, inventory, DetectionConfig(default_duration=default_duration))
    counted = {entry.booking.id for entry in checked}
    skipped = sorted({error.booking_id for error in errors} - counted)
    return checked, skipped


def active_bookings(
    checked: Iterable[CheckedBooking],
    time_slot: str | None = None,
    slot_minutes: int = SLOT_MINUTES,
) -> list[Booking]:
    """
    Checked bookings, optionally only those seated during a slot.

    A booking is seated during a slot when its [start, end) interval overlaps
    [slot, slot + slot_minutes).
    """
    if time_slot is None:
        return [entry.booking for entry in checked]

    window_start = to_minutes(time_slot)
    window_end = window_start + slot_minutes
    return [
        entry.booking
        for entry in checked
        if overlaps(entry.start, entry.end, window_start, window_end)
    ]


def _slot_estimate(
    checked: list[CheckedBooking],
    skipped: list[int],
    total: int,
    iso_date: str,
    time_slot: str | None,
    slot_minutes: int,
) -> AvailabilitySlot:
    booked = sum(b.guest_count for b in active_bookings(checked, time_slot, slot_minutes))
    return AvailabilitySlot(
        date=iso_date,
        time_slot=time_slot,
        tier=availability_tier(booked, total),
        booked_guests=booked,
        total_capacity=total,
        skipped=list(skipped),
    )


def estimate_availability(
    bookings: Iterable[Booking],
    inventory: TableInventory,
    iso_date: str,
    time_slot: str | None = None,
    opening_hours: Iterable[OpeningHours] | None = None,
    slot_minutes: int = SLOT_MINUTES,
    default_duration: int = DEFAULT_DURATION,
) -> AvailabilitySlot:
    """Compute the availability tier for a date, or a single slot on it."""
    total = inventory.total_capacity()

    if opening_hours is not None and not is_open(list(opening_hours), iso_date, time_slot):
        return AvailabilitySlot(
            date=iso_date, time_slot=time_slot, tier="closed", booked_guests=0, total_capacity=total
        )

    checked, skipped = check_bookings(bookings, inventory, iso_date, default_duration)
    return _slot_estimate(checked, skipped, total, iso_date, time_slot, slot_minutes)


def estimate_day(
    bookings: Iterable[Booking],
    inventory: TableInventory,
    iso_date: str,
    opening_hours: Iterable[OpeningHours] | None = None,
    slot_minutes: int = SLOT_MINUTES,
    default_duration: int = DEFAULT_DURATION,
) -> list[AvailabilitySlot]:
    """
    Availability for every slot of a day.

    With opening hours the slots span opening to closing time, stopping at
    midnight; a closed day yields a single "closed" entry. Without opening
    hours the whole day is covered.
    """
    total = inventory.total_capacity()
    first, last = 0, MINUTES_PER_DAY

    if opening_hours is not None:
        hours = _hours_for(list(opening_hours), iso_date)
        if hours is None:
            return [
                AvailabilitySlot(
                    date=iso_date, time_slot=None, tier="closed", booked_guests=0, total_capacity=total
                )
            ]
        open_minute, close_minute = opening_window(hours)
        first = slot_start(open_minute, slot_minutes)
        last = min(close_minute, MINUTES_PER_DAY)

    checked, skipped = check_bookings(bookings, inventory, iso_date, default_duration)
    return [
        _slot_estimate(checked, skipped, total, iso_date, minutes_to_time(minute), slot_minutes)
        for minute in range(first, last, slot_minutes)
    ]
