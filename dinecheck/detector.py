"""Booking conflict detection for dinecheck."""

import logging
import math
from collections import defaultdict
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from itertools import combinations

from dinecheck.inventory import TableInventory
from dinecheck.models import (
    Booking,
    BookingError,
    CapacityDetails,
    Conflict,
    CongestionDetails,
    DetectionReport,
    DistributeBookingsParams,
    DoubleBookingDetails,
    ReassignTableParams,
    RescheduleParams,
    SplitPartyParams,
    Table,
)
from dinecheck.scoring import ScoringTable, rank_resolutions
from dinecheck.timeutil import (
    DEFAULT_DURATION,
    SLOT_MINUTES,
    InvalidTimeFormat,
    booking_interval,
    minutes_to_time,
    overlaps,
    slot_start,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetectionConfig:
    """Tunable thresholds for a detection run."""

    default_duration: int = DEFAULT_DURATION
    slot_minutes: int = SLOT_MINUTES
    max_slot_bookings: int = 5
    max_slot_guests: int = 50
    scores: ScoringTable = field(default_factory=ScoringTable)


@dataclass(frozen=True)
class CheckedBooking:
    """A booking that passed validation, with its parsed interval."""

    booking: Booking
    start: int
    end: int


def validate_bookings(
    bookings: Iterable[Booking],
    inventory: TableInventory,
    config: DetectionConfig,
) -> tuple[list[CheckedBooking], list[BookingError]]:
    """
    Split non-cancelled bookings into checked ones and per-booking errors.

    A booking on a table missing from the inventory is reported as an error
    but still checked: it occupies its slot and can clash with other bookings
    on the same table, it just has no capacity to compare against.
    """
    checked: list[CheckedBooking] = []
    errors: list[BookingError] = []

    for booking in bookings:
        if booking.status == "cancelled":
            continue

        if isinstance(booking.guest_count, bool) or not isinstance(booking.guest_count, int):
            errors.append(BookingError(booking.id, f"Invalid guest count {booking.guest_count!r}"))
            continue
        if booking.guest_count <= 0:
            errors.append(BookingError(booking.id, f"Guest count must be positive, got {booking.guest_count}"))
            continue

        try:
            start, end = booking_interval(booking, config.default_duration)
        except InvalidTimeFormat as e:
            errors.append(BookingError(booking.id, str(e)))
            continue

        if booking.table_id is not None and booking.table_id not in inventory:
            errors.append(BookingError(booking.id, f"Unknown table {booking.table_id}"))

        checked.append(CheckedBooking(booking=booking, start=start, end=end))

    for error in errors:
        logger.warning("Skipping booking %s: %s", error.booking_id, error.message)

    return checked, errors


def detect_capacity_exceeded(
    checked: list[CheckedBooking],
    inventory: TableInventory,
    config: DetectionConfig,
    now: datetime,
) -> list[Conflict]:
    """Find parties larger than their assigned table, or than every table."""
    conflicts: list[Conflict] = []
    scores = config.scores
    max_capacity = inventory.max_capacity()

    for entry in sorted(checked, key=lambda c: c.booking.id):
        booking = entry.booking

        if booking.table_id is not None:
            table_capacity = inventory.capacity_of(booking.table_id)
            if table_capacity is None or booking.guest_count <= table_capacity:
                continue
            details = CapacityDetails(
                conflict_type="assigned_table_too_small",
                guest_count=booking.guest_count,
                max_table_capacity=max_capacity,
                table_id=booking.table_id,
                table_capacity=table_capacity,
            )
        else:
            if booking.guest_count <= max_capacity:
                continue
            details = CapacityDetails(
                conflict_type="no_suitable_table",
                guest_count=booking.guest_count,
                max_table_capacity=max_capacity,
            )

        resolutions = []
        if booking.guest_count > max_capacity:
            # Nothing to split across with an empty inventory
            if max_capacity > 0:
                resolutions.append(
                    scores.build(
                        id=f"split-party-{booking.id}",
                        kind="split_party",
                        description="Split large party across adjacent tables",
                        params=SplitPartyParams(
                            tables_needed=math.ceil(booking.guest_count / max_capacity),
                        ),
                    )
                )
        else:
            table = inventory.smallest_fitting(booking.guest_count, exclude=booking.table_id)
            if table is not None:
                resolutions.append(
                    scores.build(
                        id=f"reassign-table-{booking.id}",
                        kind="reassign_table",
                        description=f"Move to table {table.id} with capacity {table.capacity}",
                        params=ReassignTableParams(
                            new_table_id=table.id,
                            new_table_capacity=table.capacity,
                        ),
                    )
                )

        conflicts.append(
            Conflict(
                id=f"capacity-conflict-{booking.id}",
                kind="capacity_exceeded",
                severity="high",
                bookings=[booking],
                details=details,
                resolutions=rank_resolutions(resolutions),
                auto_resolvable=scores.is_auto_resolvable(resolutions),
                created_at=now,
            )
        )

    logger.debug("Capacity pass found %d conflicts", len(conflicts))
    return conflicts


def detect_double_bookings(
    checked: list[CheckedBooking],
    config: DetectionConfig,
    now: datetime,
) -> list[Conflict]:
    """
    Find confirmed bookings sharing a table at overlapping times.

    Every pair of bookings on the same table and date is compared, so the cost
    is quadratic in the number of bookings per table.
    """
    by_table: dict[int, list[CheckedBooking]] = defaultdict(list)
    for entry in checked:
        if entry.booking.status == "confirmed" and entry.booking.table_id is not None:
            by_table[entry.booking.table_id].append(entry)

    found: list[tuple[tuple[int, int], Conflict]] = []
    scores = config.scores

    for table_id, entries in by_table.items():
        # Order each pair by start time, then id, so input order never matters
        entries.sort(key=lambda c: (c.start, c.booking.id))
        for first, second in combinations(entries, 2):
            if first.booking.date != second.booking.date:
                continue
            if not overlaps(first.start, first.end, second.start, second.end):
                continue

            low_id, high_id = sorted((first.booking.id, second.booking.id))
            resolutions = [
                scores.build(
                    id=f"reschedule-{second.booking.id}",
                    kind="reschedule",
                    description="Reschedule one of the conflicting bookings",
                    params=RescheduleParams(booking_id=second.booking.id),
                )
            ]
            conflict = Conflict(
                id=f"double-booking-{low_id}-{high_id}",
                kind="double_booking",
                severity="high",
                bookings=[first.booking, second.booking],
                details=DoubleBookingDetails(
                    table_id=table_id,
                    overlap_start=max(first.start, second.start),
                    overlap_end=min(first.end, second.end),
                ),
                resolutions=resolutions,
                auto_resolvable=scores.is_auto_resolvable(resolutions),
                created_at=now,
            )
            found.append(((low_id, high_id), conflict))

    found.sort(key=lambda item: item[0])
    logger.debug("Double-booking pass found %d conflicts", len(found))
    return [conflict for _, conflict in found]


def detect_congestion(
    checked: list[CheckedBooking],
    config: DetectionConfig,
    now: datetime,
) -> list[Conflict]:
    """Flag time slots holding too many confirmed bookings or guests. Advisory only."""
    buckets: dict[tuple[str, int], list[Booking]] = defaultdict(list)
    for entry in checked:
        if entry.booking.status == "confirmed":
            key = (entry.booking.date, slot_start(entry.start, config.slot_minutes))
            buckets[key].append(entry.booking)

    conflicts: list[Conflict] = []
    scores = config.scores

    for (iso_date, slot), slot_bookings in sorted(buckets.items()):
        total_guests = sum(b.guest_count for b in slot_bookings)
        if len(slot_bookings) <= config.max_slot_bookings and total_guests <= config.max_slot_guests:
            continue

        slot_bookings = sorted(slot_bookings, key=lambda b: b.id)
        time_slot = minutes_to_time(slot)
        resolutions = [
            scores.build(
                id=f"distribute-bookings-{iso_date}-{time_slot}",
                kind="distribute_bookings",
                description="Spread bookings across different time slots",
                params=DistributeBookingsParams(
                    date=iso_date,
                    time_slot=time_slot,
                    booking_ids=[b.id for b in slot_bookings],
                ),
            )
        ]
        conflicts.append(
            Conflict(
                id=f"time-overlap-{iso_date}-{time_slot}",
                kind="time_overlap",
                severity="medium",
                bookings=slot_bookings,
                details=CongestionDetails(
                    date=iso_date,
                    time_slot=time_slot,
                    total_bookings=len(slot_bookings),
                    total_guests=total_guests,
                ),
                resolutions=resolutions,
                auto_resolvable=scores.is_auto_resolvable(resolutions),
                created_at=now,
            )
        )

    logger.debug("Congestion pass found %d conflicts", len(conflicts))
    return conflicts


def detect_report(
    bookings: Iterable[Booking],
    tables: Iterable[Table],
    config: DetectionConfig | None = None,
    now: datetime | None = None,
    parallel: bool = False,
) -> DetectionReport:
    """
    Run all three detection passes over a booking/table snapshot.

    Conflicts are ordered capacity first (by booking id), then double bookings
    (by booking id pair), then congestion (by date and slot). Bookings that
    fail validation are reported as errors; see validate_bookings for which
    of them still take part in the passes.
    """
    config = config or DetectionConfig()
    now = now or datetime.now(timezone.utc)
    inventory = TableInventory(tables)
    checked, errors = validate_bookings(bookings, inventory, config)

    if parallel:
        with ThreadPoolExecutor(max_workers=3) as pool:
            capacity = pool.submit(detect_capacity_exceeded, checked, inventory, config, now)
            double = pool.submit(detect_double_bookings, checked, config, now)
            congestion = pool.submit(detect_congestion, checked, config, now)
            conflicts = capacity.result() + double.result() + congestion.result()
    else:
        conflicts = (
            detect_capacity_exceeded(checked, inventory, config, now)
            + detect_double_bookings(checked, config, now)
            + detect_congestion(checked, config, now)
        )

    logger.info(
        "Checked %d bookings against %d tables: %d conflicts, %d errors",
        len(checked),
        len(inventory),
        len(conflicts),
        len(errors),
    )
    return DetectionReport(conflicts=conflicts, errors=sorted(errors, key=lambda e: e.booking_id))


def detect(
    bookings: Iterable[Booking],
    tables: Iterable[Table],
    config: DetectionConfig | None = None,
    now: datetime | None = None,
) -> list[Conflict]:
    """Return the ordered conflicts for a snapshot. See detect_report for errors."""
    return detect_report(bookings, tables, config=config, now=now).conflicts
