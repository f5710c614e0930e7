"""ILP-based table assignment for unassigned bookings."""

import logging
from collections.abc import Iterable

import numpy as np
from scipy.optimize import Bounds, LinearConstraint, milp

from dinecheck.detector import DetectionConfig, validate_bookings
from dinecheck.inventory import TableInventory
from dinecheck.models import AssignmentPlan, Booking, Table, TableAssignment
from dinecheck.timeutil import DEFAULT_DURATION, overlaps

logger = logging.getLogger(__name__)

TURNOVER_BUFFER = 30  # minutes kept free between parties at one table


def _blocked(
    interval: tuple[int, int],
    other: tuple[int, int],
    buffer_minutes: int,
) -> bool:
    """True if two intervals are closer than the turnover buffer."""
    start, end = interval
    other_start, other_end = other
    return overlaps(start - buffer_minutes, end + buffer_minutes, other_start, other_end)


def plan_table_assignments(
    bookings: Iterable[Booking],
    tables: Iterable[Table],
    buffer_minutes: int = TURNOVER_BUFFER,
    default_duration: int = DEFAULT_DURATION,
) -> AssignmentPlan:
    """
    Propose tables for confirmed, unassigned bookings using Integer Linear Programming.

    Seating as many parties as possible comes first; among plans seating the
    same number, the one with the fewest empty seats wins. Bookings already
    on a table keep it and block that table for overlapping parties. Bookings
    that fail validation are never seated and do not block tables.
    """
    bookings = list(bookings)
    inventory = TableInventory(tables)
    table_list = inventory.tables()
    checked, errors = validate_bookings(bookings, inventory, DetectionConfig(default_duration=default_duration))

    # Existing occupancy: (date, table_id) -> intervals
    occupied: dict[tuple[str, int], list[tuple[int, int]]] = {}
    pending: list[tuple[Booking, tuple[int, int]]] = []

    # Malformed bookings cannot be seated, and those already on a table block nothing
    failed = {error.booking_id for error in errors} - {entry.booking.id for entry in checked}
    unplaced: list[int] = [
        booking.id
        for booking in bookings
        if booking.id in failed and booking.table_id is None and booking.status == "confirmed"
    ]

    for entry in checked:
        booking = entry.booking
        interval = (entry.start, entry.end)
        if booking.table_id is not None:
            occupied.setdefault((booking.date, booking.table_id), []).append(interval)
        elif booking.status == "confirmed":
            pending.append((booking, interval))

    pending.sort(key=lambda item: item[0].id)

    # Candidate (booking, table) pairs: table fits the party and is free
    candidates: list[tuple[int, int]] = []  # (pending index, table index)
    for b_idx, (booking, interval) in enumerate(pending):
        for t_idx, table in enumerate(table_list):
            if table.capacity < booking.guest_count:
                continue
            taken = occupied.get((booking.date, table.id), [])
            if any(_blocked(interval, other, buffer_minutes) for other in taken):
                continue
            candidates.append((b_idx, t_idx))

    if not candidates:
        unplaced.extend(booking.id for booking, _ in pending)
        return AssignmentPlan(assignments=[], unplaced=sorted(unplaced))

    num_vars = len(candidates)
    var_index = {pair: idx for idx, pair in enumerate(candidates)}

    # Objective: reward each seated party more than any amount of wasted seats
    waste = np.array(
        [table_list[t_idx].capacity - pending[b_idx][0].guest_count for b_idx, t_idx in candidates],
        dtype=float,
    )
    reward = float(waste.sum()) + 1.0
    c = waste - reward

    A_ub_rows: list[np.ndarray] = []
    b_ub: list[float] = []

    # Constraint 1: each booking gets at most one table
    for b_idx in range(len(pending)):
        row = np.zeros(num_vars)
        for t_idx in range(len(table_list)):
            var_idx = var_index.get((b_idx, t_idx))
            if var_idx is not None:
                row[var_idx] = 1.0
        if row.any():
            A_ub_rows.append(row)
            b_ub.append(1.0)

    # Constraint 2: bookings too close together cannot share a table
    for b1_idx in range(len(pending)):
        booking1, interval1 = pending[b1_idx]
        for b2_idx in range(b1_idx + 1, len(pending)):
            booking2, interval2 = pending[b2_idx]
            if booking1.date != booking2.date or not _blocked(interval1, interval2, buffer_minutes):
                continue
            for t_idx in range(len(table_list)):
                v1 = var_index.get((b1_idx, t_idx))
                v2 = var_index.get((b2_idx, t_idx))
                if v1 is None or v2 is None:
                    continue
                row = np.zeros(num_vars)
                row[v1] = 1.0
                row[v2] = 1.0
                A_ub_rows.append(row)
                b_ub.append(1.0)

    constraints = [LinearConstraint(np.array(A_ub_rows), -np.inf, np.array(b_ub))]
    bounds = Bounds(np.zeros(num_vars), np.ones(num_vars))
    integrality = np.ones(num_vars, dtype=np.intp)  # All binary

    result = milp(c, constraints=constraints, bounds=bounds, integrality=integrality)

    if not result.success:
        logger.warning("Table assignment solver failed: %s", result.message)
        unplaced.extend(booking.id for booking, _ in pending)
        return AssignmentPlan(assignments=[], unplaced=sorted(unplaced))

    assert result.x is not None  # Guaranteed by result.success check above
    assignments: list[TableAssignment] = []
    seated: set[int] = set()
    for var_idx, (b_idx, t_idx) in enumerate(candidates):
        if result.x[var_idx] > 0.5:  # Binary, so check > 0.5
            booking = pending[b_idx][0]
            table = table_list[t_idx]
            assignments.append(
                TableAssignment(
                    booking_id=booking.id,
                    table_id=table.id,
                    table_capacity=table.capacity,
                    empty_seats=table.capacity - booking.guest_count,
                )
            )
            seated.add(booking.id)

    unplaced.extend(booking.id for booking, _ in pending if booking.id not in seated)
    logger.info("Planned %d table assignments, %d bookings unplaced", len(assignments), len(unplaced))

    return AssignmentPlan(
        assignments=sorted(assignments, key=lambda a: a.booking_id),
        unplaced=sorted(unplaced),
    )
