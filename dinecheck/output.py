"""Output formatting for dinecheck."""

from collections import defaultdict
from dataclasses import asdict

from dinecheck.models import (
    AssignmentPlan,
    AvailabilitySlot,
    CapacityDetails,
    Conflict,
    CongestionDetails,
    DetectionReport,
    DoubleBookingDetails,
)
from dinecheck.timeutil import minutes_to_time

TIER_LABELS: dict[str, str] = {
    "high": "High availability",
    "medium": "Medium availability",
    "low": "Low availability",
    "full": "Fully booked",
    "closed": "Closed",
    "unavailable": "Unavailable",
}

KIND_TITLES: dict[str, str] = {
    "capacity_exceeded": "Capacity Exceeded",
    "double_booking": "Double Bookings",
    "time_overlap": "Peak Time Congestion",
}


def describe_conflict(conflict: Conflict) -> str:
    """One-line summary of a conflict."""
    details = conflict.details
    if isinstance(details, CapacityDetails):
        booking_id = conflict.bookings[0].id
        if details.conflict_type == "assigned_table_too_small":
            return (
                f"Booking {booking_id}: {details.guest_count} guests at table "
                f"{details.table_id} (seats {details.table_capacity})"
            )
        return (
            f"Booking {booking_id}: {details.guest_count} guests, "
            f"largest table seats {details.max_table_capacity}"
        )
    if isinstance(details, DoubleBookingDetails):
        first, second = conflict.bookings
        return (
            f"Table {details.table_id} on {first.date}: bookings {first.id} and {second.id} "
            f"overlap {minutes_to_time(details.overlap_start)}-{minutes_to_time(details.overlap_end)}"
        )
    if isinstance(details, CongestionDetails):
        return (
            f"{details.date} {details.time_slot}: {details.total_bookings} bookings, "
            f"{details.total_guests} guests"
        )
    raise TypeError(f"Unknown conflict details: {type(details).__name__}")


def format_report(report: DetectionReport) -> str:
    """Format a detection report for display."""
    lines: list[str] = []

    if report.feasible:
        lines.append("=== No conflicts found ===")
        lines.append("The schedule is feasible.")
        return "\n".join(lines)

    by_kind: dict[str, list[Conflict]] = defaultdict(list)
    for conflict in report.conflicts:
        by_kind[conflict.kind].append(conflict)

    lines.append("=== Booking Conflicts ===")
    lines.append(f"Total conflicts: {len(report.conflicts)}")
    lines.append("")

    for kind, title in KIND_TITLES.items():
        if kind not in by_kind:
            continue
        lines.append(f"--- {title} ({len(by_kind[kind])}) ---")
        for conflict in by_kind[kind]:
            auto = ", auto-resolvable" if conflict.auto_resolvable else ""
            lines.append(f"  [{conflict.severity}{auto}] {describe_conflict(conflict)}")
            for resolution in conflict.resolutions:
                lines.append(
                    f"    - {resolution.description} "
                    f"(confidence {resolution.confidence}%, "
                    f"satisfaction {resolution.estimated_satisfaction}%, "
                    f"impact {resolution.impact})"
                )
        lines.append("")

    if report.errors:
        lines.append("=== Bookings Not Checked ===")
        for error in report.errors:
            lines.append(f"  Booking {error.booking_id}: {error.message}")

    return "\n".join(lines).rstrip()


def format_availability(slots: list[AvailabilitySlot]) -> str:
    """Format availability slots as a simple calendar column."""
    if not slots:
        return "No availability data."

    lines = [f"=== Availability for {slots[0].date} ==="]
    for slot in slots:
        label = TIER_LABELS.get(slot.tier, slot.tier)
        when = slot.time_slot or "all day"
        if slot.tier in ("closed", "unavailable"):
            lines.append(f"  {when}: {label}")
        else:
            lines.append(f"  {when}: {label} ({slot.booked_guests}/{slot.total_capacity} seats booked)")

    skipped = slots[0].skipped
    if skipped:
        lines.append(f"  Not counted (invalid): bookings {', '.join(str(i) for i in skipped)}")
    return "\n".join(lines)


def format_plan(plan: AssignmentPlan) -> str:
    """Format proposed table assignments for display."""
    lines = ["=== Table Assignment Plan ==="]
    if not plan.assignments:
        lines.append("No assignments proposed.")
    for assignment in plan.assignments:
        lines.append(
            f"  Booking {assignment.booking_id} -> table {assignment.table_id} "
            f"(seats {assignment.table_capacity}, {assignment.empty_seats} empty)"
        )
    if plan.unplaced:
        lines.append(f"Could not seat: {', '.join(str(b) for b in plan.unplaced)}")
    return "\n".join(lines)


def conflict_to_dict(conflict: Conflict) -> dict:
    """JSON-ready representation of a conflict for dashboards."""
    data = asdict(conflict)
    data["created_at"] = conflict.created_at.isoformat()
    if isinstance(conflict.details, DoubleBookingDetails):
        data["details"]["overlap"] = {
            "start": minutes_to_time(conflict.details.overlap_start),
            "end": minutes_to_time(conflict.details.overlap_end),
        }
    return data


def report_to_dict(report: DetectionReport) -> dict:
    return {
        "feasible": report.feasible,
        "conflicts": [conflict_to_dict(c) for c in report.conflicts],
        "errors": [asdict(e) for e in report.errors],
    }
