"""Data models for dinecheck."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

BookingStatus = Literal["confirmed", "pending", "cancelled", "completed", "no-show"]
ConflictKind = Literal["capacity_exceeded", "double_booking", "time_overlap"]
Severity = Literal["high", "medium", "low"]
ResolutionKind = Literal["reassign_table", "split_party", "reschedule", "distribute_bookings"]
Impact = Literal["low", "moderate", "high"]
AvailabilityTier = Literal["high", "medium", "low", "full", "closed", "unavailable"]

BOOKING_STATUSES: tuple[str, ...] = ("confirmed", "pending", "cancelled", "completed", "no-show")


@dataclass
class Booking:
    """A reservation for a party at a date and time, optionally bound to a table."""

    id: int
    date: str  # ISO date, e.g. "2024-06-01"
    start_time: str  # "HH:MM"
    guest_count: int
    end_time: str | None = None  # None = default duration
    table_id: int | None = None  # None = unassigned
    status: BookingStatus = "confirmed"


@dataclass(frozen=True)
class Table:
    """A fixed-capacity seating resource."""

    id: int
    capacity: int
    room: str | None = None


@dataclass
class OpeningHours:
    """Opening hours of the venue for one weekday."""

    day: str  # lowercase weekday name, e.g. "saturday"
    is_open: bool = True
    open_time: str = "00:00"
    close_time: str = "23:59"


@dataclass
class CapacityDetails:
    conflict_type: Literal["assigned_table_too_small", "no_suitable_table"]
    guest_count: int
    max_table_capacity: int
    table_id: int | None = None
    table_capacity: int | None = None


@dataclass
class DoubleBookingDetails:
    table_id: int
    overlap_start: int  # minutes since midnight, inclusive
    overlap_end: int  # minutes since midnight, exclusive


@dataclass
class CongestionDetails:
    date: str
    time_slot: str  # "HH:MM" start of the bucket
    total_bookings: int
    total_guests: int


@dataclass
class ReassignTableParams:
    new_table_id: int
    new_table_capacity: int


@dataclass
class SplitPartyParams:
    tables_needed: int
    compensation_suggested: bool = True


@dataclass
class RescheduleParams:
    booking_id: int


@dataclass
class DistributeBookingsParams:
    date: str
    time_slot: str
    booking_ids: list[int] = field(default_factory=list)


ConflictDetails = CapacityDetails | DoubleBookingDetails | CongestionDetails
ResolutionParams = (
    ReassignTableParams | SplitPartyParams | RescheduleParams | DistributeBookingsParams
)


@dataclass
class Resolution:
    """A suggested corrective action for a conflict."""

    id: str
    kind: ResolutionKind
    description: str
    impact: Impact
    confidence: int  # 0-100
    estimated_satisfaction: int  # 0-100
    params: ResolutionParams


@dataclass
class Conflict:
    """A detected infeasibility or risk in the booking set."""

    id: str
    kind: ConflictKind
    severity: Severity
    bookings: list[Booking]
    details: ConflictDetails
    resolutions: list[Resolution]
    auto_resolvable: bool
    created_at: datetime

    @property
    def booking_ids(self) -> list[int]:
        return [b.id for b in self.bookings]


@dataclass
class BookingError:
    """A booking that could not be checked, with the reason."""

    booking_id: int
    message: str


@dataclass
class DetectionReport:
    """Result of a detection run."""

    conflicts: list[Conflict]
    errors: list[BookingError] = field(default_factory=list)

    @property
    def feasible(self) -> bool:
        return not self.conflicts and not self.errors


@dataclass
class AvailabilitySlot:
    """Availability of a single calendar slot."""

    date: str
    time_slot: str | None
    tier: AvailabilityTier
    booked_guests: int
    total_capacity: int
    skipped: list[int] = field(default_factory=list)  # malformed bookings left out of the count


@dataclass
class TableAssignment:
    """A table proposed for an unassigned booking."""

    booking_id: int
    table_id: int
    table_capacity: int
    empty_seats: int = 0


@dataclass
class AssignmentPlan:
    """Result of the table assignment planner."""

    assignments: list[TableAssignment]
    unplaced: list[int]  # booking ids that could not be seated
