from datetime import datetime, timezone

import pytest

from dinecheck.models import Booking, Table

FIXED_NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    """A fixed creation timestamp so conflicts compare equal across runs."""
    return FIXED_NOW


@pytest.fixture
def tables() -> list[Table]:
    """A small venue: two 2-tops, a 4-top and a 6-top."""
    return [
        Table(id=1, capacity=2, room="main"),
        Table(id=2, capacity=2, room="main"),
        Table(id=3, capacity=4, room="main"),
        Table(id=4, capacity=6, room="patio"),
    ]


@pytest.fixture
def make_booking():
    """Factory for bookings with sensible defaults."""

    def _make(id: int, **kwargs) -> Booking:
        values = {
            "date": "2024-06-01",
            "start_time": "19:00",
            "guest_count": 2,
            "status": "confirmed",
        }
        values.update(kwargs)
        return Booking(id=id, **values)

    return _make
