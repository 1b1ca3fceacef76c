"""Shared test helper functions for hotelops tests.

These are NOT fixtures - they are regular functions and classes that can be
imported by both conftest.py and individual test files.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone

from hotelops.domain.models import BLOCKING_STATUSES, RoomStatus
from hotelops.domain.overlap import ranges_overlap


class MutableClock:
    """Clock that tests can move forward."""

    def __init__(self, moment: datetime) -> None:
        self.moment = moment

    def __call__(self) -> datetime:
        return self.moment

    def set_day(self, day: date) -> None:
        self.moment = datetime.combine(day, time(9, 0), tzinfo=timezone.utc)

    def advance(self, days: int = 1) -> None:
        self.moment += timedelta(days=days)


def assert_no_double_booking(db) -> None:
    """No two blocking bookings of one room intersect."""
    blocking = [b for b in db.bookings.values() if b.status in BLOCKING_STATUSES]
    for i, a in enumerate(blocking):
        for b in blocking[i + 1:]:
            if a.room_id != b.room_id:
                continue
            assert not ranges_overlap(a.check_in, a.check_out, b.check_in, b.check_out), (
                f"bookings {a.id} and {b.id} overlap in room {a.room_id}"
            )


def assert_rooms_coherent(db, today: date) -> None:
    """Room status agrees with the bookings occupying it today."""
    for room in db.rooms.values():
        occupying = [
            b for b in db.bookings.values() if b.room_id == room.id and b.occupies(today)
        ]
        if occupying:
            assert room.status == RoomStatus.OCCUPIED, (
                f"room {room.room_number} is {room.status.value} but booking "
                f"{occupying[0].id} occupies it"
            )
        else:
            assert room.status != RoomStatus.OCCUPIED, (
                f"room {room.room_number} is occupied with no booking occupying it"
            )
