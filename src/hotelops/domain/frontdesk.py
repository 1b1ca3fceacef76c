"""Front desk dashboard projections.

Read-only views over room and booking snapshots; nothing here writes.
The room counts and booking lists may come from separate reads, so a
dashboard refresh racing a check-in can be off by one until the next poll.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Callable

from hotelops.domain.models import (
    IN_HOUSE_STATUSES,
    Booking,
    BookingFilters,
    BookingStatus,
    Room,
    RoomFilters,
    RoomStatus,
)
from hotelops.domain.stores import Database

ARRIVAL_STATUSES = (BookingStatus.CONFIRMED, BookingStatus.ACTIVE)
DEPARTURE_STATUSES = (
    BookingStatus.CONFIRMED,
    BookingStatus.ACTIVE,
    BookingStatus.CHECKING_OUT,
)


@dataclass(frozen=True)
class FrontDeskStats:
    total: int
    occupied: int
    vacant: int
    cleaning: int
    maintenance: int
    today_arrivals: int
    today_departures: int
    active_bookings: int
    occupancy_rate: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def occupancy_rate(occupied: int, total: int) -> float:
    """Percentage of rooms occupied, rounded to 2 decimals (0 with no rooms)."""
    if not total:
        return 0.0
    return round(occupied / total * 100, 2)


class FrontDeskAggregator:
    def __init__(self, db: Database, *, today: Callable[[], date]) -> None:
        self._db = db
        self._today = today

    def _bookings(self, filters: BookingFilters) -> list[Booking]:
        with self._db.session() as session:
            return session.bookings.list(filters)

    def stats(self, on: date | None = None) -> FrontDeskStats:
        """Room status counts plus today's arrival/departure/in-house counts."""
        target = on or self._today()
        with self._db.session() as session:
            rooms = session.rooms.list()

        counts = {status: 0 for status in RoomStatus}
        for room in rooms:
            counts[room.status] += 1

        total = len(rooms)
        return FrontDeskStats(
            total=total,
            occupied=counts[RoomStatus.OCCUPIED],
            vacant=counts[RoomStatus.VACANT],
            cleaning=counts[RoomStatus.CLEANING],
            maintenance=counts[RoomStatus.MAINTENANCE],
            today_arrivals=len(self.arrivals(target)),
            today_departures=len(self.departures(target)),
            active_bookings=len(self.current_guests()),
            occupancy_rate=occupancy_rate(counts[RoomStatus.OCCUPIED], total),
        )

    def current_guests(self) -> list[Booking]:
        """In-house bookings, soonest departure first."""
        bookings = self._bookings(BookingFilters(statuses=IN_HOUSE_STATUSES))
        return sorted(bookings, key=lambda b: (b.check_out, b.id))

    def arrivals(self, on: date | None = None) -> list[Booking]:
        """Bookings arriving on the given date (default today)."""
        target = on or self._today()
        bookings = self._bookings(BookingFilters(statuses=ARRIVAL_STATUSES, check_in=target))
        return sorted(bookings, key=lambda b: (b.check_in, b.id))

    def departures(self, on: date | None = None) -> list[Booking]:
        """Bookings due to leave on the given date (default today)."""
        target = on or self._today()
        bookings = self._bookings(BookingFilters(statuses=DEPARTURE_STATUSES, check_out=target))
        return sorted(bookings, key=lambda b: (b.check_out, b.id))

    def vacant_rooms(self) -> list[Room]:
        """Rooms currently marked vacant, by room number."""
        with self._db.session() as session:
            rooms = session.rooms.list(RoomFilters(status=RoomStatus.VACANT))
        return sorted(rooms, key=lambda r: r.room_number)
