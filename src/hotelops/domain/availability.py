"""Room availability for a requested stay.

A room is available for [check_in, check_out) when:
- it is not under maintenance,
- it is not being cleaned, if the stay starts today (cleaning is transient,
  so rooms being turned over can still be sold for later dates),
- no blocking booking overlaps the range.
"""

from __future__ import annotations

from datetime import date
from typing import Callable

from hotelops.domain.models import Room, RoomFilters, RoomStatus
from hotelops.domain.overlap import OverlapChecker, validate_range
from hotelops.domain.stores import Database


class AvailabilityEngine:
    def __init__(self, db: Database, *, today: Callable[[], date]) -> None:
        self._db = db
        self._today = today

    def available_rooms(
        self,
        check_in: date,
        check_out: date,
        filters: RoomFilters | None = None,
    ) -> list[Room]:
        """List rooms free for the whole range, ordered by room number.

        Raises:
            InvalidRangeError: If check_out <= check_in.
        """
        validate_range(check_in, check_out)
        # Ranges already under way are treated like ones starting today
        starts_now = check_in <= self._today()

        available: list[Room] = []
        with self._db.session() as session:
            checker = OverlapChecker(session.bookings)
            for room in session.rooms.list(filters):
                if room.status == RoomStatus.MAINTENANCE:
                    continue
                if starts_now and room.status == RoomStatus.CLEANING:
                    continue
                if checker.overlaps(room.id, check_in, check_out):
                    continue
                available.append(room)

        return sorted(available, key=lambda r: r.room_number)
