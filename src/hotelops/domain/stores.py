"""Store interfaces consumed by the engine.

A Database opens StoreSessions. Everything done through one session is a
single transaction: it commits when the ``with`` block exits normally and
rolls back when it raises. ``rooms.get(room_id, lock=True)`` takes the room's
row lock for the rest of the session; that lock is what serializes
check-then-write sequences against the same room.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Any, Iterable, Protocol

from hotelops.domain.models import (
    Booking,
    BookingFilters,
    BookingStatus,
    NewBooking,
    Room,
    RoomFilters,
    RoomStatus,
)


class RoomStore(Protocol):
    def get(self, room_id: str, *, lock: bool = False) -> Room | None: ...

    def list(self, filters: RoomFilters | None = None) -> list[Room]: ...

    def set_status(self, room_id: str, status: RoomStatus) -> Room: ...


class BookingStore(Protocol):
    def get(self, booking_id: str, *, lock: bool = False) -> Booking | None: ...

    def list(self, filters: BookingFilters | None = None) -> list[Booking]: ...

    def list_for_room(
        self, room_id: str, statuses: Iterable[BookingStatus]
    ) -> list[Booking]: ...

    def create(self, fields: NewBooking) -> Booking: ...

    def update(self, booking_id: str, fields: dict[str, Any]) -> Booking: ...

    def delete(self, booking_id: str) -> None: ...


class StoreSession(Protocol):
    rooms: RoomStore
    bookings: BookingStore


class Database(Protocol):
    def session(self) -> AbstractContextManager[StoreSession]: ...
