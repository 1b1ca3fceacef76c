"""In-process store implementation.

Used by the test suite and by ``STORE_BACKEND=memory`` local runs.

Semantics mirror the PostgreSQL store closely enough for the engine:
- writes apply immediately and are journaled; an exception inside the
  session replays the journal backwards (rollback),
- ``get(..., lock=True)`` takes a per-row lock held until the session ends;
  waiting longer than the lock timeout raises StoreConflictError,
- reads do not lock (other sessions may observe uncommitted writes, which
  the engine tolerates because every check-then-write holds the room lock).
"""

from __future__ import annotations

import threading
import uuid
from contextlib import contextmanager
from dataclasses import replace
from typing import Any, Iterable, Iterator

from hotelops.domain.errors import NotFoundError, StoreConflictError
from hotelops.domain.models import (
    Booking,
    BookingFilters,
    BookingStatus,
    NewBooking,
    Room,
    RoomFilters,
    RoomStatus,
    apply_changes,
)
from hotelops.infra.time import Clock, utc_now

_MISSING = object()


class InMemoryDatabase:
    def __init__(self, *, lock_timeout_ms: int = 5000, clock: Clock = utc_now) -> None:
        self.rooms: dict[str, Room] = {}
        self.bookings: dict[str, Booking] = {}
        self.clock = clock
        self._lock_timeout = lock_timeout_ms / 1000
        self._mutex = threading.RLock()
        self._row_locks: dict[tuple[str, str], threading.Lock] = {}

    # ── Seeding (administrative setup, outside the engine) ──────────────

    def add_room(
        self,
        room_number: str,
        *,
        room_id: str | None = None,
        room_type_id: str | None = None,
        floor: int | None = None,
        base_price_cents: int = 0,
        status: RoomStatus = RoomStatus.VACANT,
        capacity: int | None = None,
    ) -> Room:
        room = Room(
            id=room_id or str(uuid.uuid4()),
            room_number=room_number,
            room_type_id=room_type_id,
            floor=floor,
            base_price_cents=base_price_cents,
            status=status,
            capacity=capacity,
            updated_at=self.clock(),
        )
        with self._mutex:
            if any(r.room_number == room_number for r in self.rooms.values()):
                raise ValueError(f"room number {room_number} already exists")
            self.rooms[room.id] = room
        return room

    def set_room_status(self, room_id: str, status: RoomStatus) -> Room:
        """Housekeeping toggle (cleaning/maintenance), bypassing the engine."""
        with self._mutex:
            room = replace(self.rooms[room_id], status=status, updated_at=self.clock())
            self.rooms[room_id] = room
        return room

    # ── Sessions ────────────────────────────────────────────────────────

    def _row_lock(self, table: str, key: str) -> threading.Lock:
        with self._mutex:
            return self._row_locks.setdefault((table, key), threading.Lock())

    @contextmanager
    def session(self) -> Iterator["InMemorySession"]:
        session = InMemorySession(self)
        try:
            yield session
        except BaseException:
            session.rollback()
            raise
        finally:
            session.release()


class InMemorySession:
    def __init__(self, db: InMemoryDatabase) -> None:
        self._db = db
        self._journal: list[tuple[dict[str, Any], str, Any]] = []
        self._held: dict[tuple[str, str], threading.Lock] = {}
        self.rooms = InMemoryRoomStore(self)
        self.bookings = InMemoryBookingStore(self)

    @property
    def db(self) -> InMemoryDatabase:
        return self._db

    def acquire(self, table: str, key: str) -> None:
        if (table, key) in self._held:
            return
        lock = self._db._row_lock(table, key)
        if not lock.acquire(timeout=self._db._lock_timeout):
            raise StoreConflictError(f"lock timeout on {table} {key}")
        self._held[(table, key)] = lock

    def write(self, table: dict[str, Any], key: str, value: Any) -> None:
        """Set (or delete, when value is _MISSING) a row, journaling the old value."""
        with self._db._mutex:
            self._journal.append((table, key, table.get(key, _MISSING)))
            if value is _MISSING:
                table.pop(key, None)
            else:
                table[key] = value

    def rollback(self) -> None:
        with self._db._mutex:
            for table, key, previous in reversed(self._journal):
                if previous is _MISSING:
                    table.pop(key, None)
                else:
                    table[key] = previous
            self._journal.clear()

    def release(self) -> None:
        for lock in self._held.values():
            lock.release()
        self._held.clear()
        self._journal.clear()


class InMemoryRoomStore:
    def __init__(self, session: InMemorySession) -> None:
        self._session = session
        self._db = session.db

    def get(self, room_id: str, *, lock: bool = False) -> Room | None:
        if lock:
            self._session.acquire("rooms", room_id)
        with self._db._mutex:
            return self._db.rooms.get(room_id)

    def list(self, filters: RoomFilters | None = None) -> list[Room]:
        filters = filters or RoomFilters()
        with self._db._mutex:
            rooms = [r for r in self._db.rooms.values() if filters.matches(r)]
        return sorted(rooms, key=lambda r: r.room_number)

    def set_status(self, room_id: str, status: RoomStatus) -> Room:
        with self._db._mutex:
            room = self._db.rooms.get(room_id)
            if room is None:
                raise NotFoundError("room", room_id)
            updated = replace(room, status=status, updated_at=self._db.clock())
            self._session.write(self._db.rooms, room_id, updated)
        return updated


class InMemoryBookingStore:
    def __init__(self, session: InMemorySession) -> None:
        self._session = session
        self._db = session.db

    def get(self, booking_id: str, *, lock: bool = False) -> Booking | None:
        if lock:
            self._session.acquire("bookings", booking_id)
        with self._db._mutex:
            return self._db.bookings.get(booking_id)

    def list(self, filters: BookingFilters | None = None) -> list[Booking]:
        filters = filters or BookingFilters()
        with self._db._mutex:
            bookings = [b for b in self._db.bookings.values() if filters.matches(b)]
        return sorted(bookings, key=lambda b: b.created_at or self._db.clock(), reverse=True)

    def list_for_room(self, room_id: str, statuses: Iterable[BookingStatus]) -> list[Booking]:
        wanted = tuple(statuses)
        with self._db._mutex:
            bookings = [
                b
                for b in self._db.bookings.values()
                if b.room_id == room_id and b.status in wanted
            ]
        return sorted(bookings, key=lambda b: (b.check_in, b.id))

    def create(self, fields: NewBooking) -> Booking:
        now = self._db.clock()
        booking = Booking(
            id=str(uuid.uuid4()),
            guest_id=fields.guest_id,
            room_id=fields.room_id,
            check_in=fields.check_in,
            check_out=fields.check_out,
            status=fields.status,
            number_of_guests=fields.number_of_guests,
            total_price_cents=fields.total_price_cents,
            advance_payment_cents=fields.advance_payment_cents,
            source=fields.source,
            special_requests=fields.special_requests,
            created_at=now,
            updated_at=now,
        )
        self._session.write(self._db.bookings, booking.id, booking)
        return booking

    def update(self, booking_id: str, fields: dict[str, Any]) -> Booking:
        with self._db._mutex:
            booking = self._db.bookings.get(booking_id)
            if booking is None:
                raise NotFoundError("booking", booking_id)
            updated = apply_changes(booking, {**fields, "updated_at": self._db.clock()})
            self._session.write(self._db.bookings, booking_id, updated)
        return updated

    def delete(self, booking_id: str) -> None:
        with self._db._mutex:
            if booking_id not in self._db.bookings:
                raise NotFoundError("booking", booking_id)
            self._session.write(self._db.bookings, booking_id, _MISSING)
