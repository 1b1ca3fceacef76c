"""PostgreSQL-backed stores.

One StoreSession == one psycopg2 transaction (see infra.db.txn). Room locks
are row locks (SELECT ... FOR UPDATE) bounded by lock_timeout; lock
timeouts, deadlocks and serialization failures are reported as
StoreConflictError so the orchestrator can retry the whole unit of work.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Callable, Iterable, Iterator

from psycopg2 import errors as pg_errors
from psycopg2.extensions import connection as PgConnection, cursor as PgCursor

from hotelops.domain.errors import StoreConflictError
from hotelops.domain.models import (
    Booking,
    BookingFilters,
    BookingStatus,
    NewBooking,
    Room,
    RoomFilters,
    RoomStatus,
)
from hotelops.infra.db import get_conn, set_lock_timeout, txn
from hotelops.infra.repositories import bookings_repository, rooms_repository

TRANSIENT_ERRORS = (
    pg_errors.LockNotAvailable,
    pg_errors.DeadlockDetected,
    pg_errors.SerializationFailure,
)


class PostgresRoomStore:
    def __init__(self, cur: PgCursor) -> None:
        self._cur = cur

    def get(self, room_id: str, *, lock: bool = False) -> Room | None:
        return rooms_repository.get_room(self._cur, room_id, lock=lock)

    def list(self, filters: RoomFilters | None = None) -> list[Room]:
        return rooms_repository.list_rooms(self._cur, filters)

    def set_status(self, room_id: str, status: RoomStatus) -> Room:
        return rooms_repository.update_room_status(self._cur, room_id, status)


class PostgresBookingStore:
    def __init__(self, cur: PgCursor) -> None:
        self._cur = cur

    def get(self, booking_id: str, *, lock: bool = False) -> Booking | None:
        return bookings_repository.get_booking(self._cur, booking_id, lock=lock)

    def list(self, filters: BookingFilters | None = None) -> list[Booking]:
        return bookings_repository.list_bookings(self._cur, filters)

    def list_for_room(self, room_id: str, statuses: Iterable[BookingStatus]) -> list[Booking]:
        return bookings_repository.list_room_bookings(self._cur, room_id, statuses)

    def create(self, fields: NewBooking) -> Booking:
        return bookings_repository.insert_booking(self._cur, fields)

    def update(self, booking_id: str, fields: dict[str, Any]) -> Booking:
        return bookings_repository.update_booking(self._cur, booking_id, fields)

    def delete(self, booking_id: str) -> None:
        bookings_repository.delete_booking(self._cur, booking_id)


class PostgresSession:
    def __init__(self, cur: PgCursor) -> None:
        self.rooms = PostgresRoomStore(cur)
        self.bookings = PostgresBookingStore(cur)


class PostgresDatabase:
    def __init__(
        self,
        *,
        connect: Callable[[], PgConnection] = get_conn,
        lock_timeout_ms: int = 5000,
    ) -> None:
        self._connect = connect
        self._lock_timeout_ms = lock_timeout_ms

    @contextmanager
    def session(self) -> Iterator[PostgresSession]:
        conn = self._connect()
        try:
            with txn(conn) as cur:
                set_lock_timeout(cur, self._lock_timeout_ms)
                yield PostgresSession(cur)
        except TRANSIENT_ERRORS as exc:
            raise StoreConflictError(f"{type(exc).__name__}: {exc}".strip()) from exc
        finally:
            conn.close()
