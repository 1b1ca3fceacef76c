"""Bookings repository - persistence for booking records.

Uses raw SQL with psycopg2 (no ORM).

The bookings table carries an EXCLUDE USING gist constraint over
(room_id, daterange(check_in, check_out, '[)')) for blocking statuses, so a
double booking that slips past the application-level check still fails here;
that violation is reported as OverlapError.
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Any, Iterable

from psycopg2 import errors as pg_errors
from psycopg2.extensions import cursor as PgCursor

from hotelops.domain.errors import InvalidBookingError, NotFoundError, OverlapError
from hotelops.domain.models import (
    LIFECYCLE_BOOKING_FIELDS,
    UPDATABLE_BOOKING_FIELDS,
    Booking,
    BookingFilters,
    BookingStatus,
    NewBooking,
)
from hotelops.infra.db import select_one

BOOKING_COLUMNS = (
    "id, guest_id, room_id, check_in, check_out, status, number_of_guests, "
    "total_price_cents, advance_payment_cents, source, special_requests, "
    "actual_check_in, actual_check_out, created_at, updated_at"
)

_WRITABLE_COLUMNS = UPDATABLE_BOOKING_FIELDS | LIFECYCLE_BOOKING_FIELDS


def row_to_booking(row: tuple) -> Booking:
    return Booking(
        id=str(row[0]),
        guest_id=row[1],
        room_id=row[2],
        check_in=row[3],
        check_out=row[4],
        status=BookingStatus(row[5]),
        number_of_guests=row[6],
        total_price_cents=row[7],
        advance_payment_cents=row[8],
        source=row[9],
        special_requests=row[10],
        actual_check_in=row[11],
        actual_check_out=row[12],
        created_at=row[13],
        updated_at=row[14],
    )


def _is_uuid(value: str) -> bool:
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


def _invalid_value(exc: pg_errors.IntegrityError) -> InvalidBookingError:
    diag = getattr(exc, "diag", None)
    target = getattr(diag, "column_name", None) or getattr(diag, "constraint_name", None)
    return InvalidBookingError(target or "booking", "rejected by a table constraint")


def _db_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def get_booking(cur: PgCursor, booking_id: str, *, lock: bool = False) -> Booking | None:
    """Fetch a booking by id, optionally with FOR UPDATE.

    Malformed ids are treated as missing (no query is sent, so the
    transaction is not aborted by a cast error).
    """
    if not _is_uuid(booking_id):
        return None
    row = select_one(
        cur, f"SELECT {BOOKING_COLUMNS} FROM bookings WHERE id = %s", (booking_id,), lock=lock
    )
    return row_to_booking(row) if row is not None else None


def list_bookings(cur: PgCursor, filters: BookingFilters | None = None) -> list[Booking]:
    """List bookings matching filters, newest first."""
    filters = filters or BookingFilters()
    conditions: list[str] = []
    params: list = []

    if filters.statuses is not None:
        conditions.append("status = ANY(%s)")
        params.append([s.value for s in filters.statuses])
    if filters.guest_id is not None:
        conditions.append("guest_id = %s")
        params.append(filters.guest_id)
    if filters.room_id is not None:
        conditions.append("room_id = %s")
        params.append(filters.room_id)
    if filters.check_in is not None:
        conditions.append("check_in = %s")
        params.append(filters.check_in)
    if filters.check_out is not None:
        conditions.append("check_out = %s")
        params.append(filters.check_out)

    where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
    cur.execute(
        f"""
        SELECT {BOOKING_COLUMNS}
        FROM bookings
        {where}
        ORDER BY created_at DESC
        """,
        params,
    )
    return [row_to_booking(row) for row in cur.fetchall()]


def list_room_bookings(
    cur: PgCursor, room_id: str, statuses: Iterable[BookingStatus]
) -> list[Booking]:
    """List a room's bookings in the given statuses, ordered by check-in."""
    cur.execute(
        f"""
        SELECT {BOOKING_COLUMNS}
        FROM bookings
        WHERE room_id = %s AND status = ANY(%s)
        ORDER BY check_in, id
        """,
        (room_id, [s.value for s in statuses]),
    )
    return [row_to_booking(row) for row in cur.fetchall()]


def insert_booking(cur: PgCursor, fields: NewBooking) -> Booking:
    """Insert a booking and return it.

    Raises:
        OverlapError: The exclusion constraint rejected the range.
        NotFoundError: room_id does not reference a room.
        InvalidBookingError: A CHECK or NOT NULL constraint rejected a value.
    """
    try:
        cur.execute(
            f"""
            INSERT INTO bookings (
                guest_id, room_id, check_in, check_out, status,
                number_of_guests, total_price_cents, advance_payment_cents,
                source, special_requests
            )
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING {BOOKING_COLUMNS}
            """,
            (
                fields.guest_id,
                fields.room_id,
                fields.check_in,
                fields.check_out,
                fields.status.value,
                fields.number_of_guests,
                fields.total_price_cents,
                fields.advance_payment_cents,
                fields.source,
                fields.special_requests,
            ),
        )
    except pg_errors.ExclusionViolation:
        raise OverlapError(room_id=fields.room_id, conflicting_booking_id=None)
    except pg_errors.ForeignKeyViolation:
        raise NotFoundError("room", fields.room_id)
    except (pg_errors.CheckViolation, pg_errors.NotNullViolation) as exc:
        raise _invalid_value(exc)
    return row_to_booking(cur.fetchone())


def update_booking(cur: PgCursor, booking_id: str, fields: dict[str, Any]) -> Booking:
    """Update the given columns of a booking.

    Raises:
        ValueError: A column is not writable.
        OverlapError: The exclusion constraint rejected the new range/room.
        NotFoundError: The booking (or a new room_id) does not exist.
        InvalidBookingError: A CHECK or NOT NULL constraint rejected a value.
    """
    unknown = set(fields) - _WRITABLE_COLUMNS
    if unknown:
        raise ValueError(f"Columns not writable: {sorted(unknown)}")

    sets = ["updated_at = now()"]
    params: list = []
    for column in sorted(fields):
        sets.append(f"{column} = %s")
        params.append(_db_value(fields[column]))
    params.append(booking_id)

    try:
        cur.execute(
            f"""
            UPDATE bookings
            SET {', '.join(sets)}
            WHERE id = %s
            RETURNING {BOOKING_COLUMNS}
            """,
            params,
        )
    except pg_errors.ExclusionViolation:
        raise OverlapError(
            room_id=fields.get("room_id", "unknown"), conflicting_booking_id=None
        )
    except pg_errors.ForeignKeyViolation:
        raise NotFoundError("room", str(fields.get("room_id")))
    except (pg_errors.CheckViolation, pg_errors.NotNullViolation) as exc:
        raise _invalid_value(exc)

    row = cur.fetchone()
    if row is None:
        raise NotFoundError("booking", booking_id)
    return row_to_booking(row)


def delete_booking(cur: PgCursor, booking_id: str) -> None:
    """Delete a booking row.

    Raises:
        NotFoundError: If nothing was deleted.
    """
    cur.execute("DELETE FROM bookings WHERE id = %s RETURNING id", (booking_id,))
    if cur.fetchone() is None:
        raise NotFoundError("booking", booking_id)
