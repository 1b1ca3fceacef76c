"""Rooms repository - persistence for room records.

Uses raw SQL with psycopg2 (no ORM).
"""

from __future__ import annotations

from psycopg2.extensions import cursor as PgCursor

from hotelops.domain.errors import NotFoundError
from hotelops.domain.models import Room, RoomFilters, RoomStatus
from hotelops.infra.db import select_one

ROOM_COLUMNS = (
    "id, room_number, room_type_id, floor, base_price_cents, status, capacity, updated_at"
)


def row_to_room(row: tuple) -> Room:
    return Room(
        id=str(row[0]),
        room_number=row[1],
        room_type_id=row[2],
        floor=row[3],
        base_price_cents=row[4],
        status=RoomStatus(row[5]),
        capacity=row[6],
        updated_at=row[7],
    )


def get_room(cur: PgCursor, room_id: str, *, lock: bool = False) -> Room | None:
    """Fetch a room, optionally locking its row until the transaction ends.

    Args:
        cur: Database cursor (within transaction).
        room_id: Room identifier.
        lock: If True, appends FOR UPDATE.

    Returns:
        Room if found, None otherwise.
    """
    row = select_one(
        cur, f"SELECT {ROOM_COLUMNS} FROM rooms WHERE id = %s", (room_id,), lock=lock
    )
    return row_to_room(row) if row is not None else None


def list_rooms(cur: PgCursor, filters: RoomFilters | None = None) -> list[Room]:
    """List rooms matching filters, ordered by room number."""
    filters = filters or RoomFilters()
    conditions: list[str] = []
    params: list = []

    if filters.status is not None:
        conditions.append("status = %s")
        params.append(filters.status.value)
    if filters.room_type_id is not None:
        conditions.append("room_type_id = %s")
        params.append(filters.room_type_id)
    if filters.floor is not None:
        conditions.append("floor = %s")
        params.append(filters.floor)
    if filters.search:
        conditions.append("room_number ILIKE %s")
        params.append(f"%{filters.search}%")

    where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
    cur.execute(
        f"""
        SELECT {ROOM_COLUMNS}
        FROM rooms
        {where}
        ORDER BY room_number
        """,
        params,
    )
    return [row_to_room(row) for row in cur.fetchall()]


def update_room_status(cur: PgCursor, room_id: str, status: RoomStatus) -> Room:
    """Set a room's status.

    Raises:
        NotFoundError: If the room does not exist.
    """
    cur.execute(
        f"""
        UPDATE rooms
        SET status = %s, updated_at = now()
        WHERE id = %s
        RETURNING {ROOM_COLUMNS}
        """,
        (status.value, room_id),
    )
    row = cur.fetchone()
    if row is None:
        raise NotFoundError("room", room_id)
    return row_to_room(row)
