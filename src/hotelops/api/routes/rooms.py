"""Rooms endpoints.

GET  /rooms?status=&room_type_id=&floor=&search=&limit=&offset= → {rows, total}
GET  /rooms/available?check_in=&check_out=&...       → rooms free for a stay
GET  /rooms/{id}                                     → get
POST /rooms/actions/reconcile                        → re-derive occupied/vacant

Room setup (create/edit/delete) and housekeeping toggles live outside the
booking engine.
"""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Path, Query

from hotelops.api.deps import get_core
from hotelops.domain.models import RoomFilters, RoomStatus
from hotelops.observability.logging import get_logger
from hotelops.services.core import HotelCore

logger = get_logger(__name__)

router = APIRouter(prefix="/rooms", tags=["rooms"])


@router.get("")
def list_rooms(
    status: RoomStatus | None = Query(None),
    room_type_id: str | None = Query(None),
    floor: int | None = Query(None),
    search: str | None = Query(None, description="Substring of the room number"),
    limit: int = Query(100, ge=1, le=500, description="Max results"),
    offset: int = Query(0, ge=0),
    core: HotelCore = Depends(get_core),
) -> dict:
    """List rooms ordered by room number.

    total counts every room matching the filters, before limit/offset.
    """
    filters = RoomFilters(status=status, room_type_id=room_type_id, floor=floor, search=search)
    rooms = core.list_rooms(filters)
    page = rooms[offset : offset + limit]
    return {"rows": [room.to_dict() for room in page], "total": len(rooms)}


@router.get("/available")
def available_rooms(
    check_in: date = Query(..., description="Arrival date (YYYY-MM-DD)"),
    check_out: date = Query(..., description="Departure date (YYYY-MM-DD), exclusive"),
    room_type_id: str | None = Query(None),
    floor: int | None = Query(None),
    core: HotelCore = Depends(get_core),
) -> list[dict]:
    """Rooms free for [check_in, check_out).

    Maintenance rooms are never offered; rooms being cleaned are offered
    only for stays that start after today.
    """
    filters = RoomFilters(room_type_id=room_type_id, floor=floor)
    return [room.to_dict() for room in core.available_rooms(check_in, check_out, filters)]


@router.post("/actions/reconcile")
def reconcile_rooms(core: HotelCore = Depends(get_core)) -> dict:
    """Bring room status in line with today's bookings (run after midnight)."""
    changed = core.reconcile_rooms()
    logger.info(
        "room reconcile finished",
        extra={"extra_fields": {"changed_count": len(changed)}},
    )
    return {"changed": [room.to_dict() for room in changed]}


@router.get("/{room_id}")
def get_room(
    room_id: str = Path(..., description="Room ID"),
    core: HotelCore = Depends(get_core),
) -> dict:
    return core.get_room(room_id).to_dict()
