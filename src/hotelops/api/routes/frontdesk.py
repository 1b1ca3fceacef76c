"""Front desk dashboard endpoints (read-only)."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query

from hotelops.api.deps import get_core
from hotelops.services.core import HotelCore

router = APIRouter(prefix="/frontdesk", tags=["frontdesk"])


@router.get("/stats")
def get_stats(
    target_date: date | None = Query(None, alias="date", description="Date (YYYY-MM-DD), defaults to today"),
    core: HotelCore = Depends(get_core),
) -> dict:
    """Dashboard widget data.

    - total/occupied/vacant/cleaning/maintenance: room counts by status
    - today_arrivals / today_departures: bookings arriving/leaving on the date
    - active_bookings: guests currently in-house
    - occupancy_rate: occupied / total × 100, 2 decimals
    """
    return core.frontdesk.stats(target_date).to_dict()


@router.get("/current")
def current_guests(core: HotelCore = Depends(get_core)) -> dict:
    """In-house bookings, soonest departure first."""
    return {"bookings": [b.to_dict() for b in core.frontdesk.current_guests()]}


@router.get("/arrivals")
def arrivals(
    target_date: date | None = Query(None, alias="date"),
    core: HotelCore = Depends(get_core),
) -> dict:
    return {"bookings": [b.to_dict() for b in core.frontdesk.arrivals(target_date)]}


@router.get("/departures")
def departures(
    target_date: date | None = Query(None, alias="date"),
    core: HotelCore = Depends(get_core),
) -> dict:
    return {"bookings": [b.to_dict() for b in core.frontdesk.departures(target_date)]}


@router.get("/availability")
def vacant_rooms(core: HotelCore = Depends(get_core)) -> list[dict]:
    """Rooms currently vacant, by room number."""
    return [room.to_dict() for room in core.frontdesk.vacant_rooms()]
