"""Bookings endpoints.

GET    /bookings                                   → list
GET    /bookings/{id}                              → get
POST   /bookings                                   → create (201)
PATCH  /bookings/{id}                              → update dates/room/details
DELETE /bookings/{id}                              → delete (204)
POST   /bookings/{id}/actions/check-in             → confirmed → active
POST   /bookings/{id}/actions/begin-check-out      → active → checking_out
POST   /bookings/{id}/actions/check-out            → active|checking_out → completed
POST   /bookings/{id}/actions/cancel               → non-terminal → cancelled
"""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response
from pydantic import BaseModel, ConfigDict, Field

from hotelops.api.deps import get_core
from hotelops.domain.models import BookingFilters, BookingStatus
from hotelops.services.core import HotelCore

router = APIRouter(prefix="/bookings", tags=["bookings"])


# ── Schemas ───────────────────────────────────────────────────────────────────


class CreateBookingRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    guest_id: str
    room_id: str
    check_in: date
    check_out: date
    number_of_guests: int = Field(1, ge=1)
    total_price_cents: int | None = Field(None, ge=0)
    advance_payment_cents: int = Field(0, ge=0)
    source: str = "front_desk"
    special_requests: str | None = None


class UpdateBookingRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    guest_id: str | None = None
    room_id: str | None = None
    check_in: date | None = None
    check_out: date | None = None
    number_of_guests: int | None = Field(None, ge=1)
    total_price_cents: int | None = Field(None, ge=0)
    advance_payment_cents: int | None = Field(None, ge=0)
    source: str | None = None
    special_requests: str | None = None


# ── Reads ─────────────────────────────────────────────────────────────────────


@router.get("")
def list_bookings(
    status: list[BookingStatus] | None = Query(None, description="Filter by status (repeatable)"),
    guest_id: str | None = Query(None),
    room_id: str | None = Query(None),
    core: HotelCore = Depends(get_core),
) -> dict:
    """List bookings, newest first."""
    filters = BookingFilters(
        statuses=tuple(status) if status else None,
        guest_id=guest_id,
        room_id=room_id,
    )
    return {"bookings": [b.to_dict() for b in core.list_bookings(filters)]}


@router.get("/{booking_id}")
def get_booking(
    booking_id: str = Path(..., description="Booking ID"),
    core: HotelCore = Depends(get_core),
) -> dict:
    return core.get_booking(booking_id).to_dict()


# ── Mutations ─────────────────────────────────────────────────────────────────


@router.post("", status_code=201)
def create_booking(
    body: CreateBookingRequest,
    core: HotelCore = Depends(get_core),
) -> dict:
    """Create a confirmed booking.

    400 invalid range, 404 unknown room, 409 overlapping booking.
    """
    booking = core.create_booking(
        body.guest_id,
        body.room_id,
        body.check_in,
        body.check_out,
        number_of_guests=body.number_of_guests,
        total_price_cents=body.total_price_cents,
        advance_payment_cents=body.advance_payment_cents,
        source=body.source,
        special_requests=body.special_requests,
    )
    return booking.to_dict()


@router.patch("/{booking_id}")
def update_booking(
    body: UpdateBookingRequest,
    booking_id: str = Path(..., description="Booking ID"),
    core: HotelCore = Depends(get_core),
) -> dict:
    """Partial update; only the provided fields change."""
    # special_requests is the only column that may be cleared with null
    changes = {
        k: v
        for k, v in body.model_dump(exclude_unset=True).items()
        if v is not None or k == "special_requests"
    }
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")
    return core.update_booking(booking_id, **changes).to_dict()


@router.delete("/{booking_id}", status_code=204)
def delete_booking(
    booking_id: str = Path(..., description="Booking ID"),
    core: HotelCore = Depends(get_core),
) -> Response:
    core.delete_booking(booking_id)
    return Response(status_code=204)


@router.post("/{booking_id}/actions/check-in")
def check_in(
    booking_id: str = Path(..., description="Booking ID"),
    core: HotelCore = Depends(get_core),
) -> dict:
    return core.check_in(booking_id).to_dict()


@router.post("/{booking_id}/actions/begin-check-out")
def begin_check_out(
    booking_id: str = Path(..., description="Booking ID"),
    core: HotelCore = Depends(get_core),
) -> dict:
    return core.begin_check_out(booking_id).to_dict()


@router.post("/{booking_id}/actions/check-out")
def check_out(
    booking_id: str = Path(..., description="Booking ID"),
    core: HotelCore = Depends(get_core),
) -> dict:
    return core.check_out(booking_id).to_dict()


@router.post("/{booking_id}/actions/cancel")
def cancel_booking(
    booking_id: str = Path(..., description="Booking ID"),
    core: HotelCore = Depends(get_core),
) -> dict:
    return core.cancel_booking(booking_id).to_dict()
