"""Room and booking records shared by the stores and the engine.

Rooms and bookings are immutable snapshots: stores return new instances
on every write, so a value held by a caller never changes underneath it.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from datetime import date, datetime
from enum import Enum
from typing import Any


class RoomStatus(str, Enum):
    VACANT = "vacant"
    OCCUPIED = "occupied"
    CLEANING = "cleaning"
    MAINTENANCE = "maintenance"


class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    ACTIVE = "active"
    CHECKING_OUT = "checking_out"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Statuses that hold the room for [check_in, check_out)
BLOCKING_STATUSES = (
    BookingStatus.CONFIRMED,
    BookingStatus.ACTIVE,
    BookingStatus.CHECKING_OUT,
)

# Guest physically present, independent of the booked dates
IN_HOUSE_STATUSES = (BookingStatus.ACTIVE, BookingStatus.CHECKING_OUT)

TERMINAL_STATUSES = (BookingStatus.COMPLETED, BookingStatus.CANCELLED)


@dataclass(frozen=True)
class Room:
    id: str
    room_number: str
    room_type_id: str | None = None
    floor: int | None = None
    base_price_cents: int = 0
    status: RoomStatus = RoomStatus.VACANT
    capacity: int | None = None
    updated_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "room_number": self.room_number,
            "room_type_id": self.room_type_id,
            "floor": self.floor,
            "base_price_cents": self.base_price_cents,
            "status": self.status.value,
            "capacity": self.capacity,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class Booking:
    id: str
    guest_id: str
    room_id: str
    check_in: date
    check_out: date
    status: BookingStatus = BookingStatus.CONFIRMED
    number_of_guests: int = 1
    total_price_cents: int = 0
    advance_payment_cents: int = 0
    source: str = "front_desk"
    special_requests: str | None = None
    actual_check_in: datetime | None = None
    actual_check_out: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def occupies(self, today: date) -> bool:
        """True when this booking makes its room occupied on ``today``.

        In-house guests occupy the room regardless of dates (early arrival,
        late departure). Confirmed bookings occupy it for their booked nights.
        """
        if self.status in IN_HOUSE_STATUSES:
            return True
        if self.status == BookingStatus.CONFIRMED:
            return self.check_in <= today < self.check_out
        return False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "guest_id": self.guest_id,
            "room_id": self.room_id,
            "check_in": self.check_in.isoformat(),
            "check_out": self.check_out.isoformat(),
            "status": self.status.value,
            "number_of_guests": self.number_of_guests,
            "total_price_cents": self.total_price_cents,
            "advance_payment_cents": self.advance_payment_cents,
            "source": self.source,
            "special_requests": self.special_requests,
            "actual_check_in": self.actual_check_in.isoformat() if self.actual_check_in else None,
            "actual_check_out": self.actual_check_out.isoformat() if self.actual_check_out else None,
            "total_nights": self.nights,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class NewBooking:
    """Fields for a booking about to be inserted (id assigned by the store)."""

    guest_id: str
    room_id: str
    check_in: date
    check_out: date
    status: BookingStatus = BookingStatus.CONFIRMED
    number_of_guests: int = 1
    total_price_cents: int = 0
    advance_payment_cents: int = 0
    source: str = "front_desk"
    special_requests: str | None = None


# Booking columns a caller may change through update_booking
UPDATABLE_BOOKING_FIELDS = frozenset(
    {
        "guest_id",
        "room_id",
        "check_in",
        "check_out",
        "number_of_guests",
        "total_price_cents",
        "advance_payment_cents",
        "source",
        "special_requests",
    }
)

# Columns only the orchestrator writes
LIFECYCLE_BOOKING_FIELDS = frozenset({"status", "actual_check_in", "actual_check_out"})


@dataclass(frozen=True)
class RoomFilters:
    """Recognized room listing filters. Unset fields do not filter."""

    status: RoomStatus | None = None
    room_type_id: str | None = None
    floor: int | None = None
    search: str | None = None

    def matches(self, room: Room) -> bool:
        if self.status is not None and room.status != self.status:
            return False
        if self.room_type_id is not None and room.room_type_id != self.room_type_id:
            return False
        if self.floor is not None and room.floor != self.floor:
            return False
        if self.search and self.search.lower() not in room.room_number.lower():
            return False
        return True


@dataclass(frozen=True)
class BookingFilters:
    """Recognized booking listing filters. Unset fields do not filter."""

    statuses: tuple[BookingStatus, ...] | None = None
    guest_id: str | None = None
    room_id: str | None = None
    check_in: date | None = None
    check_out: date | None = None

    def matches(self, booking: Booking) -> bool:
        if self.statuses is not None and booking.status not in self.statuses:
            return False
        if self.guest_id is not None and booking.guest_id != self.guest_id:
            return False
        if self.room_id is not None and booking.room_id != self.room_id:
            return False
        if self.check_in is not None and booking.check_in != self.check_in:
            return False
        if self.check_out is not None and booking.check_out != self.check_out:
            return False
        return True


def apply_changes(booking: Booking, changes: dict[str, Any]) -> Booking:
    """Return a copy of booking with changes applied (unknown keys rejected)."""
    known = {f.name for f in fields(Booking)}
    unknown = set(changes) - known
    if unknown:
        raise ValueError(f"Unknown booking fields: {sorted(unknown)}")
    return replace(booking, **changes)
