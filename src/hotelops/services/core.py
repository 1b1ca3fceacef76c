"""HotelCore - the engine's public surface.

Wires the lifecycle orchestrator, the availability engine and the front desk
aggregator over one Database, and exposes the operations callers (HTTP
controllers, scripts) are allowed to use.
"""

from __future__ import annotations

import time
from datetime import date
from typing import Any, Callable

from hotelops.config import Settings, get_settings, hotel_tz
from hotelops.domain.availability import AvailabilityEngine
from hotelops.domain.errors import NotFoundError
from hotelops.domain.frontdesk import FrontDeskAggregator, FrontDeskStats
from hotelops.domain.lifecycle import LifecycleOrchestrator
from hotelops.domain.models import Booking, BookingFilters, Room, RoomFilters
from hotelops.domain.stores import Database
from hotelops.infra.time import Clock, utc_now


class HotelCore:
    def __init__(
        self,
        db: Database,
        *,
        settings: Settings | None = None,
        clock: Clock = utc_now,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        settings = settings or Settings()
        self.db = db
        self.settings = settings
        self.lifecycle = LifecycleOrchestrator(
            db,
            clock=clock,
            tz=hotel_tz(settings),
            max_retries=settings.max_retries,
            retry_backoff_ms=settings.retry_backoff_ms,
            sleep=sleep,
        )
        self.availability = AvailabilityEngine(db, today=self.lifecycle.today)
        self.frontdesk = FrontDeskAggregator(db, today=self.lifecycle.today)

    def today(self) -> date:
        return self.lifecycle.today()

    # ── Mutations (LifecycleOrchestrator) ───────────────────────────────

    def create_booking(
        self, guest_id: str, room_id: str, check_in: date, check_out: date, **fields: Any
    ) -> Booking:
        return self.lifecycle.create_booking(guest_id, room_id, check_in, check_out, **fields)

    def check_in(self, booking_id: str) -> Booking:
        return self.lifecycle.check_in(booking_id)

    def begin_check_out(self, booking_id: str) -> Booking:
        return self.lifecycle.begin_check_out(booking_id)

    def check_out(self, booking_id: str) -> Booking:
        return self.lifecycle.check_out(booking_id)

    def cancel_booking(self, booking_id: str) -> Booking:
        return self.lifecycle.cancel_booking(booking_id)

    def delete_booking(self, booking_id: str) -> None:
        self.lifecycle.delete_booking(booking_id)

    def update_booking(self, booking_id: str, **changes: Any) -> Booking:
        return self.lifecycle.update_booking(booking_id, **changes)

    def reconcile_rooms(self) -> list[Room]:
        return self.lifecycle.reconcile_rooms()

    # ── Reads ───────────────────────────────────────────────────────────

    def available_rooms(
        self, check_in: date, check_out: date, filters: RoomFilters | None = None
    ) -> list[Room]:
        return self.availability.available_rooms(check_in, check_out, filters)

    def front_desk_stats(self, on: date | None = None) -> FrontDeskStats:
        return self.frontdesk.stats(on)

    def get_booking(self, booking_id: str) -> Booking:
        with self.db.session() as session:
            booking = session.bookings.get(booking_id)
        if booking is None:
            raise NotFoundError("booking", booking_id)
        return booking

    def list_bookings(self, filters: BookingFilters | None = None) -> list[Booking]:
        with self.db.session() as session:
            return session.bookings.list(filters)

    def get_room(self, room_id: str) -> Room:
        with self.db.session() as session:
            room = session.rooms.get(room_id)
        if room is None:
            raise NotFoundError("room", room_id)
        return room

    def list_rooms(self, filters: RoomFilters | None = None) -> list[Room]:
        with self.db.session() as session:
            return session.rooms.list(filters)


def build_core(settings: Settings | None = None) -> HotelCore:
    """Build a HotelCore over the backend selected by STORE_BACKEND."""
    settings = settings or get_settings()
    if settings.store_backend == "memory":
        from hotelops.infra.memory_store import InMemoryDatabase

        db: Database = InMemoryDatabase(lock_timeout_ms=settings.room_lock_timeout_ms)
    else:
        from hotelops.infra.postgres_store import PostgresDatabase

        db = PostgresDatabase(lock_timeout_ms=settings.room_lock_timeout_ms)
    return HotelCore(db, settings=settings)
