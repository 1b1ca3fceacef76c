"""Booking/room lifecycle orchestration.

Every compound operation runs inside one store session:
lock room(s) → load booking → validate transition → write booking → write room.
The booking write and the room write commit together or not at all; a failed
room write rolls the booking write back.

Room status re-derivation (check-out, cancel, delete, update):
- some remaining booking occupies the room today → occupied
- otherwise, a room that was occupied → vacant
- cleaning/maintenance set by housekeeping are left alone

Transient store conflicts (lock timeout, deadlock) are retried with
exponential backoff and reported as ConsistencyConflictError when the
retry budget runs out.
"""

from __future__ import annotations

import time
from datetime import date
from typing import Any, Callable, TypeVar
from zoneinfo import ZoneInfo

from hotelops.domain.errors import (
    ConsistencyConflictError,
    InvalidBookingError,
    InvalidTransitionError,
    NotFoundError,
    StoreConflictError,
)
from hotelops.domain.models import (
    BLOCKING_STATUSES,
    IN_HOUSE_STATUSES,
    UPDATABLE_BOOKING_FIELDS,
    Booking,
    BookingStatus,
    NewBooking,
    Room,
    RoomStatus,
    apply_changes,
)
from hotelops.domain.overlap import OverlapChecker, validate_range
from hotelops.domain.stores import Database, StoreSession
from hotelops.infra.time import Clock, local_today
from hotelops.observability.correlation import get_correlation_id
from hotelops.observability.logging import get_logger
from hotelops.observability.redaction import safe_log_context

logger = get_logger(__name__)

T = TypeVar("T")

# special_requests is the only nullable column a caller supplies
_REQUIRED_BOOKING_FIELDS = UPDATABLE_BOOKING_FIELDS - {"special_requests"}


def validate_booking_fields(values: dict[str, Any]) -> None:
    """Reject values the bookings table would refuse.

    Raises:
        InvalidBookingError: null required field, blank guest, fewer than
            one guest, or negative cents.
    """
    for name, value in values.items():
        if value is None and name in _REQUIRED_BOOKING_FIELDS:
            raise InvalidBookingError(name, "must not be null")
    if "guest_id" in values and not str(values["guest_id"]).strip():
        raise InvalidBookingError("guest_id", "must not be empty")
    if "number_of_guests" in values and values["number_of_guests"] < 1:
        raise InvalidBookingError("number_of_guests", "must be at least 1")
    for name in ("total_price_cents", "advance_payment_cents"):
        if name in values and values[name] < 0:
            raise InvalidBookingError(name, "must not be negative")


class LifecycleOrchestrator:
    """The only component allowed to write bookings and room status together."""

    def __init__(
        self,
        db: Database,
        *,
        clock: Clock,
        tz: ZoneInfo,
        max_retries: int = 3,
        retry_backoff_ms: int = 50,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._db = db
        self._clock = clock
        self._tz = tz
        self._max_retries = max_retries
        self._retry_backoff_ms = retry_backoff_ms
        self._sleep = sleep

    def today(self) -> date:
        return local_today(self._clock, self._tz)

    # ── Unit of work ─────────────────────────────────────────────────────

    def _run(self, operation: str, work: Callable[[StoreSession], T]) -> T:
        attempt = 0
        while True:
            try:
                with self._db.session() as session:
                    return work(session)
            except StoreConflictError as exc:
                attempt += 1
                if attempt > self._max_retries:
                    logger.warning(
                        "lifecycle retries exhausted",
                        extra={
                            "extra_fields": safe_log_context(
                                correlationId=get_correlation_id(),
                                operation=operation,
                                attempts=attempt,
                            )
                        },
                    )
                    raise ConsistencyConflictError(operation, attempt) from exc

                delay = self._retry_backoff_ms * (2 ** (attempt - 1)) / 1000
                logger.warning(
                    "store conflict, retrying",
                    extra={
                        "extra_fields": safe_log_context(
                            correlationId=get_correlation_id(),
                            operation=operation,
                            attempt=attempt,
                            delay_seconds=delay,
                            error=str(exc),
                        )
                    },
                )
                self._sleep(delay)

    @staticmethod
    def _lock_room(session: StoreSession, room_id: str) -> Room:
        room = session.rooms.get(room_id, lock=True)
        if room is None:
            raise NotFoundError("room", room_id)
        return room

    def _lock_booking(
        self, session: StoreSession, booking_id: str, extra_room_ids: tuple[str, ...] = ()
    ) -> tuple[Booking, dict[str, Room]]:
        """Lock the booking's room (plus extra_room_ids, in id order) and the booking.

        Rooms are locked before the booking row so every writer acquires
        locks in the same order.
        """
        current = session.bookings.get(booking_id)
        if current is None:
            raise NotFoundError("booking", booking_id)

        rooms: dict[str, Room] = {}
        for room_id in sorted({current.room_id, *extra_room_ids}):
            rooms[room_id] = self._lock_room(session, room_id)

        booking = session.bookings.get(booking_id, lock=True)
        if booking is None:
            raise NotFoundError("booking", booking_id)
        if booking.room_id != current.room_id:
            # Moved by a concurrent update between the two reads
            raise StoreConflictError(f"booking {booking_id} changed room while locking")
        return booking, rooms

    def _occupied_today(self, session: StoreSession, room_id: str, today: date) -> bool:
        return any(
            b.occupies(today)
            for b in session.bookings.list_for_room(room_id, BLOCKING_STATUSES)
        )

    def _rederive_room(self, session: StoreSession, room: Room, today: date) -> Room:
        if self._occupied_today(session, room.id, today):
            target = RoomStatus.OCCUPIED
        elif room.status == RoomStatus.OCCUPIED:
            target = RoomStatus.VACANT
        else:
            return room

        if target == room.status:
            return room
        return session.rooms.set_status(room.id, target)

    @staticmethod
    def _log_transition(event: str, booking: Booking, room: Room) -> None:
        logger.info(
            event,
            extra={
                "extra_fields": safe_log_context(
                    correlationId=get_correlation_id(),
                    booking_id=booking.id,
                    room_id=room.id,
                    booking_status=booking.status,
                    room_status=room.status,
                )
            },
        )

    # ── Operations ───────────────────────────────────────────────────────

    def create_booking(
        self,
        guest_id: str,
        room_id: str,
        check_in: date,
        check_out: date,
        *,
        number_of_guests: int = 1,
        total_price_cents: int | None = None,
        advance_payment_cents: int = 0,
        source: str = "front_desk",
        special_requests: str | None = None,
    ) -> Booking:
        """Create a confirmed booking.

        The room becomes occupied when the stay covers today; a future stay
        leaves the room status unchanged. Without an explicit total the price
        is nights × the room's base price.

        Raises:
            InvalidBookingError: null or out-of-range field values.
            InvalidRangeError: check_out <= check_in.
            NotFoundError: room does not exist.
            OverlapError: the room is already booked for part of the range.
            InvalidTransitionError: stay starts today on a room under maintenance.
        """
        provided = {
            "guest_id": guest_id,
            "room_id": room_id,
            "check_in": check_in,
            "check_out": check_out,
            "number_of_guests": number_of_guests,
            "advance_payment_cents": advance_payment_cents,
            "source": source,
        }
        if total_price_cents is not None:
            provided["total_price_cents"] = total_price_cents
        validate_booking_fields(provided)
        validate_range(check_in, check_out)

        def work(session: StoreSession) -> Booking:
            room = self._lock_room(session, room_id)
            OverlapChecker(session.bookings).assert_no_overlap(room_id, check_in, check_out)

            today = self.today()
            covers_today = check_in <= today < check_out
            if covers_today and room.status == RoomStatus.MAINTENANCE:
                raise InvalidTransitionError("create", None, "room is under maintenance")

            total = total_price_cents
            if total is None:
                total = room.base_price_cents * (check_out - check_in).days

            booking = session.bookings.create(
                NewBooking(
                    guest_id=guest_id,
                    room_id=room_id,
                    check_in=check_in,
                    check_out=check_out,
                    number_of_guests=number_of_guests,
                    total_price_cents=total,
                    advance_payment_cents=advance_payment_cents,
                    source=source,
                    special_requests=special_requests,
                )
            )
            if booking.occupies(today) and room.status != RoomStatus.OCCUPIED:
                room = session.rooms.set_status(room_id, RoomStatus.OCCUPIED)

            self._log_transition("booking created", booking, room)
            return booking

        return self._run("create_booking", work)

    def check_in(self, booking_id: str) -> Booking:
        """Mark a confirmed booking active and its room occupied.

        Early arrival is not rejected here; callers enforce their own policy.

        Raises:
            NotFoundError, InvalidTransitionError.
        """

        def work(session: StoreSession) -> Booking:
            booking, rooms = self._lock_booking(session, booking_id)
            room = rooms[booking.room_id]

            if booking.status != BookingStatus.CONFIRMED:
                raise InvalidTransitionError(
                    "check in", booking_id, f"status is '{booking.status.value}', expected 'confirmed'"
                )
            if room.status == RoomStatus.MAINTENANCE:
                raise InvalidTransitionError("check in", booking_id, "room is under maintenance")

            in_house = [
                b
                for b in session.bookings.list_for_room(room.id, IN_HOUSE_STATUSES)
                if b.id != booking_id
            ]
            if in_house:
                raise InvalidTransitionError(
                    "check in", booking_id, f"room is still occupied by booking {in_house[0].id}"
                )

            booking = session.bookings.update(
                booking_id,
                {"status": BookingStatus.ACTIVE, "actual_check_in": self._clock()},
            )
            if room.status != RoomStatus.OCCUPIED:
                room = session.rooms.set_status(room.id, RoomStatus.OCCUPIED)

            self._log_transition("booking checked in", booking, room)
            return booking

        return self._run("check_in", work)

    def begin_check_out(self, booking_id: str) -> Booking:
        """Move an active booking to checking_out (guest settling the bill).

        The guest is still in the room, so room status does not change.
        """

        def work(session: StoreSession) -> Booking:
            booking, rooms = self._lock_booking(session, booking_id)
            if booking.status != BookingStatus.ACTIVE:
                raise InvalidTransitionError(
                    "begin check-out", booking_id, f"status is '{booking.status.value}', expected 'active'"
                )
            booking = session.bookings.update(booking_id, {"status": BookingStatus.CHECKING_OUT})
            self._log_transition("booking checking out", booking, rooms[booking.room_id])
            return booking

        return self._run("begin_check_out", work)

    def check_out(self, booking_id: str) -> Booking:
        """Complete an in-house booking and release its room.

        Raises:
            NotFoundError, InvalidTransitionError (including a second check-out).
        """

        def work(session: StoreSession) -> Booking:
            booking, rooms = self._lock_booking(session, booking_id)
            if booking.status not in IN_HOUSE_STATUSES:
                raise InvalidTransitionError(
                    "check out",
                    booking_id,
                    f"status is '{booking.status.value}', expected 'active' or 'checking_out'",
                )

            booking = session.bookings.update(
                booking_id,
                {"status": BookingStatus.COMPLETED, "actual_check_out": self._clock()},
            )
            room = self._rederive_room(session, rooms[booking.room_id], self.today())

            self._log_transition("booking checked out", booking, room)
            return booking

        return self._run("check_out", work)

    def cancel_booking(self, booking_id: str) -> Booking:
        """Cancel a non-terminal booking and re-derive its room's status.

        Raises:
            NotFoundError, InvalidTransitionError (already completed/cancelled).
        """

        def work(session: StoreSession) -> Booking:
            booking, rooms = self._lock_booking(session, booking_id)
            if booking.is_terminal:
                raise InvalidTransitionError(
                    "cancel", booking_id, f"status '{booking.status.value}' is terminal"
                )

            booking = session.bookings.update(booking_id, {"status": BookingStatus.CANCELLED})
            room = self._rederive_room(session, rooms[booking.room_id], self.today())

            self._log_transition("booking cancelled", booking, room)
            return booking

        return self._run("cancel_booking", work)

    def delete_booking(self, booking_id: str) -> None:
        """Remove a non-terminal booking record and re-derive its room's status."""

        def work(session: StoreSession) -> None:
            booking, rooms = self._lock_booking(session, booking_id)
            if booking.is_terminal:
                raise InvalidTransitionError(
                    "delete", booking_id, f"status '{booking.status.value}' is terminal"
                )

            session.bookings.delete(booking_id)
            room = self._rederive_room(session, rooms[booking.room_id], self.today())
            self._log_transition("booking deleted", booking, room)

        self._run("delete_booking", work)

    def update_booking(self, booking_id: str, **changes: Any) -> Booking:
        """Change dates, room or descriptive fields of a non-terminal booking.

        New dates/room are re-validated against other bookings (excluding this
        one). The room can only change while the booking is still confirmed.
        Both the old and the new room are re-derived.

        Raises:
            NotFoundError, InvalidRangeError, OverlapError, InvalidTransitionError,
            InvalidBookingError.
        """
        not_updatable = sorted(set(changes) - UPDATABLE_BOOKING_FIELDS)
        if not_updatable:
            raise InvalidTransitionError(
                "update", booking_id, f"fields not updatable: {', '.join(not_updatable)}"
            )

        validate_booking_fields(changes)

        def work(session: StoreSession) -> Booking:
            extra = (changes["room_id"],) if "room_id" in changes else ()
            booking, rooms = self._lock_booking(session, booking_id, extra)

            if booking.is_terminal:
                raise InvalidTransitionError(
                    "update", booking_id, f"status '{booking.status.value}' is terminal"
                )

            proposed = apply_changes(booking, changes)
            validate_range(proposed.check_in, proposed.check_out)

            room_changed = proposed.room_id != booking.room_id
            if room_changed and booking.status != BookingStatus.CONFIRMED:
                raise InvalidTransitionError(
                    "update", booking_id, "room cannot be reassigned after check-in"
                )

            dates_changed = (proposed.check_in, proposed.check_out) != (
                booking.check_in,
                booking.check_out,
            )
            if room_changed or dates_changed:
                OverlapChecker(session.bookings).assert_no_overlap(
                    proposed.room_id,
                    proposed.check_in,
                    proposed.check_out,
                    exclude_booking_id=booking_id,
                )

            today = self.today()
            target_room = rooms[proposed.room_id]
            newly_occupying = proposed.occupies(today) and (
                room_changed or not booking.occupies(today)
            )
            if newly_occupying and target_room.status == RoomStatus.MAINTENANCE:
                raise InvalidTransitionError("update", booking_id, "room is under maintenance")

            updated = session.bookings.update(booking_id, changes)
            for room_id in sorted(rooms):
                rooms[room_id] = self._rederive_room(session, rooms[room_id], today)

            self._log_transition("booking updated", updated, rooms[updated.room_id])
            return updated

        return self._run("update_booking", work)

    def reconcile_rooms(self) -> list[Room]:
        """Re-derive occupied/vacant for every room (night-audit roll-over).

        Confirmed stays that begin or end with the calendar day change the
        room's status without any booking write; this brings rooms in line.

        Returns:
            Rooms whose status changed.
        """
        with self._db.session() as session:
            room_ids = [room.id for room in session.rooms.list()]

        changed: list[Room] = []
        for room_id in sorted(room_ids):

            def work(session: StoreSession, room_id: str = room_id) -> Room | None:
                room = self._lock_room(session, room_id)
                derived = self._rederive_room(session, room, self.today())
                return derived if derived.status != room.status else None

            result = self._run("reconcile_rooms", work)
            if result is not None:
                changed.append(result)
                logger.info(
                    "room status reconciled",
                    extra={
                        "extra_fields": safe_log_context(
                            correlationId=get_correlation_id(),
                            room_id=result.id,
                            room_status=result.status,
                        )
                    },
                )
        return changed
