"""Booking engine error taxonomy.

Every error carries a stable ``code`` used by the HTTP layer and in logs.
Store adapters raise StoreConflictError for transient lock/serialization
failures; the orchestrator retries those and surfaces
ConsistencyConflictError once retries are exhausted.
"""

from __future__ import annotations

from datetime import date


class BookingEngineError(Exception):
    """Base class for errors reported to callers of the engine."""

    code = "booking_engine_error"


class InvalidRangeError(BookingEngineError):
    """Raised when check_out is not strictly after check_in."""

    code = "invalid_range"

    def __init__(self, check_in: date, check_out: date) -> None:
        self.check_in = check_in
        self.check_out = check_out
        super().__init__(
            f"check_out ({check_out}) must be after check_in ({check_in})"
        )


class OverlapError(BookingEngineError):
    """Raised when a room already has a booking in the requested range."""

    code = "room_conflict"

    def __init__(
        self,
        room_id: str,
        conflicting_booking_id: str | None,
        existing_check_in: date | None = None,
        existing_check_out: date | None = None,
    ) -> None:
        self.room_id = room_id
        self.conflicting_booking_id = conflicting_booking_id
        self.existing_check_in = existing_check_in
        self.existing_check_out = existing_check_out
        if existing_check_in is not None and existing_check_out is not None:
            detail = f" ({existing_check_in} to {existing_check_out})"
        else:
            detail = ""
        super().__init__(f"Room {room_id} has a conflicting booking{detail}")


class InvalidTransitionError(BookingEngineError):
    """Raised when an operation is not legal for the booking/room state."""

    code = "invalid_transition"

    def __init__(self, operation: str, booking_id: str | None, reason: str) -> None:
        self.operation = operation
        self.booking_id = booking_id
        self.reason = reason
        target = f"booking {booking_id}" if booking_id else "booking"
        super().__init__(f"Cannot {operation} {target}: {reason}")


class NotFoundError(BookingEngineError):
    """Raised when a referenced booking or room does not exist."""

    code = "not_found"

    def __init__(self, entity: str, entity_id: str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity.capitalize()} {entity_id} not found")


class ConsistencyConflictError(BookingEngineError):
    """Raised when an operation kept colliding with concurrent writers."""

    code = "consistency_conflict"

    def __init__(self, operation: str, attempts: int) -> None:
        self.operation = operation
        self.attempts = attempts
        super().__init__(
            f"{operation} could not complete after {attempts} attempts due to concurrent updates"
        )


class StoreConflictError(Exception):
    """Transient store failure (lock timeout, deadlock, serialization) worth retrying."""


class InvalidBookingError(BookingEngineError):
    """Raised when a booking field holds a value the engine cannot store."""

    code = "invalid_booking"

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")
