"""Room overlap detection.

Checks whether a physical room already has a blocking booking in a date range.

Overlap formula:  (new_check_in < existing_check_out) AND (existing_check_in < new_check_out)
Strict inequality allows check-out day == check-in day (back-to-back stays are OK).

Only blocking statuses generate conflicts: confirmed, active, checking_out.
"""

from __future__ import annotations

from datetime import date

from hotelops.domain.errors import InvalidRangeError, OverlapError
from hotelops.domain.models import BLOCKING_STATUSES, Booking
from hotelops.domain.stores import BookingStore
from hotelops.observability.logging import get_logger
from hotelops.observability.redaction import safe_log_context

logger = get_logger(__name__)


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Half-open [a_start, a_end) and [b_start, b_end) intersect."""
    return a_start < b_end and b_start < a_end


def validate_range(check_in: date, check_out: date) -> None:
    """Raise InvalidRangeError unless check_out is strictly after check_in."""
    if check_out <= check_in:
        raise InvalidRangeError(check_in, check_out)


class OverlapChecker:
    """Overlap queries against one BookingStore (normally a session's)."""

    def __init__(self, bookings: BookingStore) -> None:
        self._bookings = bookings

    def find_conflict(
        self,
        room_id: str,
        check_in: date,
        check_out: date,
        exclude_booking_id: str | None = None,
    ) -> Booking | None:
        """Return the earliest blocking booking intersecting the range, if any.

        Args:
            room_id: Physical room identifier.
            check_in: Desired check-in date (inclusive).
            check_out: Desired check-out date (exclusive / departure day).
            exclude_booking_id: Booking to ignore (re-validating an edit).
        """
        candidates = self._bookings.list_for_room(room_id, BLOCKING_STATUSES)
        for booking in sorted(candidates, key=lambda b: b.check_in):
            if exclude_booking_id is not None and booking.id == exclude_booking_id:
                continue
            if ranges_overlap(check_in, check_out, booking.check_in, booking.check_out):
                return booking
        return None

    def overlaps(
        self,
        room_id: str,
        check_in: date,
        check_out: date,
        exclude_booking_id: str | None = None,
    ) -> bool:
        return self.find_conflict(room_id, check_in, check_out, exclude_booking_id) is not None

    def assert_no_overlap(
        self,
        room_id: str,
        check_in: date,
        check_out: date,
        exclude_booking_id: str | None = None,
    ) -> None:
        """Raise OverlapError if the room has a blocking booking in the range."""
        conflict = self.find_conflict(room_id, check_in, check_out, exclude_booking_id)
        if conflict is not None:
            logger.warning(
                "room conflict detected",
                extra={
                    "extra_fields": safe_log_context(
                        room_id=room_id,
                        requested_check_in=check_in,
                        requested_check_out=check_out,
                        conflicting_booking_id=conflict.id,
                        existing_check_in=conflict.check_in,
                        existing_check_out=conflict.check_out,
                    )
                },
            )
            raise OverlapError(
                room_id=room_id,
                conflicting_booking_id=conflict.id,
                existing_check_in=conflict.check_in,
                existing_check_out=conflict.check_out,
            )
