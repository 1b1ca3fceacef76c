"""Unit tests for room overlap detection.

Half-open ranges: check-out day is free for the next arrival.
"""

from datetime import date
from unittest.mock import MagicMock, patch

import pytest

from hotelops.domain.errors import InvalidRangeError, OverlapError
from hotelops.domain.models import BLOCKING_STATUSES, Booking, BookingStatus
from hotelops.domain.overlap import OverlapChecker, ranges_overlap, validate_range


def _booking(booking_id, check_in, check_out, status=BookingStatus.CONFIRMED, room_id="R101"):
    return Booking(
        id=booking_id,
        guest_id="g1",
        room_id=room_id,
        check_in=check_in,
        check_out=check_out,
        status=status,
    )


@pytest.fixture
def store():
    """Mocked BookingStore returning the bookings given to it."""
    return MagicMock()


def _checker(store, *bookings):
    store.list_for_room.return_value = list(bookings)
    return OverlapChecker(store)


# ── ranges_overlap ──────────────────────────────────────────────────────


class TestRangesOverlap:
    def test_contained_range_overlaps(self):
        assert ranges_overlap(date(2024, 2, 16), date(2024, 2, 17), date(2024, 2, 15), date(2024, 2, 18))

    def test_partial_overlap_at_start(self):
        assert ranges_overlap(date(2024, 2, 13), date(2024, 2, 16), date(2024, 2, 15), date(2024, 2, 18))

    def test_back_to_back_does_not_overlap(self):
        """Check-out A == check-in B should NOT overlap (strict inequality)."""
        assert not ranges_overlap(date(2024, 2, 18), date(2024, 2, 20), date(2024, 2, 15), date(2024, 2, 18))
        assert not ranges_overlap(date(2024, 2, 12), date(2024, 2, 15), date(2024, 2, 15), date(2024, 2, 18))

    def test_symmetric(self):
        a = (date(2024, 3, 1), date(2024, 3, 5))
        b = (date(2024, 3, 4), date(2024, 3, 9))
        assert ranges_overlap(*a, *b) == ranges_overlap(*b, *a)


class TestValidateRange:
    def test_valid_range(self):
        validate_range(date(2024, 2, 15), date(2024, 2, 16))

    @pytest.mark.parametrize(
        "check_in,check_out",
        [
            (date(2024, 2, 15), date(2024, 2, 15)),
            (date(2024, 2, 15), date(2024, 2, 14)),
        ],
    )
    def test_rejects_empty_or_inverted(self, check_in, check_out):
        with pytest.raises(InvalidRangeError) as exc_info:
            validate_range(check_in, check_out)
        assert exc_info.value.code == "invalid_range"


# ── OverlapChecker ──────────────────────────────────────────────────────


class TestOverlapChecker:
    def test_no_bookings_no_conflict(self, store):
        checker = _checker(store)
        assert checker.find_conflict("R101", date(2024, 2, 15), date(2024, 2, 18)) is None
        assert checker.overlaps("R101", date(2024, 2, 15), date(2024, 2, 18)) is False

    def test_queries_blocking_statuses_only(self, store):
        checker = _checker(store)
        checker.overlaps("R101", date(2024, 2, 15), date(2024, 2, 18))
        store.list_for_room.assert_called_once_with("R101", BLOCKING_STATUSES)

    def test_overlap_found(self, store):
        existing = _booking("b-1", date(2024, 2, 15), date(2024, 2, 18))
        checker = _checker(store, existing)
        assert checker.find_conflict("R101", date(2024, 2, 16), date(2024, 2, 17)) == existing

    def test_back_to_back_allowed(self, store):
        checker = _checker(store, _booking("b-1", date(2024, 2, 15), date(2024, 2, 18)))
        assert not checker.overlaps("R101", date(2024, 2, 18), date(2024, 2, 20))

    def test_exclude_booking_id_skips_self(self, store):
        checker = _checker(store, _booking("b-1", date(2024, 2, 15), date(2024, 2, 18)))
        assert not checker.overlaps(
            "R101", date(2024, 2, 16), date(2024, 2, 19), exclude_booking_id="b-1"
        )

    def test_returns_earliest_conflict(self, store):
        later = _booking("b-late", date(2024, 2, 20), date(2024, 2, 25))
        earlier = _booking("b-early", date(2024, 2, 10), date(2024, 2, 16))
        checker = _checker(store, later, earlier)
        conflict = checker.find_conflict("R101", date(2024, 2, 14), date(2024, 2, 22))
        assert conflict.id == "b-early"


class TestAssertNoOverlap:
    def test_passes_without_conflict(self, store):
        _checker(store).assert_no_overlap("R101", date(2024, 2, 15), date(2024, 2, 18))

    def test_raises_with_conflict_details(self, store):
        checker = _checker(store, _booking("b-1", date(2024, 2, 15), date(2024, 2, 18)))

        with pytest.raises(OverlapError) as exc_info:
            checker.assert_no_overlap("R101", date(2024, 2, 16), date(2024, 2, 17))

        err = exc_info.value
        assert err.room_id == "R101"
        assert err.conflicting_booking_id == "b-1"
        assert err.existing_check_in == date(2024, 2, 15)
        assert err.existing_check_out == date(2024, 2, 18)
        assert "2024-02-15" in str(err)

    def test_conflict_is_logged(self, store):
        checker = _checker(store, _booking("b-1", date(2024, 2, 15), date(2024, 2, 18)))

        with patch("hotelops.domain.overlap.logger") as mock_logger:
            with pytest.raises(OverlapError):
                checker.assert_no_overlap("R101", date(2024, 2, 16), date(2024, 2, 17))

        mock_logger.warning.assert_called_once()
        args, kwargs = mock_logger.warning.call_args
        assert args[0] == "room conflict detected"
        fields = kwargs["extra"]["extra_fields"]
        assert fields["conflicting_booking_id"] == "b-1"
        assert fields["requested_check_in"] == "2024-02-16"

    def test_find_conflict_does_not_log(self, store):
        checker = _checker(store, _booking("b-1", date(2024, 2, 15), date(2024, 2, 18)))

        with patch("hotelops.domain.overlap.logger") as mock_logger:
            checker.find_conflict("R101", date(2024, 2, 16), date(2024, 2, 17))

        mock_logger.warning.assert_not_called()
