"""Booking and room writes commit together or not at all."""

from datetime import date

import pytest

from hotelops.domain.errors import ConsistencyConflictError, StoreConflictError
from hotelops.domain.models import BookingStatus, RoomStatus
from hotelops.infra.memory_store import InMemoryRoomStore


@pytest.fixture
def failing_room_writes(monkeypatch):
    def _install(exc):
        def set_status(self, room_id, status):
            raise exc

        monkeypatch.setattr(InMemoryRoomStore, "set_status", set_status)

    return _install


def test_create_rolled_back_when_room_write_fails(core, db, r101, failing_room_writes):
    failing_room_writes(RuntimeError("disk full"))

    with pytest.raises(RuntimeError):
        core.create_booking("g1", "R101", date(2024, 2, 15), date(2024, 2, 18))

    assert db.bookings == {}
    assert db.rooms["R101"].status == RoomStatus.VACANT


def test_check_in_rolled_back_when_room_write_fails(core, db, r101, failing_room_writes):
    # Future stay: the room is still vacant, so check-in has to write it
    booking = core.create_booking("g1", "R101", date(2024, 2, 20), date(2024, 2, 22))
    assert db.rooms["R101"].status == RoomStatus.VACANT
    failing_room_writes(RuntimeError("disk full"))

    with pytest.raises(RuntimeError):
        core.check_in(booking.id)

    stored = db.bookings[booking.id]
    assert stored.status == BookingStatus.CONFIRMED
    assert stored.actual_check_in is None
    assert db.rooms["R101"].status == RoomStatus.VACANT


def test_cancel_rolled_back_when_room_write_fails(core, db, r101, failing_room_writes):
    booking = core.create_booking("g1", "R101", date(2024, 2, 15), date(2024, 2, 18))
    assert db.rooms["R101"].status == RoomStatus.OCCUPIED
    failing_room_writes(RuntimeError("disk full"))

    with pytest.raises(RuntimeError):
        core.cancel_booking(booking.id)

    assert db.bookings[booking.id].status == BookingStatus.CONFIRMED
    assert db.rooms["R101"].status == RoomStatus.OCCUPIED


def test_check_out_rolled_back_when_room_write_fails(core, db, r101, monkeypatch):
    booking = core.create_booking("g1", "R101", date(2024, 2, 15), date(2024, 2, 18))
    core.check_in(booking.id)

    def set_status(self, room_id, status):
        raise RuntimeError("disk full")

    monkeypatch.setattr(InMemoryRoomStore, "set_status", set_status)

    with pytest.raises(RuntimeError):
        core.check_out(booking.id)

    stored = db.bookings[booking.id]
    assert stored.status == BookingStatus.ACTIVE
    assert stored.actual_check_out is None
    assert db.rooms["R101"].status == RoomStatus.OCCUPIED


def test_delete_rolled_back_when_room_write_fails(core, db, r101, monkeypatch):
    booking = core.create_booking("g1", "R101", date(2024, 2, 15), date(2024, 2, 18))

    def set_status(self, room_id, status):
        raise RuntimeError("disk full")

    monkeypatch.setattr(InMemoryRoomStore, "set_status", set_status)

    with pytest.raises(RuntimeError):
        core.delete_booking(booking.id)

    assert booking.id in db.bookings


def test_persistent_store_conflict_leaves_no_partial_write(core, db, r101, failing_room_writes):
    failing_room_writes(StoreConflictError("lock timeout on rooms R101"))

    with pytest.raises(ConsistencyConflictError) as exc_info:
        core.create_booking("g1", "R101", date(2024, 2, 15), date(2024, 2, 18))

    assert exc_info.value.attempts == core.settings.max_retries + 1
    assert db.bookings == {}


def test_locks_released_after_failure(core, db, r101, monkeypatch):
    """A failed operation must not leave the room locked for the next one."""
    def set_status(self, room_id, status):
        raise RuntimeError("disk full")

    with monkeypatch.context() as m:
        m.setattr(InMemoryRoomStore, "set_status", set_status)
        with pytest.raises(RuntimeError):
            core.create_booking("g1", "R101", date(2024, 2, 15), date(2024, 2, 18))

    booking = core.create_booking("g1", "R101", date(2024, 2, 15), date(2024, 2, 18))
    assert db.rooms["R101"].status == RoomStatus.OCCUPIED
    assert booking.id in db.bookings
