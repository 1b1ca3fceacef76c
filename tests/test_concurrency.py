"""Concurrent writers against one room (in-memory store, real threads).

Each session takes the room's row lock before checking overlaps, so of two
racing bookings for the same nights exactly one can win.
"""

import random
import threading
from datetime import date, timedelta

import pytest

from hotelops.domain.errors import BookingEngineError, InvalidTransitionError, OverlapError
from hotelops.domain.models import BookingStatus, RoomStatus

from helpers import assert_no_double_booking, assert_rooms_coherent


def _race(workers):
    """Run callables in parallel from a common start line; return (results, errors)."""
    barrier = threading.Barrier(len(workers))
    results = []
    errors = []
    results_lock = threading.Lock()

    def run(fn):
        barrier.wait()
        try:
            value = fn()
        except BookingEngineError as exc:
            with results_lock:
                errors.append(exc)
        else:
            with results_lock:
                results.append(value)

    threads = [threading.Thread(target=run, args=(fn,)) for fn in workers]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)
    return results, errors


def test_two_overlapping_creates_one_wins(core, db, r101):
    results, errors = _race(
        [
            lambda: core.create_booking("g1", "R101", date(2024, 2, 15), date(2024, 2, 18)),
            lambda: core.create_booking("g2", "R101", date(2024, 2, 16), date(2024, 2, 19)),
        ]
    )

    assert len(results) == 1
    assert len(errors) == 1
    assert isinstance(errors[0], OverlapError)
    assert errors[0].conflicting_booking_id == results[0].id
    assert len(db.bookings) == 1
    assert db.rooms["R101"].status == RoomStatus.OCCUPIED


def test_many_identical_creates_exactly_one_succeeds(core, db, r101):
    results, errors = _race(
        [
            (lambda i=i: core.create_booking(f"g{i}", "R101", date(2024, 2, 20), date(2024, 2, 22)))
            for i in range(8)
        ]
    )

    assert len(results) == 1
    assert len(errors) == 7
    assert all(isinstance(e, OverlapError) for e in errors)


def test_check_out_and_cancel_race(core, db, r101):
    booking = core.create_booking("g1", "R101", date(2024, 2, 15), date(2024, 2, 18))
    core.check_in(booking.id)

    results, errors = _race(
        [
            lambda: core.check_out(booking.id),
            lambda: core.cancel_booking(booking.id),
        ]
    )

    assert len(results) == 1
    assert len(errors) == 1
    assert isinstance(errors[0], InvalidTransitionError)
    assert db.bookings[booking.id].status in (BookingStatus.COMPLETED, BookingStatus.CANCELLED)
    assert db.rooms["R101"].status == RoomStatus.VACANT


def test_crossing_room_moves_do_not_deadlock(core, db, r101, r102):
    a = core.create_booking("g1", "R101", date(2024, 3, 1), date(2024, 3, 3))
    b = core.create_booking("g2", "R102", date(2024, 3, 5), date(2024, 3, 7))

    results, errors = _race(
        [
            lambda: core.update_booking(a.id, room_id="R102"),
            lambda: core.update_booking(b.id, room_id="R101"),
        ]
    )

    assert len(results) == 2
    assert errors == []
    assert db.bookings[a.id].room_id == "R102"
    assert db.bookings[b.id].room_id == "R101"


@pytest.mark.parametrize("seed", [1, 7, 42])
def test_random_parallel_creates_never_double_book(core, db, r101, r102, r201, seed):
    rng = random.Random(seed)
    rooms = ["R101", "R102", "R201"]
    start = date(2024, 2, 10)
    requests = []
    for i in range(24):
        check_in = start + timedelta(days=rng.randint(0, 12))
        check_out = check_in + timedelta(days=rng.randint(1, 4))
        requests.append((f"g{i}", rng.choice(rooms), check_in, check_out))

    results, errors = _race(
        [(lambda req=req: core.create_booking(*req)) for req in requests]
    )

    assert len(results) + len(errors) == len(requests)
    assert all(isinstance(e, OverlapError) for e in errors)
    assert_no_double_booking(db)
    assert_rooms_coherent(db, core.today())
