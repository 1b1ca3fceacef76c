"""Seeded random operation sequences.

After every operation, successful or rejected:
- no two blocking bookings of a room intersect,
- every room's status agrees with the bookings occupying it today.
"""

import random
from datetime import date, timedelta

import pytest

from hotelops.domain.errors import BookingEngineError

from helpers import assert_no_double_booking, assert_rooms_coherent

ROOMS = ["R101", "R102", "R201"]
WINDOW_START = date(2024, 2, 8)


def _random_range(rng):
    check_in = WINDOW_START + timedelta(days=rng.randint(0, 14))
    return check_in, check_in + timedelta(days=rng.randint(1, 5))


def _random_op(rng, core, db):
    booking_ids = sorted(db.bookings)
    kind = rng.choice(
        ["create", "create", "check_in", "begin_check_out", "check_out", "cancel", "delete", "update"]
    )
    if kind == "create" or not booking_ids:
        check_in, check_out = _random_range(rng)
        return lambda: core.create_booking("guest", rng.choice(ROOMS), check_in, check_out)

    booking_id = rng.choice(booking_ids)
    if kind == "update":
        if rng.random() < 0.5:
            check_in, check_out = _random_range(rng)
            return lambda: core.update_booking(booking_id, check_in=check_in, check_out=check_out)
        room_id = rng.choice(ROOMS)
        return lambda: core.update_booking(booking_id, room_id=room_id)

    operation = {
        "check_in": core.check_in,
        "begin_check_out": core.begin_check_out,
        "check_out": core.check_out,
        "cancel": core.cancel_booking,
        "delete": core.delete_booking,
    }[kind]
    return lambda: operation(booking_id)


@pytest.mark.parametrize("seed", range(10))
def test_random_sequences_keep_invariants(core, db, r101, r102, r201, seed):
    rng = random.Random(seed)
    today = core.today()

    for _ in range(60):
        op = _random_op(rng, core, db)
        try:
            op()
        except BookingEngineError:
            pass
        assert_no_double_booking(db)
        assert_rooms_coherent(db, today)


@pytest.mark.parametrize("seed", range(3))
def test_invariants_hold_across_day_changes(core, db, clock, r101, r102, r201, seed):
    rng = random.Random(1000 + seed)

    for _day in range(5):
        for _ in range(20):
            try:
                _random_op(rng, core, db)()
            except BookingEngineError:
                pass
        clock.advance(1)
        core.reconcile_rooms()
        assert_no_double_booking(db)
        assert_rooms_coherent(db, core.today())
