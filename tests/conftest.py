"""Shared pytest fixtures for hotelops tests."""
import sys
sys.dont_write_bytecode = True

from datetime import date, datetime, timezone  # noqa: E402

import pytest  # noqa: E402

from hotelops.config import Settings  # noqa: E402
from hotelops.infra.memory_store import InMemoryDatabase  # noqa: E402
from hotelops.services.core import HotelCore  # noqa: E402

from helpers import MutableClock  # noqa: E402

# 09:00 UTC is 12:00 in Africa/Addis_Ababa, so "today" is the same date in both
TODAY = date(2024, 2, 15)


@pytest.fixture
def clock():
    return MutableClock(datetime(2024, 2, 15, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def db(clock):
    return InMemoryDatabase(lock_timeout_ms=2000, clock=clock)


@pytest.fixture
def settings():
    return Settings(store_backend="memory", retry_backoff_ms=0)


@pytest.fixture
def core(db, settings, clock):
    return HotelCore(db, settings=settings, clock=clock, sleep=lambda _s: None)


@pytest.fixture
def r101(db):
    return db.add_room("101", room_id="R101", room_type_id="rt-std", floor=1, base_price_cents=10000)


@pytest.fixture
def r102(db):
    return db.add_room("102", room_id="R102", room_type_id="rt-std", floor=1, base_price_cents=10000)


@pytest.fixture
def r201(db):
    return db.add_room("201", room_id="R201", room_type_id="rt-suite", floor=2, base_price_cents=25000)
