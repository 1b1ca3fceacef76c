"""FastAPI dependencies."""

from __future__ import annotations

import threading

from hotelops.services.core import HotelCore, build_core

# Module-level core (singleton), built on first use
_core: HotelCore | None = None
_core_lock = threading.Lock()


def get_core() -> HotelCore:
    """Get the process-wide HotelCore (override in tests via dependency_overrides)."""
    global _core
    if _core is None:
        with _core_lock:
            if _core is None:
                _core = build_core()
    return _core
