"""Runtime settings loaded from environment variables.

Provides:
- Settings: frozen snapshot of the engine configuration
- get_settings(): read Settings from os.environ
- hotel_tz(): resolve the hotel's local timezone (with fallback)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal
from zoneinfo import ZoneInfo

from hotelops.observability.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEZONE = "Africa/Addis_Ababa"

StoreBackend = Literal["postgres", "memory"]


@dataclass(frozen=True)
class Settings:
    """Engine configuration.

    Attributes:
        timezone: IANA timezone used to compute the hotel's "today".
        max_retries: Retries after the first attempt when a store conflict is hit.
        retry_backoff_ms: Base backoff between attempts (doubled each retry).
        room_lock_timeout_ms: Upper bound for waiting on a room row lock.
        store_backend: Which store implementation the HTTP layer wires.
    """

    timezone: str = DEFAULT_TIMEZONE
    max_retries: int = 3
    retry_backoff_ms: int = 50
    room_lock_timeout_ms: int = 5000
    store_backend: StoreBackend = "postgres"


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}")
    if value < 0:
        raise RuntimeError(f"{name} must be >= 0, got {value}")
    return value


def get_settings() -> Settings:
    """Build Settings from environment variables.

    Raises:
        RuntimeError: If a numeric variable is malformed or STORE_BACKEND is unknown.
    """
    backend = os.environ.get("STORE_BACKEND", "postgres").strip().lower()
    if backend not in ("postgres", "memory"):
        raise RuntimeError(f"STORE_BACKEND must be 'postgres' or 'memory', got {backend!r}")

    return Settings(
        timezone=os.environ.get("HOTEL_TIMEZONE", DEFAULT_TIMEZONE),
        max_retries=_int_env("LIFECYCLE_MAX_RETRIES", 3),
        retry_backoff_ms=_int_env("LIFECYCLE_RETRY_BACKOFF_MS", 50),
        room_lock_timeout_ms=_int_env("ROOM_LOCK_TIMEOUT_MS", 5000),
        store_backend=backend,  # type: ignore[arg-type]
    )


def hotel_tz(settings: Settings) -> ZoneInfo:
    """Return the configured timezone, falling back to DEFAULT_TIMEZONE."""
    try:
        return ZoneInfo(settings.timezone)
    except (KeyError, ValueError):
        logger.warning(
            "Invalid timezone %s, falling back to %s",
            settings.timezone,
            DEFAULT_TIMEZONE,
        )
        return ZoneInfo(DEFAULT_TIMEZONE)
