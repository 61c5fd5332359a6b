"""Utilities for dealing with timezones and timestamps."""
from __future__ import annotations

from datetime import datetime, timezone


def now_utc() -> datetime:
    """Return the current UTC datetime with tzinfo."""

    return datetime.now(timezone.utc)


def from_unix_ms(value: int | float) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime."""

    return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)


def from_unix_seconds(value: int | float) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc)
