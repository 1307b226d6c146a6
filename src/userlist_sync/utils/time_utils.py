"""Time utility helpers for UTC-safe timestamps."""

from __future__ import annotations

from datetime import datetime, timezone


def now_utc() -> datetime:
    """Return current timezone-aware UTC timestamp."""

    return datetime.now(timezone.utc)


def utc_epoch_seconds(moment: datetime | None = None) -> int:
    """Return whole UNIX seconds for ``moment`` (defaults to now)."""

    effective = moment or now_utc()
    if effective.tzinfo is None:
        effective = effective.replace(tzinfo=timezone.utc)
    return int(effective.timestamp())
