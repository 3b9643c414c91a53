"""UTC timestamp helpers shared by the store, the engine and the client."""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(value: datetime | str | None) -> datetime | None:
    """Coerce *value* to an aware UTC datetime.

    Naive datetimes and offset-less strings are taken to be UTC already.
    Accepts the trailing ``Z`` used by most feeds.
    """
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_db(value: datetime | str | None) -> str | None:
    """Serialise a timestamp the way the ``gameweeks`` table stores it."""
    dt = to_utc(value)
    return dt.isoformat() if dt else None


def seconds_until(target: datetime | None, now: datetime) -> float | None:
    """Seconds from *now* to *target*, or None if unknown or already past."""
    if target is None:
        return None
    delta = (to_utc(target) - to_utc(now)).total_seconds()
    return delta if delta > 0 else None


def format_time_remaining(seconds: float | None) -> str:
    """Render a countdown as ``"2d 3h 15m"``, ``"3h 15m"`` or ``"15m"``."""
    if not seconds or seconds <= 0:
        return ""
    total_minutes = int(seconds // 60)
    days, rem = divmod(total_minutes, 24 * 60)
    hours, minutes = divmod(rem, 60)
    if days > 0:
        return f"{days}d {hours}h {minutes}m"
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"
