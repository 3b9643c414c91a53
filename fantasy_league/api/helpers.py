"""Shared helpers for API blueprints."""

from datetime import datetime

from fantasy_league.utils.time_helpers import to_utc


def parse_now(source) -> tuple[datetime | None, tuple | None]:
    """Optional ``now`` override (ISO-8601). Returns (datetime|None, None) or (None, error_tuple)."""
    raw = source.get("now")
    if not raw:
        return None, None
    if not isinstance(raw, str):
        return None, ({"error": "now must be an ISO-8601 timestamp."}, 400)
    try:
        return to_utc(raw), None
    except ValueError:
        return None, ({"error": "now must be an ISO-8601 timestamp."}, 400)
