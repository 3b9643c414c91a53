"""Transfer gate — may a manager change their roster right now?"""

from __future__ import annotations

from datetime import datetime

from fantasy_league.schemas.gameweek import Gameweek
from fantasy_league.schemas.rules import PRE_START_STATUSES, GameweekStatus
from fantasy_league.utils.time_helpers import to_utc


def transfers_allowed(gameweeks: list[Gameweek], now: datetime) -> bool:
    """Transfers are open iff nothing is ACTIVE and no gameweek waiting to
    start has passed its deadline.  No gameweeks at all means open.
    """
    now = to_utc(now)
    if any(gw.status is GameweekStatus.ACTIVE for gw in gameweeks):
        return False
    for gw in gameweeks:
        if gw.status not in PRE_START_STATUSES:
            continue
        if gw.status is GameweekStatus.LOCKED:
            return False
        if gw.deadline_time is not None and now >= gw.deadline_time:
            return False
    return True


def estimate_transfers_allowed(gameweek: Gameweek | None, now: datetime) -> bool:
    """Deadline heuristic for when the server-side gate is unreachable.

    Looks only at the gameweek a client is displaying (current, else next).
    """
    if gameweek is None or gameweek.deadline_time is None:
        return True
    return to_utc(now) < gameweek.deadline_time and gameweek.status is not GameweekStatus.ACTIVE
