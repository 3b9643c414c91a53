"""Gameweek status resolution — status plus the current/next flags.

:func:`plan_resolution` is pure: it maps the stored gameweeks and a
clock reading to the state every gameweek should be in.  The manager
applies the plan inside one transaction, so readers never see two
current gameweeks or none half-way through a pass.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from fantasy_league.gameweek.state_machine import next_status
from fantasy_league.schemas.gameweek import Gameweek
from fantasy_league.schemas.rules import PRE_START_STATUSES, GameweekStatus
from fantasy_league.utils.time_helpers import to_utc


@dataclass(frozen=True)
class GameweekState:
    gameweek_number: int
    status: GameweekStatus
    is_current: bool
    is_next: bool


def _in_window(gw: Gameweek, now: datetime) -> bool:
    if gw.start_time is None or gw.end_time is None:
        return False
    return gw.start_time <= now <= gw.end_time


def pick_current(
    gameweeks: list[Gameweek],
    statuses: dict[int, GameweekStatus],
    now: datetime,
) -> int | None:
    """Choose the one gameweek that is "current".

    First choice: the lowest-numbered gameweek whose match window contains
    *now* or that is ACTIVE.  Fallback: the lowest-numbered gameweek still
    waiting to start.  Finalized gameweeks are never current.
    """
    ordered = sorted(gameweeks, key=lambda g: g.gameweek_number)
    live = [
        g for g in ordered
        if statuses[g.gameweek_number] is not GameweekStatus.FINALIZED
    ]
    for gw in live:
        if statuses[gw.gameweek_number] is GameweekStatus.ACTIVE or _in_window(gw, now):
            return gw.gameweek_number
    for gw in live:
        if statuses[gw.gameweek_number] in PRE_START_STATUSES:
            return gw.gameweek_number
        if gw.start_time is not None and now < gw.start_time:
            return gw.gameweek_number
    return None


def plan_resolution(gameweeks: list[Gameweek], now: datetime) -> list[GameweekState]:
    """Return the resolved state of every gameweek at *now*.

    Running the plan's output back through this function at the same
    instant yields the same plan.
    """
    now = to_utc(now)
    statuses = {
        gw.gameweek_number: next_status(
            gw.status, now,
            deadline_time=gw.deadline_time,
            start_time=gw.start_time,
            end_time=gw.end_time,
        )
        for gw in gameweeks
    }
    current = pick_current(gameweeks, statuses, now)
    following = None
    if current is not None:
        later = [n for n in statuses if n > current]
        following = min(later) if later else None

    return [
        GameweekState(
            gameweek_number=gw.gameweek_number,
            status=statuses[gw.gameweek_number],
            is_current=gw.gameweek_number == current,
            is_next=gw.gameweek_number == following,
        )
        for gw in sorted(gameweeks, key=lambda g: g.gameweek_number)
    ]
