"""Gameweek lifecycle state machine.

Statuses:
    UPCOMING → LOCKED → ACTIVE → FINALIZED

Time drives the normal flow (deadline, kickoff, final whistle).  An
operator may also start a gameweek early or reset it to upcoming;
FINALIZED is terminal either way.
"""

from __future__ import annotations

from datetime import datetime

from fantasy_league.schemas.rules import GameweekStatus

# Manual (operator) transitions.  Time-based resolution may skip states,
# e.g. a poll that sleeps through the whole match window.
_TRANSITIONS: dict[GameweekStatus, set[GameweekStatus]] = {
    GameweekStatus.UPCOMING: {GameweekStatus.LOCKED, GameweekStatus.ACTIVE},
    GameweekStatus.LOCKED: {GameweekStatus.ACTIVE, GameweekStatus.UPCOMING},
    GameweekStatus.ACTIVE: {GameweekStatus.UPCOMING},
    GameweekStatus.FINALIZED: set(),
}


def can_transition(from_status: GameweekStatus, to_status: GameweekStatus) -> bool:
    """Return True if an operator may move *from_status* → *to_status*."""
    return to_status in _TRANSITIONS.get(from_status, set())


def next_status(
    current: GameweekStatus,
    now: datetime,
    *,
    deadline_time: datetime | None,
    start_time: datetime | None,
    end_time: datetime | None,
) -> GameweekStatus:
    """Derive a gameweek's status from the clock.

    Evaluated in order:
        1. FINALIZED stays FINALIZED
        2. now < deadline           → UPCOMING
        3. deadline <= now < start  → LOCKED
        4. start <= now <= end      → ACTIVE
        5. now > end                → FINALIZED

    A gameweek missing any boundary keeps *current*.
    """
    if current is GameweekStatus.FINALIZED:
        return current
    if deadline_time is None or start_time is None or end_time is None:
        return current
    if now < deadline_time:
        return GameweekStatus.UPCOMING
    if now < start_time:
        return GameweekStatus.LOCKED
    if now <= end_time:
        return GameweekStatus.ACTIVE
    return GameweekStatus.FINALIZED
