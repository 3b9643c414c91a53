"""Game rule constants and status enumerations.

Shared by the state machine, the repositories and the API layer.
"""

from __future__ import annotations

from enum import Enum


# ---------------------------------------------------------------------------
# Lifecycle states
# ---------------------------------------------------------------------------

class GameweekStatus(str, Enum):
    UPCOMING = "upcoming"
    LOCKED = "locked"
    ACTIVE = "active"
    FINALIZED = "finalized"


class MatchStatus(str, Enum):
    SCHEDULED = "scheduled"
    LIVE = "live"
    COMPLETED = "completed"
    POSTPONED = "postponed"


# Statuses a gameweek can be "waiting" in before its matches kick off.
PRE_START_STATUSES = {GameweekStatus.UPCOMING, GameweekStatus.LOCKED}

