"""Pydantic schemas and rule constants."""

from fantasy_league.schemas.gameweek import (
    Gameweek,
    GameweekStats,
    GameweekStatusView,
    PlayerScore,
    RealMatch,
    Roster,
    RosterSlot,
)
from fantasy_league.schemas.rules import GameweekStatus, MatchStatus

__all__ = [
    "Gameweek",
    "GameweekStats",
    "GameweekStatusView",
    "GameweekStatus",
    "MatchStatus",
    "PlayerScore",
    "RealMatch",
    "Roster",
    "RosterSlot",
]
