"""Gameweek lifecycle — status resolution, transfer gate, scoring, finalization."""

from fantasy_league.gameweek.manager import GameweekManager
from fantasy_league.gameweek.points import calculate_points, score_breakdown
from fantasy_league.gameweek.resolver import plan_resolution
from fantasy_league.gameweek.state_machine import can_transition, next_status
from fantasy_league.gameweek.transfer_gate import (
    estimate_transfers_allowed,
    transfers_allowed,
)

__all__ = [
    "GameweekManager",
    "calculate_points",
    "score_breakdown",
    "plan_resolution",
    "can_transition",
    "next_status",
    "transfers_allowed",
    "estimate_transfers_allowed",
]
