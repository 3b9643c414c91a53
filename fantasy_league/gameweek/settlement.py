"""Finalization arithmetic — what every team and gameweek row becomes.

Everything here is computed up front from values already read inside the
finalization transaction; nothing touches the store.
"""

from __future__ import annotations

from fantasy_league.config import gameweek_cfg
from fantasy_league.schemas.rules import GameweekStatus


def settle_team(team: dict, gameweek: int, points: int, previous: int = 0) -> dict:
    """Return the settled ``fantasy_teams`` values for one team.

    *previous* is what this same gameweek already contributed to the
    team's total (its settled ledger points when the gameweek is being
    finalized again, else 0), so re-finalizing replaces rather than adds.
    """
    banked = min((team.get("transfers_banked") or 0) + 1, gameweek_cfg.max_banked_transfers)
    return {
        "fantasy_team_id": team["fantasy_team_id"],
        "total_points": (team.get("total_points") or 0) + points - previous,
        "gameweek_points": points,
        "current_gameweek": gameweek + 1,
        "transfers_banked": banked,
    }


def promotion_states(
    gameweeks: list[dict], gameweek: int,
) -> list[tuple[int, str, bool, bool]]:
    """Status/flag rows after *gameweek* is finalized.

    The target becomes FINALIZED; the following gameweek becomes ACTIVE and
    current (unless already finalized); the one after that becomes next.
    Every other gameweek keeps its status and loses its flags.
    """
    states = []
    promote = any(
        g["gameweek_number"] == gameweek + 1 and g["status"] != GameweekStatus.FINALIZED.value
        for g in gameweeks
    )
    for g in gameweeks:
        number = g["gameweek_number"]
        status = g["status"]
        is_current = is_next = False
        if number == gameweek:
            status = GameweekStatus.FINALIZED.value
        elif number == gameweek + 1 and promote:
            status = GameweekStatus.ACTIVE.value
            is_current = True
        elif number == gameweek + 2 and promote:
            is_next = True
        states.append((number, status, is_current, is_next))
    return states
