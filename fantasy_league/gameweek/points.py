"""Fantasy team points for one gameweek.

Pure functions over a :class:`Roster` and the gameweek's player scores;
the manager loads both from the store.

Scoring order matters:
    1. Each starter contributes their points if they played.
    2. A starter with 0 minutes is replaced by the best bench player in
       the same position who did play (highest points, then lowest id).
       Each bench player can come on once.
    3. The captain slot's contribution (after substitution) is added a
       second time when positive.
    4. Otherwise the vice-captain's recorded points are added once when
       positive.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from fantasy_league.schemas.gameweek import PlayerScore, Roster, RosterSlot


@dataclass
class PointsBreakdown:
    total: int = 0
    base: int = 0
    captain_bonus: int = 0
    bonus_from: str | None = None  # "captain" or "vice_captain"
    contributions: dict[int, int] = field(default_factory=dict)  # starter -> points
    substitutions: dict[int, int] = field(default_factory=dict)  # starter -> bench player


def _played(score: PlayerScore | None) -> bool:
    return score is not None and score.minutes_played > 0


def _pick_substitute(
    slot: RosterSlot,
    bench: list[RosterSlot],
    scores: dict[int, PlayerScore],
    used: set[int],
) -> RosterSlot | None:
    eligible = [
        b for b in bench
        if b.position == slot.position
        and b.player_id not in used
        and _played(scores.get(b.player_id))
    ]
    if not eligible:
        return None
    return min(eligible, key=lambda b: (-scores[b.player_id].total_points, b.player_id))


def score_breakdown(roster: Roster, scores: dict[int, PlayerScore]) -> PointsBreakdown:
    """Work out a team's gameweek points, keeping the intermediate terms."""
    result = PointsBreakdown()
    starters = sorted(roster.starters, key=lambda s: s.player_id)
    if not starters:
        return result

    bench = roster.bench
    used: set[int] = set()
    for slot in starters:
        score = scores.get(slot.player_id)
        if _played(score):
            result.contributions[slot.player_id] = score.total_points
            continue
        sub = _pick_substitute(slot, bench, scores, used)
        if sub is None:
            result.contributions[slot.player_id] = 0
            continue
        used.add(sub.player_id)
        result.substitutions[slot.player_id] = sub.player_id
        result.contributions[slot.player_id] = scores[sub.player_id].total_points

    result.base = sum(result.contributions.values())

    captain_points = result.contributions.get(roster.captain_id, 0)
    if captain_points > 0:
        result.captain_bonus = captain_points
        result.bonus_from = "captain"
    elif roster.vice_captain_id is not None:
        vice = scores.get(roster.vice_captain_id)
        if vice is not None and vice.total_points > 0:
            result.captain_bonus = vice.total_points
            result.bonus_from = "vice_captain"

    result.total = result.base + result.captain_bonus
    return result


def calculate_points(roster: Roster, scores: dict[int, PlayerScore]) -> int:
    """Integer gameweek total for *roster*."""
    return score_breakdown(roster, scores).total
