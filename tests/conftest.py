"""Shared test fixtures for the gameweek engine."""

from datetime import datetime, timedelta, timezone

import pytest

from fantasy_league.gameweek.manager import GameweekManager
from fantasy_league.schemas.gameweek import Gameweek
from fantasy_league.schemas.rules import GameweekStatus

# Kickoff of gameweek 1.  Gameweek N starts (N-1) weeks later and runs two days.
T0 = datetime(2025, 8, 16, 12, 0, tzinfo=timezone.utc)


def gw_start(number: int) -> datetime:
    return T0 + timedelta(weeks=number - 1)


def gw_end(number: int) -> datetime:
    return gw_start(number) + timedelta(days=2)


def gw_deadline(number: int) -> datetime:
    return gw_start(number) - timedelta(hours=2)


def make_gameweek(number: int, status=GameweekStatus.UPCOMING, **overrides) -> Gameweek:
    """In-memory gameweek on the standard weekly calendar."""
    fields = {
        "gameweek_number": number,
        "deadline_time": gw_deadline(number),
        "start_time": gw_start(number),
        "end_time": gw_end(number),
        "status": status,
    }
    fields.update(overrides)
    return Gameweek(**fields)


@pytest.fixture
def tmp_db(tmp_path):
    """Temporary database path for DB tests."""
    return tmp_path / "test_league.db"


@pytest.fixture
def manager(tmp_db):
    return GameweekManager(db_path=tmp_db)


# Squad shared by every seeded team: (player_id, position).
# 1-4 start, 5-8 sit on the bench with one player per position.
PLAYERS = [
    (1, "GKP"), (2, "DEF"), (3, "MID"), (4, "FWD"),
    (5, "GKP"), (6, "DEF"), (7, "MID"), (8, "FWD"),
    (9, "MID"), (10, "FWD"),
]


def seed_calendar(mgr: GameweekManager, count: int = 3) -> None:
    for n in range(1, count + 1):
        mgr.gameweeks.upsert_gameweek(n, start_time=gw_start(n), end_time=gw_end(n))


def seed_players(mgr: GameweekManager) -> None:
    for pid, pos in PLAYERS:
        mgr.players.upsert_player(pid, f"Player {pid}", pos, team="Club")


def lineup(starters, bench=(), captain=None, vice=None) -> list[dict]:
    return [
        {"player_id": pid, "is_starter": True,
         "is_captain": pid == captain, "is_vice_captain": pid == vice}
        for pid in starters
    ] + [
        {"player_id": pid, "is_starter": False,
         "is_captain": pid == captain, "is_vice_captain": pid == vice}
        for pid in bench
    ]


@pytest.fixture
def league(manager):
    """Three gameweeks, one league of three teams and a loose fourth team.

    Returns a dict of ids: ``league_id`` and ``teams`` (name -> id).
    """
    seed_calendar(manager)
    seed_players(manager)
    league_id = manager.leagues.create_league("Sunday League")
    teams = {
        "alpha": manager.teams.create_team("Alpha", league_id),
        "bravo": manager.teams.create_team("Bravo", league_id),
        "charlie": manager.teams.create_team("Charlie", league_id),
        "solo": manager.teams.create_team("Solo"),
    }
    manager.rosters.set_roster(teams["alpha"], lineup([1, 2, 3, 4], [5, 6, 7, 8], captain=3, vice=4))
    manager.rosters.set_roster(teams["bravo"], lineup([1, 2, 9, 10], [5, 6], captain=9, vice=1))
    manager.rosters.set_roster(teams["charlie"], lineup([5, 6, 7, 8], [1, 2], captain=8, vice=7))
    manager.rosters.set_roster(teams["solo"], lineup([1, 3], captain=1, vice=3))
    return {"league_id": league_id, "teams": teams}


def score_gameweek(mgr: GameweekManager, gameweek: int, scores: dict[int, tuple[int, int]]) -> None:
    """Record ``{player_id: (points, minutes)}`` for *gameweek*."""
    for pid, (points, minutes) in scores.items():
        mgr.scores.upsert_score(pid, gameweek, points, minutes)


def add_matches(mgr: GameweekManager, gameweek: int, statuses: list[str]) -> None:
    for i, status in enumerate(statuses):
        mgr.matches.upsert_match(
            gameweek * 100 + i, gameweek,
            home_team=f"Home {i}", away_team=f"Away {i}",
            match_date=gw_start(gameweek), status=status,
        )
