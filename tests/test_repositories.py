"""Tests for the SQLite layer: schema, migrations and repositories."""

import sqlite3

import pytest

from fantasy_league.db.connection import connect, get_connection, transaction
from fantasy_league.db.migrations import LATEST_VERSION, apply_migrations, get_schema_version
from fantasy_league.db.repositories import (
    FantasyTeamRepository,
    GameweekRepository,
    LeagueRepository,
    MatchRepository,
    PlayerRepository,
    RosterRepository,
    ScoreRepository,
)
from fantasy_league.db.schema import init_schema


def test_db_schema_creation(tmp_db):
    """Database schema creates all tables."""
    conn = get_connection(tmp_db)
    init_schema(conn)
    tables = {
        row[0] for row in
        conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
    }
    conn.close()

    expected = {
        "gameweeks", "real_matches", "players", "leagues", "fantasy_teams",
        "rosters", "gameweek_scores", "fantasy_team_gameweek_points",
    }
    assert expected.issubset(tables), f"Missing: {expected - tables}"


def test_migrations_reach_latest_and_are_repeatable(tmp_db):
    with connect(tmp_db) as conn:
        apply_migrations(conn)
        apply_migrations(conn)
        assert get_schema_version(conn) == LATEST_VERSION


def test_lookup_indexes_do_not_repeat_unique_keys(tmp_db):
    with connect(tmp_db) as conn:
        apply_migrations(conn)
        columns = {}
        for table in ("gameweeks", "real_matches", "gameweek_scores",
                      "fantasy_team_gameweek_points"):
            for idx in conn.execute(f"PRAGMA index_list({table})").fetchall():
                cols = tuple(
                    r[2] for r in conn.execute(f"PRAGMA index_info({idx[1]})").fetchall()
                )
                columns.setdefault((table, cols), []).append(idx[1])
    assert all(len(names) == 1 for names in columns.values()), columns


def test_transaction_rolls_back_on_error(tmp_db):
    repo = GameweekRepository(tmp_db)
    repo.upsert_gameweek(1)
    with pytest.raises(RuntimeError):
        with connect(tmp_db) as conn, transaction(conn):
            repo.set_status(conn, 1, "active", is_current=True)
            raise RuntimeError("boom")
    gw = repo.get_gameweek(1)
    assert gw["status"] == "upcoming"
    assert gw["is_current"] == 0


def test_status_check_constraint(tmp_db):
    repo = GameweekRepository(tmp_db)
    repo.upsert_gameweek(1)
    with pytest.raises(sqlite3.IntegrityError):
        with connect(tmp_db) as conn, transaction(conn):
            repo.set_status(conn, 1, "paused")


class TestGameweekRepository:
    def test_upsert_keeps_status(self, tmp_db):
        repo = GameweekRepository(tmp_db)
        repo.upsert_gameweek(1, start_time="2025-08-16T12:00:00Z", end_time="2025-08-18T12:00:00Z")
        with connect(tmp_db) as conn, transaction(conn):
            repo.set_status(conn, 1, "locked")
        repo.upsert_gameweek(1, start_time="2025-08-16T14:00:00Z", end_time="2025-08-18T12:00:00Z",
                             name="Opening weekend")
        gw = repo.get_gameweek(1)
        assert gw["status"] == "locked"
        assert gw["name"] == "Opening weekend"
        assert gw["deadline_time"] == "2025-08-16T12:00:00+00:00"

    def test_default_name(self, tmp_db):
        repo = GameweekRepository(tmp_db)
        repo.upsert_gameweek(5)
        assert repo.get_gameweek(5)["name"] == "Gameweek 5"

    def test_latest_finalized_and_active(self, tmp_db):
        repo = GameweekRepository(tmp_db)
        for n in (1, 2, 3):
            repo.upsert_gameweek(n)
        assert repo.get_latest_finalized_number() == 0
        assert repo.get_active_number() is None
        with connect(tmp_db) as conn, transaction(conn):
            repo.write_states(conn, [
                (1, "finalized", False, False),
                (2, "active", True, False),
                (3, "upcoming", False, True),
            ])
        assert repo.get_latest_finalized_number() == 1
        assert repo.get_active_number() == 2
        assert repo.get_gameweek(1)["is_finished"] == 1


class TestTeamsAndRosters:
    def test_league_participants(self, tmp_db):
        leagues = LeagueRepository(tmp_db)
        teams = FantasyTeamRepository(tmp_db)
        league_id = leagues.create_league("Office")
        assert leagues.create_league("Office") == league_id
        teams.create_team("A", league_id)
        teams.create_team("B", league_id)
        teams.create_team("C")
        rows = leagues.get_leagues()
        assert rows[0]["current_participants"] == 2
        assert teams.count_teams() == 3

    def test_roster_replaced_and_joined_with_position(self, tmp_db):
        players = PlayerRepository(tmp_db)
        rosters = RosterRepository(tmp_db)
        team_id = FantasyTeamRepository(tmp_db).create_team("A")
        for pid, pos in ((1, "GKP"), (2, "DEF"), (3, "MID")):
            players.upsert_player(pid, f"P{pid}", pos)

        rosters.set_roster(team_id, [{"player_id": 1, "is_starter": True}])
        rosters.set_roster(team_id, [
            {"player_id": 3, "is_starter": True, "is_captain": True},
            {"player_id": 2, "is_starter": False, "is_vice_captain": True},
        ])

        rows = rosters.get_roster(team_id)
        assert [(r["player_id"], r["position"]) for r in rows] == [(2, "DEF"), (3, "MID")]
        assert rows[1]["is_captain"] == 1

    def test_roster_requires_known_player(self, tmp_db):
        team_id = FantasyTeamRepository(tmp_db).create_team("A")
        with pytest.raises(sqlite3.IntegrityError):
            RosterRepository(tmp_db).set_roster(team_id, [{"player_id": 404}])


class TestFeeds:
    def test_match_counts(self, tmp_db):
        repo = MatchRepository(tmp_db)
        assert repo.count_matches(1) == (0, 0)
        repo.upsert_match(10, 1, status="live")
        repo.upsert_match(11, 1, status="completed")
        repo.upsert_match(10, 1, status="completed", home_score=2, away_score=1)
        assert repo.count_matches(1) == (2, 2)
        assert repo.get_matches(1)[0]["home_score"] == 2

    def test_scores_upsert(self, tmp_db):
        PlayerRepository(tmp_db).upsert_player(1, "P1", "FWD")
        repo = ScoreRepository(tmp_db)
        repo.upsert_score(1, 3, 2, 90)
        repo.upsert_score(1, 3, 8, 90)
        assert repo.get_scores(3) == {1: {"player_id": 1, "total_points": 8, "minutes_played": 90}}
        assert repo.get_scores(4) == {}
