"""Database layer — connection, schema, migrations, and repositories."""

from fantasy_league.db.connection import connect, get_connection, transaction
from fantasy_league.db.migrations import apply_migrations, get_schema_version
from fantasy_league.db.repositories import (
    FantasyTeamRepository,
    GameweekRepository,
    LeagueRepository,
    MatchRepository,
    PlayerRepository,
    PointsRepository,
    RosterRepository,
    ScoreRepository,
)
from fantasy_league.db.schema import SCHEMA_SQL, init_schema

__all__ = [
    "connect",
    "get_connection",
    "transaction",
    "apply_migrations",
    "get_schema_version",
    "init_schema",
    "SCHEMA_SQL",
    "GameweekRepository",
    "MatchRepository",
    "PlayerRepository",
    "LeagueRepository",
    "FantasyTeamRepository",
    "RosterRepository",
    "ScoreRepository",
    "PointsRepository",
]
