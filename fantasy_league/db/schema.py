"""Database schema — all CREATE TABLE statements.

Timestamps are stored as ISO-8601 UTC strings; booleans as 0/1.
"""

from __future__ import annotations

import sqlite3

SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS gameweeks (
    gameweek_id INTEGER PRIMARY KEY AUTOINCREMENT,
    gameweek_number INTEGER NOT NULL UNIQUE,
    name TEXT,
    deadline_time TEXT,
    start_time TEXT,
    end_time TEXT,
    status TEXT NOT NULL DEFAULT 'upcoming'
        CHECK (status IN ('upcoming', 'locked', 'active', 'finalized')),
    is_current INTEGER NOT NULL DEFAULT 0,
    is_next INTEGER NOT NULL DEFAULT 0,
    is_finished INTEGER NOT NULL DEFAULT 0,
    settled_at TEXT,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS real_matches (
    match_id INTEGER PRIMARY KEY,
    gameweek INTEGER NOT NULL,
    home_team TEXT,
    away_team TEXT,
    home_score INTEGER,
    away_score INTEGER,
    match_date TEXT,
    status TEXT NOT NULL DEFAULT 'scheduled'
        CHECK (status IN ('scheduled', 'live', 'completed', 'postponed'))
);

CREATE TABLE IF NOT EXISTS players (
    player_id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    position TEXT NOT NULL,
    team TEXT
);

CREATE TABLE IF NOT EXISTS leagues (
    league_id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE,
    status TEXT NOT NULL DEFAULT 'active',
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS fantasy_teams (
    fantasy_team_id INTEGER PRIMARY KEY AUTOINCREMENT,
    team_name TEXT NOT NULL,
    league_id INTEGER REFERENCES leagues(league_id) ON DELETE SET NULL,
    total_points INTEGER NOT NULL DEFAULT 0,
    gameweek_points INTEGER NOT NULL DEFAULT 0,
    current_gameweek INTEGER NOT NULL DEFAULT 1,
    transfers_made_this_gw INTEGER NOT NULL DEFAULT 0,
    transfers_banked INTEGER NOT NULL DEFAULT 0,
    rank INTEGER,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS rosters (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    fantasy_team_id INTEGER NOT NULL REFERENCES fantasy_teams(fantasy_team_id) ON DELETE CASCADE,
    player_id INTEGER NOT NULL REFERENCES players(player_id),
    is_starter INTEGER NOT NULL DEFAULT 0,
    is_captain INTEGER NOT NULL DEFAULT 0,
    is_vice_captain INTEGER NOT NULL DEFAULT 0,
    UNIQUE(fantasy_team_id, player_id)
);

CREATE TABLE IF NOT EXISTS gameweek_scores (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    player_id INTEGER NOT NULL REFERENCES players(player_id),
    gameweek INTEGER NOT NULL,
    total_points INTEGER NOT NULL DEFAULT 0,
    minutes_played INTEGER NOT NULL DEFAULT 0,
    UNIQUE(player_id, gameweek)
);

CREATE TABLE IF NOT EXISTS fantasy_team_gameweek_points (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    fantasy_team_id INTEGER NOT NULL REFERENCES fantasy_teams(fantasy_team_id) ON DELETE CASCADE,
    gameweek INTEGER NOT NULL,
    points INTEGER NOT NULL DEFAULT 0,
    rank_in_league INTEGER,
    updated_at TEXT NOT NULL DEFAULT (datetime('now')),
    UNIQUE(fantasy_team_id, gameweek)
);
"""


def init_schema(conn: sqlite3.Connection) -> None:
    """Execute the full schema DDL on *conn*."""
    conn.executescript(SCHEMA_SQL)
