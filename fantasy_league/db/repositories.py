"""Repository classes — one per database table.

Each repository takes a ``db_path`` in ``__init__`` and opens a fresh
connection per call via :func:`fantasy_league.db.connection.connect`.
Methods that take part in a multi-table write also accept ``conn=``:
when given, the caller owns the transaction and nothing is committed
here.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import timedelta
from pathlib import Path
from typing import Iterable

from fantasy_league.config import gameweek_cfg
from fantasy_league.db.connection import connect
from fantasy_league.paths import DB_PATH
from fantasy_league.utils.time_helpers import to_db, to_utc, utc_now


class _Repository:
    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or DB_PATH

    @contextmanager
    def _session(self, conn: sqlite3.Connection | None = None):
        """Yield the caller's connection, or a fresh one committed on success."""
        if conn is not None:
            yield conn
            return
        with connect(self.db_path) as own:
            yield own
            own.commit()


# ---------------------------------------------------------------------------
# GameweekRepository
# ---------------------------------------------------------------------------

class GameweekRepository(_Repository):
    """CRUD for the ``gameweeks`` table."""

    def upsert_gameweek(
        self,
        gameweek_number: int,
        start_time=None,
        end_time=None,
        deadline_time=None,
        name: str = "",
        status: str = "upcoming",
    ) -> None:
        """Insert or update a gameweek's boundaries.

        A missing deadline defaults to ``default_deadline_offset_hours``
        before kickoff.  Status and flags of an existing row are left
        alone; they belong to the resolver and finalizer.
        """
        start = to_utc(start_time)
        deadline = to_utc(deadline_time)
        if deadline is None and start is not None:
            deadline = start - timedelta(hours=gameweek_cfg.default_deadline_offset_hours)
        with self._session() as conn:
            conn.execute(
                """INSERT INTO gameweeks
                   (gameweek_number, name, deadline_time, start_time, end_time, status,
                    is_finished)
                   VALUES (?, ?, ?, ?, ?, ?, ?)
                   ON CONFLICT(gameweek_number) DO UPDATE SET
                     name=excluded.name,
                     deadline_time=excluded.deadline_time,
                     start_time=excluded.start_time,
                     end_time=excluded.end_time""",
                (
                    gameweek_number,
                    name or f"Gameweek {gameweek_number}",
                    to_db(deadline),
                    to_db(start),
                    to_db(end_time),
                    status,
                    1 if status == "finalized" else 0,
                ),
            )

    def get_gameweeks(self, conn: sqlite3.Connection | None = None) -> list[dict]:
        with self._session(conn) as c:
            rows = c.execute(
                "SELECT * FROM gameweeks ORDER BY gameweek_number"
            ).fetchall()
        return [dict(r) for r in rows]

    def get_gameweek(
        self, gameweek_number: int, conn: sqlite3.Connection | None = None,
    ) -> dict | None:
        with self._session(conn) as c:
            row = c.execute(
                "SELECT * FROM gameweeks WHERE gameweek_number=?",
                (gameweek_number,),
            ).fetchone()
        return dict(row) if row else None

    def get_latest_finalized_number(self) -> int:
        with self._session() as conn:
            row = conn.execute(
                "SELECT MAX(gameweek_number) FROM gameweeks WHERE status='finalized'"
            ).fetchone()
        return row[0] or 0

    def get_active_number(self) -> int | None:
        with self._session() as conn:
            row = conn.execute(
                """SELECT gameweek_number FROM gameweeks WHERE status='active'
                   ORDER BY gameweek_number LIMIT 1"""
            ).fetchone()
        return row[0] if row else None

    def write_states(
        self, conn: sqlite3.Connection, states: Iterable[tuple[int, str, bool, bool]],
    ) -> None:
        """Overwrite (status, is_current, is_next) for many gameweeks.

        *states* yields ``(gameweek_number, status, is_current, is_next)``.
        Caller owns the transaction.
        """
        conn.executemany(
            """UPDATE gameweeks
               SET status=?, is_current=?, is_next=?, is_finished=?
               WHERE gameweek_number=?""",
            [
                (status, int(cur), int(nxt), int(status == "finalized"), number)
                for number, status, cur, nxt in states
            ],
        )

    def clear_flags(self, conn: sqlite3.Connection) -> None:
        conn.execute("UPDATE gameweeks SET is_current=0, is_next=0")

    def set_status(
        self,
        conn: sqlite3.Connection,
        gameweek_number: int,
        status: str,
        *,
        is_current: bool | None = None,
        is_next: bool | None = None,
    ) -> None:
        """Set one gameweek's status, optionally its flags too."""
        conn.execute(
            """UPDATE gameweeks SET
                 status=?,
                 is_finished=?,
                 is_current=COALESCE(?, is_current),
                 is_next=COALESCE(?, is_next)
               WHERE gameweek_number=?""",
            (
                status,
                int(status == "finalized"),
                None if is_current is None else int(is_current),
                None if is_next is None else int(is_next),
                gameweek_number,
            ),
        )

    def set_next(self, conn: sqlite3.Connection, gameweek_number: int) -> None:
        conn.execute(
            "UPDATE gameweeks SET is_next=1 WHERE gameweek_number=?",
            (gameweek_number,),
        )

    def mark_settled(self, conn: sqlite3.Connection, gameweek_number: int) -> None:
        """Stamp the finalizer's first settlement of *gameweek_number*."""
        conn.execute(
            "UPDATE gameweeks SET settled_at=COALESCE(settled_at, ?) WHERE gameweek_number=?",
            (to_db(utc_now()), gameweek_number),
        )


# ---------------------------------------------------------------------------
# MatchRepository
# ---------------------------------------------------------------------------

class MatchRepository(_Repository):
    """CRUD for the ``real_matches`` table (written by the results feed)."""

    def upsert_match(self, match_id: int, gameweek: int, **kwargs) -> None:
        with self._session() as conn:
            conn.execute(
                """INSERT INTO real_matches
                   (match_id, gameweek, home_team, away_team, home_score, away_score,
                    match_date, status)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                   ON CONFLICT(match_id) DO UPDATE SET
                     gameweek=excluded.gameweek,
                     home_team=excluded.home_team,
                     away_team=excluded.away_team,
                     home_score=excluded.home_score,
                     away_score=excluded.away_score,
                     match_date=excluded.match_date,
                     status=excluded.status""",
                (
                    match_id, gameweek,
                    kwargs.get("home_team"),
                    kwargs.get("away_team"),
                    kwargs.get("home_score"),
                    kwargs.get("away_score"),
                    to_db(kwargs.get("match_date")),
                    kwargs.get("status", "scheduled"),
                ),
            )

    def get_matches(self, gameweek: int) -> list[dict]:
        with self._session() as conn:
            rows = conn.execute(
                "SELECT * FROM real_matches WHERE gameweek=? ORDER BY match_date, match_id",
                (gameweek,),
            ).fetchall()
        return [dict(r) for r in rows]

    def count_matches(
        self, gameweek: int, conn: sqlite3.Connection | None = None,
    ) -> tuple[int, int]:
        """Return ``(total, completed)`` match counts for *gameweek*."""
        with self._session(conn) as c:
            row = c.execute(
                """SELECT COUNT(*) AS total,
                          COALESCE(SUM(CASE WHEN status='completed' THEN 1 ELSE 0 END), 0)
                            AS completed
                   FROM real_matches WHERE gameweek=?""",
                (gameweek,),
            ).fetchone()
        return row["total"], row["completed"]


# ---------------------------------------------------------------------------
# PlayerRepository
# ---------------------------------------------------------------------------

class PlayerRepository(_Repository):
    """CRUD for the ``players`` table."""

    def upsert_player(
        self, player_id: int, name: str, position: str, team: str | None = None,
    ) -> None:
        with self._session() as conn:
            conn.execute(
                """INSERT INTO players (player_id, name, position, team)
                   VALUES (?, ?, ?, ?)
                   ON CONFLICT(player_id) DO UPDATE SET
                     name=excluded.name,
                     position=excluded.position,
                     team=excluded.team""",
                (player_id, name, position, team),
            )


# ---------------------------------------------------------------------------
# LeagueRepository
# ---------------------------------------------------------------------------

class LeagueRepository(_Repository):
    """CRUD for the ``leagues`` table."""

    def create_league(self, name: str) -> int:
        with self._session() as conn:
            conn.execute(
                "INSERT INTO leagues (name) VALUES (?) ON CONFLICT(name) DO NOTHING",
                (name,),
            )
            row = conn.execute(
                "SELECT league_id FROM leagues WHERE name=?", (name,),
            ).fetchone()
        return row[0]

    def get_leagues(self) -> list[dict]:
        with self._session() as conn:
            rows = conn.execute(
                """SELECT l.*, COUNT(ft.fantasy_team_id) AS current_participants
                   FROM leagues l
                   LEFT JOIN fantasy_teams ft ON ft.league_id = l.league_id
                   GROUP BY l.league_id
                   ORDER BY l.league_id"""
            ).fetchall()
        return [dict(r) for r in rows]


# ---------------------------------------------------------------------------
# FantasyTeamRepository
# ---------------------------------------------------------------------------

class FantasyTeamRepository(_Repository):
    """CRUD for the ``fantasy_teams`` table."""

    def create_team(self, team_name: str, league_id: int | None = None, **kwargs) -> int:
        with self._session() as conn:
            cur = conn.execute(
                """INSERT INTO fantasy_teams
                   (team_name, league_id, total_points, current_gameweek,
                    transfers_made_this_gw, transfers_banked)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (
                    team_name, league_id,
                    kwargs.get("total_points", 0),
                    kwargs.get("current_gameweek", 1),
                    kwargs.get("transfers_made_this_gw", 0),
                    kwargs.get("transfers_banked", 0),
                ),
            )
            team_id = cur.lastrowid
        return team_id

    def get_team(self, fantasy_team_id: int) -> dict | None:
        with self._session() as conn:
            row = conn.execute(
                "SELECT * FROM fantasy_teams WHERE fantasy_team_id=?",
                (fantasy_team_id,),
            ).fetchone()
        return dict(row) if row else None

    def get_teams(self, conn: sqlite3.Connection | None = None) -> list[dict]:
        with self._session(conn) as c:
            rows = c.execute(
                "SELECT * FROM fantasy_teams ORDER BY fantasy_team_id"
            ).fetchall()
        return [dict(r) for r in rows]

    def count_teams(self) -> int:
        with self._session() as conn:
            row = conn.execute("SELECT COUNT(*) FROM fantasy_teams").fetchone()
        return row[0]

    def apply_settlement(self, conn: sqlite3.Connection, rows: list[dict]) -> None:
        """Write finalization results; caller owns the transaction.

        Each row carries ``fantasy_team_id``, ``total_points``,
        ``gameweek_points``, ``current_gameweek`` and ``transfers_banked``.
        """
        conn.executemany(
            """UPDATE fantasy_teams SET
                 total_points=:total_points,
                 gameweek_points=:gameweek_points,
                 current_gameweek=:current_gameweek,
                 transfers_made_this_gw=0,
                 transfers_banked=:transfers_banked
               WHERE fantasy_team_id=:fantasy_team_id""",
            rows,
        )

    def apply_totals(self, conn: sqlite3.Connection, rows: list[dict]) -> None:
        """Rewrite only ``total_points``; used when re-scoring a settled gameweek."""
        conn.executemany(
            "UPDATE fantasy_teams SET total_points=:total_points WHERE fantasy_team_id=:fantasy_team_id",
            rows,
        )

    def set_ranks(self, conn: sqlite3.Connection, ranks: dict[int, int]) -> None:
        conn.executemany(
            "UPDATE fantasy_teams SET rank=? WHERE fantasy_team_id=?",
            [(rank, team_id) for team_id, rank in ranks.items()],
        )


# ---------------------------------------------------------------------------
# RosterRepository
# ---------------------------------------------------------------------------

class RosterRepository(_Repository):
    """CRUD for the ``rosters`` table."""

    def set_roster(self, fantasy_team_id: int, slots: list[dict]) -> None:
        """Replace a team's roster with *slots* (player_id + flags)."""
        with self._session() as conn:
            conn.execute(
                "DELETE FROM rosters WHERE fantasy_team_id=?", (fantasy_team_id,),
            )
            conn.executemany(
                """INSERT INTO rosters
                   (fantasy_team_id, player_id, is_starter, is_captain, is_vice_captain)
                   VALUES (?, ?, ?, ?, ?)""",
                [
                    (
                        fantasy_team_id, s["player_id"],
                        int(bool(s.get("is_starter"))),
                        int(bool(s.get("is_captain"))),
                        int(bool(s.get("is_vice_captain"))),
                    )
                    for s in slots
                ],
            )

    def get_roster(
        self, fantasy_team_id: int, conn: sqlite3.Connection | None = None,
    ) -> list[dict]:
        """Roster rows joined with each player's position."""
        with self._session(conn) as c:
            rows = c.execute(
                """SELECT r.player_id, p.position, r.is_starter, r.is_captain,
                          r.is_vice_captain
                   FROM rosters r
                   JOIN players p ON r.player_id = p.player_id
                   WHERE r.fantasy_team_id=?
                   ORDER BY r.player_id""",
                (fantasy_team_id,),
            ).fetchall()
        return [dict(r) for r in rows]


# ---------------------------------------------------------------------------
# ScoreRepository
# ---------------------------------------------------------------------------

class ScoreRepository(_Repository):
    """CRUD for ``gameweek_scores`` (written by the scoring feed)."""

    def upsert_score(
        self, player_id: int, gameweek: int, total_points: int, minutes_played: int,
    ) -> None:
        with self._session() as conn:
            conn.execute(
                """INSERT INTO gameweek_scores
                   (player_id, gameweek, total_points, minutes_played)
                   VALUES (?, ?, ?, ?)
                   ON CONFLICT(player_id, gameweek) DO UPDATE SET
                     total_points=excluded.total_points,
                     minutes_played=excluded.minutes_played""",
                (player_id, gameweek, total_points, minutes_played),
            )

    def get_scores(
        self, gameweek: int, conn: sqlite3.Connection | None = None,
    ) -> dict[int, dict]:
        """Return ``{player_id: score_row}`` for every player scored in *gameweek*."""
        with self._session(conn) as c:
            rows = c.execute(
                """SELECT player_id, total_points, minutes_played
                   FROM gameweek_scores WHERE gameweek=?""",
                (gameweek,),
            ).fetchall()
        return {r["player_id"]: dict(r) for r in rows}


# ---------------------------------------------------------------------------
# PointsRepository
# ---------------------------------------------------------------------------

class PointsRepository(_Repository):
    """CRUD for the ``fantasy_team_gameweek_points`` ledger."""

    def upsert_points(self, conn: sqlite3.Connection, rows: list[dict]) -> None:
        """Write one ledger row per team; caller owns the transaction."""
        conn.executemany(
            """INSERT INTO fantasy_team_gameweek_points
               (fantasy_team_id, gameweek, points)
               VALUES (:fantasy_team_id, :gameweek, :points)
               ON CONFLICT(fantasy_team_id, gameweek) DO UPDATE SET
                 points=excluded.points,
                 updated_at=datetime('now')""",
            rows,
        )

    def set_league_ranks(
        self, conn: sqlite3.Connection, gameweek: int, ranks: dict[int, int],
    ) -> None:
        conn.executemany(
            """UPDATE fantasy_team_gameweek_points SET rank_in_league=?
               WHERE fantasy_team_id=? AND gameweek=?""",
            [(rank, team_id, gameweek) for team_id, rank in ranks.items()],
        )

    def get_points(self, fantasy_team_id: int, gameweek: int) -> dict | None:
        with self._session() as conn:
            row = conn.execute(
                """SELECT * FROM fantasy_team_gameweek_points
                   WHERE fantasy_team_id=? AND gameweek=?""",
                (fantasy_team_id, gameweek),
            ).fetchone()
        return dict(row) if row else None

    def get_gameweek_points(
        self, gameweek: int, conn: sqlite3.Connection | None = None,
    ) -> list[dict]:
        with self._session(conn) as c:
            rows = c.execute(
                """SELECT fgp.*, ft.league_id, ft.team_name
                   FROM fantasy_team_gameweek_points fgp
                   JOIN fantasy_teams ft ON ft.fantasy_team_id = fgp.fantasy_team_id
                   WHERE fgp.gameweek=?
                   ORDER BY fgp.points DESC, fgp.fantasy_team_id""",
                (gameweek,),
            ).fetchall()
        return [dict(r) for r in rows]

    def count_calculated(self, gameweek: int) -> int:
        with self._session() as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM fantasy_team_gameweek_points WHERE gameweek=?",
                (gameweek,),
            ).fetchone()
        return row[0]
