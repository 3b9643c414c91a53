"""Gameweek manager — thin orchestrator around the gameweek state machine.

Every mutating operation runs inside a single ``BEGIN IMMEDIATE``
transaction, reading the rows it needs on the same connection it writes
with.  Pure helpers (:mod:`resolver`, :mod:`points`, :mod:`settlement`,
:mod:`standings`) do the arithmetic.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from fantasy_league.config import gameweek_cfg
from fantasy_league.db.connection import connect, transaction
from fantasy_league.db.migrations import apply_migrations
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
from fantasy_league.errors import (
    GameweekNotFoundError,
    IncompleteMatchesError,
    InvalidTransitionError,
    RosterError,
    TeamNotFoundError,
)
from fantasy_league.gameweek.points import PointsBreakdown, score_breakdown
from fantasy_league.gameweek.resolver import plan_resolution
from fantasy_league.gameweek.settlement import promotion_states, settle_team
from fantasy_league.gameweek.standings import rank_leagues, rank_overall
from fantasy_league.gameweek.state_machine import can_transition
from fantasy_league.gameweek.transfer_gate import transfers_allowed
from fantasy_league.paths import DB_PATH
from fantasy_league.schemas.gameweek import (
    Gameweek,
    GameweekStats,
    GameweekStatusView,
    PlayerScore,
    RealMatch,
    Roster,
    RosterSlot,
)
from fantasy_league.schemas.rules import GameweekStatus
from fantasy_league.utils.time_helpers import seconds_until, to_utc, utc_now

logger = logging.getLogger(__name__)


class GameweekManager:
    """Owns the gameweek lifecycle: status resolution, the transfer gate,
    live point calculation and finalization.

    Each call to :meth:`tick` performs one poll cycle (resolve statuses,
    recalculate live points) and returns alert dicts suitable for SSE.
    """

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or DB_PATH
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        # Run migrations to ensure schema is current.
        with connect(self.db_path) as conn:
            apply_migrations(conn)

        # Repositories -- one per table.
        self.gameweeks = GameweekRepository(self.db_path)
        self.matches = MatchRepository(self.db_path)
        self.players = PlayerRepository(self.db_path)
        self.leagues = LeagueRepository(self.db_path)
        self.teams = FantasyTeamRepository(self.db_path)
        self.rosters = RosterRepository(self.db_path)
        self.scores = ScoreRepository(self.db_path)
        self.points = PointsRepository(self.db_path)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_gameweeks(self) -> list[Gameweek]:
        return [Gameweek.model_validate(r) for r in self.gameweeks.get_gameweeks()]

    def get_gameweek(self, gameweek: int) -> Gameweek:
        row = self.gameweeks.get_gameweek(gameweek)
        if row is None:
            raise GameweekNotFoundError(gameweek)
        return Gameweek.model_validate(row)

    def get_matches(self, gameweek: int) -> list[RealMatch]:
        return [RealMatch.model_validate(r) for r in self.matches.get_matches(gameweek)]

    def get_latest_finalized_gameweek(self) -> int:
        """Highest finalized gameweek number, 0 when none."""
        return self.gameweeks.get_latest_finalized_number()

    def get_display_gameweek(self) -> int:
        """Gameweek to show points for: active, else latest finalized, else the first."""
        active = self.gameweeks.get_active_number()
        if active is not None:
            return active
        return self.get_latest_finalized_gameweek() or gameweek_cfg.first_gameweek

    def select_default_gameweek(self) -> int | None:
        """Gameweek an operator view opens on: active, else first unfinished, else first."""
        gameweeks = self.list_gameweeks()
        if not gameweeks:
            return None
        for gw in gameweeks:
            if gw.status is GameweekStatus.ACTIVE:
                return gw.gameweek_number
        for gw in gameweeks:
            if gw.status is not GameweekStatus.FINALIZED:
                return gw.gameweek_number
        return gameweeks[0].gameweek_number

    def get_gameweek_stats(self, gameweek: int) -> GameweekStats:
        total, completed = self.matches.count_matches(gameweek)
        return GameweekStats(
            gameweek=gameweek,
            total_matches=total,
            completed_matches=completed,
            total_teams=self.teams.count_teams(),
            calculated_teams=self.points.count_calculated(gameweek),
        )

    def get_standings(self, gameweek: int) -> list[dict]:
        """Ledger rows for *gameweek*, best first."""
        return self.points.get_gameweek_points(gameweek)

    # ------------------------------------------------------------------
    # Status resolution and transfer gate
    # ------------------------------------------------------------------

    def resolve_status(self, now: datetime | None = None) -> list[dict]:
        """Recompute every gameweek's status and current/next flags.

        Returns the status changes made, e.g.
        ``[{"gameweek": 3, "from": "upcoming", "to": "locked"}]``.
        """
        now = to_utc(now) if now else utc_now()
        with connect(self.db_path) as conn, transaction(conn):
            rows = self.gameweeks.get_gameweeks(conn)
            before = [Gameweek.model_validate(r) for r in rows]
            plan = plan_resolution(before, now)
            self.gameweeks.write_states(
                conn,
                [(s.gameweek_number, s.status.value, s.is_current, s.is_next) for s in plan],
            )

        previous = {gw.gameweek_number: gw.status for gw in before}
        changes = [
            {"gameweek": s.gameweek_number, "from": previous[s.gameweek_number].value,
             "to": s.status.value}
            for s in plan
            if previous[s.gameweek_number] is not s.status
        ]
        for change in changes:
            logger.info(
                "Status transition: GW%d %s -> %s",
                change["gameweek"], change["from"], change["to"],
            )
        return changes

    def transfers_allowed(self, now: datetime | None = None) -> bool:
        now = to_utc(now) if now else utc_now()
        return transfers_allowed(self.list_gameweeks(), now)

    def get_status(self, now: datetime | None = None) -> GameweekStatusView:
        """Resolve, then report current/next gameweek, gate and countdowns."""
        now = to_utc(now) if now else utc_now()
        try:
            self.resolve_status(now)
        except sqlite3.OperationalError as exc:
            # Serve the last resolved state rather than failing the read.
            logger.warning("Gameweek status resolution skipped: %s", exc)

        gameweeks = self.list_gameweeks()
        current = next((g for g in gameweeks if g.is_current), None)
        following = next((g for g in gameweeks if g.is_next), None)
        relevant = current or following

        view = GameweekStatusView(
            current=current,
            next=following,
            transfers_allowed=transfers_allowed(gameweeks, now),
        )
        if relevant is not None:
            view.time_until_deadline = seconds_until(relevant.deadline_time, now)
            view.time_until_start = seconds_until(relevant.start_time, now)
            view.time_until_end = seconds_until(relevant.end_time, now)
            view.is_gameweek_active = relevant.status is GameweekStatus.ACTIVE
        return view

    def set_gameweek_status(self, gameweek: int, status: str) -> Gameweek:
        """Operator override: start a gameweek early or reset it to upcoming.

        Starting a gameweek makes it the only current one and flags the
        next existing gameweek above it as next.
        """
        try:
            target = GameweekStatus(status)
        except ValueError:
            raise InvalidTransitionError(f"Unknown gameweek status: {status}") from None

        with connect(self.db_path) as conn, transaction(conn):
            row = self.gameweeks.get_gameweek(gameweek, conn)
            if row is None:
                raise GameweekNotFoundError(gameweek)
            current = GameweekStatus(row["status"])
            if current is target:
                return Gameweek.model_validate(row)
            if not can_transition(current, target):
                raise InvalidTransitionError(
                    f"Gameweek {gameweek} cannot move from {current.value} to {target.value}."
                )
            if target is GameweekStatus.ACTIVE:
                self.gameweeks.clear_flags(conn)
                self.gameweeks.set_status(
                    conn, gameweek, target.value, is_current=True, is_next=False,
                )
                later = [
                    g["gameweek_number"] for g in self.gameweeks.get_gameweeks(conn)
                    if g["gameweek_number"] > gameweek
                ]
                if later:
                    self.gameweeks.set_next(conn, min(later))
            else:
                self.gameweeks.set_status(
                    conn, gameweek, target.value, is_current=False, is_next=False,
                )
            updated = self.gameweeks.get_gameweek(gameweek, conn)

        logger.info("Manual status change: GW%d %s -> %s", gameweek, current.value, target.value)
        return Gameweek.model_validate(updated)

    # ------------------------------------------------------------------
    # Points
    # ------------------------------------------------------------------

    def _load_roster(self, fantasy_team_id: int, conn: sqlite3.Connection) -> Roster:
        rows = self.rosters.get_roster(fantasy_team_id, conn)
        try:
            return Roster(
                fantasy_team_id=fantasy_team_id,
                slots=[RosterSlot.model_validate(r) for r in rows],
            )
        except ValidationError as exc:
            raise RosterError(f"Team {fantasy_team_id}: {exc}") from exc

    def _load_scores(self, gameweek: int, conn: sqlite3.Connection) -> dict[int, PlayerScore]:
        return {
            pid: PlayerScore.model_validate(row)
            for pid, row in self.scores.get_scores(gameweek, conn).items()
        }

    def _compute_all(
        self, gameweek: int, conn: sqlite3.Connection,
    ) -> tuple[list[dict], dict[int, int]]:
        """Points for every team; raises before anything is written."""
        teams = self.teams.get_teams(conn)
        scores = self._load_scores(gameweek, conn)
        points = {
            t["fantasy_team_id"]: score_breakdown(
                self._load_roster(t["fantasy_team_id"], conn), scores,
            ).total
            for t in teams
        }
        return teams, points

    def score_team(self, fantasy_team_id: int, gameweek: int) -> PointsBreakdown:
        """Points breakdown for one team (read only)."""
        if self.teams.get_team(fantasy_team_id) is None:
            raise TeamNotFoundError(fantasy_team_id)
        with connect(self.db_path) as conn:
            return score_breakdown(
                self._load_roster(fantasy_team_id, conn),
                self._load_scores(gameweek, conn),
            )

    def calculate_team_points(self, fantasy_team_id: int, gameweek: int) -> int:
        return self.score_team(fantasy_team_id, gameweek).total

    def calculate_all_team_points(self, gameweek: int) -> int:
        """Write live ledger rows for every team; totals and ranks untouched.

        All-or-nothing: one failing team leaves the ledger as it was.
        Returns the number of teams calculated.
        """
        with connect(self.db_path) as conn, transaction(conn):
            row = self.gameweeks.get_gameweek(gameweek, conn)
            if row is None:
                raise GameweekNotFoundError(gameweek)
            if row["settled_at"] is not None:
                raise InvalidTransitionError(
                    f"Gameweek {gameweek} is already settled; finalize it again to rescore."
                )
            _, points = self._compute_all(gameweek, conn)
            self.points.upsert_points(
                conn,
                [{"fantasy_team_id": t, "gameweek": gameweek, "points": p}
                 for t, p in points.items()],
            )
        logger.info("Calculated points for %d teams in GW%d", len(points), gameweek)
        return len(points)

    # ------------------------------------------------------------------
    # Finalization
    # ------------------------------------------------------------------

    def finalize_gameweek(self, gameweek: int) -> dict:
        """Settle *gameweek* and advance the season by one gameweek.

        Refuses (``IncompleteMatchesError``) unless every match of the
        gameweek is completed, and (``InvalidTransitionError``) while the
        gameweek is still upcoming.  Points, totals, pointers, transfer
        counters, league ranks, overall ranks and gameweek flags are all
        written in one transaction.  Finalizing an already settled
        gameweek re-scores it: ledger, totals and ranks only.
        """
        with connect(self.db_path) as conn, transaction(conn):
            gw_rows = self.gameweeks.get_gameweeks(conn)
            target = next((g for g in gw_rows if g["gameweek_number"] == gameweek), None)
            if target is None:
                raise GameweekNotFoundError(gameweek)
            total, completed = self.matches.count_matches(gameweek, conn)
            if completed < total:
                raise IncompleteMatchesError(gameweek, total - completed)
            # Clock-finalized and already settled gameweeks are still accepted
            if GameweekStatus(target["status"]) is GameweekStatus.UPCOMING:
                raise InvalidTransitionError(
                    f"Gameweek {gameweek} has not started and cannot be finalized."
                )
            previous: dict[int, int] = {}
            resettle = target["settled_at"] is not None
            if resettle:
                logger.warning("GW%d was already settled; re-scoring it", gameweek)
                previous = {
                    r["fantasy_team_id"]: r["points"]
                    for r in self.points.get_gameweek_points(gameweek, conn)
                }

            teams, points = self._compute_all(gameweek, conn)
            settled = [
                settle_team(
                    t, gameweek, points[t["fantasy_team_id"]],
                    previous.get(t["fantasy_team_id"], 0),
                )
                for t in teams
            ]

            self.points.upsert_points(
                conn,
                [{"fantasy_team_id": t, "gameweek": gameweek, "points": p}
                 for t, p in points.items()],
            )
            if resettle:
                self.teams.apply_totals(conn, settled)
            else:
                self.teams.apply_settlement(conn, settled)
            self.points.set_league_ranks(
                conn, gameweek,
                rank_leagues([
                    {"fantasy_team_id": t["fantasy_team_id"], "league_id": t["league_id"],
                     "points": points[t["fantasy_team_id"]]}
                    for t in teams
                ]),
            )
            self.teams.set_ranks(conn, rank_overall(settled))
            if not resettle:
                self.gameweeks.write_states(conn, promotion_states(gw_rows, gameweek))
                self.gameweeks.mark_settled(conn, gameweek)

        logger.info("Gameweek %d finalized: %d teams settled", gameweek, len(settled))
        return {
            "gameweek": gameweek,
            "teams_settled": len(settled),
            "matches": total,
            "rescored": resettle,
        }

    # ------------------------------------------------------------------
    # Poll cycle
    # ------------------------------------------------------------------

    def tick(self, now: datetime | None = None) -> list[dict]:
        """Run one poll cycle.

        Resolves statuses, then recalculates live points for the active
        gameweek once at least one of its matches is completed.  Returns a
        list of alert dicts.
        """
        alerts: list[dict] = []
        for change in self.resolve_status(now):
            alerts.append({
                "type": "status_change",
                "gameweek": change["gameweek"],
                "message": f"Gameweek {change['gameweek']} is now {change['to']}",
            })

        active = self.gameweeks.get_active_number()
        if active is None:
            return alerts
        _, completed = self.matches.count_matches(active)
        if completed == 0:
            return alerts
        count = self.calculate_all_team_points(active)
        alerts.append({
            "type": "points_calculated",
            "gameweek": active,
            "message": f"Calculated points for {count} teams in Gameweek {active}",
        })
        return alerts
