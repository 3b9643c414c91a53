"""Pydantic schemas for gameweeks, rosters and settled points."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from fantasy_league.schemas.rules import GameweekStatus, MatchStatus
from fantasy_league.utils.time_helpers import to_utc


class Gameweek(BaseModel):
    """One scoring period and its lifecycle flags."""

    gameweek_number: int
    name: str | None = None
    deadline_time: datetime | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    status: GameweekStatus = GameweekStatus.UPCOMING
    is_current: bool = False
    is_next: bool = False
    is_finished: bool = False
    settled_at: datetime | None = None

    @field_validator("deadline_time", "start_time", "end_time", "settled_at", mode="after")
    @classmethod
    def _as_utc(cls, value: datetime | None) -> datetime | None:
        return to_utc(value)


class RealMatch(BaseModel):
    match_id: int
    gameweek: int
    home_team: str | None = None
    away_team: str | None = None
    home_score: int | None = None
    away_score: int | None = None
    match_date: datetime | None = None
    status: MatchStatus = MatchStatus.SCHEDULED


class RosterSlot(BaseModel):
    """A player on a fantasy team, with lineup designations."""

    player_id: int
    position: str  # GKP, DEF, MID, FWD
    is_starter: bool = False
    is_captain: bool = False
    is_vice_captain: bool = False


class Roster(BaseModel):
    """A fantasy team's full roster (starters + bench)."""

    fantasy_team_id: int
    slots: list[RosterSlot] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_armbands(self) -> "Roster":
        """At most one captain and one vice-captain, never the same player.

        A missing armband is accepted: a roster saved before its manager
        picked a captain still scores, just without a captain bonus.
        """
        errors: list[str] = []
        captains = [s.player_id for s in self.slots if s.is_captain]
        vices = [s.player_id for s in self.slots if s.is_vice_captain]
        if len(captains) > 1:
            errors.append(f"{len(captains)} captains (max 1)")
        if len(vices) > 1:
            errors.append(f"{len(vices)} vice-captains (max 1)")
        if captains and vices and captains[0] == vices[0]:
            errors.append("Captain and vice-captain must be different players")
        if len({s.player_id for s in self.slots}) != len(self.slots):
            errors.append("Duplicate player IDs in roster")
        if errors:
            raise ValueError("; ".join(errors))
        return self

    @property
    def starters(self) -> list[RosterSlot]:
        return [s for s in self.slots if s.is_starter]

    @property
    def bench(self) -> list[RosterSlot]:
        return [s for s in self.slots if not s.is_starter]

    @property
    def captain_id(self) -> int | None:
        return next((s.player_id for s in self.slots if s.is_captain), None)

    @property
    def vice_captain_id(self) -> int | None:
        return next((s.player_id for s in self.slots if s.is_vice_captain), None)


class PlayerScore(BaseModel):
    """A player's raw output for one gameweek (from the scoring feed)."""

    player_id: int
    total_points: int = 0
    minutes_played: int = 0


class GameweekStats(BaseModel):
    """Match and team completion counts shown to the operator."""

    gameweek: int
    total_matches: int = 0
    completed_matches: int = 0
    total_teams: int = 0
    calculated_teams: int = 0

    @property
    def pending_matches(self) -> int:
        return self.total_matches - self.completed_matches

    @property
    def can_finalize(self) -> bool:
        return self.pending_matches == 0

    @property
    def match_progress(self) -> int:
        """Completed matches as a whole percentage."""
        if self.total_matches <= 0:
            return 0
        return round(self.completed_matches / self.total_matches * 100)

    @property
    def calculated_progress(self) -> int:
        """Teams with a ledger row as a whole percentage."""
        if self.total_teams <= 0:
            return 0
        return round(self.calculated_teams / self.total_teams * 100)

    def to_dict(self) -> dict:
        data = self.model_dump()
        data.update(
            pending_matches=self.pending_matches,
            match_progress=self.match_progress,
            calculated_progress=self.calculated_progress,
            can_finalize=self.can_finalize,
        )
        return data


class GameweekStatusView(BaseModel):
    """What a polling client needs to render the gameweek banner."""

    current: Gameweek | None = None
    next: Gameweek | None = None
    transfers_allowed: bool = True
    time_until_deadline: float | None = None  # seconds
    time_until_start: float | None = None
    time_until_end: float | None = None
    is_gameweek_active: bool = False
