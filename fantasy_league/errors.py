"""Exceptions raised by the gameweek engine.

The HTTP layer maps these onto JSON error responses; everything else
lets them propagate to the caller.
"""

from __future__ import annotations


class GameweekError(Exception):
    """Base class for gameweek engine failures."""


class GameweekNotFoundError(GameweekError):
    def __init__(self, gameweek: int):
        self.gameweek = gameweek
        super().__init__(f"Gameweek {gameweek} does not exist.")


class IncompleteMatchesError(GameweekError):
    """Finalization refused: some matches of the gameweek are not completed."""

    def __init__(self, gameweek: int, pending: int):
        self.gameweek = gameweek
        self.pending = pending
        super().__init__(
            f"Cannot finalize gameweek {gameweek}. "
            f"Not all matches are completed ({pending} pending)."
        )


class InvalidTransitionError(GameweekError):
    """A manual status change the state machine does not allow."""


class RosterError(GameweekError):
    """A roster breaks the captain / vice-captain invariant."""


class TeamNotFoundError(GameweekError):
    def __init__(self, fantasy_team_id: int):
        self.fantasy_team_id = fantasy_team_id
        super().__init__(f"Fantasy team {fantasy_team_id} does not exist.")
