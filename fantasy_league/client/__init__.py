"""HTTP polling client for the gameweek API."""

from fantasy_league.client.poller import GameweekClient, GameweekPoller

__all__ = ["GameweekClient", "GameweekPoller"]
