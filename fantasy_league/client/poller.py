"""Gameweek poller — keeps a presentation layer's view of the season fresh.

``GameweekClient`` is a thin ``requests`` wrapper around the
``/api/gameweeks`` endpoints.  ``GameweekPoller`` calls it on a fixed
interval and holds the latest current/next gameweek, transfer gate and
display gameweek.  There are no retries: a failed cycle keeps the last
known state, and a failed transfer-gate call falls back to the local
deadline heuristic.
"""

from __future__ import annotations

import threading
from datetime import datetime

import requests

from fantasy_league.config import client_cfg, scheduler_cfg
from fantasy_league.gameweek.transfer_gate import estimate_transfers_allowed
from fantasy_league.logging_config import get_logger
from fantasy_league.schemas.gameweek import Gameweek
from fantasy_league.utils.time_helpers import to_utc, utc_now

logger = get_logger(__name__)


class GameweekClient:
    def __init__(
        self,
        base_url: str | None = None,
        timeout: int | None = None,
        session: requests.Session | None = None,
    ):
        self.base_url = (base_url or client_cfg.base_url).rstrip("/")
        self.timeout = timeout or client_cfg.request_timeout
        self.session = session or requests.Session()

    def _get(self, path: str) -> dict:
        """GET *path*, raise on HTTP errors."""
        resp = self.session.get(f"{self.base_url}{path}", timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def _post(self, path: str, body: dict | None = None) -> dict:
        resp = self.session.post(f"{self.base_url}{path}", json=body or {}, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def get_status(self) -> dict:
        return self._get("/status")

    def transfers_allowed(self) -> bool:
        return bool(self._get("/transfers-allowed")["transfers_allowed"])

    def latest_finalized(self) -> int:
        return int(self._get("/latest-finalized")["gameweek"])

    def display_gameweek(self) -> int:
        return int(self._get("/display")["gameweek"])

    def gameweek_stats(self, gameweek: int) -> dict:
        return self._get(f"/{gameweek}/stats")

    def team_points(self, gameweek: int, fantasy_team_id: int) -> dict:
        return self._get(f"/{gameweek}/teams/{fantasy_team_id}/points")

    def finalize(self, gameweek: int) -> dict:
        return self._post(f"/{gameweek}/finalize", {"confirm": True})


class GameweekPoller:
    """Client-side state of the gameweek banner, refreshed by polling."""

    def __init__(self, client: GameweekClient | None = None, interval_seconds: int | None = None):
        self.client = client or GameweekClient()
        self.interval = interval_seconds or scheduler_cfg.status_poll_seconds
        self.current: Gameweek | None = None
        self.next: Gameweek | None = None
        self.transfers_allowed: bool = True
        self.display_gameweek: int | None = None
        self.last_error: str | None = None
        self.last_refreshed: datetime | None = None

    def snapshot(self) -> dict:
        return {
            "current": self.current.model_dump(mode="json") if self.current else None,
            "next": self.next.model_dump(mode="json") if self.next else None,
            "transfers_allowed": self.transfers_allowed,
            "display_gameweek": self.display_gameweek,
            "last_error": self.last_error,
        }

    def refresh(self, now: datetime | None = None) -> dict:
        """One poll cycle.  Never raises on transport failure."""
        now = to_utc(now) if now else utc_now()
        try:
            status = self.client.get_status()
        except requests.RequestException as exc:
            logger.warning("Gameweek status fetch failed (%s), keeping last state", exc)
            self.last_error = str(exc)
            return self.snapshot()

        self.current = Gameweek.model_validate(status["current"]) if status.get("current") else None
        self.next = Gameweek.model_validate(status["next"]) if status.get("next") else None
        self.last_error = None

        try:
            self.transfers_allowed = self.client.transfers_allowed()
        except requests.RequestException as exc:
            self.transfers_allowed = estimate_transfers_allowed(self.current or self.next, now)
            logger.warning(
                "Transfer gate fetch failed (%s), estimated %s from deadline",
                exc, self.transfers_allowed,
            )
            self.last_error = str(exc)

        try:
            self.display_gameweek = self.client.display_gameweek()
        except requests.RequestException as exc:
            logger.warning("Display gameweek fetch failed: %s", exc)
            self.last_error = str(exc)

        self.last_refreshed = now
        return self.snapshot()

    def run(self, stop_event: threading.Event) -> None:
        """Poll until *stop_event* is set."""
        logger.info("Polling %s every %ds", self.client.base_url, self.interval)
        while not stop_event.is_set():
            self.refresh()
            stop_event.wait(self.interval)
