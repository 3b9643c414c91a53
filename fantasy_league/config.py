"""Engine settings — gameweek rules, scheduler, server and client defaults."""

from __future__ import annotations

from dataclasses import dataclass


# ---------------------------------------------------------------------------
# Gameweek rules
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class GameweekConfig:
    max_banked_transfers: int = 1
    # Deadline falls this long before kickoff when a feed omits it
    default_deadline_offset_hours: int = 2
    # Display fallback when nothing is active or finalized yet
    first_gameweek: int = 1


# ---------------------------------------------------------------------------
# Polling cadence (seconds)
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class SchedulerConfig:
    status_poll_seconds: int = 60    # user-facing status refresh
    admin_poll_seconds: int = 10     # operator tick (resolve + live points)


# ---------------------------------------------------------------------------
# HTTP server / client
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 9874


@dataclass(frozen=True)
class ClientConfig:
    base_url: str = "http://127.0.0.1:9874/api/gameweeks"
    request_timeout: int = 10


# ---------------------------------------------------------------------------
# Singleton instances (importable as `from fantasy_league.config import gameweek_cfg, ...`)
# ---------------------------------------------------------------------------
gameweek_cfg = GameweekConfig()
scheduler_cfg = SchedulerConfig()
server_cfg = ServerConfig()
client_cfg = ClientConfig()
