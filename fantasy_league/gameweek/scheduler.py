"""Background scheduler that drives the gameweek lifecycle."""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from fantasy_league.config import scheduler_cfg

logger = logging.getLogger(__name__)

_scheduler_thread: threading.Thread | None = None
_stop_event = threading.Event()


def start_scheduler(db_path: Path, interval_seconds: int | None = None) -> None:
    """Start the background tick loop.

    Calls ``GameweekManager.tick()`` every *interval_seconds* (default
    ``scheduler_cfg.admin_poll_seconds``).  The thread is a daemon so it
    dies with the process.
    """
    global _scheduler_thread
    if _scheduler_thread and _scheduler_thread.is_alive():
        return  # Already running

    interval = interval_seconds or scheduler_cfg.admin_poll_seconds
    _stop_event.clear()

    def _loop() -> None:
        from fantasy_league.api.sse import broadcast
        from fantasy_league.gameweek.manager import GameweekManager

        mgr = GameweekManager(db_path=db_path)
        while not _stop_event.is_set():
            try:
                alerts = mgr.tick()
                for alert in alerts:
                    broadcast(alert.get("message", str(alert)), event="alert")
            except Exception:
                logger.exception("Scheduler tick failed")
            _stop_event.wait(interval)

    _scheduler_thread = threading.Thread(
        target=_loop, daemon=True, name="gw-scheduler",
    )
    _scheduler_thread.start()
    logger.info("Scheduler started: db=%s, interval=%ds", db_path, interval)


def stop_scheduler() -> None:
    """Stop the background tick loop."""
    _stop_event.set()
    logger.info("Scheduler stop requested")


def is_running() -> bool:
    return bool(_scheduler_thread and _scheduler_thread.is_alive())
