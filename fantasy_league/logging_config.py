"""Logging setup for the gameweek engine, API and poller."""

import logging
import os
import sys

LOG_LEVEL_ENV = "FANTASY_LOG_LEVEL"


def _level_from_env(default: int) -> int:
    name = os.environ.get(LOG_LEVEL_ENV, "").strip().upper()
    if not name:
        return default
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else default


def setup_logging(level: int | None = None) -> None:
    """Attach a stdout handler to the root logger once.

    *level* wins over ``FANTASY_LOG_LEVEL``; both fall back to INFO.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    if level is None:
        level = _level_from_env(logging.INFO)
    root.setLevel(level)
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    root.addHandler(handler)

    # Request logs from the dev server and HTTP client
    for noisy in ("werkzeug", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Named logger; configures the root logger on first use."""
    setup_logging()
    return logging.getLogger(name)
