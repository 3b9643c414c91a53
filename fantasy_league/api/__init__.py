"""Flask application factory."""

import os
from pathlib import Path

from flask import Flask

from fantasy_league.logging_config import get_logger

log = get_logger(__name__)


def create_app(db_path: Path | None = None) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)

    from fantasy_league.gameweek.manager import GameweekManager
    from fantasy_league.paths import DB_PATH

    db_path = Path(db_path) if db_path else DB_PATH
    app.extensions["gameweek_manager"] = GameweekManager(db_path=db_path)

    from fantasy_league.api.middleware import register_middleware
    register_middleware(app)

    from fantasy_league.api.gameweek_bp import gameweek_bp

    app.register_blueprint(gameweek_bp, url_prefix="/api/gameweeks")

    # Start background scheduler if FANTASY_SCHEDULER_SECONDS is set.
    interval_str = os.environ.get("FANTASY_SCHEDULER_SECONDS")
    if interval_str:
        try:
            interval = int(interval_str)
        except ValueError:
            log.warning("Ignoring FANTASY_SCHEDULER_SECONDS=%r (not an integer)", interval_str)
        else:
            from fantasy_league.gameweek.scheduler import start_scheduler

            start_scheduler(db_path, interval)

    return app
