"""Entry point: python -m fantasy_league"""

from fantasy_league.logging_config import setup_logging


def main() -> None:
    setup_logging()

    from fantasy_league.api import create_app
    from fantasy_league.config import server_cfg

    app = create_app()
    app.run(host=server_cfg.host, port=server_cfg.port, debug=False, threaded=True)


if __name__ == "__main__":
    main()
