"""Centralized path resolution."""

from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

OUTPUT_DIR = BASE_DIR / "output"
DB_PATH = OUTPUT_DIR / "league.db"
