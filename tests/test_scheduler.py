"""Tests for the background scheduler and its wiring into the app factory."""

import pytest

from fantasy_league.api import create_app
from fantasy_league.gameweek import scheduler


@pytest.fixture
def stopped_scheduler():
    yield
    scheduler.stop_scheduler()
    if scheduler._scheduler_thread is not None:
        scheduler._scheduler_thread.join(timeout=5)


def test_loop_ticks_and_stops(tmp_db, stopped_scheduler, monkeypatch):
    ticks = []

    def fake_tick(self, now=None):
        ticks.append(now)
        scheduler.stop_scheduler()
        return [{"message": "Gameweek 1 is now locked"}]

    monkeypatch.setattr("fantasy_league.gameweek.manager.GameweekManager.tick", fake_tick)
    scheduler.start_scheduler(tmp_db, interval_seconds=3600)
    scheduler._scheduler_thread.join(timeout=5)

    assert ticks == [None]
    assert scheduler.is_running() is False


def test_failed_tick_does_not_kill_loop(tmp_db, stopped_scheduler, monkeypatch):
    calls = []

    def flaky_tick(self, now=None):
        calls.append(now)
        if len(calls) == 1:
            raise RuntimeError("database is locked")
        scheduler.stop_scheduler()
        return []

    monkeypatch.setattr("fantasy_league.gameweek.manager.GameweekManager.tick", flaky_tick)
    scheduler.start_scheduler(tmp_db, interval_seconds=0.01)
    scheduler._scheduler_thread.join(timeout=5)

    assert len(calls) == 2


def test_app_factory_starts_scheduler(tmp_db, monkeypatch):
    started = []
    monkeypatch.setenv("FANTASY_SCHEDULER_SECONDS", "15")
    monkeypatch.setattr(
        scheduler, "start_scheduler", lambda db_path, interval: started.append((db_path, interval)),
    )
    create_app(tmp_db)
    assert started == [(tmp_db, 15)]


def test_app_factory_ignores_bad_interval(tmp_db, monkeypatch):
    started = []
    monkeypatch.setenv("FANTASY_SCHEDULER_SECONDS", "often")
    monkeypatch.setattr(scheduler, "start_scheduler", lambda *a: started.append(a))
    create_app(tmp_db)
    assert started == []
