"""Flask API tests for the gameweek blueprint."""

import json
from datetime import timedelta

import pytest

from conftest import (
    add_matches,
    gw_deadline,
    gw_start,
    lineup,
    score_gameweek,
    seed_calendar,
    seed_players,
)
from fantasy_league.api import create_app
from fantasy_league.api import sse


@pytest.fixture
def app(tmp_db, monkeypatch):
    monkeypatch.delenv("FANTASY_SCHEDULER_SECONDS", raising=False)
    app = create_app(tmp_db)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def mgr(app):
    return app.extensions["gameweek_manager"]


@pytest.fixture
def seeded(mgr):
    seed_calendar(mgr)
    seed_players(mgr)
    team_id = mgr.teams.create_team("Alpha", mgr.leagues.create_league("Cup"))
    mgr.rosters.set_roster(team_id, lineup([1, 3], [7], captain=3, vice=1))
    return team_id


def test_api_routes_exist(app):
    """All expected API routes are registered."""
    rules = {r.rule for r in app.url_map.iter_rules()}
    expected = [
        "/api/gameweeks/",
        "/api/gameweeks/status",
        "/api/gameweeks/resolve",
        "/api/gameweeks/transfers-allowed",
        "/api/gameweeks/latest-finalized",
        "/api/gameweeks/display",
        "/api/gameweeks/<int:gameweek>/stats",
        "/api/gameweeks/<int:gameweek>/status",
        "/api/gameweeks/<int:gameweek>/calculate",
        "/api/gameweeks/<int:gameweek>/finalize",
        "/api/gameweeks/<int:gameweek>/teams/<int:team_id>/points",
        "/api/gameweeks/tick",
        "/api/gameweeks/events",
    ]
    for route in expected:
        assert route in rules, f"Missing route: {route}"


class TestReads:
    def test_list(self, client, seeded):
        resp = client.get("/api/gameweeks/")
        assert resp.status_code == 200
        data = resp.get_json()
        assert [g["gameweek_number"] for g in data["gameweeks"]] == [1, 2, 3]
        assert data["default_gameweek"] == 1
        assert resp.headers["Cache-Control"] == "no-store"

    def test_status_with_clock_override(self, client, seeded):
        now = (gw_deadline(1) - timedelta(hours=3)).isoformat()
        resp = client.get("/api/gameweeks/status", query_string={"now": now})
        data = resp.get_json()
        assert data["current"]["gameweek_number"] == 1
        assert data["next"]["gameweek_number"] == 2
        assert data["transfers_allowed"] is True
        assert data["countdown"]["deadline"] == "3h 0m"

    def test_bad_clock_override(self, client, seeded):
        resp = client.get("/api/gameweeks/status", query_string={"now": "yesterday"})
        assert resp.status_code == 400

    def test_transfers_allowed(self, client, seeded):
        now = gw_start(1).isoformat()
        resp = client.get("/api/gameweeks/transfers-allowed", query_string={"now": now})
        assert resp.get_json() == {"transfers_allowed": False}

    def test_latest_finalized_and_display(self, client, seeded):
        assert client.get("/api/gameweeks/latest-finalized").get_json() == {"gameweek": 0}
        assert client.get("/api/gameweeks/display").get_json() == {"gameweek": 1}

    def test_stats(self, client, mgr, seeded):
        add_matches(mgr, 1, ["completed", "live"])
        data = client.get("/api/gameweeks/1/stats").get_json()
        assert data["total_matches"] == 2
        assert data["pending_matches"] == 1
        assert data["can_finalize"] is False

    def test_stats_unknown_gameweek(self, client, seeded):
        resp = client.get("/api/gameweeks/40/stats")
        assert resp.status_code == 404
        assert "does not exist" in resp.get_json()["error"]

    def test_team_points(self, client, mgr, seeded):
        score_gameweek(mgr, 1, {1: (2, 90), 3: (0, 0), 7: (5, 90)})
        data = client.get(f"/api/gameweeks/1/teams/{seeded}/points").get_json()
        assert data["total"] == 12
        assert data["substitutions"] == {"3": 7}

    def test_unknown_team(self, client, seeded):
        assert client.get("/api/gameweeks/1/teams/999/points").status_code == 404

    def test_unknown_route_is_json(self, client):
        resp = client.get("/api/nope")
        assert resp.status_code == 404
        assert resp.get_json() == {"error": "Not found"}


class TestActions:
    def test_resolve(self, client, seeded):
        resp = client.post("/api/gameweeks/resolve", json={"now": gw_start(1).isoformat()})
        assert resp.get_json()["changes"] == [
            {"gameweek": 1, "from": "upcoming", "to": "active"},
        ]

    def test_set_status(self, client, seeded):
        resp = client.post("/api/gameweeks/2/status", json={"status": "active"})
        assert resp.status_code == 200
        assert resp.get_json()["is_current"] is True

    def test_set_status_requires_status(self, client, seeded):
        assert client.post("/api/gameweeks/2/status", json={}).status_code == 400

    def test_invalid_transition(self, client, seeded):
        resp = client.post("/api/gameweeks/2/status", json={"status": "finalized"})
        assert resp.status_code == 400

    def test_calculate(self, client, seeded):
        resp = client.post("/api/gameweeks/1/calculate")
        assert resp.get_json() == {"gameweek": 1, "teams_calculated": 1}

    def test_finalize_requires_confirmation(self, client, seeded):
        resp = client.post("/api/gameweeks/1/finalize", json={})
        assert resp.status_code == 400
        assert "confirm" in resp.get_json()["error"]

    def test_finalize_refused_before_start(self, client, seeded):
        resp = client.post("/api/gameweeks/3/finalize", json={"confirm": True})
        assert resp.status_code == 400
        assert "has not started" in resp.get_json()["error"]

    def test_finalize_refused_with_pending_matches(self, client, mgr, seeded):
        add_matches(mgr, 1, ["scheduled"])
        resp = client.post("/api/gameweeks/1/finalize", json={"confirm": True})
        assert resp.status_code == 409
        assert "1 pending" in resp.get_json()["error"]

    def test_finalize(self, client, mgr, seeded):
        add_matches(mgr, 1, ["completed"])
        mgr.set_gameweek_status(1, "active")
        resp = client.post("/api/gameweeks/1/finalize", json={"confirm": True})
        assert resp.status_code == 200
        assert resp.get_json()["teams_settled"] == 1
        assert client.get("/api/gameweeks/latest-finalized").get_json() == {"gameweek": 1}

    def test_tick_runs_in_background(self, client, seeded, monkeypatch):
        calls = []

        def run_now(name, fn):
            calls.append(name)
            fn()
            return True

        monkeypatch.setattr("fantasy_league.api.gameweek_bp.run_in_background", run_now)
        resp = client.post("/api/gameweeks/tick", json={"now": gw_deadline(1).isoformat()})
        assert resp.get_json() == {"status": "started"}
        assert calls == ["Gameweek tick"]

    def test_tick_busy(self, client, seeded, monkeypatch):
        monkeypatch.setattr(
            "fantasy_league.api.gameweek_bp.run_in_background", lambda name, fn: False,
        )
        assert client.post("/api/gameweeks/tick").status_code == 409


class TestNotifications:
    def test_broadcast_reaches_subscriber(self):
        stream = sse.create_sse_stream()
        try:
            first = json.loads(next(stream)[len("data: "):])
            assert first["event"] == "status"
            sse.broadcast("Gameweek 1 finalized", event="success")
            payload = json.loads(next(stream)[len("data: "):])
            assert payload["message"] == "Gameweek 1 finalized"
            assert payload["event"] == "success"
        finally:
            stream.close()
        assert sse.subscriber_count() == 0

    def test_failed_finalize_is_broadcast(self, client, mgr, seeded):
        add_matches(mgr, 1, ["live"])
        stream = sse.create_sse_stream()
        try:
            next(stream)
            client.post("/api/gameweeks/1/finalize", json={"confirm": True})
            payload = json.loads(next(stream)[len("data: "):])
            assert payload["event"] == "failure"
            assert "Cannot finalize gameweek 1" in payload["message"]
        finally:
            stream.close()
