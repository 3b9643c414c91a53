"""Gameweek blueprint -- status, transfer gate, scoring and finalization."""

from dataclasses import asdict

from flask import Blueprint, Response, current_app, jsonify, request

from fantasy_league.api.helpers import parse_now
from fantasy_league.api.sse import (
    broadcast,
    create_sse_stream,
    get_current_task,
    run_in_background,
)
from fantasy_league.errors import (
    GameweekError,
    GameweekNotFoundError,
    IncompleteMatchesError,
    TeamNotFoundError,
)
from fantasy_league.logging_config import get_logger
from fantasy_league.utils.time_helpers import format_time_remaining

log = get_logger(__name__)

gameweek_bp = Blueprint("gameweeks", __name__)


def _get_mgr():
    """The app's GameweekManager (created by ``create_app``)."""
    return current_app.extensions["gameweek_manager"]


@gameweek_bp.errorhandler(GameweekError)
def _gameweek_error(exc: GameweekError):
    if isinstance(exc, (GameweekNotFoundError, TeamNotFoundError)):
        code = 404
    elif isinstance(exc, IncompleteMatchesError):
        code = 409
    else:
        code = 400
    return jsonify({"error": str(exc)}), code


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

@gameweek_bp.route("/")
def api_list_gameweeks():
    mgr = _get_mgr()
    return jsonify({
        "gameweeks": [gw.model_dump(mode="json") for gw in mgr.list_gameweeks()],
        "default_gameweek": mgr.select_default_gameweek(),
    })


@gameweek_bp.route("/status")
def api_status():
    now, err = parse_now(request.args)
    if err:
        return jsonify(err[0]), err[1]

    view = _get_mgr().get_status(now)
    result = view.model_dump(mode="json")
    result["countdown"] = {
        "deadline": format_time_remaining(view.time_until_deadline),
        "start": format_time_remaining(view.time_until_start),
        "end": format_time_remaining(view.time_until_end),
    }
    return jsonify(result)


@gameweek_bp.route("/transfers-allowed")
def api_transfers_allowed():
    now, err = parse_now(request.args)
    if err:
        return jsonify(err[0]), err[1]
    return jsonify({"transfers_allowed": _get_mgr().transfers_allowed(now)})


@gameweek_bp.route("/latest-finalized")
def api_latest_finalized():
    return jsonify({"gameweek": _get_mgr().get_latest_finalized_gameweek()})


@gameweek_bp.route("/display")
def api_display():
    return jsonify({"gameweek": _get_mgr().get_display_gameweek()})


@gameweek_bp.route("/<int:gameweek>/stats")
def api_stats(gameweek):
    mgr = _get_mgr()
    mgr.get_gameweek(gameweek)
    return jsonify(mgr.get_gameweek_stats(gameweek).to_dict())


@gameweek_bp.route("/<int:gameweek>/matches")
def api_matches(gameweek):
    mgr = _get_mgr()
    mgr.get_gameweek(gameweek)
    return jsonify([m.model_dump(mode="json") for m in mgr.get_matches(gameweek)])


@gameweek_bp.route("/<int:gameweek>/standings")
def api_standings(gameweek):
    mgr = _get_mgr()
    mgr.get_gameweek(gameweek)
    return jsonify(mgr.get_standings(gameweek))


@gameweek_bp.route("/<int:gameweek>/teams/<int:team_id>/points")
def api_team_points(gameweek, team_id):
    breakdown = _get_mgr().score_team(team_id, gameweek)
    result = asdict(breakdown)
    result.update(fantasy_team_id=team_id, gameweek=gameweek)
    return jsonify(result)


# ---------------------------------------------------------------------------
# Operator actions
# ---------------------------------------------------------------------------

@gameweek_bp.route("/resolve", methods=["POST"])
def api_resolve():
    body = request.get_json(silent=True) or {}
    now, err = parse_now(body)
    if err:
        return jsonify(err[0]), err[1]

    changes = _get_mgr().resolve_status(now)
    for change in changes:
        broadcast(f"Gameweek {change['gameweek']} is now {change['to']}", event="alert")
    return jsonify({"changes": changes})


@gameweek_bp.route("/<int:gameweek>/status", methods=["POST"])
def api_set_status(gameweek):
    body = request.get_json(silent=True) or {}
    status = body.get("status")
    if not status:
        return jsonify({"error": "status is required."}), 400

    gw = _get_mgr().set_gameweek_status(gameweek, status)
    broadcast(f"Gameweek {gameweek} set to {gw.status.value}", event="success")
    return jsonify(gw.model_dump(mode="json"))


@gameweek_bp.route("/<int:gameweek>/calculate", methods=["POST"])
def api_calculate(gameweek):
    try:
        count = _get_mgr().calculate_all_team_points(gameweek)
    except GameweekError as exc:
        log.warning("Point calculation for GW%d failed: %s", gameweek, exc)
        broadcast(f"Point calculation failed: {exc}", event="failure")
        raise
    broadcast(f"Calculated points for {count} teams in Gameweek {gameweek}", event="success")
    return jsonify({"gameweek": gameweek, "teams_calculated": count})


@gameweek_bp.route("/<int:gameweek>/finalize", methods=["POST"])
def api_finalize(gameweek):
    body = request.get_json(silent=True) or {}
    if body.get("confirm") is not True:
        return jsonify({
            "error": "Finalizing is irreversible; resend with {\"confirm\": true}.",
        }), 400

    try:
        result = _get_mgr().finalize_gameweek(gameweek)
    except GameweekError as exc:
        log.warning("Finalize GW%d refused: %s", gameweek, exc)
        broadcast(str(exc), event="failure")
        raise
    broadcast(f"Gameweek {gameweek} finalized", event="success")
    return jsonify(result)


@gameweek_bp.route("/tick", methods=["POST"])
def api_tick():
    body = request.get_json(silent=True) or {}
    now, err = parse_now(body)
    if err:
        return jsonify(err[0]), err[1]

    mgr = _get_mgr()

    def do_tick():
        for alert in mgr.tick(now):
            broadcast(alert.get("message", str(alert)), event="alert")

    started = run_in_background("Gameweek tick", do_tick)
    if not started:
        task = get_current_task() or {}
        return jsonify({
            "error": "Another task is already running.",
            "task": task.get("name"),
        }), 409
    return jsonify({"status": "started"})


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------

@gameweek_bp.route("/events")
def api_events():
    """SSE stream of success/failure notifications and scheduler alerts."""
    return Response(create_sse_stream(), content_type="text/event-stream")
