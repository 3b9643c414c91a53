"""League and overall rankings."""

from __future__ import annotations

import pandas as pd


def rank_leagues(rows: list[dict]) -> dict[int, int]:
    """Rank teams within each league by gameweek points.

    *rows* carry ``fantasy_team_id``, ``league_id`` and ``points``.
    Returns ``{fantasy_team_id: rank_in_league}``; ranks run 1..N per
    league, ties broken by lower team id.  Teams outside any league are
    left out.
    """
    df = pd.DataFrame(rows, columns=["fantasy_team_id", "league_id", "points"])
    df = df.dropna(subset=["league_id"])
    if df.empty:
        return {}
    df = df.sort_values(
        ["league_id", "points", "fantasy_team_id"],
        ascending=[True, False, True],
    )
    df["rank"] = df.groupby("league_id").cumcount() + 1
    return {int(t): int(r) for t, r in zip(df["fantasy_team_id"], df["rank"])}


def rank_overall(rows: list[dict]) -> dict[int, int]:
    """Rank every team by cumulative ``total_points`` (ties: lower id first)."""
    df = pd.DataFrame(rows, columns=["fantasy_team_id", "total_points"])
    if df.empty:
        return {}
    df = df.sort_values(
        ["total_points", "fantasy_team_id"],
        ascending=[False, True],
    ).reset_index(drop=True)
    return {int(t): i + 1 for i, t in enumerate(df["fantasy_team_id"])}
