# src/swip_api/api/v1/endpoints/leaderboard.py
"""Leaderboard read and recalculation endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from swip_api.api.v1.dependencies import (
    AggregatorDep,
    CurrentUserDep,
    SessionDep,
    rate_limited,
)
from swip_api.schemas.leaderboard import LeaderboardEntry, LeaderboardResponse

router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])


@router.get("/", response_model=LeaderboardResponse)
async def get_leaderboard(
    db: SessionDep,
    aggregator: AggregatorDep,
    window: str | None = Query(default=None, max_length=16),
) -> LeaderboardResponse:
    """Return stored snapshots ranked by average SWIP score."""
    label = window or aggregator.window_label
    entries = [
        LeaderboardEntry(
            rank=row.rank,
            app_id=row.app_id,
            app_name=row.app_name,
            avg_score=row.avg_score,
            sessions=row.sessions,
            updated_at=row.updated_at,
        )
        for row in aggregator.ranked(db, label)
    ]
    return LeaderboardResponse(window=label, entries=entries)


@router.post("/recalculate", dependencies=[Depends(rate_limited("leaderboard:recalculate"))])
async def recalculate_leaderboard(
    current_user: CurrentUserDep,
    db: SessionDep,
    aggregator: AggregatorDep,
) -> dict[str, object]:
    """Run one aggregation pass now and report how many apps were written."""
    updated = aggregator.update_leaderboard(db)
    return {
        "ok": True,
        "message": "Leaderboard recalculated successfully",
        "window": aggregator.window_label,
        "apps_updated": updated,
    }
