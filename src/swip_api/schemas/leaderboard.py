# src/swip_api/schemas/leaderboard.py
"""Leaderboard read models."""

from datetime import datetime

from pydantic import BaseModel


class LeaderboardEntry(BaseModel):
    """One ranked app."""

    rank: int
    app_id: str
    app_name: str
    avg_score: float
    sessions: int
    updated_at: datetime


class LeaderboardResponse(BaseModel):
    """Ranked snapshot rows for one window."""

    ok: bool = True
    window: str
    entries: list[LeaderboardEntry]
