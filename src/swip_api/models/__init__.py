# src/swip_api/models/__init__.py
"""SQLAlchemy models for the SWIP API."""

from .api_key import ApiKey
from .app import App
from .leaderboard import LeaderboardSnapshot
from .swip_session import SwipSession
from .user import User

__all__ = [
    "ApiKey",
    "App",
    "LeaderboardSnapshot",
    "SwipSession",
    "User",
]
