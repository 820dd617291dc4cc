"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .api_key import ApiKeyAction, ApiKeyCreate, ApiKeyCreated, ApiKeyResponse
from .app import AppCreate, AppResponse
from .ingest import HrvMetrics, IngestResponse, SwipIngest, SwipMetrics
from .leaderboard import LeaderboardEntry, LeaderboardResponse

__all__ = [
    "ApiKeyAction", "ApiKeyCreate", "ApiKeyCreated", "ApiKeyResponse",
    "AppCreate", "AppResponse",
    "HrvMetrics", "IngestResponse", "SwipIngest", "SwipMetrics",
    "LeaderboardEntry", "LeaderboardResponse",
]
