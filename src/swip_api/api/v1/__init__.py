# src/swip_api/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    api_keys_router,
    apps_router,
    ingest_router,
    leaderboard_router,
    system_router,
)

__all__ = [
    "ingest_router",
    "api_keys_router",
    "apps_router",
    "leaderboard_router",
    "system_router",
]
