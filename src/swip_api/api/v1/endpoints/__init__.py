# src/swip_api/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .api_keys import router as api_keys_router
from .apps import router as apps_router
from .ingest import router as ingest_router
from .leaderboard import router as leaderboard_router
from .system import router as system_router

__all__ = [
    "ingest_router",
    "api_keys_router",
    "apps_router",
    "leaderboard_router",
    "system_router",
]
