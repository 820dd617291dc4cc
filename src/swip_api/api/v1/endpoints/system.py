# src/swip_api/api/v1/endpoints/system.py
"""System health and public configuration endpoints."""

from __future__ import annotations

import time

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from swip_api.api.v1.dependencies import RateLimiterDep, SessionDep
from swip_api.core.settings import settings
from swip_api.services.scoring import (
    BASELINE_SCORE,
    EMOTION_ADJUSTMENTS,
    VARIABILITY_BONUS,
    VARIABILITY_CV_THRESHOLD,
)

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/config")
async def get_public_config() -> dict[str, object]:
    """Return a sanitized snapshot of public runtime configuration.

    Excludes secrets and connection strings.
    """
    return {
        "app": {
            "name": settings.app_name,
            "version": settings.app_version,
            "debug": settings.debug,
        },
        "ingestion": {
            "api_key_header": settings.api_key_header,
        },
        "rate_limits": settings.rate_limits,
        "scoring": {
            "baseline": BASELINE_SCORE,
            "emotions": EMOTION_ADJUSTMENTS,
            "variability_cv_threshold": VARIABILITY_CV_THRESHOLD,
            "variability_bonus": VARIABILITY_BONUS,
        },
        "leaderboard": {
            "window": settings.leaderboard_window_label,
        },
    }


@router.get("/health")
async def get_system_health(db: SessionDep, rate_limiter: RateLimiterDep) -> dict[str, object]:
    """Report database and Redis reachability.

    Redis being down leaves the service usable (rate limiting fails open), so
    only the database decides the overall status.
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = "healthy"
    except SQLAlchemyError as e:
        db_status = f"unhealthy: {e}"

    redis_status = "healthy" if rate_limiter.ping() else "degraded"

    return {
        "status": "healthy" if db_status == "healthy" else "unhealthy",
        "timestamp": int(time.time()),
        "components": {
            "database": db_status,
            "redis": redis_status,
        },
        "version": settings.app_version,
        "service": settings.service_name,
    }
