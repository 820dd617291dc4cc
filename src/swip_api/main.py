# src/swip_api/main.py
"""Main entry point for the SWIP API service."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from swip_api.api.v1 import (
    api_keys_router,
    apps_router,
    ingest_router,
    leaderboard_router,
    system_router,
)
from swip_api.core.errors import install_exception_handlers
from swip_api.core.logging import setup_logging
from swip_api.core.settings import settings
from swip_api.db.session import engine
from swip_api.services.rate_limit import RateLimiter, create_redis_client

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Wellness-score ingestion and leaderboard API",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

install_exception_handlers(app)

# Include API routers
app.include_router(ingest_router, prefix="/api/v1")
app.include_router(api_keys_router, prefix="/api/v1")
app.include_router(apps_router, prefix="/api/v1")
app.include_router(leaderboard_router, prefix="/api/v1")
app.include_router(system_router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup() -> None:
    setup_logging()
    if getattr(app.state, "rate_limiter", None) is None:
        app.state.rate_limiter = RateLimiter(create_redis_client())
    logger.info("SWIP API started", extra={"version": settings.app_version})


@app.on_event("shutdown")
async def on_shutdown() -> None:
    limiter: RateLimiter | None = getattr(app.state, "rate_limiter", None)
    if limiter:
        limiter.close()
        app.state.rate_limiter = None
    engine.dispose()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "Wellness-score ingestion and leaderboard API",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("swip_api.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
