# src/swip_api/api/v1/endpoints/ingest.py
"""SWIP session ingestion endpoint."""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Request
from fastapi.responses import JSONResponse

from swip_api.api.v1.dependencies import ClientIpDep, IngestionHandlerDep, SessionDep
from swip_api.core.settings import settings
from swip_api.schemas.ingest import IngestResponse

router = APIRouter(prefix="/swip", tags=["ingestion"])


@router.post(
    "/ingest",
    response_model=IngestResponse,
    responses={
        400: {"description": "Validation error with field-level detail"},
        401: {"description": "Missing or invalid API key"},
        429: {"description": "Rate limit exceeded"},
        500: {"description": "Session could not be saved"},
    },
)
async def ingest_session(
    request: Request,
    background_tasks: BackgroundTasks,
    db: SessionDep,
    handler: IngestionHandlerDep,
    ip: ClientIpDep,
) -> JSONResponse:
    """Score a biosignal session submitted by an app and store it.

    The body is read raw so that rate limiting and credential checks happen
    before any payload validation.
    """
    outcome = await handler.ingest(
        db,
        client_ip=ip,
        presented_key=request.headers.get(settings.api_key_header),
        body=await request.body(),
        background_tasks=background_tasks,
    )
    return JSONResponse(
        content=IngestResponse(swip_score=outcome.score).model_dump(),
        headers=outcome.rate_limit.headers,
        background=background_tasks,
    )
