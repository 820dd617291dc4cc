"""SWIP session ingestion pipeline.

Steps run strictly in this order: rate limit, credential presence, credential
verification, payload validation, scoring, persistence, then background work
(``last_used`` touch and a leaderboard refresh) scheduled to run after the
response is sent. Blocking calls (Redis, bcrypt, the database) are pushed to
worker threads so the event loop keeps serving other requests.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass

from fastapi import BackgroundTasks
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from swip_api.core.errors import (
    InvalidCredential,
    MissingCredential,
    PersistenceFailure,
    RateLimitExceeded,
    RequestValidationFailed,
)
from swip_api.core.security import get_api_key_preview
from swip_api.core.settings import settings
from swip_api.models import SwipSession
from swip_api.schemas.ingest import SwipIngest
from swip_api.services.api_keys import ApiKeyService
from swip_api.services.leaderboard import LeaderboardAggregator
from swip_api.services.rate_limit import RateLimiter, RateLimitResult
from swip_api.services.scoring import compute_swip_score

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestOutcome:
    """Result of a successful ingestion."""

    score: int
    session_row_id: int
    app_id: str
    rate_limit: RateLimitResult


class IngestionHandler:
    """Turns an authenticated biosignal payload into a stored, scored session."""

    def __init__(
        self,
        rate_limiter: RateLimiter,
        api_keys: ApiKeyService,
        aggregator: LeaderboardAggregator,
        *,
        limit: int | None = None,
        window_ms: int | None = None,
    ) -> None:
        self._rate_limiter = rate_limiter
        self._api_keys = api_keys
        self._aggregator = aggregator
        self.limit = settings.ingest_rate_limit if limit is None else limit
        self.window_ms = settings.ingest_rate_window_ms if window_ms is None else window_ms

    async def ingest(
        self,
        db: Session,
        *,
        client_ip: str,
        presented_key: str | None,
        body: bytes,
        background_tasks: BackgroundTasks,
    ) -> IngestOutcome:
        """Run the full pipeline for one request.

        Raises:
            RateLimitExceeded: Caller's IP is over quota.
            MissingCredential: No API key header.
            InvalidCredential: Key unknown, revoked, malformed or unverifiable.
            RequestValidationFailed: Body is not valid JSON or fails the schema.
            PersistenceFailure: The session row could not be committed.
        """
        started = time.perf_counter()

        rl = await asyncio.to_thread(
            self._rate_limiter.limit, f"ingest:{client_ip}", self.limit, self.window_ms
        )
        if not rl.ok:
            logger.info("Rate limit exceeded", extra={"ip": client_ip, "endpoint": "swip/ingest"})
            raise RateLimitExceeded(headers=rl.headers)

        if not presented_key:
            logger.info("Missing API key", extra={"ip": client_ip, "endpoint": "swip/ingest"})
            raise MissingCredential(settings.api_key_header, headers=rl.headers)

        api_key = await asyncio.to_thread(self._api_keys.resolve, db, presented_key)
        if api_key is None:
            logger.info(
                "Invalid API key",
                extra={
                    "ip": client_ip,
                    "endpoint": "swip/ingest",
                    "key_preview": get_api_key_preview(presented_key),
                },
            )
            raise InvalidCredential(headers=rl.headers)

        try:
            payload = SwipIngest.model_validate_json(body)
        except ValidationError as exc:
            failure = RequestValidationFailed.from_pydantic(exc, headers=rl.headers)
            logger.info(
                "Invalid request data",
                extra={"ip": client_ip, "app_id": api_key.app_id, "errors": failure.fields},
            )
            raise failure from exc

        score = compute_swip_score(payload)
        session_row = await asyncio.to_thread(
            self._persist, db, api_key.app_id, payload, score, rl
        )

        background_tasks.add_task(self._api_keys.touch_last_used, api_key.id)
        background_tasks.add_task(self._aggregator.run)

        logger.info(
            "Session created successfully",
            extra={
                "app_id": api_key.app_id,
                "body_app_id": payload.app_id,
                "session_id": payload.session_id,
                "score": score,
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            },
        )
        return IngestOutcome(
            score=score,
            session_row_id=session_row.id,
            app_id=api_key.app_id,
            rate_limit=rl,
        )

    @staticmethod
    def _persist(
        db: Session,
        app_id: str,
        payload: SwipIngest,
        score: int,
        rl: RateLimitResult,
    ) -> SwipSession:
        metrics = payload.metrics
        session_row = SwipSession(
            app_id=app_id,
            session_id=payload.session_id,
            swip_score=score,
            hr_data=(
                {"hr": metrics.hr, "rr": metrics.rr}
                if metrics.hr is not None or metrics.rr is not None
                else None
            ),
            hrv_metrics=metrics.hrv.model_dump(exclude_none=True) if metrics.hrv else None,
            emotion=metrics.emotion,
        )
        try:
            db.add(session_row)
            db.commit()
            db.refresh(session_row)
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception(
                "Failed to save session",
                extra={"app_id": app_id, "session_id": payload.session_id},
            )
            raise PersistenceFailure(headers=rl.headers) from exc
        return session_row
