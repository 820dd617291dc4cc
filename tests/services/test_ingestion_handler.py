# tests/services/test_ingestion_handler.py
"""Tests for the ingestion pipeline ordering."""

from __future__ import annotations

import json
from typing import Any

import pytest
from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from swip_api.core.errors import (
    InvalidCredential,
    MissingCredential,
    RateLimitExceeded,
    RequestValidationFailed,
)
from swip_api.core.settings import settings
from swip_api.models import ApiKey
from swip_api.services.api_keys import ApiKeyService
from swip_api.services.ingestion import IngestionHandler
from swip_api.services.leaderboard import LeaderboardAggregator
from swip_api.services.rate_limit import RateLimiter


@pytest.fixture()
def handler(
    rate_limiter: RateLimiter,
    api_key_service: ApiKeyService,
    aggregator: LeaderboardAggregator,
) -> IngestionHandler:
    return IngestionHandler(rate_limiter, api_key_service, aggregator, limit=3, window_ms=60_000)


def _body(payload: dict[str, Any]) -> bytes:
    return json.dumps(payload).encode()


@pytest.mark.asyncio
async def test_success_schedules_background_work(
    handler: IngestionHandler,
    db_session: Session,
    issued_key: tuple[ApiKey, str],
    ingest_payload: dict[str, Any],
) -> None:
    api_key, secret = issued_key
    tasks = BackgroundTasks()

    outcome = await handler.ingest(
        db_session,
        client_ip="198.51.100.7",
        presented_key=secret,
        body=_body(ingest_payload),
        background_tasks=tasks,
    )

    assert outcome.score == 68
    assert outcome.app_id == api_key.app_id
    assert outcome.rate_limit.remaining == 2
    assert [task.func.__name__ for task in tasks.tasks] == ["touch_last_used", "run"]
    assert tasks.tasks[0].args == (api_key.id,)


@pytest.mark.asyncio
async def test_rate_limit_precedes_everything(
    handler: IngestionHandler, db_session: Session, mocker: Any
) -> None:
    resolve = mocker.spy(handler._api_keys, "resolve")
    for _ in range(3):
        with pytest.raises(MissingCredential):
            await handler.ingest(
                db_session,
                client_ip="198.51.100.7",
                presented_key=None,
                body=b"",
                background_tasks=BackgroundTasks(),
            )

    with pytest.raises(RateLimitExceeded) as exc_info:
        await handler.ingest(
            db_session,
            client_ip="198.51.100.7",
            presented_key="swip_key_" + "a" * 64,
            body=b"",
            background_tasks=BackgroundTasks(),
        )
    assert exc_info.value.headers["x-ratelimit-remaining"] == "0"
    resolve.assert_not_called()


@pytest.mark.asyncio
async def test_invalid_key_skips_validation(
    handler: IngestionHandler, db_session: Session, mocker: Any
) -> None:
    compute = mocker.patch("swip_api.services.ingestion.compute_swip_score")
    with pytest.raises(InvalidCredential) as exc_info:
        await handler.ingest(
            db_session,
            client_ip="198.51.100.7",
            presented_key="swip_key_" + "b" * 64,
            body=b"not even json",
            background_tasks=BackgroundTasks(),
        )
    assert exc_info.value.headers["x-ratelimit-limit"] == "3"
    compute.assert_not_called()


@pytest.mark.asyncio
async def test_validation_failure_schedules_nothing(
    handler: IngestionHandler,
    db_session: Session,
    issued_key: tuple[ApiKey, str],
) -> None:
    tasks = BackgroundTasks()
    with pytest.raises(RequestValidationFailed) as exc_info:
        await handler.ingest(
            db_session,
            client_ip="198.51.100.7",
            presented_key=issued_key[1],
            body=_body({"app_id": "x", "session_id": 42, "metrics": {}}),
            background_tasks=tasks,
        )
    assert "session_id" in exc_info.value.fields
    assert tasks.tasks == []


def test_unset_limits_fall_back_to_settings(
    rate_limiter: RateLimiter,
    api_key_service: ApiKeyService,
    aggregator: LeaderboardAggregator,
) -> None:
    handler = IngestionHandler(rate_limiter, api_key_service, aggregator)
    assert handler.limit == settings.ingest_rate_limit
    assert handler.window_ms == settings.ingest_rate_window_ms


@pytest.mark.asyncio
async def test_zero_limit_is_enforced(
    rate_limiter: RateLimiter,
    api_key_service: ApiKeyService,
    aggregator: LeaderboardAggregator,
    db_session: Session,
) -> None:
    handler = IngestionHandler(rate_limiter, api_key_service, aggregator, limit=0)
    assert handler.limit == 0

    with pytest.raises(RateLimitExceeded):
        await handler.ingest(
            db_session,
            client_ip="198.51.100.7",
            presented_key=None,
            body=b"",
            background_tasks=BackgroundTasks(),
        )
