# src/swip_api/schemas/ingest.py
"""Wire schema for the SWIP ingestion endpoint."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class _StrictModel(BaseModel):
    # No type coercion ("42" is not a number), no NaN/Infinity; unknown keys dropped.
    model_config = ConfigDict(strict=True, extra="ignore", allow_inf_nan=False)


class HrvMetrics(_StrictModel):
    """Summarized heart-rate variability in milliseconds."""

    sdnn: float | None = None
    rmssd: float | None = None


class SwipMetrics(_StrictModel):
    """Biosignal bundle for one session. Every field is optional."""

    hr: list[float] | None = Field(default=None, description="Heart-rate series (bpm).")
    rr: list[float] | None = Field(default=None, description="RR-interval series (ms).")
    hrv: HrvMetrics | None = None
    emotion: str | None = Field(default=None, description="Free-text emotion label.")
    timestamp: str | None = None


class SwipIngest(_StrictModel):
    """Request body of ``POST /api/v1/swip/ingest``."""

    app_id: str
    session_id: str
    metrics: SwipMetrics


class IngestResponse(BaseModel):
    """Successful ingestion envelope."""

    ok: Literal[True] = True
    swip_score: int = Field(..., ge=0, le=100)
