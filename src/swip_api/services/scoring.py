"""SWIP wellness score.

An additive heuristic, not a statistically validated model. Starting from a
baseline of 50, HRV summary statistics, the self-reported emotion label and
the variability of the raw HR/RR series each nudge the score, which is then
rounded half-up and clamped to [0, 100].

Thresholds, slopes, caps and the emotion vocabulary below must stay exactly
as they are: stored session scores were produced with these values and are
compared against new ones.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Final

from swip_api.schemas.ingest import SwipIngest

BASELINE_SCORE: Final[float] = 50.0
MIN_SCORE: Final[int] = 0
MAX_SCORE: Final[int] = 100

# RMSSD (parasympathetic activity), milliseconds
RMSSD_HEALTHY_MS: Final[float] = 40.0
RMSSD_LOW_MS: Final[float] = 20.0
RMSSD_BONUS_SLOPE: Final[float] = 0.5
RMSSD_BONUS_CAP: Final[float] = 25.0
RMSSD_PENALTY_SLOPE: Final[float] = 0.3
RMSSD_PENALTY_CAP: Final[float] = 15.0

# SDNN (overall variability), milliseconds
SDNN_HEALTHY_MS: Final[float] = 50.0
SDNN_LOW_MS: Final[float] = 30.0
SDNN_BONUS_SLOPE: Final[float] = 0.3
SDNN_BONUS_CAP: Final[float] = 20.0
SDNN_PENALTY_SLOPE: Final[float] = 0.2
SDNN_PENALTY_CAP: Final[float] = 10.0

# Raw-series variability bonus
VARIABILITY_CV_THRESHOLD: Final[float] = 0.1
VARIABILITY_BONUS: Final[float] = 5.0

EMOTION_ADJUSTMENTS: Final[dict[str, float]] = {
    "calm": 10.0,
    "relaxed": 10.0,
    "peaceful": 10.0,
    "focused": 5.0,
    "concentrated": 5.0,
    "excited": 3.0,
    "energetic": 3.0,
    "tired": -5.0,
    "exhausted": -5.0,
    "stressed": -15.0,
    "anxious": -15.0,
    "tense": -15.0,
}


def coefficient_of_variation(values: Sequence[float]) -> float:
    """Population standard deviation divided by the mean.

    Series with fewer than two samples have no variability (0.0). A zero-mean
    series with any spread is treated as unboundedly variable.

    The ratio is scale-invariant, so the series is first divided by its
    largest magnitude; sums and squares then stay finite for any finite input.
    """
    if len(values) < 2:
        return 0.0
    scale = max(abs(value) for value in values)
    if scale == 0:
        return 0.0
    scaled = [value / scale for value in values]
    mean = math.fsum(scaled) / len(scaled)
    variance = math.fsum((value - mean) ** 2 for value in scaled) / len(scaled)
    spread = math.sqrt(variance)
    if mean == 0:
        return math.inf if spread > 0 else 0.0
    return spread / mean


def _rmssd_adjustment(rmssd: float | None) -> float:
    # Zero and absent are the same: no adjustment.
    if not rmssd:
        return 0.0
    if rmssd > RMSSD_HEALTHY_MS:
        return min((rmssd - RMSSD_HEALTHY_MS) * RMSSD_BONUS_SLOPE, RMSSD_BONUS_CAP)
    if rmssd < RMSSD_LOW_MS:
        return -min((RMSSD_LOW_MS - rmssd) * RMSSD_PENALTY_SLOPE, RMSSD_PENALTY_CAP)
    return 0.0


def _sdnn_adjustment(sdnn: float | None) -> float:
    if not sdnn:
        return 0.0
    if sdnn > SDNN_HEALTHY_MS:
        return min((sdnn - SDNN_HEALTHY_MS) * SDNN_BONUS_SLOPE, SDNN_BONUS_CAP)
    if sdnn < SDNN_LOW_MS:
        return -min((SDNN_LOW_MS - sdnn) * SDNN_PENALTY_SLOPE, SDNN_PENALTY_CAP)
    return 0.0


def emotion_adjustment(emotion: str | None) -> float:
    """Return the fixed delta for a known label; unknown labels are neutral."""
    if emotion is None:
        return 0.0
    return EMOTION_ADJUSTMENTS.get(emotion.lower(), 0.0)


def _variability_bonus(hr: Sequence[float] | None, rr: Sequence[float] | None) -> float:
    if hr is None or rr is None:
        return 0.0
    if (
        coefficient_of_variation(hr) > VARIABILITY_CV_THRESHOLD
        and coefficient_of_variation(rr) > VARIABILITY_CV_THRESHOLD
    ):
        return VARIABILITY_BONUS
    return 0.0


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def compute_swip_score(payload: SwipIngest) -> int:
    """Map a validated ingestion payload to an integer score in [0, 100].

    Pure and deterministic: no clock, randomness or I/O.

    Args:
        payload: Validated ingestion request.

    Returns:
        The SWIP score.
    """
    metrics = payload.metrics
    hrv = metrics.hrv

    score = BASELINE_SCORE
    if hrv is not None:
        score += _rmssd_adjustment(hrv.rmssd)
        score += _sdnn_adjustment(hrv.sdnn)
    score += emotion_adjustment(metrics.emotion)
    score += _variability_bonus(metrics.hr, metrics.rr)

    return max(MIN_SCORE, min(MAX_SCORE, _round_half_up(score)))
