"""Business logic services for the SWIP API."""

from .api_keys import ApiKeyService
from .ingestion import IngestionHandler, IngestOutcome
from .leaderboard import LeaderboardAggregator
from .rate_limit import RateLimiter, RateLimitResult
from .scoring import compute_swip_score

__all__ = [
    "ApiKeyService",
    "IngestionHandler",
    "IngestOutcome",
    "LeaderboardAggregator",
    "RateLimiter",
    "RateLimitResult",
    "compute_swip_score",
]
