"""Shared API dependencies for authentication, rate limiting and services."""

from __future__ import annotations

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from swip_api.core.errors import RateLimitExceeded, SwipError
from swip_api.core.security import decode_access_token
from swip_api.core.settings import settings
from swip_api.db.session import get_db
from swip_api.models import User
from swip_api.services.api_keys import ApiKeyService, get_api_key_service
from swip_api.services.ingestion import IngestionHandler
from swip_api.services.leaderboard import LeaderboardAggregator, get_leaderboard_aggregator
from swip_api.services.rate_limit import RateLimiter, create_redis_client

# HTTP Bearer scheme for developer-portal JWT authentication
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def client_ip(request: Request) -> str:
    """Return the first ``X-Forwarded-For`` hop, else the peer address."""
    forwarded = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        return first_hop
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def get_rate_limiter(request: Request) -> RateLimiter:
    """Return the process-wide limiter created at startup."""
    limiter: RateLimiter | None = getattr(request.app.state, "rate_limiter", None)
    if limiter is None:
        limiter = RateLimiter(create_redis_client())
        request.app.state.rate_limiter = limiter
    return limiter


def get_api_key_service_dep() -> ApiKeyService:
    """Return the API key service."""
    return get_api_key_service()


def get_leaderboard_aggregator_dep() -> LeaderboardAggregator:
    """Return the leaderboard aggregator."""
    return get_leaderboard_aggregator()


ClientIpDep = Annotated[str, Depends(client_ip)]
RateLimiterDep = Annotated[RateLimiter, Depends(get_rate_limiter)]
ApiKeyServiceDep = Annotated[ApiKeyService, Depends(get_api_key_service_dep)]
AggregatorDep = Annotated[LeaderboardAggregator, Depends(get_leaderboard_aggregator_dep)]


def get_ingestion_handler(
    rate_limiter: RateLimiterDep,
    api_keys: ApiKeyServiceDep,
    aggregator: AggregatorDep,
) -> IngestionHandler:
    """Compose the ingestion pipeline from its collaborators."""
    return IngestionHandler(rate_limiter, api_keys, aggregator)


IngestionHandlerDep = Annotated[IngestionHandler, Depends(get_ingestion_handler)]


def rate_limited(operation: str) -> Callable[..., None]:
    """Build a dependency enforcing the configured limit for ``operation``.

    The limiter key is ``<operation>:<client ip>``. Telemetry headers are
    copied onto the eventual response.
    """
    if operation not in settings.rate_limits:
        raise KeyError(f"No rate limit configured for {operation!r}")

    def _enforce(
        response: Response,
        limiter: RateLimiterDep,
        ip: ClientIpDep,
    ) -> None:
        config = settings.rate_limits[operation]
        result = limiter.limit(f"{operation}:{ip}", config["limit"], config["window_ms"])
        if not result.ok:
            raise RateLimitExceeded(headers=result.headers)
        response.headers.update(result.headers)

    return _enforce


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: SessionDep,
) -> User:
    """Get the current developer from the bearer token.

    Raises:
        SwipError: 401 if the token is missing, invalid, or names an unknown user.
    """
    if credentials is None:
        raise SwipError(
            status.HTTP_401_UNAUTHORIZED,
            "Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    subject = decode_access_token(credentials.credentials)
    if subject is None:
        raise SwipError(
            status.HTTP_401_UNAUTHORIZED,
            "Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    user = db.get(User, subject)
    if user is None:
        raise SwipError(status.HTTP_401_UNAUTHORIZED, "User not found")
    return user


# Type alias for current user dependency
CurrentUserDep = Annotated[User, Depends(get_current_user)]
