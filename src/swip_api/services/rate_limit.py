"""Distributed sliding-window rate limiter backed by Redis sorted sets.

Each limiter key is a sorted set of request timestamps (milliseconds). A check
trims entries that fell out of the window, counts the survivors, records the
current request and refreshes the key's expiry in one MULTI/EXEC transaction,
so concurrent callers on any instance see a consistent count.

If Redis cannot be reached the limiter fails open: the request is allowed and
the result is flagged ``degraded``.
"""

from __future__ import annotations

import logging
import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import redis
from redis.exceptions import RedisError

from swip_api.core.settings import settings

logger = logging.getLogger(__name__)

DEFAULT_KEY_PREFIX = "ratelimit:"


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of one limiter check.

    ``degraded`` is True when the backing store was unavailable and the
    request was allowed without enforcement.
    """

    ok: bool
    remaining: int
    limit: int
    reset_ms: int
    degraded: bool = False

    @property
    def headers(self) -> dict[str, str]:
        """Rate-limit telemetry headers for the response."""
        return {
            "x-ratelimit-limit": str(self.limit),
            "x-ratelimit-remaining": str(self.remaining),
            "x-ratelimit-reset": str(self.reset_ms),
        }


class RateLimiter:
    """Sliding-window log limiter over a shared Redis instance."""

    def __init__(
        self,
        client: Any | None,
        *,
        clock: Callable[[], float] = time.time,
        key_prefix: str = DEFAULT_KEY_PREFIX,
    ) -> None:
        """Initialize the limiter.

        Args:
            client: A redis-py client (or compatible); None disables
                enforcement and every check fails open.
            clock: Returns the current time in seconds.
            key_prefix: Namespace prepended to every limiter key.
        """
        self._client = client
        self._clock = clock
        self._key_prefix = key_prefix

    def limit(self, key: str, limit: int, window_ms: int) -> RateLimitResult:
        """Check and record one request against ``key``.

        Args:
            key: Caller-scoped key, e.g. ``"ingest:203.0.113.9"``.
            limit: Maximum requests allowed inside the window.
            window_ms: Window length in milliseconds.

        Returns:
            The limiter decision. Never raises for store failures.
        """
        if self._client is None:
            logger.warning("Rate limiter has no backing store; allowing %s", key)
            return self._fail_open(limit, window_ms)

        now_ms = int(self._clock() * 1000)
        window_start = now_ms - window_ms
        redis_key = f"{self._key_prefix}{key}"
        member = f"{now_ms}-{secrets.token_hex(8)}"

        try:
            pipe = self._client.pipeline(transaction=True)
            pipe.zremrangebyscore(redis_key, "-inf", window_start)
            pipe.zcard(redis_key)
            pipe.zadd(redis_key, {member: now_ms})
            pipe.pexpire(redis_key, window_ms)
            results = pipe.execute()
            current_count = int(results[1])
        except (RedisError, OSError) as exc:
            logger.error("Rate limiting error for %s: %s", key, exc)
            return self._fail_open(limit, window_ms)

        if current_count < limit:
            return RateLimitResult(
                ok=True,
                remaining=limit - current_count - 1,
                limit=limit,
                reset_ms=window_ms,
            )
        return self._reject(redis_key, member, limit, window_ms, now_ms)

    def _reject(
        self, redis_key: str, member: str, limit: int, window_ms: int, now_ms: int
    ) -> RateLimitResult:
        # Over quota even if the cleanup below fails.
        reset_ms = window_ms
        try:
            # Rejected requests do not occupy a slot in the window.
            self._client.zrem(redis_key, member)
            oldest = self._client.zrange(redis_key, 0, 0, withscores=True)
            if oldest:
                reset_ms = int(oldest[0][1]) + window_ms - now_ms
        except (RedisError, OSError) as exc:
            logger.error("Rate limit cleanup failed for %s: %s", redis_key, exc)
        return RateLimitResult(
            ok=False,
            remaining=0,
            limit=limit,
            reset_ms=max(0, reset_ms),
        )

    def ping(self) -> bool:
        """Return True if the backing store answers."""
        if self._client is None:
            return False
        try:
            return bool(self._client.ping())
        except (RedisError, OSError) as exc:
            logger.warning("Redis health check failed: %s", exc)
            return False

    def close(self) -> None:
        """Release the underlying connection pool."""
        if self._client is not None:
            self._client.close()

    @staticmethod
    def _fail_open(limit: int, window_ms: int) -> RateLimitResult:
        return RateLimitResult(
            ok=True,
            remaining=max(0, limit - 1),
            limit=limit,
            reset_ms=window_ms,
            degraded=True,
        )


def create_redis_client(url: str | None = None) -> redis.Redis:
    """Build a Redis client; no connection is opened until first use."""
    timeout = settings.redis_socket_timeout_seconds
    return redis.from_url(  # type: ignore[no-untyped-call]
        url or settings.redis_url,
        socket_connect_timeout=timeout,
        socket_timeout=timeout,
        health_check_interval=30,
    )
