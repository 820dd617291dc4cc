# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Generator, Iterator
from contextlib import nullcontext
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOG_FORMAT", "text")

from swip_api.api.v1.dependencies import (
    get_api_key_service_dep,
    get_leaderboard_aggregator_dep,
    get_rate_limiter,
)
from swip_api.core.security import create_access_token
from swip_api.db.session import Base
from swip_api.db.session import get_db as app_get_session
from swip_api.main import app as fastapi_app
from swip_api.models import ApiKey, App, User
from swip_api.services.api_keys import ApiKeyService
from swip_api.services.leaderboard import LeaderboardAggregator
from swip_api.services.rate_limit import RateLimiter

TEST_DB_URL = "sqlite://"
FAKE_EPOCH = 1_750_000_000.0


class FakeRedis:
    """In-memory stand-in for the sorted-set commands the rate limiter uses."""

    def __init__(self) -> None:
        self.zsets: dict[str, dict[str, float]] = {}
        self.expiry_ms: dict[str, int] = {}
        self.closed = False

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        return FakePipeline(self)

    def zremrangebyscore(self, key: str, min: Any, max: Any) -> int:
        low, high = float(min), float(max)
        zset = self.zsets.get(key, {})
        doomed = [member for member, score in zset.items() if low <= score <= high]
        for member in doomed:
            del zset[member]
        return len(doomed)

    def zcard(self, key: str) -> int:
        return len(self.zsets.get(key, {}))

    def zadd(self, key: str, mapping: dict[str, float]) -> int:
        zset = self.zsets.setdefault(key, {})
        added = sum(1 for member in mapping if member not in zset)
        zset.update(mapping)
        return added

    def pexpire(self, key: str, ms: int) -> bool:
        self.expiry_ms[key] = ms
        return key in self.zsets

    def zrem(self, key: str, *members: str) -> int:
        zset = self.zsets.get(key, {})
        return sum(1 for member in members if zset.pop(member, None) is not None)

    def zrange(
        self, key: str, start: int, end: int, withscores: bool = False
    ) -> list[Any]:
        ordered = sorted(self.zsets.get(key, {}).items(), key=lambda item: (item[1], item[0]))
        stop = None if end == -1 else end + 1
        window = ordered[start:stop]
        if withscores:
            return [(member.encode(), score) for member, score in window]
        return [member.encode() for member, _ in window]

    def ping(self) -> bool:
        return True

    def close(self) -> None:
        self.closed = True


class FakePipeline:
    """Queues calls and replays them against ``FakeRedis`` on ``execute``."""

    def __init__(self, redis: FakeRedis) -> None:
        self._redis = redis
        self._calls: list[tuple[str, tuple[Any, ...]]] = []

    def __getattr__(self, name: str) -> Any:
        def _queue(*args: Any) -> FakePipeline:
            self._calls.append((name, args))
            return self

        return _queue

    def execute(self) -> list[Any]:
        results = [getattr(self._redis, name)(*args) for name, args in self._calls]
        self._calls.clear()
        return results


class UnavailableRedis:
    """A Redis client whose server is unreachable."""

    def pipeline(self, transaction: bool = True) -> Any:
        raise RedisConnectionError("Connection refused")

    def ping(self) -> bool:
        raise RedisConnectionError("Connection refused")

    def close(self) -> None:
        pass


class FakeClock:
    """Settable wall clock in seconds."""

    def __init__(self, now: float = FAKE_EPOCH) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    session.begin_nested()

    @event.listens_for(session, "after_transaction_end")
    def restart_savepoint(sess: Session, trans) -> None:  # pragma: no cover - SQLAlchemy internals
        if trans.nested and not getattr(trans._parent, "nested", False):
            session.begin_nested()

    try:
        yield session
    finally:
        event.remove(session, "after_transaction_end", restart_savepoint)
        session.close()

        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def session_factory(db_session: Session) -> Any:
    """Hand background jobs the test session instead of a fresh one."""
    return lambda: nullcontext(db_session)


@pytest.fixture()
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture()
def unavailable_redis() -> UnavailableRedis:
    return UnavailableRedis()


@pytest.fixture()
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def rate_limiter(fake_redis: FakeRedis, fake_clock: FakeClock) -> RateLimiter:
    return RateLimiter(fake_redis, clock=fake_clock)


@pytest.fixture()
def api_key_service(session_factory: Any) -> ApiKeyService:
    return ApiKeyService(session_factory=session_factory)


@pytest.fixture()
def aggregator(session_factory: Any) -> LeaderboardAggregator:
    return LeaderboardAggregator(session_factory=session_factory, window_days=30)


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    rate_limiter: RateLimiter,
    api_key_service: ApiKeyService,
    aggregator: LeaderboardAggregator,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    overrides = {
        app_get_session: _get_session_override,
        get_rate_limiter: lambda: rate_limiter,
        get_api_key_service_dep: lambda: api_key_service,
        get_leaderboard_aggregator_dep: lambda: aggregator,
    }
    app.dependency_overrides.update(overrides)
    try:
        yield
    finally:
        for dependency in overrides:
            app.dependency_overrides.pop(dependency, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def test_user(db_session: Session) -> Iterator[User]:
    """Create and return a persisted developer."""
    user = User(email="dev@example.com", name="Test Developer")
    db_session.add(user)
    db_session.flush()
    db_session.refresh(user)
    yield user


@pytest.fixture()
def other_user(db_session: Session) -> Iterator[User]:
    """Create and return a second developer."""
    user = User(email="other@example.com", name="Other Developer")
    db_session.add(user)
    db_session.flush()
    db_session.refresh(user)
    yield user


@pytest.fixture()
def auth_token(test_user: User) -> dict[str, str]:
    """Return authorization headers for the primary developer."""
    token = create_access_token(test_user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def other_auth_token(other_user: User) -> dict[str, str]:
    """Return authorization headers for the secondary developer."""
    token = create_access_token(other_user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def test_app(db_session: Session, test_user: User) -> Iterator[App]:
    """Create an app owned by the primary developer."""
    app_row = App(name="Calm Breathing", category="meditation", owner_id=test_user.id)
    db_session.add(app_row)
    db_session.flush()
    db_session.refresh(app_row)
    yield app_row


@pytest.fixture()
def issued_key(
    db_session: Session,
    api_key_service: ApiKeyService,
    test_app: App,
    test_user: User,
) -> tuple[ApiKey, str]:
    """Issue a live key for ``test_app``; returns the row and its secret."""
    return api_key_service.issue_key(
        db_session, app=test_app, user_id=test_user.id, name="Primary"
    )


@pytest.fixture()
def ingest_payload(test_app: App) -> dict[str, Any]:
    """A valid ingestion body that scores 68."""
    return {
        "app_id": test_app.id,
        "session_id": "sess-001",
        "metrics": {
            "hrv": {"rmssd": 50, "sdnn": 60},
            "emotion": "calm",
            "timestamp": "2026-10-19T08:00:00Z",
        },
    }
