"""Application settings and configuration.

This module defines all configuration options for the SWIP API service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="SWIP API", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    service_name: str = Field(default="swip-api", alias="SERVICE_NAME")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    debug: bool = Field(default=False, alias="DEBUG")

    # Database configuration
    database_url: str = Field(default="sqlite:///./swip.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Redis backs the distributed rate limiter
    redis_url: str = Field(default="redis://localhost:6379", alias="REDIS_URL")
    redis_socket_timeout_seconds: float = Field(
        default=2.0,
        alias="REDIS_SOCKET_TIMEOUT_SECONDS",
    )

    # JWT authentication settings for the developer portal
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # API key credentials
    api_key_header: str = Field(default="x-api-key", alias="API_KEY_HEADER")
    bcrypt_rounds: int = Field(default=10, alias="BCRYPT_ROUNDS")

    # Ingestion rate limit (requests per window, per client IP)
    ingest_rate_limit: int = Field(default=60, alias="INGEST_RATE_LIMIT")
    ingest_rate_window_ms: int = Field(default=60_000, alias="INGEST_RATE_WINDOW_MS")

    # Developer portal rate limits (requests per window, per client IP)
    keys_list_rate_limit: int = Field(default=60, alias="KEYS_LIST_RATE_LIMIT")
    keys_create_rate_limit: int = Field(default=15, alias="KEYS_CREATE_RATE_LIMIT")
    keys_update_rate_limit: int = Field(default=30, alias="KEYS_UPDATE_RATE_LIMIT")
    keys_delete_rate_limit: int = Field(default=30, alias="KEYS_DELETE_RATE_LIMIT")
    apps_create_rate_limit: int = Field(default=15, alias="APPS_CREATE_RATE_LIMIT")
    leaderboard_recalc_rate_limit: int = Field(
        default=5,
        alias="LEADERBOARD_RECALC_RATE_LIMIT",
    )
    portal_rate_window_ms: int = Field(default=60_000, alias="PORTAL_RATE_WINDOW_MS")

    # Leaderboard aggregation
    leaderboard_window_days: int = Field(default=30, alias="LEADERBOARD_WINDOW_DAYS")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")

    # CORS configuration for the dashboard frontend
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url

    @property
    def leaderboard_window_label(self) -> str:
        """Label stored on leaderboard snapshots, e.g. ``"30d"``."""
        return f"{self.leaderboard_window_days}d"

    @property
    def rate_limits(self) -> dict[str, dict[str, int]]:
        """Return rate limit configuration keyed by operation namespace."""
        portal_window = self.portal_rate_window_ms
        return {
            "ingest": {"limit": self.ingest_rate_limit, "window_ms": self.ingest_rate_window_ms},
            "keys:list": {"limit": self.keys_list_rate_limit, "window_ms": portal_window},
            "keys:create": {"limit": self.keys_create_rate_limit, "window_ms": portal_window},
            "keys:update": {"limit": self.keys_update_rate_limit, "window_ms": portal_window},
            "keys:delete": {"limit": self.keys_delete_rate_limit, "window_ms": portal_window},
            "apps:create": {"limit": self.apps_create_rate_limit, "window_ms": portal_window},
            "leaderboard:recalculate": {
                "limit": self.leaderboard_recalc_rate_limit,
                "window_ms": portal_window,
            },
        }


settings = Settings()  # type: ignore[call-arg]
