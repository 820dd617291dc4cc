"""Error taxonomy and the response envelope shared by every endpoint.

All failures leave the service as ``{"ok": false, "error": ...}``. The
rate-limiter's degraded mode is not an error: it is reported through
``RateLimitResult.degraded`` and never raised.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from pydantic import ValidationError

logger = logging.getLogger(__name__)


class SwipError(HTTPException):
    """Base API exception with a consistent envelope."""

    def __init__(
        self,
        status_code: int,
        detail: Any,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=detail, headers=dict(headers or {}))


class RateLimitExceeded(SwipError):
    """Caller exhausted the sliding-window quota for a key."""

    def __init__(self, headers: Mapping[str, str] | None = None) -> None:
        super().__init__(status.HTTP_429_TOO_MANY_REQUESTS, "Rate limit exceeded", headers)


class MissingCredential(SwipError):
    """No API key was presented."""

    def __init__(self, header_name: str, headers: Mapping[str, str] | None = None) -> None:
        super().__init__(status.HTTP_401_UNAUTHORIZED, f"Missing {header_name}", headers)


class InvalidCredential(SwipError):
    """Presented credential is unknown, revoked, malformed or fails verification."""

    def __init__(
        self,
        detail: str = "Invalid API key",
        headers: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(status.HTTP_401_UNAUTHORIZED, detail, headers)


class RequestValidationFailed(SwipError):
    """Request body failed schema validation; ``detail`` carries field errors."""

    def __init__(
        self,
        fields: Mapping[str, list[str]],
        message: str = "Invalid request data",
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self.fields = dict(fields)
        super().__init__(
            status.HTTP_400_BAD_REQUEST,
            {"message": message, "fields": self.fields},
            headers,
        )

    @classmethod
    def from_pydantic(
        cls,
        exc: ValidationError,
        headers: Mapping[str, str] | None = None,
    ) -> RequestValidationFailed:
        """Flatten a Pydantic error into ``{"dotted.path": [messages]}``."""
        return cls(field_errors(exc.errors()), headers=headers)


class PersistenceFailure(SwipError):
    """A write that must not be dropped could not be committed."""

    def __init__(
        self,
        detail: str = "Failed to save session",
        headers: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(status.HTTP_500_INTERNAL_SERVER_ERROR, detail, headers)


class NotFound(SwipError):
    """Resource missing or not owned by the caller."""

    def __init__(self, detail: str) -> None:
        super().__init__(status.HTTP_404_NOT_FOUND, detail)


class Conflict(SwipError):
    """Requested state change is already in effect."""

    def __init__(self, detail: str) -> None:
        super().__init__(status.HTTP_400_BAD_REQUEST, detail)


def field_errors(errors: Any) -> dict[str, list[str]]:
    """Group Pydantic error dicts by dotted location."""
    grouped: dict[str, list[str]] = {}
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body",)]
        path = ".".join(loc) or "_root"
        grouped.setdefault(path, []).append(str(error.get("msg", "Invalid value")))
    return grouped


def error_response(
    status_code: int,
    error: Any,
    headers: Mapping[str, str] | None = None,
) -> JSONResponse:
    """Build the failure envelope."""
    return JSONResponse(
        status_code=status_code,
        content={"ok": False, "error": error},
        headers=dict(headers or {}),
    )


async def _http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return error_response(exc.status_code, exc.detail, exc.headers)


async def _request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return error_response(
        status.HTTP_400_BAD_REQUEST,
        {"message": "Invalid request data", "fields": field_errors(exc.errors())},
    )


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled error on %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def install_exception_handlers(app: FastAPI) -> None:
    """Render every failure path with the shared envelope."""
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(
        RequestValidationError,
        _request_validation_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(Exception, _unhandled_exception_handler)
