# src/swip_api/models/api_key.py
"""Stored API key credentials."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from swip_api.db.session import Base
from swip_api.db.time import utcnow

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from .app import App

DEFAULT_ENVIRONMENT = "default"


class ApiKey(Base):
    """Credential bound to one app.

    The plaintext secret is never stored. ``lookup_hash`` is the SHA-256
    digest used for the indexed fetch, ``key_hash`` the bcrypt hash checked
    afterwards.
    """

    __tablename__ = "api_key"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    app_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("app.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("app_user.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    environment: Mapped[str] = mapped_column(
        String(32), nullable=False, default=DEFAULT_ENVIRONMENT
    )
    key_hash: Mapped[str] = mapped_column(String(128), nullable=False)
    lookup_hash: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    preview: Mapped[str] = mapped_column(String(16), nullable=False)
    revoked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    last_used: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    app: Mapped[App] = relationship("App", back_populates="api_keys")
