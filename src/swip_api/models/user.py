# src/swip_api/models/user.py
"""Developer accounts that own apps."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from swip_api.db.session import Base
from swip_api.db.time import utcnow

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from .app import App


class User(Base):
    """Developer identity resolved from a bearer token subject."""

    __tablename__ = "app_user"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    apps: Mapped[list[App]] = relationship(
        "App",
        back_populates="owner",
        cascade="all, delete-orphan",
    )
