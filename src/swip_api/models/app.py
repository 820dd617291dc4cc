# src/swip_api/models/app.py
"""Client applications that submit SWIP sessions."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from swip_api.db.session import Base
from swip_api.db.time import utcnow

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from .api_key import ApiKey
    from .swip_session import SwipSession
    from .user import User


class App(Base):
    """A registered wellness app; owns its API keys and sessions."""

    __tablename__ = "app"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str | None] = mapped_column(Text, nullable=True)
    owner_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("app_user.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    owner: Mapped[User] = relationship("User", back_populates="apps")
    api_keys: Mapped[list[ApiKey]] = relationship(
        "ApiKey",
        back_populates="app",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    swip_sessions: Mapped[list[SwipSession]] = relationship(
        "SwipSession",
        back_populates="app",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
