# src/swip_api/models/swip_session.py
"""Append-only log of scored ingestion sessions."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, CheckConstraint, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from swip_api.db.session import Base
from swip_api.db.time import utcnow

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from .app import App


class SwipSession(Base):
    """One successful ingestion call. Written once, never updated."""

    __tablename__ = "swip_session"
    __table_args__ = (
        CheckConstraint(
            "swip_score IS NULL OR (swip_score >= 0 AND swip_score <= 100)",
            name="ck_swip_session_score_range",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    app_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("app.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Caller-supplied and assumed unique per app; not enforced.
    session_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    # Nullable only for legacy rows; the ingestion path always sets it.
    swip_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    hr_data: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    hrv_metrics: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    emotion: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )

    app: Mapped[App] = relationship("App", back_populates="swip_sessions")
