# src/swip_api/models/leaderboard.py
"""Materialized leaderboard rows."""

from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from swip_api.db.session import Base
from swip_api.db.time import utcnow


class LeaderboardSnapshot(Base):
    """Average score and session count for one app over a trailing window.

    Rows are replaced wholesale by each aggregation run; ranking is computed
    when the rows are read.
    """

    __tablename__ = "leaderboard_snapshot"
    __table_args__ = (
        UniqueConstraint("app_id", "window_label", name="uq_leaderboard_snapshot_app_window"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    app_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("app.id", ondelete="CASCADE"),
        nullable=False,
    )
    window_label: Mapped[str] = mapped_column(String(16), nullable=False)
    avg_score: Mapped[float] = mapped_column(Float, nullable=False)
    sessions: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
