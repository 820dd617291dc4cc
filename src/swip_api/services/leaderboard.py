"""Leaderboard aggregation over the trailing session window.

Each run recomputes the average score and session count for every app with
at least one scored session in the window and upserts one snapshot row per
(app, window). Rows are committed one at a time; a failed run leaves earlier
rows updated and the next successful run overwrites everything it touches.

Apps whose sessions all age out of the window keep their previous snapshot.
Nothing prunes those rows.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from swip_api.core.settings import settings
from swip_api.db.session import SessionFactory, SessionLocal
from swip_api.db.time import utcnow
from swip_api.models import App, LeaderboardSnapshot, SwipSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppAggregate:
    """Window statistics for one app."""

    app_id: str
    avg_score: float
    sessions: int


@dataclass(frozen=True)
class RankedEntry:
    """A snapshot row with its read-time rank."""

    rank: int
    app_id: str
    app_name: str
    avg_score: float
    sessions: int
    updated_at: datetime


def _insert_for(db: Session) -> Any:
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert
    if dialect == "sqlite":
        return sqlite.insert
    raise NotImplementedError(f"Leaderboard upsert is not supported on {dialect}")


class LeaderboardAggregator:
    """Recomputes and serves leaderboard snapshots."""

    def __init__(
        self,
        session_factory: SessionFactory = SessionLocal,
        window_days: int | None = None,
    ) -> None:
        self._session_factory = session_factory
        self.window_days = (
            settings.leaderboard_window_days if window_days is None else window_days
        )

    @property
    def window_label(self) -> str:
        """Label stored on snapshot rows, e.g. ``"30d"``."""
        return f"{self.window_days}d"

    def compute(self, db: Session, now: datetime | None = None) -> list[AppAggregate]:
        """Aggregate scored sessions created within the window, per app."""
        cutoff = (now or utcnow()) - timedelta(days=self.window_days)
        stmt = (
            select(
                SwipSession.app_id,
                func.sum(SwipSession.swip_score),
                func.count(SwipSession.id),
            )
            .where(
                SwipSession.created_at >= cutoff,
                SwipSession.swip_score.is_not(None),
            )
            .group_by(SwipSession.app_id)
            .order_by(SwipSession.app_id)
        )
        aggregates = []
        for app_id, total, count in db.execute(stmt):
            if not count:
                continue
            aggregates.append(
                AppAggregate(app_id=app_id, avg_score=int(total) / int(count), sessions=int(count))
            )
        return aggregates

    def update_leaderboard(self, db: Session, now: datetime | None = None) -> int:
        """Recompute and upsert every qualifying app's snapshot.

        Returns:
            Number of snapshot rows written.
        """
        aggregates = self.compute(db, now)
        insert = _insert_for(db)
        written_at = now or utcnow()

        for item in aggregates:
            stmt = insert(LeaderboardSnapshot).values(
                app_id=item.app_id,
                window_label=self.window_label,
                avg_score=item.avg_score,
                sessions=item.sessions,
                updated_at=written_at,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["app_id", "window_label"],
                set_={
                    "avg_score": stmt.excluded.avg_score,
                    "sessions": stmt.excluded.sessions,
                    "updated_at": stmt.excluded.updated_at,
                },
            )
            db.execute(stmt)
            db.commit()

        logger.info(
            "Updated leaderboard with %d apps",
            len(aggregates),
            extra={"window": self.window_label},
        )
        return len(aggregates)

    def run(self) -> None:
        """Background entrypoint: one aggregation pass in its own session.

        Errors are logged and contained so they never reach the request that
        scheduled the run.
        """
        try:
            with self._session_factory() as db:
                self.update_leaderboard(db)
        except Exception:
            logger.exception("Error updating leaderboard", extra={"window": self.window_label})

    def ranked(self, db: Session, window: str | None = None) -> list[RankedEntry]:
        """Return snapshot rows for ``window`` ranked by average score."""
        stmt = (
            select(LeaderboardSnapshot, App.name)
            .join(App, App.id == LeaderboardSnapshot.app_id)
            .where(LeaderboardSnapshot.window_label == (window or self.window_label))
            .order_by(
                LeaderboardSnapshot.avg_score.desc(),
                LeaderboardSnapshot.sessions.desc(),
                LeaderboardSnapshot.app_id,
            )
        )
        return [
            RankedEntry(
                rank=index,
                app_id=snapshot.app_id,
                app_name=app_name,
                avg_score=snapshot.avg_score,
                sessions=snapshot.sessions,
                updated_at=snapshot.updated_at,
            )
            for index, (snapshot, app_name) in enumerate(db.execute(stmt).all(), start=1)
        ]


def get_leaderboard_aggregator() -> LeaderboardAggregator:
    """Return an aggregator bound to the default session factory."""
    return LeaderboardAggregator()
