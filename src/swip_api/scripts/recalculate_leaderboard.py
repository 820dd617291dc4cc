# src/swip_api/scripts/recalculate_leaderboard.py
"""
Cron job to rebuild leaderboard snapshots.

Run periodically (hourly is plenty) so apps that stop ingesting still have
their averages refreshed as old sessions leave the trailing window.
"""

from __future__ import annotations

import argparse
import logging
import sys

from swip_api.core.logging import setup_logging
from swip_api.db.session import SessionLocal
from swip_api.services.leaderboard import LeaderboardAggregator

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Recalculate SWIP leaderboard snapshots.")
    parser.add_argument(
        "--window-days",
        type=int,
        default=None,
        help="Trailing window in days (defaults to LEADERBOARD_WINDOW_DAYS).",
    )
    args = parser.parse_args(argv)

    setup_logging()
    aggregator = LeaderboardAggregator(window_days=args.window_days)

    db = SessionLocal()
    try:
        updated = aggregator.update_leaderboard(db)
    except Exception:
        logger.exception("Leaderboard recalculation failed")
        return 1
    finally:
        db.close()

    print(f"Updated leaderboard ({aggregator.window_label}) for {updated} apps")
    return 0


if __name__ == "__main__":
    sys.exit(main())
