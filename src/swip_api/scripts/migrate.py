# src/swip_api/scripts/migrate.py
"""Bring the database schema up to date."""
from __future__ import annotations

import argparse
import os

from alembic import command
from alembic.config import Config

from swip_api.core.settings import settings
from swip_api.db.session import create_tables

MIGRATIONS_DIR = os.path.abspath(
    os.path.join(os.path.dirname(__file__), "..", "..", "..", "migrations")
)


def run_upgrade_head() -> None:
    cfg = Config(os.path.join(MIGRATIONS_DIR, "alembic.ini"))
    # Alembic runs synchronously; hand it the sync driver URL.
    cfg.set_main_option("sqlalchemy.url", settings.database_url_sync)
    cfg.set_main_option("script_location", MIGRATIONS_DIR)
    command.upgrade(cfg, "head")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Apply database migrations.")
    parser.add_argument(
        "--create-all",
        action="store_true",
        help="Create tables straight from the models instead of running Alembic "
        "(throwaway local databases only).",
    )
    args = parser.parse_args(argv)
    if args.create_all:
        create_tables()
    else:
        run_upgrade_head()


if __name__ == "__main__":
    main()
