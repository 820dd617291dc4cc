"""initial schema

Revision ID: 8c1f2a7d4e90
Revises:
Create Date: 2026-10-19 09:12:44.218305

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "8c1f2a7d4e90"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create developer, app, credential, session and leaderboard tables."""
    op.create_table(
        "app_user",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_table(
        "app",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("category", sa.Text(), nullable=True),
        sa.Column("owner_id", sa.String(length=36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["owner_id"], ["app_user.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_app_owner_id", "app", ["owner_id"])

    op.create_table(
        "api_key",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("app_id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column(
            "environment",
            sa.String(length=32),
            nullable=False,
            server_default="default",
        ),
        sa.Column("key_hash", sa.String(length=128), nullable=False),
        sa.Column("lookup_hash", sa.String(length=64), nullable=False),
        sa.Column("preview", sa.String(length=16), nullable=False),
        sa.Column("revoked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_used", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["app_id"], ["app.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["app_user.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("lookup_hash"),
    )
    op.create_index("ix_api_key_app_id", "api_key", ["app_id"])
    op.create_index("ix_api_key_user_id", "api_key", ["user_id"])

    op.create_table(
        "swip_session",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("app_id", sa.String(length=36), nullable=False),
        sa.Column("session_id", sa.Text(), nullable=False),
        sa.Column("swip_score", sa.Integer(), nullable=True),
        sa.Column("hr_data", sa.JSON(), nullable=True),
        sa.Column("hrv_metrics", sa.JSON(), nullable=True),
        sa.Column("emotion", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "swip_score IS NULL OR (swip_score >= 0 AND swip_score <= 100)",
            name="ck_swip_session_score_range",
        ),
        sa.ForeignKeyConstraint(["app_id"], ["app.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_swip_session_app_id", "swip_session", ["app_id"])
    op.create_index("ix_swip_session_session_id", "swip_session", ["session_id"])
    op.create_index("ix_swip_session_created_at", "swip_session", ["created_at"])

    op.create_table(
        "leaderboard_snapshot",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("app_id", sa.String(length=36), nullable=False),
        sa.Column("window_label", sa.String(length=16), nullable=False),
        sa.Column("avg_score", sa.Float(), nullable=False),
        sa.Column("sessions", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["app_id"], ["app.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "app_id", "window_label", name="uq_leaderboard_snapshot_app_window"
        ),
    )


def downgrade() -> None:
    """Drop every table created by this revision."""
    op.drop_table("leaderboard_snapshot")
    op.drop_index("ix_swip_session_created_at", table_name="swip_session")
    op.drop_index("ix_swip_session_session_id", table_name="swip_session")
    op.drop_index("ix_swip_session_app_id", table_name="swip_session")
    op.drop_table("swip_session")
    op.drop_index("ix_api_key_user_id", table_name="api_key")
    op.drop_index("ix_api_key_app_id", table_name="api_key")
    op.drop_table("api_key")
    op.drop_index("ix_app_owner_id", table_name="app")
    op.drop_table("app")
    op.drop_table("app_user")
