"""Create catalog and per-user gamification tables

Revision ID: 5c2d8e1f4a7b
Revises:
Create Date: 2026-10-18 09:12:40.118204

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5c2d8e1f4a7b"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create badges, levels, events and the five user_* tables."""

    # --- catalog ---
    op.create_table(
        "badges",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("alias", sa.String(100), nullable=False, unique=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("image_url", sa.String(500), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
    )
    op.create_table(
        "levels",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("points", sa.Integer, nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
    )
    op.create_index("ix_levels_points", "levels", ["points"])
    op.create_table(
        "events",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("alias", sa.String(100), nullable=False, unique=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("allow_repetitions", sa.Boolean, nullable=True),
        sa.Column("required_repetitions", sa.Integer, nullable=True),
        sa.Column("each_badge_id", sa.Integer, sa.ForeignKey("badges.id"), nullable=True),
        sa.Column("reach_badge_id", sa.Integer, sa.ForeignKey("badges.id"), nullable=True),
        sa.Column("each_points", sa.Integer, nullable=True),
        sa.Column("reach_points", sa.Integer, nullable=True),
        sa.Column("max_points", sa.Integer, nullable=True),
        sa.Column("each_callback", sa.String(200), nullable=True),
        sa.Column("reach_callback", sa.String(200), nullable=True),
        sa.Column("combinable", sa.Boolean, nullable=True),
        sa.CheckConstraint(
            "required_repetitions >= 1", name="ck_events_required_repetitions"
        ),
    )

    # --- per-user state ---
    op.create_table(
        "user_scores",
        sa.Column("user_id", sa.BigInteger, primary_key=True, autoincrement=False),
        sa.Column("points", sa.Integer, nullable=False),
        sa.Column("level_id", sa.Integer, sa.ForeignKey("levels.id"), nullable=False),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
    )
    op.create_index(
        "ix_user_scores_points_desc", "user_scores",
        [sa.text("points DESC"), "user_id"],
    )
    op.create_table(
        "user_events",
        sa.Column("user_id", sa.BigInteger, primary_key=True, autoincrement=False),
        sa.Column(
            "event_id", sa.Integer, sa.ForeignKey("events.id"),
            primary_key=True, autoincrement=False,
        ),
        sa.Column("event_counter", sa.Integer, nullable=False),
        sa.Column("points_counter", sa.Integer, nullable=False),
    )
    op.create_table(
        "user_badges",
        sa.Column("user_id", sa.BigInteger, primary_key=True, autoincrement=False),
        sa.Column(
            "badge_id", sa.Integer, sa.ForeignKey("badges.id"),
            primary_key=True, autoincrement=False,
        ),
        sa.Column("badges_counter", sa.Integer, nullable=False),
        sa.Column("grant_date", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_table(
        "user_alerts",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.BigInteger, nullable=False),
        sa.Column("badge_id", sa.Integer, sa.ForeignKey("badges.id"), nullable=True),
        sa.Column("level_id", sa.Integer, sa.ForeignKey("levels.id"), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
        sa.CheckConstraint(
            "(badge_id IS NULL) <> (level_id IS NULL)",
            name="ck_user_alerts_badge_xor_level",
        ),
    )
    op.create_index("ix_user_alerts_user_id", "user_alerts", ["user_id", "id"])
    op.create_table(
        "user_logs",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.BigInteger, nullable=False),
        sa.Column("event_id", sa.Integer, sa.ForeignKey("events.id"), nullable=False),
        sa.Column("event_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("points", sa.Integer, nullable=True),
        sa.Column("badge_id", sa.Integer, sa.ForeignKey("badges.id"), nullable=True),
        sa.Column("level_id", sa.Integer, sa.ForeignKey("levels.id"), nullable=True),
    )
    op.create_index("ix_user_logs_user_date", "user_logs", ["user_id", "event_date"])


def downgrade() -> None:
    """Drop every gamification table, children first."""
    op.drop_index("ix_user_logs_user_date", table_name="user_logs")
    op.drop_table("user_logs")
    op.drop_index("ix_user_alerts_user_id", table_name="user_alerts")
    op.drop_table("user_alerts")
    op.drop_table("user_badges")
    op.drop_table("user_events")
    op.drop_index("ix_user_scores_points_desc", table_name="user_scores")
    op.drop_table("user_scores")
    op.drop_table("events")
    op.drop_index("ix_levels_points", table_name="levels")
    op.drop_table("levels")
    op.drop_table("badges")
