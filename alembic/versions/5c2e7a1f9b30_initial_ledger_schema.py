"""Initial karma ledger and ritual schema

Revision ID: 5c2e7a1f9b30
Revises:
Create Date: 2026-10-18 09:12:41.208315

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '5c2e7a1f9b30'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamp(name: str, *, nullable: bool = True, server_default: bool = True) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=nullable,
        server_default=sa.func.now() if server_default else None,
    )


def upgrade() -> None:
    """Create users, karma journal, rituals, completions, moments and reactions."""

    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", sa.String(128), primary_key=True),
        sa.Column("display_name", sa.String(100), nullable=True),
        sa.Column("karma_points", sa.Integer, nullable=False, server_default="0"),
        sa.Column("karma_impact_moments", sa.Integer, nullable=False, server_default="0"),
        sa.Column("karma_rituals", sa.Integer, nullable=False, server_default="0"),
        sa.Column("karma_engagement", sa.Integer, nullable=False, server_default="0"),
        sa.Column("karma_chains", sa.Integer, nullable=False, server_default="0"),
        sa.Column("karma_milestones", sa.Integer, nullable=False, server_default="0"),
        _timestamp("last_karma_update", server_default=False),
        _timestamp("created_at"),
    )
    op.create_index("ix_users_karma_desc", "users", ["karma_points"])

    # --- karma_log ---
    op.create_table(
        "karma_log",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "user_id", sa.String(128),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("category", sa.String(30), nullable=False),
        sa.Column("points", sa.Integer, nullable=False),
        _timestamp("timestamp"),
    )
    op.create_index("ix_karma_log_user_time", "karma_log", ["user_id", "timestamp"])

    # --- rituals ---
    op.create_table(
        "rituals",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=False, server_default=""),
        sa.Column("tags", sa.JSON, nullable=False),
        sa.Column("effort_level", sa.String(20), nullable=False, server_default="medium"),
        sa.Column("scope", sa.String(20), nullable=False, server_default="personalized"),
        sa.Column("suggested_time_of_day", sa.String(20), nullable=True),
        sa.Column("duration_estimate", sa.String(50), nullable=True),
        sa.Column("prefill_template", sa.Text, nullable=True),
        sa.Column("created_by", sa.String(128), nullable=True),
        sa.Column("created_from_moment_id", sa.Integer, nullable=True),
        sa.Column("story_id", sa.String(200), nullable=True),
        sa.Column("ripple_count", sa.Integer, nullable=False, server_default="0"),
        _timestamp("created_at"),
    )
    op.create_index("ix_rituals_scope", "rituals", ["scope"])
    op.create_index("ix_rituals_created_by", "rituals", ["created_by"])

    # --- ritual_members ---
    op.create_table(
        "ritual_members",
        sa.Column(
            "ritual_id", sa.Integer,
            sa.ForeignKey("rituals.id", ondelete="CASCADE"), primary_key=True,
        ),
        sa.Column("user_id", sa.String(128), primary_key=True),
        _timestamp("joined_at"),
    )
    op.create_index("ix_ritual_members_user", "ritual_members", ["user_id"])

    # --- ritual_completions ---
    op.create_table(
        "ritual_completions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("ritual_id", sa.Integer, nullable=False),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("completed_quietly", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("shared_as_moment_id", sa.Integer, nullable=True),
        _timestamp("completed_at"),
        sa.UniqueConstraint(
            "user_id", "ritual_id", "date", name="uq_completion_user_ritual_date",
        ),
    )
    op.create_index("ix_completions_user_date", "ritual_completions", ["user_id", "date"])

    # --- user_ritual_state ---
    op.create_table(
        "user_ritual_state",
        sa.Column("user_id", sa.String(128), primary_key=True),
        sa.Column("enabled", sa.Boolean, nullable=True, server_default=sa.true()),
        sa.Column("current_streak", sa.Integer, nullable=True, server_default="0"),
        sa.Column("longest_streak", sa.Integer, nullable=True, server_default="0"),
        sa.Column("total_completed", sa.Integer, nullable=True, server_default="0"),
        sa.Column("completed_this_week", sa.Integer, nullable=True, server_default="0"),
        sa.Column("completed_this_month", sa.Integer, nullable=True, server_default="0"),
        sa.Column("last_completed_date", sa.Date, nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )

    # --- impact_moments ---
    op.create_table(
        "impact_moments",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("text", sa.Text, nullable=False),
        sa.Column("tags", sa.JSON, nullable=False),
        sa.Column("effort_level", sa.String(20), nullable=False),
        sa.Column("created_by", sa.String(128), nullable=False),
        sa.Column("mood_before", sa.Integer, nullable=True),
        sa.Column("mood_after", sa.Integer, nullable=True),
        sa.Column("from_daily_ritual", sa.Boolean, nullable=True, server_default=sa.false()),
        sa.Column("ritual_id", sa.Integer, nullable=True),
        sa.Column("ritual_title", sa.String(200), nullable=True),
        sa.Column("images", sa.JSON, nullable=True),
        sa.Column("video_url", sa.String(500), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at", server_default=False),
    )
    op.create_index("ix_impact_moments_creator", "impact_moments", ["created_by"])

    # --- moment_comments ---
    op.create_table(
        "moment_comments",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "moment_id", sa.Integer,
            sa.ForeignKey("impact_moments.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("text", sa.Text, nullable=False),
        sa.Column("created_by", sa.String(128), nullable=False),
        _timestamp("created_at"),
    )

    # --- story_reactions ---
    op.create_table(
        "story_reactions",
        sa.Column("story_key", sa.String(50), primary_key=True),
        sa.Column("story_id", sa.String(500), nullable=False),
        sa.Column("inspired", sa.JSON, nullable=False),
        sa.Column("want_to_try", sa.JSON, nullable=False),
        sa.Column("sharing", sa.JSON, nullable=False),
        sa.Column("matters_to_me", sa.JSON, nullable=False),
        sa.Column("reaction_count", sa.Integer, nullable=False, server_default="0"),
        _timestamp("created_at"),
        _timestamp("updated_at", server_default=False),
    )


def downgrade() -> None:
    """Drop every ledger table."""
    op.drop_table("story_reactions")
    op.drop_table("moment_comments")
    op.drop_index("ix_impact_moments_creator", table_name="impact_moments")
    op.drop_table("impact_moments")
    op.drop_table("user_ritual_state")
    op.drop_index("ix_completions_user_date", table_name="ritual_completions")
    op.drop_table("ritual_completions")
    op.drop_index("ix_ritual_members_user", table_name="ritual_members")
    op.drop_table("ritual_members")
    op.drop_index("ix_rituals_created_by", table_name="rituals")
    op.drop_index("ix_rituals_scope", table_name="rituals")
    op.drop_table("rituals")
    op.drop_index("ix_karma_log_user_time", table_name="karma_log")
    op.drop_table("karma_log")
    op.drop_index("ix_users_karma_desc", table_name="users")
    op.drop_table("users")
