"""
buzzwin.database.models — SQLAlchemy 2.0 Data Models
=====================================================

Tables:
- users               — Members with karma total + per-category breakdown
- karma_log           — Append-only journal of every karma award
- rituals             — Canonical ritual definitions (global, personalized, public)
- ritual_members      — Who has joined which ritual (joinedByUsers)
- ritual_completions  — One row per user per ritual per calendar day
- user_ritual_state   — Per-user streak/count aggregate, recomputed on completion
- impact_moments      — Posts describing a good deed
- moment_comments     — Comments on an impact moment
- story_reactions     — Reaction sets for curated real stories
"""

from __future__ import annotations

import enum
from datetime import date, datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all Buzzwin ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class KarmaCategory(enum.StrEnum):
    """Buckets of the karma breakdown shown on a profile."""
    IMPACT_MOMENTS = "impactMoments"
    RITUALS = "rituals"
    ENGAGEMENT = "engagement"
    CHAINS = "chains"
    MILESTONES = "milestones"


class KarmaAction(enum.StrEnum):
    """Every action that earns karma."""
    IMPACT_MOMENT_CREATED = "impact_moment_created"
    IMPACT_MOMENT_WITH_MOOD = "impact_moment_with_mood"
    IMPACT_MOMENT_FROM_RITUAL = "impact_moment_from_ritual"
    RITUAL_COMPLETED_QUIET = "ritual_completed_quiet"
    RITUAL_COMPLETED_SHARED = "ritual_completed_shared"
    COMMENT_CREATED = "comment_created"
    RIPPLE_RECEIVED = "ripple_received"
    JOINED_YOU_RECEIVED = "joined_you_received"
    JOINED_YOU_CREATED = "joined_you_created"
    STREAK_MILESTONE_7 = "streak_milestone_7"
    STREAK_MILESTONE_30 = "streak_milestone_30"
    IMPACT_MILESTONE_100 = "impact_milestone_100"
    IMPACT_MILESTONE_500 = "impact_milestone_500"


class RitualScope(enum.StrEnum):
    """Visibility of a ritual definition."""
    GLOBAL = "global"
    PERSONALIZED = "personalized"
    PUBLIC = "public"


class ImpactTag(enum.StrEnum):
    MIND = "mind"
    BODY = "body"
    RELATIONSHIPS = "relationships"
    NATURE = "nature"
    COMMUNITY = "community"


class EffortLevel(enum.StrEnum):
    TINY = "tiny"
    MEDIUM = "medium"
    DEEP = "deep"


class StoryReactionType(enum.StrEnum):
    INSPIRED = "inspired"
    WANT_TO_TRY = "want_to_try"
    SHARING = "sharing"
    MATTERS_TO_ME = "matters_to_me"


# ---------------------------------------------------------------------------
# Users — karma total and breakdown
# ---------------------------------------------------------------------------
# Breakdown category → column attribute on User
CATEGORY_COLUMNS: dict[KarmaCategory, str] = {
    KarmaCategory.IMPACT_MOMENTS: "karma_impact_moments",
    KarmaCategory.RITUALS: "karma_rituals",
    KarmaCategory.ENGAGEMENT: "karma_engagement",
    KarmaCategory.CHAINS: "karma_chains",
    KarmaCategory.MILESTONES: "karma_milestones",
}


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    display_name: Mapped[str | None] = mapped_column(String(100), default=None)
    karma_points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    karma_impact_moments: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    karma_rituals: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    karma_engagement: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    karma_chains: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    karma_milestones: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_karma_update: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    karma_logs: Mapped[list[KarmaLog]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_users_karma_desc", "karma_points"),
    )

    def karma_breakdown(self) -> dict[str, int]:
        """Breakdown as ``{category: points}`` with every category present."""
        return {
            category.value: getattr(self, column) or 0
            for category, column in CATEGORY_COLUMNS.items()
        }

    def __repr__(self) -> str:
        return f"<User id={self.id!r} karma={self.karma_points}>"


# ---------------------------------------------------------------------------
# KarmaLog — append-only award journal
# ---------------------------------------------------------------------------
class KarmaLog(Base):
    __tablename__ = "karma_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    category: Mapped[str] = mapped_column(String(30), nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    user: Mapped[User] = relationship(back_populates="karma_logs")

    __table_args__ = (
        Index("ix_karma_log_user_time", "user_id", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<KarmaLog user={self.user_id!r} action={self.action} +{self.points}>"


# ---------------------------------------------------------------------------
# Ritual — one canonical row per ritual, scope decides visibility
# ---------------------------------------------------------------------------
class Ritual(Base):
    __tablename__ = "rituals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    effort_level: Mapped[str] = mapped_column(String(20), nullable=False, default="medium")
    scope: Mapped[str] = mapped_column(
        String(20), nullable=False, default=RitualScope.PERSONALIZED.value
    )
    suggested_time_of_day: Mapped[str] = mapped_column(String(20), default="anytime")
    duration_estimate: Mapped[str] = mapped_column(String(50), default="5 minutes")
    prefill_template: Mapped[str | None] = mapped_column(Text, default=None)
    created_by: Mapped[str | None] = mapped_column(String(128), default=None)
    created_from_moment_id: Mapped[int | None] = mapped_column(Integer, default=None)
    story_id: Mapped[str | None] = mapped_column(String(200), default=None)
    ripple_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    members: Mapped[list[RitualMember]] = relationship(
        back_populates="ritual", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_rituals_scope", "scope"),
        Index("ix_rituals_created_by", "created_by"),
    )

    def __repr__(self) -> str:
        return f"<Ritual id={self.id} title={self.title!r} scope={self.scope}>"


class RitualMember(Base):
    __tablename__ = "ritual_members"

    ritual_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("rituals.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    ritual: Mapped[Ritual] = relationship(back_populates="members")

    __table_args__ = (
        Index("ix_ritual_members_user", "user_id"),
    )


# ---------------------------------------------------------------------------
# RitualCompletion — one per (user, ritual, date)
# ---------------------------------------------------------------------------
class RitualCompletion(Base):
    __tablename__ = "ritual_completions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    ritual_id: Mapped[int] = mapped_column(Integer, nullable=False)
    completion_date: Mapped[date] = mapped_column("date", Date, nullable=False)
    completed_quietly: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    shared_as_moment_id: Mapped[int | None] = mapped_column(Integer, default=None)
    completed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint(
            "user_id", "ritual_id", "date", name="uq_completion_user_ritual_date",
        ),
        Index("ix_completions_user_date", "user_id", "date"),
    )

    def __repr__(self) -> str:
        return (
            f"<RitualCompletion user={self.user_id!r} "
            f"ritual={self.ritual_id} date={self.completion_date}>"
        )


# ---------------------------------------------------------------------------
# UserRitualState — derived aggregate, recomputed from full history
# ---------------------------------------------------------------------------
class UserRitualState(Base):
    __tablename__ = "user_ritual_state"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    current_streak: Mapped[int] = mapped_column(Integer, default=0)
    longest_streak: Mapped[int] = mapped_column(Integer, default=0)
    total_completed: Mapped[int] = mapped_column(Integer, default=0)
    completed_this_week: Mapped[int] = mapped_column(Integer, default=0)
    completed_this_month: Mapped[int] = mapped_column(Integer, default=0)
    last_completed_date: Mapped[date | None] = mapped_column(Date, default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return (
            f"<UserRitualState user={self.user_id!r} "
            f"streak={self.current_streak}/{self.longest_streak}>"
        )


# ---------------------------------------------------------------------------
# ImpactMoment + comments
# ---------------------------------------------------------------------------
class ImpactMoment(Base):
    __tablename__ = "impact_moments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    effort_level: Mapped[str] = mapped_column(String(20), nullable=False)
    created_by: Mapped[str] = mapped_column(String(128), nullable=False)
    mood_before: Mapped[int | None] = mapped_column(Integer, default=None)
    mood_after: Mapped[int | None] = mapped_column(Integer, default=None)
    from_daily_ritual: Mapped[bool] = mapped_column(Boolean, default=False)
    ritual_id: Mapped[int | None] = mapped_column(Integer, default=None)
    ritual_title: Mapped[str | None] = mapped_column(String(200), default=None)
    images: Mapped[list | None] = mapped_column(JSON, default=None)
    video_url: Mapped[str | None] = mapped_column(String(500), default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None, onupdate=func.now()
    )

    comments: Mapped[list[MomentComment]] = relationship(
        back_populates="moment", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_impact_moments_creator", "created_by"),
    )

    def __repr__(self) -> str:
        return f"<ImpactMoment id={self.id} by={self.created_by!r}>"


class MomentComment(Base):
    __tablename__ = "moment_comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    moment_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("impact_moments.id", ondelete="CASCADE"), nullable=False
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    created_by: Mapped[str] = mapped_column(String(128), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    moment: Mapped[ImpactMoment] = relationship(back_populates="comments")


# ---------------------------------------------------------------------------
# StoryReaction — one row per real story
# ---------------------------------------------------------------------------
class StoryReaction(Base):
    __tablename__ = "story_reactions"

    story_key: Mapped[str] = mapped_column(String(50), primary_key=True)
    story_id: Mapped[str] = mapped_column(String(500), nullable=False)
    inspired: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    want_to_try: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    sharing: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    matters_to_me: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    reaction_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None, onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<StoryReaction key={self.story_key!r} count={self.reaction_count}>"
