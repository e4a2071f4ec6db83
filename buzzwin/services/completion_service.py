"""
buzzwin.services.completion_service — Ritual Completion & Progress
====================================================================

The completion pipeline:

    1. Validate the request and lazily create the user row.
    2. Reject a second completion of the same ritual on the same UTC day.
    3. Insert the completion and recompute ``user_ritual_state`` from the
       full completion history.
    4. Award completion karma (quiet or shared) plus the streak milestone
       bonus when the new streak lands exactly on a milestone.

Karma is awarded after the completion commits and is best-effort: a
failed award is logged and never fails the completion.

Read-side helpers for the stats, achievements, level and leaderboard
endpoints live here too.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from buzzwin.config import BuzzwinConfig
from buzzwin.constants import (
    calculate_level,
    get_karma_for_next_level,
    get_karma_remaining_for_next_level,
    get_progress_to_next_level,
)
from buzzwin.database.models import (
    KarmaAction,
    Ritual,
    RitualCompletion,
    User,
    UserRitualState,
)
from buzzwin.engine.achievements import AchievementContext, evaluate_achievements
from buzzwin.engine.streaks import (
    RitualStats,
    calculate_current_streak,
    calculate_stats,
    compute_ritual_state,
    utc_today,
)
from buzzwin.errors import Conflict, InvalidArgument, NotFound
from buzzwin.services.karma_service import get_or_create_user, try_award_karma
from buzzwin.services.ritual_service import get_visible_ritual
from buzzwin.services.validation import require_int_id, require_user_id

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)

def completion_to_dict(completion: RitualCompletion) -> dict:
    return {
        "id": str(completion.id),
        "userId": completion.user_id,
        "ritualId": str(completion.ritual_id),
        "date": completion.completion_date.isoformat(),
        "completedQuietly": completion.completed_quietly,
        "sharedAsMomentId": (
            str(completion.shared_as_moment_id) if completion.shared_as_moment_id else None
        ),
        "completedAt": completion.completed_at.isoformat() if completion.completed_at else None,
    }


def state_to_dict(state: UserRitualState) -> dict:
    return {
        "currentStreak": state.current_streak,
        "longestStreak": state.longest_streak,
        "totalCompleted": state.total_completed,
        "completedThisWeek": state.completed_this_week,
        "completedThisMonth": state.completed_this_month,
        "lastCompletedDate": (
            state.last_completed_date.isoformat() if state.last_completed_date else None
        ),
    }


def _load_completions(session: Session, user_id: str) -> list[RitualCompletion]:
    return list(session.scalars(
        select(RitualCompletion)
        .where(RitualCompletion.user_id == user_id)
        .order_by(RitualCompletion.completion_date)
    ).all())


# ---------------------------------------------------------------------------
# Completion
# ---------------------------------------------------------------------------
def complete_ritual(
    engine: Engine,
    *,
    user_id: str,
    ritual_id: object,
    completed_quietly: object,
    shared_as_moment_id: object = None,
    today: date | None = None,
    streak_milestones: Mapping[int, KarmaAction] | None = None,
) -> dict:
    """Record today's completion of *ritual_id* by *user_id*.

    Parameters
    ----------
    completed_quietly:
        Must be a real boolean; ``False`` means the completion was shared
        as an impact moment.
    today:
        UTC calendar day of the completion; defaults to now.
    streak_milestones:
        Streak length → bonus action.  Defaults to 7 and 30 days.

    Returns
    -------
    dict
        ``{"success", "completion", "updatedStreak", "state"}`` where
        ``updatedStreak`` is the new current streak and ``state`` the full
        recomputed ritual state.

    Raises
    ------
    InvalidArgument
        Missing ids or a non-boolean ``completed_quietly``.
    NotFound
        The ritual does not exist or is not visible to the user.
    Conflict
        The ritual was already completed today.
    """
    user_id = require_user_id(user_id)
    if ritual_id in (None, ""):
        raise InvalidArgument("Ritual ID is required")
    if not isinstance(completed_quietly, bool):
        raise InvalidArgument("completedQuietly must be a boolean")
    moment_id = (
        require_int_id(shared_as_moment_id, "Shared moment ID")
        if shared_as_moment_id not in (None, "") else None
    )
    today = today or utc_today()
    milestones = (
        BuzzwinConfig().streak_milestones if streak_milestones is None else streak_milestones
    )

    with Session(engine, expire_on_commit=False) as session:
        get_or_create_user(session, user_id)
        ritual = get_visible_ritual(session, ritual_id, user_id)

        existing = session.scalar(
            select(RitualCompletion.id).where(
                RitualCompletion.user_id == user_id,
                RitualCompletion.ritual_id == ritual.id,
                RitualCompletion.completion_date == today,
            )
        )
        if existing is not None:
            raise Conflict("Ritual already completed today")

        completion = RitualCompletion(
            user_id=user_id,
            ritual_id=ritual.id,
            completion_date=today,
            completed_quietly=completed_quietly,
            shared_as_moment_id=moment_id,
        )
        session.add(completion)
        try:
            session.flush()
        except IntegrityError as exc:
            session.rollback()
            raise Conflict("Ritual already completed today") from exc

        state = session.get(UserRitualState, user_id)
        if state is None:
            state = UserRitualState(user_id=user_id, enabled=True, longest_streak=0)
            session.add(state)

        snapshot = compute_ritual_state(
            _load_completions(session, user_id),
            previous_longest=state.longest_streak or 0,
            today=today,
        )
        state.current_streak = snapshot.current_streak
        state.longest_streak = snapshot.longest_streak
        state.total_completed = snapshot.total_completed
        state.completed_this_week = snapshot.completed_this_week
        state.completed_this_month = snapshot.completed_this_month
        state.last_completed_date = snapshot.last_completed_date

        try:
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            raise Conflict("Ritual already completed today") from exc

        logger.info(
            "User %s completed ritual %d (%s), streak %d",
            user_id, ritual.id, "quiet" if completed_quietly else "shared",
            snapshot.current_streak,
        )
        payload = {
            "success": True,
            "completion": completion_to_dict(completion),
            "updatedStreak": snapshot.current_streak,
            "state": state_to_dict(state),
        }

    action = (
        KarmaAction.RITUAL_COMPLETED_QUIET if completed_quietly
        else KarmaAction.RITUAL_COMPLETED_SHARED
    )
    try_award_karma(engine, user_id, action)

    bonus = milestones.get(snapshot.current_streak)
    if bonus is not None:
        logger.info("User %s reached a %d-day streak", user_id, snapshot.current_streak)
        try_award_karma(engine, user_id, bonus)

    return payload


# ---------------------------------------------------------------------------
# Read side
# ---------------------------------------------------------------------------
def get_stats(engine: Engine, user_id: str, *, today: date | None = None) -> RitualStats:
    """Extended ritual statistics for *user_id*.

    A user with no history gets the all-zero stats payload.
    """
    user_id = require_user_id(user_id)
    with Session(engine) as session:
        completions = _load_completions(session, user_id)
        state = session.get(UserRitualState, user_id)
        ritual_ids = {c.ritual_id for c in completions}
        ritual_tags = {
            rid: list(tags or [])
            for rid, tags in session.execute(
                select(Ritual.id, Ritual.tags).where(Ritual.id.in_(ritual_ids))
            ).all()
        } if ritual_ids else {}

        return calculate_stats(
            completions,
            previous_longest=state.longest_streak if state else 0,
            ritual_tags=ritual_tags,
            today=today,
        )


def get_achievements(engine: Engine, user_id: str, *, today: date | None = None) -> dict:
    """Evaluate the achievement catalogue for *user_id*.

    The streak is recomputed from history rather than read from the stored
    state, so a lapsed streak no longer counts.
    """
    user_id = require_user_id(user_id)
    with Session(engine) as session:
        user = session.get(User, user_id)
        if user is None:
            raise NotFound("User not found")
        completions = _load_completions(session, user_id)
        ctx = AchievementContext(
            karma_points=user.karma_points or 0,
            current_streak=calculate_current_streak(completions, today),
            total_completions=len(completions),
        )

    achievements, unlocked = evaluate_achievements(ctx)
    return {"achievements": achievements, "unlockedIds": unlocked}


def get_level_info(engine: Engine, user_id: str) -> dict:
    """Level, progress and karma still needed for the next level.

    Unknown users are reported at level 1 with zero karma.
    """
    user_id = require_user_id(user_id)
    with Session(engine) as session:
        user = session.get(User, user_id)
        karma = (user.karma_points or 0) if user else 0

    return {
        "level": calculate_level(karma),
        "karmaPoints": karma,
        "progress": get_progress_to_next_level(karma),
        "karmaRemaining": get_karma_remaining_for_next_level(karma),
        "karmaForNextLevel": get_karma_for_next_level(karma),
    }


def get_leaderboard(engine: Engine, *, limit: int = 10, user_id: str | None = None) -> dict:
    """Top *limit* users by karma, plus the caller's rank.

    Ties are broken by user id so ranks are stable.  ``userRank`` is the
    caller's position in the full ordering, or ``None`` when *user_id* is
    not given or unknown.
    """
    if limit < 1:
        raise InvalidArgument("Limit must be a positive integer")

    with Session(engine) as session:
        rows = session.execute(
            select(User, UserRitualState)
            .outerjoin(UserRitualState, UserRitualState.user_id == User.id)
            .order_by(User.karma_points.desc(), User.id)
            .limit(limit)
        ).all()
        entries = []
        for rank, (user, state) in enumerate(rows, start=1):
            karma = user.karma_points or 0
            entries.append({
                "userId": user.id,
                "name": user.display_name or "",
                "karmaPoints": karma,
                "level": calculate_level(karma),
                "totalCompleted": state.total_completed if state else 0,
                "currentStreak": state.current_streak if state else 0,
                "rank": rank,
            })

        user_rank = next((e["rank"] for e in entries if e["userId"] == user_id), None)
        if user_id and user_rank is None:
            caller = session.get(User, user_id)
            if caller is not None:
                karma = caller.karma_points or 0
                ahead = session.scalar(
                    select(func.count()).select_from(User).where(or_(
                        User.karma_points > karma,
                        and_(User.karma_points == karma, User.id < user_id),
                    ))
                ) or 0
                user_rank = ahead + 1

    return {"entries": entries, "userRank": user_rank}
