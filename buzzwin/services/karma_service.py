"""
buzzwin.services.karma_service — Karma Ledger
===============================================

Turns a :class:`KarmaAction` into a point award and applies it to the
user's total and category breakdown.

Every award is a single ``UPDATE users SET col = col + :points`` so two
concurrent awards for the same user can never lose an increment.  Each
award is also journaled to ``karma_log``, which is the source for
:func:`recalculate_user_karma`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from buzzwin.database.models import CATEGORY_COLUMNS, KarmaAction, KarmaLog, User
from buzzwin.engine.karma import KARMA_RULES, default_breakdown, parse_action
from buzzwin.errors import BuzzwinError, InvalidArgument, NotFound
from buzzwin.services.validation import require_user_id

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class KarmaSnapshot:
    karma_points: int
    karma_breakdown: dict[str, int]

    def to_dict(self) -> dict:
        return {"karmaPoints": self.karma_points, "karmaBreakdown": self.karma_breakdown}


def get_or_create_user(session: Session, user_id: str, display_name: str | None = None) -> User:
    """Fetch or insert a User row with a zero karma ledger."""
    user = session.get(User, user_id)
    if user is None:
        user = User(id=user_id, display_name=display_name)
        session.add(user)
        session.flush()
        logger.info("Created user %s", user_id)
    elif display_name:
        user.display_name = display_name
    return user


def _require_action(action: str | KarmaAction | None) -> KarmaAction:
    if not action:
        raise InvalidArgument("Karma action is required")
    parsed = parse_action(action)
    if parsed is None:
        raise InvalidArgument("Invalid karma action")
    return parsed


def apply_karma(session: Session, user_id: str, action: KarmaAction) -> KarmaSnapshot:
    """Apply *action* inside an open session (caller commits)."""
    rule = KARMA_RULES[action]
    column = getattr(User, CATEGORY_COLUMNS[rule.category])

    result = session.execute(
        update(User)
        .where(User.id == user_id)
        .values({
            User.karma_points: User.karma_points + rule.points,
            column: column + rule.points,
            User.last_karma_update: datetime.now(UTC),
        })
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise NotFound(f"User {user_id} not found")

    session.add(KarmaLog(
        user_id=user_id,
        action=action.value,
        category=rule.category.value,
        points=rule.points,
    ))
    session.flush()

    user = session.get(User, user_id, populate_existing=True)
    return KarmaSnapshot(user.karma_points, user.karma_breakdown())


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def award_karma(engine: Engine, user_id: str, action: str | KarmaAction) -> KarmaSnapshot:
    """Award the points configured for *action* to *user_id*.

    Raises
    ------
    InvalidArgument
        Empty user id or unknown action.
    NotFound
        The user does not exist.
    """
    user_id = require_user_id(user_id)
    parsed = _require_action(action)

    with Session(engine) as session:
        snapshot = apply_karma(session, user_id, parsed)
        session.commit()

    logger.info(
        "Karma +%d (%s) → user %s, total %d",
        KARMA_RULES[parsed].points, parsed.value, user_id, snapshot.karma_points,
    )
    return snapshot


def award_karma_to_multiple(
    engine: Engine, user_ids: Iterable[str], action: str | KarmaAction,
) -> list[dict]:
    """Award *action* to every user independently.

    One user's failure never aborts the others.  Returns one
    ``{"userId", "success", "error"?}`` entry per input id, in order.
    """
    report: list[dict] = []
    for user_id in user_ids:
        try:
            award_karma(engine, user_id, action)
        except (BuzzwinError, SQLAlchemyError) as exc:
            logger.warning("Karma award to %s failed: %s", user_id, exc)
            report.append({"userId": user_id, "success": False, "error": str(exc)})
        else:
            report.append({"userId": user_id, "success": True})
    return report


def try_award_karma(engine: Engine, user_id: str, action: KarmaAction) -> KarmaSnapshot | None:
    """Best-effort award used as a side effect of another write.

    Failures are logged and swallowed; the primary write stays the source
    of truth.
    """
    try:
        return award_karma(engine, user_id, action)
    except (BuzzwinError, SQLAlchemyError):
        logger.exception("Error awarding karma %s to user %s", action.value, user_id)
        return None


def get_user_karma(engine: Engine, user_id: str) -> KarmaSnapshot:
    """Current total and full breakdown for *user_id*."""
    user_id = require_user_id(user_id)
    with Session(engine) as session:
        user = session.get(User, user_id)
        if user is None:
            raise NotFound(f"User {user_id} not found")
        return KarmaSnapshot(user.karma_points or 0, user.karma_breakdown())


def recalculate_user_karma(engine: Engine, user_id: str) -> KarmaSnapshot:
    """Rebuild total and breakdown from the ``karma_log`` journal.

    Repair path for rows edited out of band.
    """
    user_id = require_user_id(user_id)
    with Session(engine) as session:
        user = session.get(User, user_id)
        if user is None:
            raise NotFound(f"User {user_id} not found")

        rows = session.execute(
            select(KarmaLog.category, func.coalesce(func.sum(KarmaLog.points), 0))
            .where(KarmaLog.user_id == user_id)
            .group_by(KarmaLog.category)
        ).all()
        breakdown = default_breakdown()
        for category, points in rows:
            if category in breakdown:
                breakdown[category] = int(points)

        for category, column in CATEGORY_COLUMNS.items():
            setattr(user, column, breakdown[category.value])
        before = user.karma_points
        user.karma_points = sum(breakdown.values())
        user.last_karma_update = datetime.now(UTC)
        session.commit()

        if before != user.karma_points:
            logger.warning(
                "Karma recalculated for %s: %d → %d", user_id, before, user.karma_points,
            )
        return KarmaSnapshot(user.karma_points, user.karma_breakdown())
