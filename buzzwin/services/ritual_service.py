"""
buzzwin.services.ritual_service — Ritual Participation Registry
=================================================================

Ritual definitions and who has joined them.

A ritual is one canonical ``rituals`` row.  Its ``scope`` decides who can
see and join it: ``global`` and ``public`` rituals are open to everyone,
``personalized`` rituals only to their creator.  Membership lives in
``ritual_members`` (primary key ``(ritual_id, user_id)``), and
``ripple_count`` is moved in the same transaction as the membership row so
the two never drift apart.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy import case, delete, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from buzzwin.constants import MOMENT_TITLE_LENGTH, VALID_TIMES_OF_DAY
from buzzwin.database.models import ImpactMoment, Ritual, RitualMember, RitualScope
from buzzwin.errors import InvalidArgument, NotFound, Unauthorized
from buzzwin.services.validation import (
    require_int_id,
    require_text,
    require_user_id,
    validate_effort_level,
    validate_tags,
)

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)

OPEN_SCOPES = (RitualScope.GLOBAL.value, RitualScope.PUBLIC.value)


@dataclass(frozen=True, slots=True)
class MembershipResult:
    changed: bool
    ripple_count: int


def ritual_to_dict(ritual: Ritual, *, joined: bool | None = None) -> dict:
    payload = {
        "id": str(ritual.id),
        "title": ritual.title,
        "description": ritual.description,
        "tags": list(ritual.tags or []),
        "effortLevel": ritual.effort_level,
        "scope": ritual.scope,
        "suggestedTimeOfDay": ritual.suggested_time_of_day,
        "durationEstimate": ritual.duration_estimate,
        "prefillTemplate": ritual.prefill_template,
        "createdBy": ritual.created_by,
        "createdFromMomentId": (
            str(ritual.created_from_moment_id) if ritual.created_from_moment_id else None
        ),
        "storyId": ritual.story_id,
        "rippleCount": ritual.ripple_count,
        "createdAt": ritual.created_at.isoformat() if ritual.created_at else None,
    }
    if joined is not None:
        payload["joined"] = joined
    return payload


def _can_see(ritual: Ritual, user_id: str) -> bool:
    return ritual.scope in OPEN_SCOPES or ritual.created_by == user_id


def _lookup_id(ritual_id: object) -> int | None:
    """Numeric ritual id, ``None`` for ids that cannot exist.

    An empty id is a caller error; a malformed one simply matches nothing.
    """
    if ritual_id in (None, ""):
        raise InvalidArgument("Ritual ID is required")
    try:
        return require_int_id(ritual_id, "Ritual ID")
    except InvalidArgument:
        return None


# ---------------------------------------------------------------------------
# Join / leave
# ---------------------------------------------------------------------------
def join_ritual(engine: Engine, ritual_id: object, user_id: str) -> MembershipResult:
    """Add *user_id* to the ritual's members.

    Idempotent: joining twice leaves members and ``ripple_count`` as after
    the first call.

    Raises
    ------
    NotFound
        The ritual does not exist or is a private ritual of another user.
    """
    user_id = require_user_id(user_id, unauthenticated=True)
    rid = _lookup_id(ritual_id)

    with Session(engine) as session:
        ritual = session.get(Ritual, rid) if rid is not None else None
        if ritual is None or not _can_see(ritual, user_id):
            raise NotFound("Ritual not found")

        if session.get(RitualMember, (rid, user_id)) is not None:
            return MembershipResult(False, ritual.ripple_count)

        try:
            session.add(RitualMember(ritual_id=rid, user_id=user_id))
            session.flush()
            session.execute(
                update(Ritual)
                .where(Ritual.id == rid)
                .values(ripple_count=Ritual.ripple_count + 1)
                .execution_options(synchronize_session=False)
            )
            session.commit()
        except IntegrityError:
            # A concurrent join inserted the same member first.
            session.rollback()
            ritual = session.get(Ritual, rid)
            return MembershipResult(False, ritual.ripple_count if ritual else 0)

        session.refresh(ritual)
        logger.info("User %s joined ritual %d (ripples=%d)", user_id, rid, ritual.ripple_count)
        return MembershipResult(True, ritual.ripple_count)


def leave_ritual(engine: Engine, ritual_id: object, user_id: str) -> MembershipResult:
    """Remove *user_id* from the ritual's members.

    Idempotent: leaving a ritual you never joined changes nothing.  A
    ritual that cannot be found is also a silent no-op.  ``ripple_count``
    is clamped at zero.
    """
    user_id = require_user_id(user_id, unauthenticated=True)
    rid = _lookup_id(ritual_id)

    with Session(engine) as session:
        ritual = session.get(Ritual, rid) if rid is not None else None
        if ritual is None:
            logger.debug("Leave ignored: ritual %r not found", ritual_id)
            return MembershipResult(False, 0)

        removed = session.execute(
            delete(RitualMember).where(
                RitualMember.ritual_id == rid, RitualMember.user_id == user_id,
            )
        ).rowcount
        if not removed:
            return MembershipResult(False, ritual.ripple_count)

        session.execute(
            update(Ritual)
            .where(Ritual.id == rid)
            .values(ripple_count=case(
                (Ritual.ripple_count > 0, Ritual.ripple_count - 1), else_=0,
            ))
            .execution_options(synchronize_session=False)
        )
        session.commit()
        session.refresh(ritual)
        logger.info("User %s left ritual %d (ripples=%d)", user_id, rid, ritual.ripple_count)
        return MembershipResult(True, ritual.ripple_count)


def list_participants(engine: Engine, ritual_id: object, user_id: str | None = None) -> dict:
    """Members of a ritual plus its ripple count.

    With *user_id*, also reports whether that user has joined.
    """
    rid = _lookup_id(ritual_id)
    with Session(engine) as session:
        ritual = session.get(Ritual, rid) if rid is not None else None
        if ritual is None:
            raise NotFound("Ritual not found")
        members = session.scalars(
            select(RitualMember.user_id)
            .where(RitualMember.ritual_id == rid)
            .order_by(RitualMember.joined_at, RitualMember.user_id)
        ).all()
        payload = {
            "ritualId": str(ritual.id),
            "ritualTitle": ritual.title,
            "participants": list(members),
            "rippleCount": ritual.ripple_count,
        }
        if user_id:
            payload["userHasJoined"] = user_id in members
        return payload


def list_my_rituals(engine: Engine, user_id: str) -> list[dict]:
    """Rituals the user created or joined, newest first."""
    user_id = require_user_id(user_id)
    with Session(engine) as session:
        joined_ids = set(session.scalars(
            select(RitualMember.ritual_id).where(RitualMember.user_id == user_id)
        ).all())
        rituals = session.scalars(
            select(Ritual)
            .where(or_(Ritual.created_by == user_id, Ritual.id.in_(joined_ids)))
            .order_by(Ritual.created_at.desc(), Ritual.id.desc())
        ).all()
        return [ritual_to_dict(r, joined=r.id in joined_ids) for r in rituals]


def get_visible_ritual(session: Session, ritual_id: object, user_id: str) -> Ritual:
    """Ritual the user may complete; :class:`NotFound` otherwise."""
    rid = _lookup_id(ritual_id)
    ritual = session.get(Ritual, rid) if rid is not None else None
    if ritual is None or not _can_see(ritual, user_id):
        raise NotFound("Ritual not found")
    return ritual


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------
def create_ritual(
    engine: Engine,
    *,
    user_id: str,
    title: str,
    description: str,
    tags: list[str],
    effort_level: str,
    suggested_time_of_day: str | None = None,
    duration_estimate: str | None = None,
    story_id: str | None = None,
    created_from_moment_id: int | None = None,
) -> Ritual:
    """Create a personalized ritual owned by *user_id*."""
    user_id = require_user_id(user_id, unauthenticated=True)
    title = require_text(title, "Title")
    description = require_text(description, "Description")
    tags = validate_tags(tags)
    effort_level = validate_effort_level(effort_level)
    time_of_day = suggested_time_of_day or "anytime"
    if time_of_day not in VALID_TIMES_OF_DAY:
        raise InvalidArgument("Invalid suggested time of day")

    ritual = Ritual(
        title=title,
        description=description,
        tags=tags,
        effort_level=effort_level,
        scope=RitualScope.PERSONALIZED.value,
        suggested_time_of_day=time_of_day,
        duration_estimate=duration_estimate or "5 minutes",
        prefill_template=f"Completed ritual: {title}\n\n{description}",
        created_by=user_id,
        created_from_moment_id=created_from_moment_id,
        story_id=story_id,
        ripple_count=0,
    )
    with Session(engine, expire_on_commit=False) as session:
        session.add(ritual)
        session.commit()
        session.refresh(ritual)
        session.expunge(ritual)

    logger.info("User %s created ritual %d (%s)", user_id, ritual.id, ritual.title)
    return ritual


def create_ritual_from_moment(
    engine: Engine,
    *,
    user_id: str,
    moment_id: object,
    title: str | None = None,
    description: str | None = None,
    suggested_time_of_day: str | None = None,
    duration_estimate: str | None = None,
) -> Ritual:
    """Turn an impact moment into a personalized ritual.

    Title defaults to the first 50 characters of the moment text and the
    description to the full text; tags and effort are inherited.
    """
    user_id = require_user_id(user_id, unauthenticated=True)
    mid = require_int_id(moment_id, "Moment ID")

    with Session(engine) as session:
        moment = session.get(ImpactMoment, mid)
        if moment is None:
            raise NotFound("Impact moment not found")
        text = moment.text or ""
        tags = list(moment.tags or [])
        effort = moment.effort_level or "medium"

    ritual_title = (title or "").strip() or text[:MOMENT_TITLE_LENGTH] or "New Ritual"
    ritual_description = (
        (description or "").strip() or text or "A ritual inspired by an impact moment"
    )

    ritual = Ritual(
        title=ritual_title,
        description=ritual_description,
        tags=tags,
        effort_level=effort,
        scope=RitualScope.PERSONALIZED.value,
        suggested_time_of_day=suggested_time_of_day or "anytime",
        duration_estimate=duration_estimate or "5 minutes",
        prefill_template=text or f"Completed ritual: {ritual_title}",
        created_by=user_id,
        created_from_moment_id=mid,
        ripple_count=0,
    )
    with Session(engine, expire_on_commit=False) as session:
        session.add(ritual)
        session.commit()
        session.refresh(ritual)
        session.expunge(ritual)

    logger.info("User %s converted moment %d into ritual %d", user_id, mid, ritual.id)
    return ritual


def set_visibility(
    engine: Engine, ritual_id: object, user_id: str, scope: str | None,
) -> tuple[str, bool]:
    """Publish (``public``) or unpublish (``personalized``) an owned ritual.

    Returns ``(scope, changed)``.  Members and ``ripple_count`` are kept
    across scope changes.
    """
    user_id = require_user_id(user_id, unauthenticated=True)
    if scope not in (RitualScope.PERSONALIZED.value, RitualScope.PUBLIC.value):
        raise InvalidArgument("Valid scope is required (personalized or public)")
    rid = require_int_id(ritual_id, "Ritual ID")

    with Session(engine) as session:
        ritual = session.get(Ritual, rid)
        if ritual is None or not _can_see(ritual, user_id):
            raise NotFound("Ritual not found")
        if ritual.created_by != user_id:
            raise Unauthorized(
                "Forbidden. You can only change visibility of your own rituals."
            )
        if ritual.scope == scope:
            return str(scope), False
        old = ritual.scope
        ritual.scope = str(scope)
        session.commit()
        logger.info("Ritual %d visibility %s → %s", rid, old, scope)
        return str(scope), True
