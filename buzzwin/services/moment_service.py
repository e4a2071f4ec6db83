"""
buzzwin.services.moment_service — Impact Moments & Comments
=============================================================

Create, edit and delete impact moments, and comment on them.  Every write
that earns karma awards it after the primary row commits, through
:func:`try_award_karma`, so a karma failure never loses the moment or
comment itself.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from buzzwin.database.models import ImpactMoment, KarmaAction, MomentComment
from buzzwin.errors import NotFound, Unauthorized
from buzzwin.services.karma_service import get_or_create_user, try_award_karma
from buzzwin.services.validation import (
    require_int_id,
    require_text,
    require_user_id,
    validate_effort_level,
    validate_mood,
    validate_tags,
)

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)


@dataclass
class MomentInput:
    """Fields accepted when creating or editing an impact moment."""

    text: str
    tags: list[str]
    effort_level: str
    mood_before: int | None = None
    mood_after: int | None = None
    images: list[str] = field(default_factory=list)
    video_url: str | None = None
    from_daily_ritual: bool = False
    ritual_id: int | None = None
    ritual_title: str | None = None
    has_mood: bool = False

    def validate(self) -> None:
        self.text = require_text(self.text, "Text")
        self.tags = validate_tags(self.tags)
        self.effort_level = validate_effort_level(self.effort_level)
        if self.has_mood:
            validate_mood(self.mood_before, self.mood_after)


def karma_action_for(data: MomentInput) -> KarmaAction:
    """Ritual-sourced beats mood check-in beats plain creation."""
    if data.from_daily_ritual:
        return KarmaAction.IMPACT_MOMENT_FROM_RITUAL
    if data.has_mood:
        return KarmaAction.IMPACT_MOMENT_WITH_MOOD
    return KarmaAction.IMPACT_MOMENT_CREATED


def _owned_moment(session: Session, moment_id: object, user_id: object, verb: str) -> ImpactMoment:
    mid = require_int_id(moment_id, "Ritual share ID")
    moment = session.get(ImpactMoment, mid)
    if moment is None:
        raise NotFound("Ritual share not found")
    user_id = require_user_id(user_id, unauthenticated=True)
    if moment.created_by != user_id:
        raise Unauthorized(f"Forbidden. You can only {verb} your own ritual shares.")
    return moment


# ---------------------------------------------------------------------------
# Impact moments
# ---------------------------------------------------------------------------
def create_moment(engine: Engine, user_id: str, data: MomentInput) -> int:
    """Persist a new impact moment and return its id."""
    user_id = require_user_id(user_id, unauthenticated=True)
    data.validate()

    with Session(engine) as session:
        get_or_create_user(session, user_id)
        moment = ImpactMoment(
            text=data.text,
            tags=data.tags,
            effort_level=data.effort_level,
            created_by=user_id,
            mood_before=data.mood_before if data.has_mood else None,
            mood_after=data.mood_after if data.has_mood else None,
            from_daily_ritual=data.from_daily_ritual,
            ritual_id=data.ritual_id,
            ritual_title=data.ritual_title,
            images=data.images or None,
            video_url=data.video_url or None,
        )
        session.add(moment)
        session.commit()
        moment_id = moment.id

    logger.info("User %s created impact moment %d", user_id, moment_id)
    try_award_karma(engine, user_id, karma_action_for(data))
    return moment_id


def update_moment(engine: Engine, moment_id: object, user_id: object, data: MomentInput) -> None:
    """Replace text, tags and effort of an owned moment.

    Mood, images and video are only touched when provided.
    """
    with Session(engine) as session:
        moment = _owned_moment(session, moment_id, user_id, "edit")
        data.validate()

        moment.text = data.text
        moment.tags = data.tags
        moment.effort_level = data.effort_level
        if data.has_mood:
            moment.mood_before = data.mood_before
            moment.mood_after = data.mood_after
        if data.images:
            moment.images = data.images
        if data.video_url is not None:
            moment.video_url = data.video_url or None
        moment.updated_at = datetime.now(UTC)
        session.commit()
        logger.info("Impact moment %d updated", moment.id)


def delete_moment(engine: Engine, moment_id: object, user_id: object) -> None:
    with Session(engine) as session:
        moment = _owned_moment(session, moment_id, user_id, "delete")
        session.delete(moment)
        session.commit()
        logger.info("Impact moment %s deleted by %s", moment_id, user_id)


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------
def create_comment(engine: Engine, user_id: str, moment_id: object, text: str) -> int:
    """Comment on a moment.

    Awards ``comment_created`` to the commenter and ``ripple_received`` to
    the moment's creator unless they are commenting on their own moment.
    """
    user_id = require_user_id(user_id)
    mid = require_int_id(moment_id, "Moment ID")
    text = require_text(text, "Comment text")

    with Session(engine) as session:
        moment = session.get(ImpactMoment, mid)
        if moment is None:
            raise NotFound("Impact moment not found")
        creator_id = moment.created_by

        get_or_create_user(session, user_id)
        comment = MomentComment(moment_id=mid, text=text, created_by=user_id)
        session.add(comment)
        session.commit()
        comment_id = comment.id

    logger.info("User %s commented on moment %d", user_id, mid)
    try_award_karma(engine, user_id, KarmaAction.COMMENT_CREATED)
    if creator_id and creator_id != user_id:
        try_award_karma(engine, creator_id, KarmaAction.RIPPLE_RECEIVED)
    return comment_id
