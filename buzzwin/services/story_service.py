"""
buzzwin.services.story_service — Story Reactions
==================================================

One reaction per user per story.  Reacting with the type you already hold
removes it; reacting with a different type moves you there without
changing ``reaction_count``.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from buzzwin.constants import VALID_REACTION_TYPES
from buzzwin.database.models import KarmaAction, StoryReaction
from buzzwin.errors import InvalidArgument
from buzzwin.services.karma_service import get_or_create_user, try_award_karma
from buzzwin.services.validation import require_user_id

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")
STORY_KEY_LENGTH = 50


def story_key(story_id: str) -> str:
    """Stable row key for an arbitrary story identifier or title."""
    return _NON_ALNUM.sub("_", story_id).lower()[:STORY_KEY_LENGTH]


def _empty_reactions() -> dict:
    payload: dict = {kind: [] for kind in VALID_REACTION_TYPES}
    payload["reactionCount"] = 0
    return payload


def reactions_to_dict(row: StoryReaction | None) -> dict:
    if row is None:
        return _empty_reactions()
    payload: dict = {kind: list(getattr(row, kind) or []) for kind in VALID_REACTION_TYPES}
    payload["reactionCount"] = row.reaction_count or 0
    return payload


def get_reactions(engine: Engine, story_id: str) -> dict:
    if not story_id or not isinstance(story_id, str):
        raise InvalidArgument("Story ID is required")
    with Session(engine) as session:
        return reactions_to_dict(session.get(StoryReaction, story_key(story_id)))


def toggle_reaction(engine: Engine, story_id: str, user_id: str, reaction_type: str) -> int:
    """Add, switch or remove *user_id*'s reaction and return the new count."""
    user_id = require_user_id(user_id, unauthenticated=True)
    if not story_id or not isinstance(story_id, str):
        raise InvalidArgument("Story ID is required")
    if reaction_type not in VALID_REACTION_TYPES:
        raise InvalidArgument("Valid reaction type is required")

    key = story_key(story_id)
    with Session(engine) as session:
        row = session.get(StoryReaction, key, with_for_update=True)
        if row is None:
            row = StoryReaction(story_key=key, story_id=story_id, reaction_count=0)
            for kind in VALID_REACTION_TYPES:
                setattr(row, kind, [])
            session.add(row)

        # JSON columns are replaced, not mutated in place, so changes are tracked.
        current = list(getattr(row, reaction_type) or [])
        moved_from = None
        for kind in VALID_REACTION_TYPES:
            users = list(getattr(row, kind) or [])
            if kind != reaction_type and user_id in users:
                moved_from = kind
                setattr(row, kind, [u for u in users if u != user_id])

        added = False
        if user_id in current:
            setattr(row, reaction_type, [u for u in current if u != user_id])
            row.reaction_count = max(0, (row.reaction_count or 0) - 1)
        else:
            setattr(row, reaction_type, current + [user_id])
            if moved_from is None:
                row.reaction_count = (row.reaction_count or 0) + 1
                added = True

        row.story_id = story_id
        get_or_create_user(session, user_id)
        session.commit()
        count = row.reaction_count

    logger.info(
        "Story %s reaction %s by %s (%s), count %d",
        key, reaction_type, user_id,
        "added" if added else ("moved" if moved_from else "removed"), count,
    )
    if added:
        try_award_karma(engine, user_id, KarmaAction.RIPPLE_RECEIVED)
    return count
