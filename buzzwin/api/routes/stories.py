"""
buzzwin.api.routes.stories — Story reaction endpoints
=======================================================
"""

from __future__ import annotations

from fastapi import APIRouter

from buzzwin.api.deps import EngineDep
from buzzwin.api.schemas import CamelModel
from buzzwin.services import story_service

router = APIRouter(prefix="/story-reactions", tags=["stories"])


class ReactionBody(CamelModel):
    story_id: str | None = None
    user_id: str | None = None
    reaction_type: str | None = None


@router.post("")
def toggle_reaction(body: ReactionBody, engine: EngineDep):
    count = story_service.toggle_reaction(
        engine, body.story_id, body.user_id, body.reaction_type,
    )
    return {"success": True, "reactionCount": count}


@router.get("/{story_id}")
def get_reactions(story_id: str, engine: EngineDep):
    return {"success": True, "reactions": story_service.get_reactions(engine, story_id)}
