"""
buzzwin.api.routes.rituals — Ritual endpoints
===============================================

Join/leave, creation, visibility, completion and the per-user progress
views (stats, achievements, level, leaderboard).
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query

from buzzwin.api.deps import ConfigDep, EngineDep
from buzzwin.api.schemas import CamelModel
from buzzwin.database.models import RitualScope
from buzzwin.services import completion_service, ritual_service

router = APIRouter(prefix="/rituals", tags=["rituals"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class MembershipBody(CamelModel):
    user_id: str | None = None
    ritual_id: int | str | None = None
    ritual_scope: str | None = None  # accepted, not needed for lookup


class CompleteBody(CamelModel):
    user_id: str | None = None
    ritual_id: int | str | None = None
    completed_quietly: Any = None
    shared_as_moment_id: int | str | None = None


class CreateRitualBody(CamelModel):
    user_id: str | None = None
    title: str | None = None
    description: str | None = None
    tags: list[str] | None = None
    effort_level: str | None = None
    suggested_time_of_day: str | None = None
    duration_estimate: str | None = None
    story_id: str | None = None


class CreateFromMomentBody(CamelModel):
    user_id: str | None = None
    moment_id: int | str | None = None
    title: str | None = None
    description: str | None = None
    suggested_time_of_day: str | None = None
    duration_estimate: str | None = None


class VisibilityBody(CamelModel):
    user_id: str | None = None
    scope: str | None = None
    public: bool | None = None


class UserBody(CamelModel):
    user_id: str | None = None


# ---------------------------------------------------------------------------
# Membership
# ---------------------------------------------------------------------------
@router.post("/join")
def join_ritual(body: MembershipBody, engine: EngineDep):
    result = ritual_service.join_ritual(engine, body.ritual_id, body.user_id)
    return {"success": True, "rippleCount": result.ripple_count}


@router.post("/leave")
def leave_ritual(body: MembershipBody, engine: EngineDep):
    result = ritual_service.leave_ritual(engine, body.ritual_id, body.user_id)
    return {"success": True, "rippleCount": result.ripple_count}


@router.get("/my-rituals")
def my_rituals(engine: EngineDep, user_id: str | None = Query(None, alias="userId")):
    return {"success": True, "rituals": ritual_service.list_my_rituals(engine, user_id)}


@router.get("/{ritual_id}/participants")
def participants(
    ritual_id: str, engine: EngineDep, user_id: str | None = Query(None, alias="userId"),
):
    return {"success": True, **ritual_service.list_participants(engine, ritual_id, user_id)}


# ---------------------------------------------------------------------------
# Creation & visibility
# ---------------------------------------------------------------------------
@router.post("/create", status_code=201)
def create_ritual(body: CreateRitualBody, engine: EngineDep):
    ritual = ritual_service.create_ritual(
        engine,
        user_id=body.user_id,
        title=body.title,
        description=body.description,
        tags=body.tags,
        effort_level=body.effort_level,
        suggested_time_of_day=body.suggested_time_of_day,
        duration_estimate=body.duration_estimate,
        story_id=body.story_id,
    )
    return {
        "success": True,
        "ritualId": str(ritual.id),
        "ritual": ritual_service.ritual_to_dict(ritual),
    }


@router.post("/create-from-moment", status_code=201)
def create_from_moment(body: CreateFromMomentBody, engine: EngineDep):
    ritual = ritual_service.create_ritual_from_moment(
        engine,
        user_id=body.user_id,
        moment_id=body.moment_id,
        title=body.title,
        description=body.description,
        suggested_time_of_day=body.suggested_time_of_day,
        duration_estimate=body.duration_estimate,
    )
    return {
        "success": True,
        "ritualId": str(ritual.id),
        "ritual": ritual_service.ritual_to_dict(ritual),
    }


@router.post("/{ritual_id}/visibility")
def set_visibility(ritual_id: str, body: VisibilityBody, engine: EngineDep):
    scope = body.scope
    if scope is None and body.public is not None:
        scope = RitualScope.PUBLIC if body.public else RitualScope.PERSONALIZED
    new_scope, changed = ritual_service.set_visibility(engine, ritual_id, body.user_id, scope)
    if not changed:
        message = "Visibility unchanged"
    else:
        message = "Ritual is now " + ("public" if new_scope == RitualScope.PUBLIC else "private")
    return {"success": True, "scope": new_scope, "message": message}


# ---------------------------------------------------------------------------
# Completion & progress
# ---------------------------------------------------------------------------
@router.post("/complete")
def complete_ritual(body: CompleteBody, engine: EngineDep, cfg: ConfigDep):
    return completion_service.complete_ritual(
        engine,
        user_id=body.user_id,
        ritual_id=body.ritual_id,
        completed_quietly=body.completed_quietly,
        shared_as_moment_id=body.shared_as_moment_id,
        streak_milestones=cfg.streak_milestones,
    )


@router.get("/stats")
def ritual_stats(engine: EngineDep, user_id: str | None = Query(None, alias="userId")):
    stats = completion_service.get_stats(engine, user_id)
    return {"success": True, "stats": stats.to_dict()}


@router.get("/achievements")
def achievements(engine: EngineDep, user_id: str | None = Query(None, alias="userId")):
    return {"success": True, **completion_service.get_achievements(engine, user_id)}


@router.post("/achievements")
def achievements_post(body: UserBody, engine: EngineDep):
    return {"success": True, **completion_service.get_achievements(engine, body.user_id)}


@router.get("/level")
def level(engine: EngineDep, user_id: str | None = Query(None, alias="userId")):
    return {"success": True, **completion_service.get_level_info(engine, user_id)}


@router.get("/leaderboard")
def leaderboard(
    engine: EngineDep,
    limit: int = Query(10, ge=1, le=100),
    user_id: str | None = Query(None, alias="userId"),
):
    """Karma leaderboard with the caller's rank."""
    board = completion_service.get_leaderboard(engine, limit=limit, user_id=user_id)
    return {"success": True, **board}
