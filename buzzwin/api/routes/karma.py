"""
buzzwin.api.routes.karma — Karma ledger endpoints
===================================================
"""

from __future__ import annotations

from fastapi import APIRouter

from buzzwin.api.deps import EngineDep
from buzzwin.api.schemas import CamelModel
from buzzwin.services import karma_service

router = APIRouter(prefix="/karma", tags=["karma"])


class AwardKarmaBody(CamelModel):
    user_id: str | None = None
    action: str | None = None


@router.post("/award")
def award_karma(body: AwardKarmaBody, engine: EngineDep):
    snapshot = karma_service.award_karma(engine, body.user_id, body.action)
    return {"success": True, **snapshot.to_dict()}


@router.get("/{user_id}")
def get_karma(user_id: str, engine: EngineDep):
    snapshot = karma_service.get_user_karma(engine, user_id)
    return {"success": True, **snapshot.to_dict()}
