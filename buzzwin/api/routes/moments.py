"""
buzzwin.api.routes.moments — Impact moment & comment endpoints
================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Body, Query

from buzzwin.api.deps import EngineDep
from buzzwin.api.schemas import CamelModel
from buzzwin.services import moment_service

router = APIRouter(tags=["moments"])


class MoodCheckIn(CamelModel):
    before: int | None = None
    after: int | None = None


class MomentBody(CamelModel):
    user_id: str | None = None
    text: str | None = None
    tags: list[str] | None = None
    effort_level: str | None = None
    mood_check_in: MoodCheckIn | None = None
    images: list[str] | None = None
    video_url: str | None = None
    from_daily_ritual: bool | None = None
    ritual_id: int | str | None = None
    ritual_title: str | None = None

    def to_input(self) -> moment_service.MomentInput:
        mood = self.mood_check_in
        ritual_id = self.ritual_id
        if isinstance(ritual_id, str):
            ritual_id = int(ritual_id) if ritual_id.strip().isdigit() else None
        return moment_service.MomentInput(
            text=self.text,
            tags=self.tags,
            effort_level=self.effort_level,
            mood_before=mood.before if mood else None,
            mood_after=mood.after if mood else None,
            has_mood=mood is not None,
            images=list(self.images or []),
            video_url=self.video_url,
            from_daily_ritual=bool(self.from_daily_ritual),
            ritual_id=ritual_id,
            ritual_title=self.ritual_title,
        )


class DeleteBody(CamelModel):
    user_id: str | None = None


class CommentBody(CamelModel):
    user_id: str | None = None
    moment_id: int | str | None = None
    text: str | None = None


# ---------------------------------------------------------------------------
# Impact moments
# ---------------------------------------------------------------------------
@router.post("/impact-moments", status_code=201)
def create_moment(body: MomentBody, engine: EngineDep):
    moment_id = moment_service.create_moment(engine, body.user_id, body.to_input())
    return {
        "success": True,
        "id": str(moment_id),
        "momentId": str(moment_id),
        "message": "Impact moment created successfully",
    }


@router.api_route("/impact-moments/{moment_id}", methods=["PUT", "PATCH"])
def update_moment(moment_id: str, body: MomentBody, engine: EngineDep):
    moment_service.update_moment(engine, moment_id, body.user_id, body.to_input())
    return {"success": True, "message": "Ritual share updated successfully"}


@router.delete("/impact-moments/{moment_id}")
def delete_moment(
    moment_id: str,
    engine: EngineDep,
    body: DeleteBody | None = Body(None),
    user_id: str | None = Query(None, alias="userId"),
):
    caller = body.user_id if body and body.user_id else user_id
    moment_service.delete_moment(engine, moment_id, caller)
    return {"success": True, "message": "Ritual share deleted successfully"}


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------
@router.post("/comments", status_code=201)
def create_comment(body: CommentBody, engine: EngineDep):
    comment_id = moment_service.create_comment(engine, body.user_id, body.moment_id, body.text)
    return {"success": True, "commentId": str(comment_id)}
