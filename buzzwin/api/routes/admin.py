"""
buzzwin.api.routes.admin — Maintenance endpoints (admin JWT required)
=======================================================================
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from buzzwin.api.deps import EngineDep, get_current_admin
from buzzwin.services import karma_service, reconciliation_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/reconcile-ripples")
def reconcile_ripples(engine: EngineDep, admin: dict = Depends(get_current_admin)):
    logger.info("Ripple reconciliation requested by admin %s", admin.get("sub"))
    return reconciliation_service.reconcile_ripple_counts(engine)


@router.post("/karma/{user_id}/recalculate")
def recalculate_karma(
    user_id: str, engine: EngineDep, admin: dict = Depends(get_current_admin),
):
    logger.info("Karma recalculation for %s requested by admin %s", user_id, admin.get("sub"))
    snapshot = karma_service.recalculate_user_karma(engine, user_id)
    return {"success": True, **snapshot.to_dict()}
