"""
buzzwin.services.reconciliation_service — Ripple Count Reconciliation
======================================================================

Repair job that validates ``rituals.ripple_count`` against the rows in
``ritual_members`` and corrects drift if found.

How it works:
    1. Query ``COUNT(*)`` from ``ritual_members`` grouped by ritual.
    2. Compare against the stored ``ripple_count`` of every ritual.
    3. If there is a mismatch, overwrite the counter with the true count.
    4. Log all corrections for audit.

Join and leave keep both in step within one transaction, so drift only
appears after out-of-band edits or rows imported from elsewhere.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy import Engine, func, select, update

from buzzwin.database.engine import get_session
from buzzwin.database.models import Ritual, RitualMember

logger = logging.getLogger(__name__)


def reconcile_ripple_counts(engine: Engine) -> dict:
    """Reset every drifted ``ripple_count`` to the real membership size.

    Returns ``{"checked": N, "corrected": M, "corrections": [...], "timestamp"}``.
    """
    corrections: list[dict] = []

    with get_session(engine) as session:
        # Ground truth: members per ritual
        truth_map: dict[int, int] = {
            row.ritual_id: row.actual
            for row in session.execute(
                select(RitualMember.ritual_id, func.count().label("actual"))
                .group_by(RitualMember.ritual_id)
            ).all()
        }

        stored_rows = session.execute(select(Ritual.id, Ritual.ripple_count)).all()
        checked = len(stored_rows)

        for ritual_id, stored in stored_rows:
            actual = truth_map.get(ritual_id, 0)
            if stored == actual:
                continue
            corrections.append({
                "ritual_id": ritual_id,
                "stored": stored,
                "actual": actual,
                "diff": actual - stored,
            })
            session.execute(
                update(Ritual)
                .where(Ritual.id == ritual_id)
                .values(ripple_count=actual)
                .execution_options(synchronize_session=False)
            )

    if corrections:
        logger.warning(
            "Ripple reconciliation: corrected %d/%d rituals: %s",
            len(corrections), checked, corrections,
        )
    else:
        logger.info("Ripple reconciliation: all %d rituals match", checked)

    return {
        "checked": checked,
        "corrected": len(corrections),
        "corrections": corrections,
        "timestamp": datetime.now(UTC).isoformat(),
    }
