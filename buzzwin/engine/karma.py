"""
buzzwin.engine.karma — Karma Action Table
==========================================

Closed mapping of :class:`KarmaAction` → ``(points, category)``.
This module is pure lookup — no database I/O.
"""

from __future__ import annotations

from dataclasses import dataclass

from buzzwin.database.models import KarmaAction, KarmaCategory

__all__ = [
    "KARMA_RULES",
    "KarmaRule",
    "default_breakdown",
    "get_karma_category",
    "get_karma_points",
    "parse_action",
]


@dataclass(frozen=True, slots=True)
class KarmaRule:
    points: int
    category: KarmaCategory


# ---------------------------------------------------------------------------
# Point values per action
# ---------------------------------------------------------------------------
KARMA_RULES: dict[KarmaAction, KarmaRule] = {
    KarmaAction.IMPACT_MOMENT_CREATED: KarmaRule(10, KarmaCategory.IMPACT_MOMENTS),
    KarmaAction.IMPACT_MOMENT_WITH_MOOD: KarmaRule(15, KarmaCategory.IMPACT_MOMENTS),
    KarmaAction.IMPACT_MOMENT_FROM_RITUAL: KarmaRule(12, KarmaCategory.IMPACT_MOMENTS),
    KarmaAction.RITUAL_COMPLETED_QUIET: KarmaRule(5, KarmaCategory.RITUALS),
    KarmaAction.RITUAL_COMPLETED_SHARED: KarmaRule(10, KarmaCategory.RITUALS),
    KarmaAction.COMMENT_CREATED: KarmaRule(3, KarmaCategory.ENGAGEMENT),
    KarmaAction.RIPPLE_RECEIVED: KarmaRule(2, KarmaCategory.ENGAGEMENT),
    KarmaAction.JOINED_YOU_RECEIVED: KarmaRule(15, KarmaCategory.CHAINS),
    KarmaAction.JOINED_YOU_CREATED: KarmaRule(10, KarmaCategory.CHAINS),
    KarmaAction.STREAK_MILESTONE_7: KarmaRule(25, KarmaCategory.MILESTONES),
    KarmaAction.STREAK_MILESTONE_30: KarmaRule(100, KarmaCategory.MILESTONES),
    KarmaAction.IMPACT_MILESTONE_100: KarmaRule(50, KarmaCategory.MILESTONES),
    KarmaAction.IMPACT_MILESTONE_500: KarmaRule(250, KarmaCategory.MILESTONES),
}


def parse_action(value: str | KarmaAction) -> KarmaAction | None:
    """Return the matching :class:`KarmaAction`, or ``None`` if unknown."""
    try:
        return KarmaAction(value)
    except ValueError:
        return None


def get_karma_points(action: KarmaAction) -> int:
    return KARMA_RULES[action].points


def get_karma_category(action: KarmaAction) -> KarmaCategory:
    return KARMA_RULES[action].category


def default_breakdown() -> dict[str, int]:
    """All categories present, all zero."""
    return {category.value: 0 for category in KarmaCategory}
