"""
buzzwin.engine.achievements — Achievement Evaluation
======================================================

Handler-registry evaluation over a fixed achievement catalogue.  Each
category maps to a pure handler ``(threshold, ctx) -> bool``.

This module is pure calculation — no database I/O.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AchievementDefinition:
    id: str
    name: str
    description: str
    icon: str
    category: str  # karma | streak | completion
    threshold: int

    def to_dict(self, unlocked: bool) -> dict:
        threshold_key = {
            "karma": "karmaThreshold",
            "streak": "streakThreshold",
            "completion": "completionThreshold",
        }[self.category]
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "icon": self.icon,
            "category": self.category,
            threshold_key: self.threshold,
            "unlocked": unlocked,
        }


@dataclass(frozen=True, slots=True)
class AchievementContext:
    """Snapshot of user progress passed to every handler.

    Parameters
    ----------
    karma_points : Current karma total.
    current_streak : Streak computed from the completion history.
    total_completions : Number of ritual completions ever recorded.
    """

    karma_points: int = 0
    current_streak: int = 0
    total_completions: int = 0


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------
ACHIEVEMENTS: tuple[AchievementDefinition, ...] = (
    AchievementDefinition("karma_50", "Getting Started", "Reach 50 karma points", "\U0001f331", "karma", 50),
    AchievementDefinition("karma_100", "Rising Star", "Reach 100 karma points", "⭐", "karma", 100),
    AchievementDefinition("karma_250", "Making Impact", "Reach 250 karma points", "✨", "karma", 250),
    AchievementDefinition("karma_500", "Karma Champion", "Reach 500 karma points", "\U0001f3c6", "karma", 500),
    AchievementDefinition("karma_1000", "Karma Master", "Reach 1,000 karma points", "\U0001f451", "karma", 1000),
    AchievementDefinition("streak_7", "Week Warrior", "Complete rituals for 7 days in a row", "\U0001f4aa", "streak", 7),
    AchievementDefinition("streak_30", "Monthly Master", "Complete rituals for 30 days in a row", "\U0001f3af", "streak", 30),
    AchievementDefinition("completion_10", "Getting Into It", "Complete 10 rituals", "\U0001f4dd", "completion", 10),
    AchievementDefinition("completion_100", "Century Club", "Complete 100 rituals", "\U0001f4af", "completion", 100),
)


# ---------------------------------------------------------------------------
# Handlers — pure functions (threshold, ctx) → bool
# ---------------------------------------------------------------------------
def _check_karma(threshold: int, ctx: AchievementContext) -> bool:
    return ctx.karma_points >= threshold


def _check_streak(threshold: int, ctx: AchievementContext) -> bool:
    return ctx.current_streak >= threshold


def _check_completion(threshold: int, ctx: AchievementContext) -> bool:
    return ctx.total_completions >= threshold


CATEGORY_HANDLERS: dict[str, Callable[[int, AchievementContext], bool]] = {
    "karma": _check_karma,
    "streak": _check_streak,
    "completion": _check_completion,
}


def evaluate_achievements(ctx: AchievementContext) -> tuple[list[dict], list[str]]:
    """Evaluate the whole catalogue.

    Returns ``(achievements, unlocked_ids)`` where each achievement dict
    carries an ``unlocked`` flag.
    """
    payload: list[dict] = []
    unlocked: list[str] = []
    for definition in ACHIEVEMENTS:
        handler = CATEGORY_HANDLERS.get(definition.category)
        earned = bool(handler and handler(definition.threshold, ctx))
        if earned:
            unlocked.append(definition.id)
        payload.append(definition.to_dict(earned))

    logger.debug("Achievements evaluated: %d/%d unlocked", len(unlocked), len(ACHIEVEMENTS))
    return payload, unlocked
