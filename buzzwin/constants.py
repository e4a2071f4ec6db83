"""
buzzwin.constants — Shared Constants & Helpers
================================================

Single source of truth for validation vocabularies and the leveling
formula.  Import from here instead of duplicating in services and routes.
"""

from __future__ import annotations

import math

from buzzwin.database.models import EffortLevel, ImpactTag, StoryReactionType

# ---------------------------------------------------------------------------
# Validation vocabularies
# ---------------------------------------------------------------------------
VALID_TAGS: frozenset[str] = frozenset(t.value for t in ImpactTag)
VALID_EFFORT_LEVELS: frozenset[str] = frozenset(e.value for e in EffortLevel)
VALID_REACTION_TYPES: tuple[str, ...] = tuple(r.value for r in StoryReactionType)
VALID_TIMES_OF_DAY: frozenset[str] = frozenset({"morning", "afternoon", "evening", "anytime"})

MOOD_MIN = 1
MOOD_MAX = 5

# Title length used when a ritual is derived from an impact moment
MOMENT_TITLE_LENGTH = 50

# ---------------------------------------------------------------------------
# Stats milestones
# ---------------------------------------------------------------------------
STREAK_MILESTONES: tuple[int, ...] = (7, 14, 30, 60, 100)
COMPLETION_MILESTONES: tuple[int, ...] = (10, 25, 50, 100, 250, 500)


# ---------------------------------------------------------------------------
# Leveling formula — THE single canonical implementation
# ---------------------------------------------------------------------------
LINEAR_LEVEL_COST = 100
LINEAR_LEVEL_CAP = 10
LEVEL_GROWTH = 1.2


def calculate_level(karma_points: int) -> int:
    """Level reached with *karma_points*.

    Levels 1–10 cost a flat 100 karma each.  From 1000 karma onward every
    level costs 20 % more than the previous threshold (floored)::

        level 11 = 1000, level 12 = 1200, level 13 = 1440, ...
    """
    if karma_points < 0:
        return 1
    if karma_points < LINEAR_LEVEL_CAP * LINEAR_LEVEL_COST:
        return karma_points // LINEAR_LEVEL_COST + 1

    level = LINEAR_LEVEL_CAP
    required = LINEAR_LEVEL_CAP * LINEAR_LEVEL_COST
    while karma_points >= required:
        level += 1
        required = math.floor(required * LEVEL_GROWTH)
    return level


def get_karma_for_level(level: int) -> int:
    """Karma threshold associated with *level*."""
    if level <= 0:
        return 0
    if level <= LINEAR_LEVEL_CAP:
        return (level - 1) * LINEAR_LEVEL_COST

    required = LINEAR_LEVEL_CAP * LINEAR_LEVEL_COST
    for _ in range(LINEAR_LEVEL_CAP + 2, level + 1):
        required = math.floor(required * LEVEL_GROWTH)
    return required


def get_karma_for_next_level(karma_points: int) -> int:
    return get_karma_for_level(calculate_level(karma_points) + 1)


def get_progress_to_next_level(karma_points: int) -> float:
    """Percentage (0–100) of the way from the current level to the next."""
    level = calculate_level(karma_points)
    floor_karma = get_karma_for_level(level)
    next_karma = get_karma_for_level(level + 1)
    span = next_karma - floor_karma
    if span == 0:
        return 100.0
    return min(100.0, max(0.0, (karma_points - floor_karma) / span * 100))


def get_karma_remaining_for_next_level(karma_points: int) -> int:
    return max(0, get_karma_for_next_level(karma_points) - karma_points)
