"""
tests/test_achievements.py — Achievement Catalogue Evaluation
===============================================================

Tests the handler-registry evaluation with AchievementContext.
"""

from __future__ import annotations

import pytest

from buzzwin.engine.achievements import (
    ACHIEVEMENTS,
    CATEGORY_HANDLERS,
    AchievementContext,
    evaluate_achievements,
)


def _ctx(**kwargs) -> AchievementContext:
    """Build an AchievementContext with sensible defaults."""
    return AchievementContext(**kwargs)


class TestCatalogue:
    def test_ids_are_unique(self):
        ids = [a.id for a in ACHIEVEMENTS]
        assert len(ids) == len(set(ids))

    def test_every_category_has_a_handler(self):
        assert {a.category for a in ACHIEVEMENTS} <= set(CATEGORY_HANDLERS)

    def test_catalogue_contents(self):
        assert [a.id for a in ACHIEVEMENTS] == [
            "karma_50", "karma_100", "karma_250", "karma_500", "karma_1000",
            "streak_7", "streak_30", "completion_10", "completion_100",
        ]


class TestEvaluate:
    def test_new_user_unlocks_nothing(self):
        achievements, unlocked = evaluate_achievements(_ctx())
        assert unlocked == []
        assert len(achievements) == len(ACHIEVEMENTS)
        assert not any(a["unlocked"] for a in achievements)

    def test_karma_thresholds_are_inclusive(self):
        _, unlocked = evaluate_achievements(_ctx(karma_points=100))
        assert unlocked == ["karma_50", "karma_100"]

    def test_streak_and_completion(self):
        _, unlocked = evaluate_achievements(_ctx(current_streak=7, total_completions=10))
        assert unlocked == ["streak_7", "completion_10"]

    @pytest.mark.parametrize("category, key", [
        ("karma", "karmaThreshold"),
        ("streak", "streakThreshold"),
        ("completion", "completionThreshold"),
    ])
    def test_threshold_key_matches_category(self, category, key):
        achievements, _ = evaluate_achievements(_ctx())
        sample = next(a for a in achievements if a["category"] == category)
        assert key in sample

    def test_everything_unlocked(self):
        _, unlocked = evaluate_achievements(
            _ctx(karma_points=5000, current_streak=45, total_completions=300)
        )
        assert len(unlocked) == len(ACHIEVEMENTS)
