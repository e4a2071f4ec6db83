"""
tests/test_karma_engine.py — Karma Action Table & Leveling Formula
====================================================================

Pure lookups and arithmetic; no database involved.
"""

from __future__ import annotations

import pytest

from buzzwin.constants import (
    calculate_level,
    get_karma_for_level,
    get_karma_for_next_level,
    get_karma_remaining_for_next_level,
    get_progress_to_next_level,
)
from buzzwin.database.models import KarmaAction, KarmaCategory
from buzzwin.engine.karma import (
    KARMA_RULES,
    default_breakdown,
    get_karma_category,
    get_karma_points,
    parse_action,
)


# ===========================================================================
# Action table
# ===========================================================================
class TestKarmaRules:
    @pytest.mark.parametrize("action, points, category", [
        (KarmaAction.IMPACT_MOMENT_CREATED, 10, KarmaCategory.IMPACT_MOMENTS),
        (KarmaAction.IMPACT_MOMENT_WITH_MOOD, 15, KarmaCategory.IMPACT_MOMENTS),
        (KarmaAction.IMPACT_MOMENT_FROM_RITUAL, 12, KarmaCategory.IMPACT_MOMENTS),
        (KarmaAction.RITUAL_COMPLETED_QUIET, 5, KarmaCategory.RITUALS),
        (KarmaAction.RITUAL_COMPLETED_SHARED, 10, KarmaCategory.RITUALS),
        (KarmaAction.COMMENT_CREATED, 3, KarmaCategory.ENGAGEMENT),
        (KarmaAction.RIPPLE_RECEIVED, 2, KarmaCategory.ENGAGEMENT),
        (KarmaAction.JOINED_YOU_RECEIVED, 15, KarmaCategory.CHAINS),
        (KarmaAction.JOINED_YOU_CREATED, 10, KarmaCategory.CHAINS),
        (KarmaAction.STREAK_MILESTONE_7, 25, KarmaCategory.MILESTONES),
        (KarmaAction.STREAK_MILESTONE_30, 100, KarmaCategory.MILESTONES),
        (KarmaAction.IMPACT_MILESTONE_100, 50, KarmaCategory.MILESTONES),
        (KarmaAction.IMPACT_MILESTONE_500, 250, KarmaCategory.MILESTONES),
    ])
    def test_points_and_category(self, action, points, category):
        assert get_karma_points(action) == points
        assert get_karma_category(action) == category

    def test_every_action_has_a_rule(self):
        assert set(KARMA_RULES) == set(KarmaAction)

    def test_all_points_positive(self):
        assert all(rule.points > 0 for rule in KARMA_RULES.values())

    def test_parse_action_accepts_wire_string(self):
        assert parse_action("ritual_completed_quiet") is KarmaAction.RITUAL_COMPLETED_QUIET

    def test_parse_action_rejects_unknown(self):
        assert parse_action("not_a_real_action") is None

    def test_default_breakdown_has_all_categories_zeroed(self):
        breakdown = default_breakdown()
        assert breakdown == {
            "impactMoments": 0,
            "rituals": 0,
            "engagement": 0,
            "chains": 0,
            "milestones": 0,
        }


# ===========================================================================
# Leveling
# ===========================================================================
class TestCalculateLevel:
    @pytest.mark.parametrize("karma, level", [
        (0, 1),
        (99, 1),
        (100, 2),
        (550, 6),
        (999, 10),
        (1000, 11),
        (1199, 11),
        (1200, 12),
        (1439, 12),
        (1440, 13),
    ])
    def test_levels(self, karma, level):
        assert calculate_level(karma) == level

    def test_negative_karma_is_level_one(self):
        assert calculate_level(-50) == 1


class TestLevelThresholds:
    @pytest.mark.parametrize("level, karma", [
        (0, 0),
        (1, 0),
        (2, 100),
        (10, 900),
        (11, 1000),
        (12, 1200),
        (13, 1440),
    ])
    def test_karma_for_level(self, level, karma):
        assert get_karma_for_level(level) == karma

    @pytest.mark.parametrize("karma", [0, 42, 100, 999, 1000, 1100, 1200, 5000])
    def test_threshold_consistent_with_level(self, karma):
        level = calculate_level(karma)
        assert get_karma_for_level(level) <= karma < get_karma_for_level(level + 1)

    def test_next_level_target(self):
        assert get_karma_for_next_level(150) == 200
        assert get_karma_for_next_level(1000) == 1200

    def test_remaining(self):
        assert get_karma_remaining_for_next_level(150) == 50
        assert get_karma_remaining_for_next_level(1000) == 200


class TestProgress:
    def test_halfway_through_linear_level(self):
        assert get_progress_to_next_level(150) == pytest.approx(50.0)

    def test_start_of_geometric_levels(self):
        assert get_progress_to_next_level(1000) == pytest.approx(0.0)

    def test_halfway_through_geometric_level(self):
        assert get_progress_to_next_level(1100) == pytest.approx(50.0)

    @pytest.mark.parametrize("karma", [0, 1, 99, 999, 1000, 1199, 10_000])
    def test_always_within_bounds(self, karma):
        assert 0.0 <= get_progress_to_next_level(karma) <= 100.0
