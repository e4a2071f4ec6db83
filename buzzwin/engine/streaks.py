"""
buzzwin.engine.streaks — Streak & Ritual Stats Calculator
===========================================================

Pure calculation over a user's completion history.  No database I/O.

Every function accepts anything with a ``completion_date`` attribute (ORM
rows or :class:`CompletionRecord`) and an optional ``today`` so callers
and tests can pin the calendar.
"""

from __future__ import annotations

import calendar
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta
from typing import Protocol

from buzzwin.constants import COMPLETION_MILESTONES, STREAK_MILESTONES

ONE_DAY = timedelta(days=1)
RECENT_STREAK_LIMIT = 5
WEEKDAYS = (
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
)


class Completion(Protocol):
    completion_date: date


@dataclass(frozen=True, slots=True)
class CompletionRecord:
    """Lightweight completion used outside the ORM (tests, imports)."""

    completion_date: date
    ritual_id: int | None = None
    completed_quietly: bool = True
    shared_as_moment_id: int | None = None


@dataclass(frozen=True, slots=True)
class RitualStateSnapshot:
    """Derived per-user aggregate written to ``user_ritual_state``."""

    current_streak: int
    longest_streak: int
    total_completed: int
    completed_this_week: int
    completed_this_month: int
    last_completed_date: date | None


@dataclass
class RitualStats:
    """Full stats payload for the stats endpoint."""

    current_streak: int = 0
    longest_streak: int = 0
    total_completed: int = 0
    completed_this_week: int = 0
    completed_this_month: int = 0
    completed_days: int = 0
    most_active_tags: list[dict] = field(default_factory=list)
    shared_count: int = 0
    quiet_count: int = 0
    average_completions_per_day: float = 0.0
    completion_rate: float = 0.0
    best_day: str | None = None
    streak_milestones: list[dict] = field(default_factory=list)
    completion_milestones: list[dict] = field(default_factory=list)
    recent_streaks: list[dict] = field(default_factory=list)
    completion_trend: str = "stable"
    last_completed_date: str | None = None

    def to_dict(self) -> dict:
        return {
            "currentStreak": self.current_streak,
            "longestStreak": self.longest_streak,
            "totalCompleted": self.total_completed,
            "completedThisWeek": self.completed_this_week,
            "completedThisMonth": self.completed_this_month,
            "completedDays": self.completed_days,
            "mostActiveTags": self.most_active_tags,
            "sharedCount": self.shared_count,
            "quietCount": self.quiet_count,
            "averageCompletionsPerDay": self.average_completions_per_day,
            "completionRate": self.completion_rate,
            "bestDay": self.best_day,
            "streakMilestones": self.streak_milestones,
            "completionMilestones": self.completion_milestones,
            "recentStreaks": self.recent_streaks,
            "completionTrend": self.completion_trend,
            "lastCompletedDate": self.last_completed_date,
        }


# ---------------------------------------------------------------------------
# Calendar helpers
# ---------------------------------------------------------------------------
def utc_today() -> date:
    """Calendar date in UTC, the day boundary used for completions."""
    return datetime.now(UTC).date()


def one_month_before(day: date) -> date:
    """Same day-of-month one calendar month earlier, clamped to month end."""
    year, month = (day.year, day.month - 1) if day.month > 1 else (day.year - 1, 12)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def distinct_dates(completions: Iterable[Completion]) -> list[date]:
    """Sorted (ascending) distinct completion dates."""
    return sorted({c.completion_date for c in completions})


# ---------------------------------------------------------------------------
# Streaks
# ---------------------------------------------------------------------------
def calculate_current_streak(
    completions: Iterable[Completion], today: date | None = None
) -> int:
    """Consecutive-day run ending today, or ending yesterday if today is empty.

    Returns 0 when the most recent completion is older than yesterday.
    """
    today = today or utc_today()
    days = set(distinct_dates(completions))
    if not days:
        return 0

    if today in days:
        cursor = today
    elif today - ONE_DAY in days:
        cursor = today - ONE_DAY
    else:
        return 0

    streak = 0
    while cursor in days:
        streak += 1
        cursor -= ONE_DAY
    return streak


def calculate_longest_streak(completions: Iterable[Completion]) -> int:
    """Longest run of consecutive calendar days anywhere in the history."""
    days = distinct_dates(completions)
    if not days:
        return 0

    longest = running = 1
    for previous, current in zip(days, days[1:]):
        if current - previous == ONE_DAY:
            running += 1
            longest = max(longest, running)
        else:
            running = 1
    return longest


def get_recent_streaks(completions: Iterable[Completion]) -> list[dict]:
    """Most recent runs of two or more consecutive days, newest first."""
    days = distinct_dates(completions)
    runs: list[dict] = []
    start = 0
    for i in range(1, len(days) + 1):
        if i < len(days) and days[i] - days[i - 1] == ONE_DAY:
            continue
        length = i - start
        if length >= 2:
            runs.append({
                "startDate": days[start].isoformat(),
                "endDate": days[i - 1].isoformat(),
                "length": length,
            })
        start = i
    runs.reverse()
    return runs[:RECENT_STREAK_LIMIT]


# ---------------------------------------------------------------------------
# Window counters
# ---------------------------------------------------------------------------
def count_since(completions: Iterable[Completion], start: date) -> int:
    return sum(1 for c in completions if c.completion_date >= start)


def calculate_completion_trend(
    completions: Sequence[Completion], today: date | None = None
) -> str:
    """Compare last week with the week before (±10 % band)."""
    if len(completions) < 7:
        return "stable"
    today = today or utc_today()
    week_ago = today - timedelta(days=7)
    two_weeks_ago = today - timedelta(days=14)

    last_week = sum(1 for c in completions if week_ago <= c.completion_date < today)
    previous_week = sum(
        1 for c in completions if two_weeks_ago <= c.completion_date < week_ago
    )
    if last_week > previous_week * 1.1:
        return "increasing"
    if last_week < previous_week * 0.9:
        return "decreasing"
    return "stable"


def get_best_day(completions: Sequence[Completion]) -> str | None:
    """Weekday name with the most completions."""
    if not completions:
        return None
    counts = Counter(WEEKDAYS[c.completion_date.weekday()] for c in completions)
    return counts.most_common(1)[0][0]


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------
def compute_ritual_state(
    completions: Sequence[Completion],
    *,
    previous_longest: int = 0,
    today: date | None = None,
) -> RitualStateSnapshot:
    """Recompute the whole user ritual state from the full history.

    ``longest_streak`` is the max of the stored value, the current streak
    and the longest historical run, so it never decreases.
    """
    today = today or utc_today()
    current = calculate_current_streak(completions, today)
    longest = max(previous_longest, current, calculate_longest_streak(completions))
    days = distinct_dates(completions)

    return RitualStateSnapshot(
        current_streak=current,
        longest_streak=longest,
        total_completed=len(completions),
        completed_this_week=count_since(completions, today - timedelta(days=7)),
        completed_this_month=count_since(completions, one_month_before(today)),
        last_completed_date=days[-1] if days else None,
    )


def calculate_stats(
    completions: Sequence,
    *,
    previous_longest: int = 0,
    ritual_tags: Mapping[int, Sequence[str]] | None = None,
    today: date | None = None,
) -> RitualStats:
    """Full stats for the stats endpoint.

    *ritual_tags* maps ritual id → tags and drives ``most_active_tags``.
    """
    today = today or utc_today()
    state = compute_ritual_state(completions, previous_longest=previous_longest, today=today)
    days = distinct_dates(completions)

    tag_counts: Counter[str] = Counter()
    if ritual_tags:
        for c in completions:
            tag_counts.update(ritual_tags.get(getattr(c, "ritual_id", None), ()))
    most_active = [
        {"tag": tag, "count": count} for tag, count in tag_counts.most_common(3)
    ]

    shared = sum(
        1 for c in completions
        if not c.completed_quietly and getattr(c, "shared_as_moment_id", None)
    )
    quiet = sum(1 for c in completions if c.completed_quietly)

    first_day = days[0] if days else today
    span_days = max(1, (today - first_day).days + 1)

    return RitualStats(
        current_streak=state.current_streak,
        longest_streak=state.longest_streak,
        total_completed=state.total_completed,
        completed_this_week=state.completed_this_week,
        completed_this_month=count_since(completions, today - timedelta(days=30)),
        completed_days=len(days),
        most_active_tags=most_active,
        shared_count=shared,
        quiet_count=quiet,
        average_completions_per_day=round(len(completions) / span_days, 2),
        completion_rate=round(len(days) / span_days * 100, 1),
        best_day=get_best_day(completions),
        streak_milestones=[
            {"milestone": m, "achieved": state.longest_streak >= m}
            for m in STREAK_MILESTONES
        ],
        completion_milestones=[
            {"milestone": m, "achieved": len(completions) >= m}
            for m in COMPLETION_MILESTONES
        ],
        recent_streaks=get_recent_streaks(completions),
        completion_trend=calculate_completion_trend(completions, today),
        last_completed_date=days[-1].isoformat() if days else None,
    )
