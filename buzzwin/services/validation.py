"""
buzzwin.services.validation — Shared input checks
===================================================

Each helper returns the normalized value or raises a
:mod:`buzzwin.errors` exception with the user-facing message.
"""

from __future__ import annotations

from collections.abc import Sequence

from buzzwin.constants import MOOD_MAX, MOOD_MIN, VALID_EFFORT_LEVELS, VALID_TAGS
from buzzwin.errors import InvalidArgument, Unauthenticated


def require_user_id(user_id: object, *, unauthenticated: bool = False) -> str:
    """Non-empty string user id.

    Handlers that act *as* the caller report a missing id as 401; lookups
    of another user report it as 400.
    """
    if not user_id or not isinstance(user_id, str) or not user_id.strip():
        if unauthenticated:
            raise Unauthenticated("Unauthorized. User ID required.")
        raise InvalidArgument("User ID is required")
    return user_id.strip()


def require_int_id(value: object, label: str) -> int:
    """Numeric primary key passed as int or digit string."""
    if isinstance(value, bool):
        raise InvalidArgument(f"{label} is required")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise InvalidArgument(f"{label} is required")


def require_text(value: object, label: str) -> str:
    if not value or not isinstance(value, str) or not value.strip():
        raise InvalidArgument(f"{label} is required")
    return value.strip()


def validate_tags(tags: Sequence[str] | None) -> list[str]:
    if not tags:
        raise InvalidArgument("At least one tag is required")
    if not all(tag in VALID_TAGS for tag in tags):
        raise InvalidArgument("Invalid tag(s)")
    return list(tags)


def validate_effort_level(effort_level: str | None) -> str:
    if not effort_level or effort_level not in VALID_EFFORT_LEVELS:
        raise InvalidArgument("Valid effort level is required")
    return effort_level


def validate_mood(before: int | None, after: int | None) -> None:
    for value in (before, after):
        if value is None or not MOOD_MIN <= value <= MOOD_MAX:
            raise InvalidArgument(
                f"Mood check-in values must be between {MOOD_MIN} and {MOOD_MAX}"
            )
