"""
buzzwin.errors — Domain Error Taxonomy
=======================================

Services raise these; :mod:`buzzwin.api.errors` turns them into JSON
responses of the shape ``{"success": false, "error": "<message>"}``.
"""

from __future__ import annotations


class BuzzwinError(Exception):
    """Base class for every error a service can raise on purpose."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidArgument(BuzzwinError):
    """A required field is missing or malformed."""

    status_code = 400


class Unauthenticated(BuzzwinError):
    """The caller did not identify themselves."""

    status_code = 401


class Unauthorized(BuzzwinError):
    """The caller does not own the resource they are changing."""

    status_code = 403


class NotFound(BuzzwinError):
    """A referenced user, ritual or moment does not exist."""

    status_code = 404


class Conflict(BuzzwinError):
    """Duplicate write, e.g. completing the same ritual twice in one day."""

    status_code = 400


class Internal(BuzzwinError):
    """Unexpected storage failure."""

    status_code = 500
