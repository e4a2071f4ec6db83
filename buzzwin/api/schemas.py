"""
buzzwin.api.schemas — Shared request-body base
================================================

Request JSON uses camelCase keys (``userId``, ``ritualId`` …); the models
expose snake_case attributes.  Required-looking fields are optional here
so the services can answer with their own 400/401 messages.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
