"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import os

# ---------------------------------------------------------------------------
# buzzwin.api.deps validates JWT_SECRET at import time, so it must be set
# before any test imports the API.
# ---------------------------------------------------------------------------
_TEST_JWT_SECRET = "test-secret-for-pytest-only-" + "x" * 40
os.environ.setdefault("JWT_SECRET", _TEST_JWT_SECRET)

import pytest  # noqa: E402
from sqlalchemy import Engine, create_engine  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from buzzwin.database.models import (  # noqa: E402
    Base,
    ImpactMoment,
    Ritual,
    RitualScope,
    User,
)


@pytest.fixture
def db_engine() -> Engine:
    """In-memory SQLite engine with all Buzzwin tables.

    StaticPool keeps one connection so every session (and the TestClient's
    worker thread) sees the same in-memory database.
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def db_session(db_engine: Engine):
    """Provide a session that rolls back after each test."""
    with Session(db_engine) as session:
        yield session
        session.rollback()


# ---------------------------------------------------------------------------
# Seed helpers — usable as plain functions from any test module
# ---------------------------------------------------------------------------
def seed_user(engine: Engine, user_id: str = "alice", **karma) -> str:
    with Session(engine) as session:
        session.add(User(id=user_id, **karma))
        session.commit()
    return user_id


def seed_ritual(
    engine: Engine,
    *,
    title: str = "Morning gratitude",
    scope: str = RitualScope.GLOBAL.value,
    created_by: str | None = None,
    tags: list[str] | None = None,
    ripple_count: int = 0,
) -> int:
    with Session(engine) as session:
        ritual = Ritual(
            title=title,
            description=f"{title} for five minutes",
            tags=tags or ["mind"],
            effort_level="tiny",
            scope=scope,
            created_by=created_by,
            ripple_count=ripple_count,
        )
        session.add(ritual)
        session.commit()
        return ritual.id


def seed_moment(engine: Engine, created_by: str = "alice", text: str = "Helped a neighbour") -> int:
    with Session(engine) as session:
        moment = ImpactMoment(
            text=text,
            tags=["community"],
            effort_level="medium",
            created_by=created_by,
        )
        session.add(moment)
        session.commit()
        return moment.id


def make_admin_token(sub: str = "admin-1", is_admin: bool = True) -> str:
    import jwt

    from buzzwin.api.deps import JWT_ALGORITHM, JWT_SECRET

    return jwt.encode(
        {"sub": sub, "username": "FixtureAdmin", "is_admin": is_admin},
        JWT_SECRET,
        algorithm=JWT_ALGORITHM,
    )


@pytest.fixture
def client(db_engine: Engine):
    """TestClient wired to the in-memory engine, raise_server_exceptions=False."""
    from fastapi.testclient import TestClient

    from buzzwin.api.deps import get_engine
    from buzzwin.api.main import app

    app.dependency_overrides[get_engine] = lambda: db_engine
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()
