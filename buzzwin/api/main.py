"""
buzzwin.api.main — FastAPI application entry point
====================================================

Run with::

    uvicorn buzzwin.api.main:app --reload --port 8000
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

from buzzwin import __version__  # noqa: E402
from buzzwin.api.deps import get_config, get_engine  # noqa: E402
from buzzwin.api.errors import setup_error_handlers  # noqa: E402
from buzzwin.api.routes.admin import router as admin_router  # noqa: E402
from buzzwin.api.routes.karma import router as karma_router  # noqa: E402
from buzzwin.api.routes.moments import router as moments_router  # noqa: E402
from buzzwin.api.routes.rituals import router as rituals_router  # noqa: E402
from buzzwin.api.routes.stories import router as stories_router  # noqa: E402
from buzzwin.config import configure_logging  # noqa: E402

configure_logging(get_config())

logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    """Resolve allowed CORS origins from env.

    Priority:
      1) CORS_ALLOW_ORIGINS (comma-separated)
      2) FRONTEND_URL (single origin)
    """
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if raw:
        return [origin.strip().rstrip("/") for origin in raw.split(",") if origin.strip()]

    frontend_url = os.getenv("FRONTEND_URL", "").strip()
    if frontend_url:
        return [frontend_url.rstrip("/")]

    return []


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle — warm the DB engine."""
    engine = get_engine()
    logger.info("%s API started — engine ready (%s)", get_config().app_name, engine.url.database)
    yield
    logger.info("%s API shutting down", get_config().app_name)


app = FastAPI(
    title="Buzzwin API",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_error_handlers(app)

# Mount routers
app.include_router(karma_router, prefix="/api")
app.include_router(rituals_router, prefix="/api")
app.include_router(moments_router, prefix="/api")
app.include_router(stories_router, prefix="/api")
app.include_router(admin_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}
