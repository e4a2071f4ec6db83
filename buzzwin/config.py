"""
buzzwin.config — YAML Configuration Loader
============================================

Soft settings (service identity, port, log level, streak bonuses) come
from ``config.yaml``.  Secrets and infrastructure (``DATABASE_URL``,
``JWT_SECRET``, CORS origins) stay in the environment / ``.env``.

Usage::

    from buzzwin.config import load_config

    cfg = load_config()              # reads ./config.yaml by default
    print(cfg.app_name)              # "Buzzwin"
    print(cfg.streak_milestones)     # {7: "streak_milestone_7", 30: ...}
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from buzzwin.database.models import KarmaAction

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
LOG_DATEFMT = "%H:%M:%S"


def _default_streak_milestones() -> dict[int, KarmaAction]:
    return {
        7: KarmaAction.STREAK_MILESTONE_7,
        30: KarmaAction.STREAK_MILESTONE_30,
    }


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class BuzzwinConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    app_name: str = "Buzzwin"
    api_port: int = 8000
    log_level: str = "INFO"

    # Current-streak length → bonus karma action awarded on reaching it
    streak_milestones: dict[int, KarmaAction] = field(
        default_factory=_default_streak_milestones
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> BuzzwinConfig:
    """Read *path* and return a :class:`BuzzwinConfig` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.
        Defaults to ``config.yaml`` in the current working directory.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    ValueError
        If ``streak_milestones`` names an unknown karma action.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    defaults = BuzzwinConfig()
    milestones = defaults.streak_milestones
    if raw.get("streak_milestones"):
        milestones = {
            int(days): KarmaAction(action)
            for days, action in raw["streak_milestones"].items()
        }

    return BuzzwinConfig(
        app_name=raw.get("app_name", defaults.app_name),
        api_port=int(raw.get("api_port", defaults.api_port)),
        log_level=str(raw.get("log_level", defaults.log_level)).upper(),
        streak_milestones=milestones,
    )


def load_runtime_config() -> BuzzwinConfig:
    """Config for the running service.

    Reads ``$BUZZWIN_CONFIG`` (or ``config.yaml``); falls back to defaults
    when the file is absent so the API can start with environment only.
    """
    path = os.getenv("BUZZWIN_CONFIG", "config.yaml")
    try:
        return load_config(path)
    except FileNotFoundError:
        logger.info("No config file at %s — using defaults", path)
        return BuzzwinConfig()


def configure_logging(config: BuzzwinConfig) -> None:
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )
