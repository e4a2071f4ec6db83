"""
Buzzwin — Karma & Ritual Participation Ledger
==============================================
Backend for a "do good" community: members log impact moments, complete
daily rituals, build streaks, and earn karma for all of it.

Package layout::

    buzzwin/
    ├── config.py          # YAML → typed Python config, logging setup
    ├── constants.py       # Validation vocabularies + leveling formula
    ├── errors.py          # Domain error taxonomy (→ HTTP status)
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + session helper
    │   └── models.py      # All ORM models and enums
    ├── engine/
    │   ├── karma.py       # KarmaAction → (points, category) table
    │   ├── streaks.py     # Streak / stats calculation (pure)
    │   └── achievements.py # Achievement catalogue + evaluation
    ├── services/
    │   ├── karma_service.py          # Atomic karma ledger
    │   ├── ritual_service.py         # Rituals, join/leave, visibility
    │   ├── completion_service.py     # Completion flow, stats, level
    │   ├── moment_service.py         # Impact moments + comments
    │   ├── story_service.py          # Story reactions
    │   └── reconciliation_service.py # ripple_count repair
    └── api/
        ├── main.py        # FastAPI app
        ├── deps.py        # Engine/config/admin dependencies
        ├── errors.py      # Domain error → JSON response handlers
        └── routes/        # REST endpoints
"""

__version__ = "0.1.0"
