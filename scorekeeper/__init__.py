"""
Scorekeeper — Gamification State Store
=======================================
Records user activity, accumulates points, grants badges and levels, and
queues notifications for a host application.  A rules engine decides *what*
to grant; scorekeeper executes each grant as one atomic, lost-update-safe
state transition.

Package layout::

    scorekeeper/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Sentinels + table ordering
    ├── errors.py          # StoreError taxonomy
    ├── store.py           # GamificationStore facade (engine lifecycle)
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine, session scope, async bridge
    │   ├── models.py      # All ORM models (8 tables)
    │   ├── upsert.py      # Dialect-aware INSERT … ON CONFLICT builder
    │   └── seed.py        # Catalog provisioning from config
    └── services/
        ├── catalog_service.py     # Badges, levels, events
        ├── user_state_service.py  # Scores, event counters, badge grants
        ├── alert_service.py       # Pending notification queue
        ├── audit_service.py       # Append-only scoring history
        ├── ranking_service.py     # Points leaderboard
        └── reset_service.py       # Destructive full reset
"""

__version__ = "0.1.0"
