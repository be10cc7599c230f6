"""
scorekeeper.config — YAML Configuration Loader
===============================================

**Why this file exists:**
The store itself only needs a ready engine.  Hosts that let scorekeeper build
that engine describe pool tuning (and, optionally, a catalog to seed) in
``config.yaml``.  The database URL and credentials never live here: they come
from the ``DATABASE_URL`` environment variable.

Usage::

    from scorekeeper.config import load_config

    cfg = load_config()            # reads ./config.yaml by default
    print(cfg.pool_size)           # 5
    print(len(cfg.catalog))        # seed definitions, may be empty
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from scorekeeper.constants import DEFAULT_RANKING_LIMIT, require_int


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class StoreConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Connection pool (ignored for SQLite URLs)
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 10
    pool_recycle: int = 3600
    echo: bool = False

    # Ranking
    default_ranking_limit: int = DEFAULT_RANKING_LIMIT

    # Optional catalog to provision on startup (see scorekeeper.database.seed)
    catalog: dict[str, list[dict[str, Any]]] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> StoreConfig:
    """Read *path* and return a :class:`StoreConfig` instance.

    Keys that are absent fall back to the dataclass defaults.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    ValueError
        If a numeric setting is not an integer, or ``catalog`` is not a
        mapping of lists.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    return parse_config(raw)


def parse_config(raw: dict[str, Any]) -> StoreConfig:
    """Build a :class:`StoreConfig` from an already-parsed mapping."""
    defaults = StoreConfig()
    pool = raw.get("pool") or {}

    catalog = raw.get("catalog") or {}
    if not isinstance(catalog, dict):
        raise ValueError("catalog must be a mapping of levels/badges/events lists")
    for kind, entries in catalog.items():
        if not isinstance(entries, list):
            raise ValueError(f"catalog.{kind} must be a list")

    return StoreConfig(
        pool_size=require_int("pool.size", pool.get("size", defaults.pool_size), minimum=1),
        max_overflow=require_int(
            "pool.max_overflow", pool.get("max_overflow", defaults.max_overflow), minimum=0
        ),
        pool_timeout=require_int(
            "pool.timeout", pool.get("timeout", defaults.pool_timeout), minimum=0
        ),
        pool_recycle=require_int("pool.recycle", pool.get("recycle", defaults.pool_recycle)),
        echo=bool(raw.get("echo", defaults.echo)),
        default_ranking_limit=require_int(
            "default_ranking_limit",
            raw.get("default_ranking_limit", defaults.default_ranking_limit),
            minimum=0,
        ),
        catalog=catalog,
    )
