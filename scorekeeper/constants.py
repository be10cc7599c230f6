"""
scorekeeper.constants — Shared Constants
=========================================

Single source of truth for sentinel values and table ordering.
Import from here instead of duplicating in services and tests.
"""

from __future__ import annotations

from datetime import UTC, datetime

# ---------------------------------------------------------------------------
# Sentinels
# ---------------------------------------------------------------------------
NO_LEVEL: int = 0
"""Level id meaning "no level"; always rejected by level grants."""

DEFAULT_RANKING_LIMIT: int = 10

# ---------------------------------------------------------------------------
# Reset ordering
# ---------------------------------------------------------------------------
# Per-user tables first, then catalog tables children-before-parents.
USER_TABLES: tuple[str, ...] = (
    "user_alerts",
    "user_badges",
    "user_events",
    "user_logs",
    "user_scores",
)

CATALOG_TABLES: tuple[str, ...] = (
    "events",
    "badges",
    "levels",
)


def require_int(name: str, value: object, *, minimum: int | None = None) -> int:
    """Return *value* if it is a real ``int`` (not ``bool``), else raise.

    Used wherever a caller-supplied number ends up in a comparison or a
    ``LIMIT`` clause.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if minimum is not None and value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return value


def as_utc(value: datetime) -> datetime:
    """Return *value* as an aware UTC datetime.

    Naive values are taken to already be UTC.  Backends without a zone-aware
    column type (SQLite) store the wall-clock digits only, so everything is
    converted before it is written.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
