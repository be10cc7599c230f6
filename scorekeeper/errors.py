"""
scorekeeper.errors — Store Error Taxonomy
==========================================

Every failure the store raises on purpose derives from :class:`StoreError`,
so a rules engine can catch the whole family in one place.  Argument
validation problems (negative counters, non-integer limits) raise plain
:class:`ValueError` instead.

Connectivity failures are **not** wrapped: ``StoreUnavailableError`` is the
driver-level :class:`sqlalchemy.exc.OperationalError` under its domain name,
so callers can write ``except StoreUnavailableError`` while the original
exception (and its DBAPI cause) propagates untouched.  The store never
retries.
"""

from __future__ import annotations

from sqlalchemy.exc import OperationalError

__all__ = [
    "StoreError",
    "DuplicateAliasError",
    "NotConfiguredError",
    "InvalidLevelError",
    "NotFoundError",
    "StoreUnavailableError",
]


class StoreError(Exception):
    """Base class for all gamification store errors."""


class DuplicateAliasError(StoreError):
    """A catalog entity was created with an alias that is already taken."""

    def __init__(self, kind: str, alias: str) -> None:
        super().__init__(f"{kind} alias {alias!r} already exists")
        self.kind = kind
        self.alias = alias


class NotConfiguredError(StoreError):
    """A query needs at least one catalog row (e.g. a level) and found none."""


class InvalidLevelError(StoreError):
    """A level grant referenced a level id that does not exist."""

    def __init__(self, level_id: int | None) -> None:
        super().__init__(f"Level {level_id!r} does not exist")
        self.level_id = level_id


class NotFoundError(StoreError):
    """A lookup that requires existence found no matching row."""

    def __init__(self, kind: str, key: object) -> None:
        super().__init__(f"{kind} {key!r} not found")
        self.kind = kind
        self.key = key


StoreUnavailableError = OperationalError
