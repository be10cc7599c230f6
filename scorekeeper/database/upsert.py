"""
scorekeeper.database.upsert — Dialect-Aware Atomic Upserts
===========================================================

Every counter in the store is mutated with one ``INSERT … ON CONFLICT …
DO UPDATE`` statement so that two callers incrementing the same
(user, event) pair can never lose an update.  PostgreSQL and SQLite share
the ``on_conflict_do_update`` API; MySQL spells it
``ON DUPLICATE KEY UPDATE``.  :func:`build_upsert` hides the difference.

Usage::

    stmt = build_upsert(
        session, UserEvent,
        {"user_id": 1, "event_id": 2, "event_counter": 1},
        index_elements=("user_id", "event_id"),
        update=lambda new: {"event_counter": UserEvent.event_counter + 1},
    )
    session.execute(stmt)

*update* receives the "proposed row" proxy (``excluded`` / ``inserted``) so
callers can refer to the values they tried to insert.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any

from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from scorekeeper.errors import StoreError

# Dialects with ``INSERT … ON CONFLICT (cols) DO UPDATE``.
_ON_CONFLICT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def build_upsert(
    session: Session,
    model: type,
    values: Mapping[str, Any],
    *,
    index_elements: Iterable[str],
    update: Callable[[Any], dict[str, Any]],
):
    """Return an executable upsert for the dialect *session* is bound to.

    Raises
    ------
    StoreError
        If the backend has no native upsert support.
    """
    dialect = session.get_bind().dialect.name

    if dialect == "mysql" or dialect == "mariadb":
        stmt = mysql_insert(model).values(**values)
        return stmt.on_duplicate_key_update(**update(stmt.inserted))

    insert_fn = _ON_CONFLICT_INSERTS.get(dialect)
    if insert_fn is None:
        raise StoreError(f"Atomic upserts are not supported on dialect {dialect!r}")
    stmt = insert_fn(model).values(**values)
    return stmt.on_conflict_do_update(
        index_elements=list(index_elements),
        set_=update(stmt.excluded),
    )
