"""
scorekeeper.services.reset_service — Full Store Reset
======================================================

Destructive.  Clears every per-user table and, on request, the catalog.
Each table is emptied in its own transaction: a failure leaves earlier
tables cleared and the failing table untouched.
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine, delete

from scorekeeper.constants import CATALOG_TABLES, USER_TABLES
from scorekeeper.database.engine import get_session
from scorekeeper.database.models import MODELS_BY_TABLE

logger = logging.getLogger(__name__)


def reset_all(engine: Engine, include_catalog: bool = False) -> dict[str, int]:
    """Delete all user state (and the catalog if *include_catalog*).

    Returns ``{table_name: rows_deleted}``.
    """
    tables = USER_TABLES + (CATALOG_TABLES if include_catalog else ())
    deleted: dict[str, int] = {}
    for table in tables:
        model = MODELS_BY_TABLE[table]
        with get_session(engine) as session:
            result = session.execute(delete(model))
            deleted[table] = result.rowcount or 0

    logger.info(
        "Store reset (catalog=%s): %d rows deleted across %d tables",
        include_catalog, sum(deleted.values()), len(deleted),
    )
    return deleted
