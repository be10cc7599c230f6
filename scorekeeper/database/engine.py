"""
scorekeeper.database.engine — Database Connection & Async Helper
=================================================================

**Why this file exists:**
The store never opens connections on its own.  A host builds one
:class:`~sqlalchemy.Engine` (a pooled connection handle), hands it to every
service call, and disposes it once at shutdown.  This module holds the
default way to build that handle plus the two helpers every service uses:

* :func:`get_session` — a commit-on-success / rollback-on-error session scope.
* :func:`run_db` — ships a synchronous store call onto a worker thread so an
  ``asyncio`` host never blocks its event loop.

Usage::

    from scorekeeper.database.engine import create_db_engine, init_db, run_db

    engine = create_db_engine()          # reads DATABASE_URL from the env
    init_db(engine)                      # CREATE TABLE IF NOT EXISTS …

    # Inside an async request handler:
    score = await run_db(get_score, engine, user_id)
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from contextlib import contextmanager
from typing import ParamSpec, TypeVar

from sqlalchemy import Engine, create_engine, make_url
from sqlalchemy.orm import Session

from scorekeeper.config import StoreConfig
from scorekeeper.database.models import Base

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


# ---------------------------------------------------------------------------
# Engine creation
# ---------------------------------------------------------------------------
def create_db_engine(url: str | None = None, config: StoreConfig | None = None) -> Engine:
    """Build a SQLAlchemy :class:`Engine`.

    *url* defaults to the ``DATABASE_URL`` env var.  Pool sizing comes from
    *config* (or :class:`~scorekeeper.config.StoreConfig` defaults):

    * ``pool_size=5`` — five persistent connections.
    * ``max_overflow=10`` — up to 10 extra connections under load.
    * ``pool_timeout=10`` — fail after 10 s if no connection is available.
    * ``pool_recycle=3600`` — recycle connections after 1 hour.

    SQLite URLs skip the pool arguments; SQLAlchemy picks a suitable pool.

    Raises
    ------
    RuntimeError
        If no URL is given and ``DATABASE_URL`` is not set.
    """
    url = url or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError(
            "DATABASE_URL is not set.  "
            "Export a valid SQLAlchemy URL, e.g. postgresql+psycopg2://user:pw@host/db."
        )
    cfg = config or StoreConfig()

    kwargs: dict = {"echo": cfg.echo}
    if make_url(url).get_backend_name() != "sqlite":
        kwargs.update(
            pool_size=cfg.pool_size,
            max_overflow=cfg.max_overflow,
            pool_pre_ping=True,   # Reconnect stale connections automatically
            pool_timeout=cfg.pool_timeout,
            pool_recycle=cfg.pool_recycle,
        )

    engine = create_engine(url, **kwargs)
    logger.info("Database engine created → %s", engine.url.host or engine.url.database)
    return engine


# ---------------------------------------------------------------------------
# Schema initialization
# ---------------------------------------------------------------------------
def init_db(engine: Engine) -> None:
    """Create all tables defined in :mod:`scorekeeper.database.models`.

    Safe to call on every startup (``CREATE TABLE IF NOT EXISTS`` under the
    hood).

    .. note::

        In production the schema is managed by Alembic (``alembic upgrade
        head``).  ``create_all`` is retained for dev/test environments.
    """
    Base.metadata.create_all(engine)
    logger.info("Database tables verified / created.")


# ---------------------------------------------------------------------------
# Session helper
# ---------------------------------------------------------------------------
@contextmanager
def get_session(engine: Engine, *, expire_on_commit: bool = True):
    """Yield a :class:`Session` that auto-commits on success and rolls back
    on exception.

    Pass ``expire_on_commit=False`` when rows loaded inside the block are
    returned to the caller after the commit.

    Usage::

        with get_session(engine) as session:
            session.add(Badge(alias="first-login", title="First login"))
            # commit happens automatically on block exit
    """
    session = Session(engine, expire_on_commit=expire_on_commit)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# ---------------------------------------------------------------------------
# Async bridge
# ---------------------------------------------------------------------------
async def run_db(func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
    """Run a **synchronous** store function on a background thread.

    Every store operation is a plain blocking function taking the engine as
    its first argument; asyncio hosts call them through this wrapper::

        await run_db(grant_points, engine, user_id, 10)

    Under the hood it calls :func:`asyncio.to_thread`, which schedules
    *func* on the default ``ThreadPoolExecutor``.
    """
    return await asyncio.to_thread(func, *args, **kwargs)
