"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

from types import SimpleNamespace

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from scorekeeper.database.models import Base
from scorekeeper.services import catalog_service
from scorekeeper.services.catalog_service import EventDefinition


@pytest.fixture
def db_engine() -> Engine:
    """Create an in-memory SQLite engine with all scorekeeper tables.

    Uses StaticPool so all threads share the same in-memory database
    (required by ``asyncio.to_thread`` used in ``run_db``).
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def file_engine(tmp_path) -> Engine:
    """File-backed SQLite engine with a real connection pool.

    Each thread gets its own connection, so concurrent writers genuinely
    contend for the database lock (used by the lost-update tests).
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'scorekeeper.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
        pool_size=8,
        max_overflow=8,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine: Engine):
    """Provide a session for direct row inspection in assertions."""
    with Session(db_engine) as session:
        yield session
        session.rollback()


def seed_sample_catalog(engine: Engine) -> SimpleNamespace:
    """Bronze/Silver/Gold levels, two badges and two events."""
    bronze = catalog_service.create_level(engine, 0, "Bronze", "Starting level")
    silver = catalog_service.create_level(engine, 100, "Silver")
    gold = catalog_service.create_level(engine, 500, "Gold")
    first_login = catalog_service.create_badge(
        engine, "first-login", "First login", "Logged in once", "/badges/first.png"
    )
    regular = catalog_service.create_badge(engine, "regular", "Regular")
    login = catalog_service.create_event(engine, EventDefinition(
        alias="login",
        description="User logged in",
        required_repetitions=10,
        each_points=5,
        reach_points=50,
        each_badge_id=first_login.id,
        reach_badge_id=regular.id,
    ))
    comment = catalog_service.create_event(engine, EventDefinition(
        alias="comment",
        allow_repetitions=False,
        each_points=2,
        max_points=100,
        each_callback="on_comment",
        combinable=True,
    ))
    return SimpleNamespace(
        bronze=bronze, silver=silver, gold=gold,
        first_login=first_login, regular=regular,
        login=login, comment=comment,
    )


@pytest.fixture
def catalog(db_engine: Engine) -> SimpleNamespace:
    """The sample catalog seeded into the in-memory engine."""
    return seed_sample_catalog(db_engine)
