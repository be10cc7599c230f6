"""
tests/test_database.py — Engine, Session Scope & Upsert Builder
================================================================
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from dotenv import dotenv_values
from sqlalchemy import func, select
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.exc import OperationalError

from scorekeeper.config import StoreConfig
from scorekeeper.database.engine import create_db_engine, get_session
from scorekeeper.database.models import Badge, UserEvent
from scorekeeper.database.upsert import build_upsert
from scorekeeper.errors import StoreError, StoreUnavailableError
from scorekeeper.services.user_state_service import get_score, grant_points


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------
class TestCreateEngine:
    def test_missing_url_raises(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        with pytest.raises(RuntimeError, match="DATABASE_URL"):
            create_db_engine()

    def test_url_from_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'env.db'}")
        engine = create_db_engine()
        try:
            assert engine.dialect.name == "sqlite"
        finally:
            engine.dispose()

    def test_pool_settings_applied(self):
        config = StoreConfig(pool_size=3, max_overflow=2)
        engine = create_db_engine("postgresql+psycopg2://user:pw@localhost/scores", config)
        try:
            assert engine.pool.size() == 3
            assert engine.dialect.name == "postgresql"
        finally:
            engine.dispose()

    def test_shipped_env_example_uses_psycopg2(self, monkeypatch):
        env_file = Path(__file__).resolve().parent.parent / ".env.example"
        url = dotenv_values(env_file)["DATABASE_URL"]
        monkeypatch.setenv("DATABASE_URL", url)
        engine = create_db_engine()
        try:
            assert engine.dialect.driver == "psycopg2"
        finally:
            engine.dispose()


class TestUnavailableStore:
    @pytest.fixture
    def unreachable_engine(self, tmp_path):
        engine = create_db_engine(f"sqlite:///{tmp_path / 'missing-dir' / 'scores.db'}")
        yield engine
        engine.dispose()

    def test_read_raises_untranslated(self, unreachable_engine):
        with pytest.raises(StoreUnavailableError) as exc_info:
            get_score(unreachable_engine, 1)
        assert isinstance(exc_info.value, OperationalError)
        assert isinstance(exc_info.value.orig, sqlite3.OperationalError)
        assert exc_info.value.__cause__ is exc_info.value.orig

    def test_write_raises_untranslated(self, unreachable_engine):
        with pytest.raises(StoreUnavailableError) as exc_info:
            grant_points(unreachable_engine, 1, 10)
        assert isinstance(exc_info.value.orig, sqlite3.OperationalError)


class TestGetSession:
    def test_commits_on_success(self, db_engine):
        with get_session(db_engine) as session:
            session.add(Badge(alias="a", title="A"))
        with get_session(db_engine) as session:
            assert session.scalar(select(func.count()).select_from(Badge)) == 1

    def test_rolls_back_on_error(self, db_engine):
        with pytest.raises(ValueError):
            with get_session(db_engine) as session:
                session.add(Badge(alias="a", title="A"))
                session.flush()
                raise ValueError("abort")
        with get_session(db_engine) as session:
            assert session.scalar(select(func.count()).select_from(Badge)) == 0


# ---------------------------------------------------------------------------
# Upsert builder
# ---------------------------------------------------------------------------
def _session_for(dialect_name: str) -> MagicMock:
    session = MagicMock()
    session.get_bind.return_value.dialect.name = dialect_name
    return session


def _increment_upsert(dialect_name: str):
    return build_upsert(
        _session_for(dialect_name),
        UserEvent,
        {"user_id": 1, "event_id": 2, "event_counter": 1, "points_counter": 0},
        index_elements=("user_id", "event_id"),
        update=lambda new: {"event_counter": UserEvent.event_counter + 1},
    )


class TestBuildUpsert:
    def test_postgresql_on_conflict(self):
        sql = str(_increment_upsert("postgresql").compile(dialect=postgresql.dialect()))
        assert "ON CONFLICT (user_id, event_id) DO UPDATE" in sql
        assert "user_events.event_counter +" in sql

    def test_sqlite_on_conflict(self):
        sql = str(_increment_upsert("sqlite").compile(dialect=sqlite.dialect()))
        assert "ON CONFLICT (user_id, event_id) DO UPDATE" in sql

    @pytest.mark.parametrize("name", ["mysql", "mariadb"])
    def test_mysql_on_duplicate_key(self, name):
        sql = str(_increment_upsert(name).compile(dialect=mysql.dialect()))
        assert "ON DUPLICATE KEY UPDATE" in sql

    def test_update_sees_proposed_row(self):
        stmt = build_upsert(
            _session_for("postgresql"),
            UserEvent,
            {"user_id": 1, "event_id": 2, "event_counter": 7},
            index_elements=("user_id", "event_id"),
            update=lambda new: {"event_counter": new.event_counter},
        )
        sql = str(stmt.compile(dialect=postgresql.dialect()))
        assert "event_counter = excluded.event_counter" in sql

    def test_unsupported_dialect(self):
        with pytest.raises(StoreError, match="oracle"):
            _increment_upsert("oracle")
