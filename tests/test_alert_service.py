"""
tests/test_alert_service.py — Pending Notification Queue
=========================================================
"""

from __future__ import annotations

import pytest
from sqlalchemy import event
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from scorekeeper.database.models import UserAlert
from scorekeeper.services import alert_service

USER = 2000


class TestEnqueue:
    def test_badge_and_level_alerts_in_creation_order(self, catalog, db_engine):
        alert_service.enqueue_badge_alert(db_engine, USER, catalog.first_login.id)
        alert_service.enqueue_level_alert(db_engine, USER, catalog.silver.id)
        alert_service.enqueue_badge_alert(db_engine, USER, catalog.regular.id)

        alerts = alert_service.get_alerts(db_engine, USER)
        assert [(a.badge_id, a.level_id) for a in alerts] == [
            (catalog.first_login.id, None),
            (None, catalog.silver.id),
            (catalog.regular.id, None),
        ]
        assert all(a.user_id == USER for a in alerts)

    def test_no_deduplication(self, catalog, db_engine):
        alert_service.enqueue_badge_alert(db_engine, USER, catalog.first_login.id)
        alert_service.enqueue_badge_alert(db_engine, USER, catalog.first_login.id)
        assert len(alert_service.get_alerts(db_engine, USER)) == 2

    def test_alerts_are_per_user(self, catalog, db_engine):
        alert_service.enqueue_badge_alert(db_engine, USER, catalog.first_login.id)
        assert alert_service.get_alerts(db_engine, USER + 1) == []

    def test_badge_xor_level_enforced(self, catalog, db_engine):
        with Session(db_engine) as session:
            session.add(UserAlert(user_id=USER, badge_id=None, level_id=None))
            with pytest.raises(IntegrityError):
                session.flush()
            session.rollback()


class TestConsume:
    def test_read_without_consume_keeps_rows(self, catalog, db_engine):
        alert_service.enqueue_level_alert(db_engine, USER, catalog.gold.id)
        assert len(alert_service.get_alerts(db_engine, USER)) == 1
        assert len(alert_service.get_alerts(db_engine, USER)) == 1

    def test_consume_then_read_is_empty(self, catalog, db_engine):
        alert_service.enqueue_badge_alert(db_engine, USER, catalog.first_login.id)
        alert_service.enqueue_level_alert(db_engine, USER, catalog.silver.id)

        consumed = alert_service.get_alerts(db_engine, USER, consume=True)
        assert len(consumed) == 2
        assert consumed[0].badge_id == catalog.first_login.id
        assert alert_service.get_alerts(db_engine, USER, consume=False) == []

    def test_consume_leaves_other_users_alone(self, catalog, db_engine):
        alert_service.enqueue_badge_alert(db_engine, USER, catalog.first_login.id)
        alert_service.enqueue_badge_alert(db_engine, USER + 1, catalog.first_login.id)
        alert_service.get_alerts(db_engine, USER, consume=True)
        assert len(alert_service.get_alerts(db_engine, USER + 1)) == 1

    def test_consume_empty_queue(self, db_engine):
        assert alert_service.get_alerts(db_engine, USER, consume=True) == []

    def test_alert_enqueued_after_consume_is_kept(self, catalog, db_engine):
        alert_service.enqueue_badge_alert(db_engine, USER, catalog.first_login.id)
        alert_service.get_alerts(db_engine, USER, consume=True)
        alert_service.enqueue_level_alert(db_engine, USER, catalog.silver.id)

        (pending,) = alert_service.get_alerts(db_engine, USER, consume=True)
        assert pending.level_id == catalog.silver.id
        assert alert_service.get_alerts(db_engine, USER) == []

    def test_consume_is_a_single_delete(self, catalog, db_engine):
        if not db_engine.dialect.delete_returning:
            pytest.skip("SQLite build without DELETE … RETURNING")
        for _ in range(3):
            alert_service.enqueue_badge_alert(db_engine, USER, catalog.first_login.id)

        statements: list[str] = []

        def _record(conn, cursor, statement, *args):
            statements.append(statement)

        event.listen(db_engine, "before_cursor_execute", _record)
        try:
            consumed = alert_service.get_alerts(db_engine, USER, consume=True)
        finally:
            event.remove(db_engine, "before_cursor_execute", _record)

        assert len(consumed) == 3
        deletes = [s for s in statements if s.lstrip().upper().startswith("DELETE")]
        assert len(deletes) == 1
        assert "RETURNING" in deletes[0].upper()

    def test_consume_without_returning_support(self, catalog, db_engine, monkeypatch):
        monkeypatch.setattr(db_engine.dialect, "delete_returning", False)
        alert_service.enqueue_badge_alert(db_engine, USER, catalog.first_login.id)
        alert_service.enqueue_level_alert(db_engine, USER, catalog.silver.id)

        consumed = alert_service.get_alerts(db_engine, USER, consume=True)
        assert [(a.badge_id, a.level_id) for a in consumed] == [
            (catalog.first_login.id, None),
            (None, catalog.silver.id),
        ]
        assert alert_service.get_alerts(db_engine, USER) == []
