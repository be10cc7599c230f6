"""
scorekeeper.services.audit_service — Append-Only Scoring History
=================================================================

One ``user_logs`` row per scoring action.  Rows are never updated or
deleted (except by :func:`~scorekeeper.services.reset_service.reset_all`),
and duplicates for the same (user, event) are expected: one per occurrence.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from scorekeeper.constants import as_utc
from scorekeeper.database.engine import get_session
from scorekeeper.database.models import UserLog


def append_log(
    engine: Engine,
    user_id: int,
    event_id: int,
    points: int | None = None,
    badge_id: int | None = None,
    level_id: int | None = None,
    event_date: datetime | None = None,
) -> None:
    """Insert one history row; *event_date* defaults to now and is stored as UTC."""
    with get_session(engine) as session:
        session.add(UserLog(
            user_id=user_id,
            event_id=event_id,
            event_date=as_utc(event_date) if event_date is not None else datetime.now(UTC),
            points=points,
            badge_id=badge_id,
            level_id=level_id,
        ))


def get_log(engine: Engine, user_id: int) -> list[UserLog]:
    """The user's history, newest first."""
    with Session(engine) as session:
        return list(session.scalars(
            select(UserLog)
            .where(UserLog.user_id == user_id)
            .order_by(UserLog.event_date.desc(), UserLog.id.desc())
        ).all())


def get_event_log(engine: Engine, user_id: int, event_id: int) -> list[UserLog]:
    """Occurrences of one event for one user, newest first."""
    with Session(engine) as session:
        return list(session.scalars(
            select(UserLog)
            .where(UserLog.user_id == user_id, UserLog.event_id == event_id)
            .order_by(UserLog.event_date.desc(), UserLog.id.desc())
        ).all())
