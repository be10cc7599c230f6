"""
scorekeeper.services.alert_service — Pending Badge/Level Notifications
=======================================================================

A per-user FIFO of "you earned X" rows for the host application to show.
Enqueueing never de-duplicates: two grants mean two alerts.

Consuming (``get_alerts(..., consume=True)``) locks the rows it read and
deletes exactly those ids in the same transaction.  A row enqueued while the
read is in flight is either part of the returned batch (and deleted) or left
behind for the next call; it is never lost and never delivered twice.

Backends without ``SELECT … FOR UPDATE`` (SQLite) let two consumers read the
same rows, so an alert is only returned by the call whose ``DELETE`` actually
removed it.
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine, delete, select
from sqlalchemy.orm import Session

from scorekeeper.database.engine import get_session
from scorekeeper.database.models import UserAlert

logger = logging.getLogger(__name__)


def enqueue_badge_alert(engine: Engine, user_id: int, badge_id: int) -> None:
    with get_session(engine) as session:
        session.add(UserAlert(user_id=user_id, badge_id=badge_id, level_id=None))


def enqueue_level_alert(engine: Engine, user_id: int, level_id: int) -> None:
    with get_session(engine) as session:
        session.add(UserAlert(user_id=user_id, badge_id=None, level_id=level_id))


def get_alerts(engine: Engine, user_id: int, consume: bool = False) -> list[UserAlert]:
    """Return the user's pending alerts in creation order.

    With *consume* set, the returned rows are deleted atomically with the
    read.
    """
    query = select(UserAlert).where(UserAlert.user_id == user_id).order_by(UserAlert.id)
    if consume:
        query = query.with_for_update()

    with get_session(engine, expire_on_commit=False) as session:
        alerts = list(session.scalars(query).all())
        if not consume or not alerts:
            return alerts

        deleted = _delete_alerts(session, [alert.id for alert in alerts])
        for alert in alerts:
            session.expunge(alert)
        consumed = [alert for alert in alerts if alert.id in deleted]
        logger.debug("Consumed %d alerts for user %s", len(consumed), user_id)
    return consumed


def _delete_alerts(session: Session, ids: list[int]) -> set[int]:
    """Delete *ids* and return the ones this transaction actually removed.

    One ``DELETE … RETURNING`` where the dialect has it; otherwise one
    ``DELETE`` per id, judged by its row count (MySQL).
    """
    if session.get_bind().dialect.delete_returning:
        return set(session.scalars(
            delete(UserAlert)
            .where(UserAlert.id.in_(ids))
            .returning(UserAlert.id)
            .execution_options(synchronize_session=False)
        ).all())

    deleted = set()
    for alert_id in ids:
        result = session.execute(
            delete(UserAlert)
            .where(UserAlert.id == alert_id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            deleted.add(alert_id)
    return deleted
