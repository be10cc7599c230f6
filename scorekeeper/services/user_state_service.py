"""
scorekeeper.services.user_state_service — Scores, Event Counters & Badges
==========================================================================

Per-user mutable state.  Called by the rules engine after it has decided
what to grant; this module never decides anything itself.

**Lost-update safety:** every mutation is a single upsert statement
(``INSERT … ON CONFLICT … DO UPDATE SET col = col + :delta``) built by
:func:`~scorekeeper.database.upsert.build_upsert`.  The composite primary
keys (user_id, event_id) and (user_id, badge_id) are the concurrency
boundary; no read-modify-write happens in Python.

**Read-with-default:** :func:`get_score` and :func:`get_event_state` return a
transient, never-persisted zero row when the user has none.  Reading never
creates rows.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy import Engine, func, select
from sqlalchemy.orm import Session

from scorekeeper.constants import NO_LEVEL, as_utc, require_int
from scorekeeper.database.engine import get_session
from scorekeeper.database.models import Level, UserBadge, UserEvent, UserScore
from scorekeeper.database.upsert import build_upsert
from scorekeeper.errors import InvalidLevelError, NotConfiguredError
from scorekeeper.services.catalog_service import first_level_in

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Scores
# ---------------------------------------------------------------------------
def get_score(engine: Engine, user_id: int) -> UserScore:
    """Return the user's score row, or a virtual first-level zero score.

    Raises
    ------
    NotConfiguredError
        If the user has no row and no levels exist.
    """
    with Session(engine) as session:
        score = session.get(UserScore, user_id)
        if score is not None:
            return score
        first = first_level_in(session)
    if first is None:
        raise NotConfiguredError("No levels are configured")
    return UserScore(user_id=user_id, points=0, level_id=first.id, level=first)


def grant_points(engine: Engine, user_id: int, delta: int) -> None:
    """Add *delta* points, creating the row at the first level if needed.

    Any integer is accepted; caps (``Event.max_points``) are enforced by the
    rules engine.
    """
    require_int("delta", delta)
    with get_session(engine) as session:
        first = first_level_in(session)
        if first is None:
            raise NotConfiguredError("No levels are configured")
        session.execute(build_upsert(
            session, UserScore,
            {"user_id": user_id, "points": delta, "level_id": first.id},
            index_elements=("user_id",),
            update=lambda new: {
                "points": UserScore.points + new.points,
                "updated_at": func.now(),
            },
        ))
    logger.debug("Granted %d points to user %s", delta, user_id)


def grant_level(engine: Engine, user_id: int, level_id: int) -> None:
    """Set the user's current level.

    A user without a score row gets one with 0 points at *level_id*.

    Raises
    ------
    InvalidLevelError
        If *level_id* is the ``NO_LEVEL`` sentinel, ``None``, or unknown.
    """
    if level_id is None or level_id == NO_LEVEL:
        logger.warning("Rejected grant of sentinel level to user %s", user_id)
        raise InvalidLevelError(level_id)
    with get_session(engine) as session:
        if session.get(Level, level_id) is None:
            logger.warning("Rejected grant of unknown level %s to user %s", level_id, user_id)
            raise InvalidLevelError(level_id)
        session.execute(build_upsert(
            session, UserScore,
            {"user_id": user_id, "points": 0, "level_id": level_id},
            index_elements=("user_id",),
            update=lambda new: {"level_id": new.level_id, "updated_at": func.now()},
        ))
    logger.debug("Granted level %d to user %s", level_id, user_id)


# ---------------------------------------------------------------------------
# Event counters
# ---------------------------------------------------------------------------
def get_event_state(engine: Engine, user_id: int, event_id: int) -> UserEvent:
    """Return the (user, event) counters, or a virtual zero state."""
    with Session(engine) as session:
        state = session.get(UserEvent, (user_id, event_id))
    if state is None:
        state = UserEvent(user_id=user_id, event_id=event_id, event_counter=0, points_counter=0)
    return state


def _upsert_event(engine: Engine, user_id: int, event_id: int, *, counter: int,
                  points: int, update) -> None:
    with get_session(engine) as session:
        session.execute(build_upsert(
            session, UserEvent,
            {
                "user_id": user_id,
                "event_id": event_id,
                "event_counter": counter,
                "points_counter": points,
            },
            index_elements=("user_id", "event_id"),
            update=update,
        ))


def increment_event_counter(engine: Engine, user_id: int, event_id: int) -> None:
    """Record one more occurrence (creates the row with counter=1)."""
    _upsert_event(
        engine, user_id, event_id, counter=1, points=0,
        update=lambda new: {"event_counter": UserEvent.event_counter + 1},
    )
    logger.debug("Incremented event %d for user %s", event_id, user_id)


def set_event_counter(engine: Engine, user_id: int, event_id: int, value: int) -> None:
    """Overwrite the occurrence counter (administrative correction)."""
    require_int("value", value, minimum=0)
    _upsert_event(
        engine, user_id, event_id, counter=value, points=0,
        update=lambda new: {"event_counter": new.event_counter},
    )
    logger.info("Set event %d counter for user %s to %d", event_id, user_id, value)


def add_event_points(engine: Engine, user_id: int, event_id: int, delta: int) -> None:
    """Add *delta* to the points accrued through one event."""
    require_int("delta", delta)
    _upsert_event(
        engine, user_id, event_id, counter=0, points=delta,
        update=lambda new: {"points_counter": UserEvent.points_counter + new.points_counter},
    )


def list_user_events(engine: Engine, user_id: int) -> list[UserEvent]:
    with Session(engine) as session:
        return list(session.scalars(
            select(UserEvent)
            .where(UserEvent.user_id == user_id)
            .order_by(UserEvent.event_id)
        ).all())


# ---------------------------------------------------------------------------
# Badges
# ---------------------------------------------------------------------------
def has_badge(engine: Engine, user_id: int, badge_id: int) -> bool:
    with Session(engine) as session:
        return session.get(UserBadge, (user_id, badge_id)) is not None


def grant_badge(
    engine: Engine,
    user_id: int,
    badge_id: int,
    grant_date: datetime | None = None,
) -> None:
    """Record a badge grant.

    First grant: counter=1, ``grant_date`` = *grant_date* or now (UTC).
    Later grants: counter+1; ``grant_date`` replaced only when supplied.

    The store always records the grant.  Non-repeatable badges are the
    caller's business (check :func:`has_badge` first).
    """
    supplied = grant_date is not None
    grant_date = as_utc(grant_date) if supplied else datetime.now(UTC)

    def _on_regrant(new) -> dict:
        changes = {"badges_counter": UserBadge.badges_counter + 1}
        if supplied:
            changes["grant_date"] = new.grant_date
        return changes

    with get_session(engine) as session:
        session.execute(build_upsert(
            session, UserBadge,
            {
                "user_id": user_id,
                "badge_id": badge_id,
                "badges_counter": 1,
                "grant_date": grant_date,
            },
            index_elements=("user_id", "badge_id"),
            update=_on_regrant,
        ))
    logger.debug("Granted badge %d to user %s", badge_id, user_id)


def list_user_badges(engine: Engine, user_id: int) -> list[UserBadge]:
    with Session(engine) as session:
        return list(session.scalars(
            select(UserBadge)
            .where(UserBadge.user_id == user_id)
            .order_by(UserBadge.badge_id)
        ).all())
