"""
scorekeeper.services.catalog_service — Badges, Levels & Events
===============================================================

Read-mostly configuration entities.  Created once by a setup/admin call
(or :mod:`scorekeeper.database.seed`) and referenced by id from every
per-user row.

Lookups return ``None`` when nothing matches; the ``require_*`` variants
raise :class:`~scorekeeper.errors.NotFoundError` for callers that need the
row to exist.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import Engine, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from scorekeeper.constants import require_int
from scorekeeper.database.engine import get_session
from scorekeeper.database.models import Badge, Event, Level
from scorekeeper.errors import DuplicateAliasError, NotConfiguredError, NotFoundError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# EventDefinition — input envelope for create_event
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class EventDefinition:
    """Everything needed to configure an :class:`Event`.

    ``required_repetitions`` only matters when ``allow_repetitions`` is set;
    ``max_points`` is a cap the rules engine enforces, not the store.
    """

    alias: str
    description: str | None = None
    allow_repetitions: bool = True
    required_repetitions: int = 1
    each_badge_id: int | None = None
    reach_badge_id: int | None = None
    each_points: int = 0
    reach_points: int = 0
    max_points: int | None = None
    each_callback: str | None = None
    reach_callback: str | None = None
    combinable: bool = False

    def __post_init__(self) -> None:
        if not self.alias:
            raise ValueError("Event alias must not be empty")
        require_int("required_repetitions", self.required_repetitions, minimum=1)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------
def _insert_unique(engine: Engine, row: Badge | Event, kind: str):
    """Insert a catalog row whose alias must be unique and return it detached.

    The up-front check gives a clean error in the common case; the unique
    constraint catches two creators racing on the same alias.
    """
    model, alias = type(row), row.alias
    with get_session(engine) as session:
        exists = session.scalar(select(model.id).where(model.alias == alias))
        if exists is not None:
            raise DuplicateAliasError(kind, alias)
        session.add(row)
        try:
            session.flush()
        except IntegrityError as exc:
            raise DuplicateAliasError(kind, alias) from exc
        new_id = row.id
    logger.info("Created %s %r (id=%d)", kind.lower(), alias, new_id)
    return _reload(engine, model, new_id, kind)


def _reload(engine: Engine, model: type, pk: int, kind: str):
    """Fetch a row that was just inserted; its absence is a store fault."""
    with Session(engine) as session:
        row = session.get(model, pk)
    if row is None:
        raise NotFoundError(kind, pk)
    return row


# ---------------------------------------------------------------------------
# Badges
# ---------------------------------------------------------------------------
def create_badge(
    engine: Engine,
    alias: str,
    title: str,
    description: str | None = None,
    image_url: str | None = None,
) -> Badge:
    """Create a badge.  Raises :class:`DuplicateAliasError` if *alias* exists."""
    badge = Badge(alias=alias, title=title, description=description, image_url=image_url)
    return _insert_unique(engine, badge, "Badge")


def get_badge(engine: Engine, badge_id: int) -> Badge | None:
    with Session(engine) as session:
        return session.get(Badge, badge_id)


def get_badge_by_alias(engine: Engine, alias: str) -> Badge | None:
    with Session(engine) as session:
        return session.scalar(select(Badge).where(Badge.alias == alias))


def require_badge(engine: Engine, badge_id: int) -> Badge:
    badge = get_badge(engine, badge_id)
    if badge is None:
        raise NotFoundError("Badge", badge_id)
    return badge


def list_badges(engine: Engine) -> list[Badge]:
    """All badges, id ascending.  Empty list when none are configured."""
    with Session(engine) as session:
        return list(session.scalars(select(Badge).order_by(Badge.id)).all())


# ---------------------------------------------------------------------------
# Levels
# ---------------------------------------------------------------------------
def create_level(
    engine: Engine,
    points: int,
    title: str,
    description: str | None = None,
) -> Level:
    """Create a level reached at *points*."""
    require_int("points", points)
    with get_session(engine) as session:
        level = Level(points=points, title=title, description=description)
        session.add(level)
        session.flush()
        new_id = level.id
    logger.info("Created level %r at %d points (id=%d)", title, points, new_id)
    return _reload(engine, Level, new_id, "Level")


def get_level(engine: Engine, level_id: int) -> Level | None:
    with Session(engine) as session:
        return session.get(Level, level_id)


def require_level(engine: Engine, level_id: int) -> Level:
    level = get_level(engine, level_id)
    if level is None:
        raise NotFoundError("Level", level_id)
    return level


def list_levels(engine: Engine) -> list[Level]:
    """All levels ordered by threshold (then id)."""
    with Session(engine) as session:
        return list(
            session.scalars(select(Level).order_by(Level.points, Level.id)).all()
        )


def first_level_in(session: Session) -> Level | None:
    """Lowest-threshold level, loaded through an existing *session*."""
    return session.scalar(select(Level).order_by(Level.points, Level.id).limit(1))


def get_first_level(engine: Engine) -> Level:
    """Level with the minimum points threshold.

    Raises
    ------
    NotConfiguredError
        If no levels exist.
    """
    with Session(engine) as session:
        level = first_level_in(session)
    if level is None:
        raise NotConfiguredError("No levels are configured")
    return level


def get_next_level(engine: Engine, current_level_id: int, current_points: int) -> Level | None:
    """Smallest threshold strictly above *current_points*, excluding the
    current level.  ``None`` when the user is already at the top.
    """
    require_int("current_level_id", current_level_id)
    require_int("current_points", current_points)
    with Session(engine) as session:
        return session.scalar(
            select(Level)
            .where(Level.id != current_level_id, Level.points > current_points)
            .order_by(Level.points, Level.id)
            .limit(1)
        )


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------
def create_event(engine: Engine, definition: EventDefinition) -> Event:
    """Create an event from *definition*.

    Raises
    ------
    DuplicateAliasError
        If the alias is taken.
    NotFoundError
        If a referenced badge does not exist.
    """
    for badge_id in (definition.each_badge_id, definition.reach_badge_id):
        if badge_id is not None and get_badge(engine, badge_id) is None:
            raise NotFoundError("Badge", badge_id)

    event = Event(
        alias=definition.alias,
        description=definition.description,
        allow_repetitions=definition.allow_repetitions,
        required_repetitions=definition.required_repetitions,
        each_badge_id=definition.each_badge_id,
        reach_badge_id=definition.reach_badge_id,
        each_points=definition.each_points,
        reach_points=definition.reach_points,
        max_points=definition.max_points,
        each_callback=definition.each_callback,
        reach_callback=definition.reach_callback,
        combinable=definition.combinable,
    )
    return _insert_unique(engine, event, "Event")


def get_event(engine: Engine, alias: str) -> Event | None:
    with Session(engine) as session:
        return session.scalar(select(Event).where(Event.alias == alias))


def get_event_by_id(engine: Engine, event_id: int) -> Event | None:
    with Session(engine) as session:
        return session.get(Event, event_id)


def require_event(engine: Engine, alias: str) -> Event:
    event = get_event(engine, alias)
    if event is None:
        raise NotFoundError("Event", alias)
    return event


def list_events(engine: Engine) -> list[Event]:
    """All events, id ascending."""
    with Session(engine) as session:
        return list(session.scalars(select(Event).order_by(Event.id)).all())
