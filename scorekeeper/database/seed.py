"""
scorekeeper.database.seed — Catalog Provisioning
=================================================

Creates levels, badges and events from plain dicts, typically the
``catalog:`` section of ``config.yaml``::

    catalog:
      levels:
        - {points: 0, title: Bronze}
        - {points: 100, title: Silver}
      badges:
        - {alias: first-login, title: First login}
      events:
        - {alias: login, each_points: 5, reach_badge: first-login}

Idempotent — badges and events whose alias exists and levels whose
(points, title) exist are skipped, so it is safe to run on every startup.
Events may reference badges by alias (``each_badge`` / ``reach_badge``).
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from scorekeeper.database.models import Level
from scorekeeper.errors import NotFoundError
from scorekeeper.services import catalog_service

logger = logging.getLogger(__name__)

_EVENT_FIELDS = (
    "description", "allow_repetitions", "required_repetitions", "each_points",
    "reach_points", "max_points", "each_callback", "reach_callback", "combinable",
)


def _level_exists(engine: Engine, points: int, title: str) -> bool:
    with Session(engine) as session:
        found = session.scalar(
            select(Level.id).where(Level.points == points, Level.title == title)
        )
    return found is not None


def _badge_ref(engine: Engine, entry: dict[str, Any], key: str) -> int | None:
    """Resolve ``each_badge`` / ``reach_badge`` aliases to ids."""
    alias = entry.get(key)
    if alias is None:
        return entry.get(f"{key}_id")
    badge = catalog_service.get_badge_by_alias(engine, alias)
    if badge is None:
        raise NotFoundError("Badge", alias)
    return badge.id


def seed_catalog(engine: Engine, catalog: dict[str, list[dict[str, Any]]]) -> dict[str, int]:
    """Insert catalog entries that don't yet exist.

    Badges are created before events so events can reference them.
    Returns the number of rows created per kind.
    """
    created = {"levels": 0, "badges": 0, "events": 0}

    for entry in catalog.get("levels", []):
        points, title = int(entry["points"]), entry["title"]
        if not _level_exists(engine, points, title):
            catalog_service.create_level(engine, points, title, entry.get("description"))
            created["levels"] += 1

    for entry in catalog.get("badges", []):
        if catalog_service.get_badge_by_alias(engine, entry["alias"]) is None:
            catalog_service.create_badge(
                engine,
                entry["alias"],
                entry["title"],
                entry.get("description"),
                entry.get("image_url"),
            )
            created["badges"] += 1

    for entry in catalog.get("events", []):
        if catalog_service.get_event(engine, entry["alias"]) is not None:
            continue
        definition = catalog_service.EventDefinition(
            alias=entry["alias"],
            each_badge_id=_badge_ref(engine, entry, "each_badge"),
            reach_badge_id=_badge_ref(engine, entry, "reach_badge"),
            **{name: entry[name] for name in _EVENT_FIELDS if name in entry},
        )
        catalog_service.create_event(engine, definition)
        created["events"] += 1

    if any(created.values()):
        logger.info(
            "Seeded catalog: %d levels, %d badges, %d events.",
            created["levels"], created["badges"], created["events"],
        )
    return created
