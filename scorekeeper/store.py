"""
scorekeeper.store — GamificationStore Facade
=============================================

One object holding the engine handle and exposing every store operation as
a method.  The service modules stay plain functions taking ``engine`` first;
this class only binds that argument and owns the handle's lifecycle.

Usage::

    with GamificationStore(engine) as store:
        store.grant_points(user_id, 10)
        store.increment_event_counter(user_id, event.id)
        alerts = store.get_alerts(user_id, consume=True)
    # engine disposed here

Async hosts wrap calls with :func:`~scorekeeper.database.engine.run_db`::

    await run_db(store.grant_points, user_id, 10)
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import Engine

from scorekeeper.config import StoreConfig
from scorekeeper.database.engine import create_db_engine, init_db
from scorekeeper.database.models import (
    Badge,
    Event,
    Level,
    UserAlert,
    UserBadge,
    UserEvent,
    UserLog,
    UserScore,
)
from scorekeeper.database.seed import seed_catalog
from scorekeeper.services import (
    alert_service,
    audit_service,
    catalog_service,
    ranking_service,
    reset_service,
    user_state_service,
)
from scorekeeper.services.catalog_service import EventDefinition

logger = logging.getLogger(__name__)


class GamificationStore:
    """Gamification state store bound to a single engine handle."""

    def __init__(self, engine: Engine, *, default_ranking_limit: int = 10) -> None:
        self.engine = engine
        self.default_ranking_limit = default_ranking_limit
        self._closed = False

    @classmethod
    def from_config(
        cls,
        config: StoreConfig,
        url: str | None = None,
        *,
        create_tables: bool = False,
    ) -> GamificationStore:
        """Build the engine from *config*, optionally create tables and seed
        the configured catalog."""
        engine = create_db_engine(url, config)
        if create_tables:
            init_db(engine)
        store = cls(engine, default_ranking_limit=config.default_ranking_limit)
        if config.catalog:
            seed_catalog(engine, config.catalog)
        return store

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Release the connection pool.  Further calls are no-ops."""
        if self._closed:
            return
        self.engine.dispose()
        self._closed = True
        logger.info("Gamification store closed.")

    def __enter__(self) -> GamificationStore:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # -------------------------------------------------------------------
    # Catalog
    # -------------------------------------------------------------------
    def create_badge(self, alias: str, title: str, description: str | None = None,
                     image_url: str | None = None) -> Badge:
        return catalog_service.create_badge(self.engine, alias, title, description, image_url)

    def create_level(self, points: int, title: str, description: str | None = None) -> Level:
        return catalog_service.create_level(self.engine, points, title, description)

    def create_event(self, definition: EventDefinition) -> Event:
        return catalog_service.create_event(self.engine, definition)

    def get_badge(self, badge_id: int) -> Badge | None:
        return catalog_service.get_badge(self.engine, badge_id)

    def get_badge_by_alias(self, alias: str) -> Badge | None:
        return catalog_service.get_badge_by_alias(self.engine, alias)

    def get_level(self, level_id: int) -> Level | None:
        return catalog_service.get_level(self.engine, level_id)

    def get_event(self, alias: str) -> Event | None:
        return catalog_service.get_event(self.engine, alias)

    def get_event_by_id(self, event_id: int) -> Event | None:
        return catalog_service.get_event_by_id(self.engine, event_id)

    def list_badges(self) -> list[Badge]:
        return catalog_service.list_badges(self.engine)

    def list_levels(self) -> list[Level]:
        return catalog_service.list_levels(self.engine)

    def list_events(self) -> list[Event]:
        return catalog_service.list_events(self.engine)

    def get_first_level(self) -> Level:
        return catalog_service.get_first_level(self.engine)

    def get_next_level(self, current_level_id: int, current_points: int) -> Level | None:
        return catalog_service.get_next_level(self.engine, current_level_id, current_points)

    # -------------------------------------------------------------------
    # User state
    # -------------------------------------------------------------------
    def get_score(self, user_id: int) -> UserScore:
        return user_state_service.get_score(self.engine, user_id)

    def grant_points(self, user_id: int, delta: int) -> None:
        user_state_service.grant_points(self.engine, user_id, delta)

    def grant_level(self, user_id: int, level_id: int) -> None:
        user_state_service.grant_level(self.engine, user_id, level_id)

    def get_event_state(self, user_id: int, event_id: int) -> UserEvent:
        return user_state_service.get_event_state(self.engine, user_id, event_id)

    def increment_event_counter(self, user_id: int, event_id: int) -> None:
        user_state_service.increment_event_counter(self.engine, user_id, event_id)

    def set_event_counter(self, user_id: int, event_id: int, value: int) -> None:
        user_state_service.set_event_counter(self.engine, user_id, event_id, value)

    def add_event_points(self, user_id: int, event_id: int, delta: int) -> None:
        user_state_service.add_event_points(self.engine, user_id, event_id, delta)

    def has_badge(self, user_id: int, badge_id: int) -> bool:
        return user_state_service.has_badge(self.engine, user_id, badge_id)

    def grant_badge(self, user_id: int, badge_id: int,
                    grant_date: datetime | None = None) -> None:
        user_state_service.grant_badge(self.engine, user_id, badge_id, grant_date)

    def list_user_badges(self, user_id: int) -> list[UserBadge]:
        return user_state_service.list_user_badges(self.engine, user_id)

    def list_user_events(self, user_id: int) -> list[UserEvent]:
        return user_state_service.list_user_events(self.engine, user_id)

    # -------------------------------------------------------------------
    # Alerts
    # -------------------------------------------------------------------
    def enqueue_badge_alert(self, user_id: int, badge_id: int) -> None:
        alert_service.enqueue_badge_alert(self.engine, user_id, badge_id)

    def enqueue_level_alert(self, user_id: int, level_id: int) -> None:
        alert_service.enqueue_level_alert(self.engine, user_id, level_id)

    def get_alerts(self, user_id: int, consume: bool = False) -> list[UserAlert]:
        return alert_service.get_alerts(self.engine, user_id, consume)

    # -------------------------------------------------------------------
    # Audit log
    # -------------------------------------------------------------------
    def append_log(self, user_id: int, event_id: int, points: int | None = None,
                   badge_id: int | None = None, level_id: int | None = None,
                   event_date: datetime | None = None) -> None:
        audit_service.append_log(
            self.engine, user_id, event_id, points, badge_id, level_id, event_date
        )

    def get_log(self, user_id: int) -> list[UserLog]:
        return audit_service.get_log(self.engine, user_id)

    def get_event_log(self, user_id: int, event_id: int) -> list[UserLog]:
        return audit_service.get_event_log(self.engine, user_id, event_id)

    # -------------------------------------------------------------------
    # Ranking
    # -------------------------------------------------------------------
    def get_ranking(self, limit: int | None = None) -> list[UserScore]:
        if limit is None:
            limit = self.default_ranking_limit
        return ranking_service.get_ranking(self.engine, limit)

    def get_user_rank(self, user_id: int) -> int | None:
        return ranking_service.get_user_rank(self.engine, user_id)

    # -------------------------------------------------------------------
    # Reset
    # -------------------------------------------------------------------
    def reset_all(self, include_catalog: bool = False) -> dict[str, int]:
        return reset_service.reset_all(self.engine, include_catalog)
