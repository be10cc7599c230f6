"""
scorekeeper.database.models — SQLAlchemy 2.0 Data Models
=========================================================

Tables:
- badges        — Catalog of grantable badges (unique alias)
- levels        — Catalog of point thresholds
- events        — Catalog of scoreable activity types (unique alias)
- user_scores   — Points + current level, one row per user
- user_events   — Per-(user, event) occurrence and points counters
- user_badges   — Per-(user, badge) ownership with grant counter
- user_alerts   — Pending badge/level notifications, FIFO by id
- user_logs     — Append-only scoring history

User ids are opaque 64-bit integers owned by the host application; there is
no users table.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all scorekeeper ORM models."""


# ---------------------------------------------------------------------------
# Badge — catalog entry, alias never reassigned
# ---------------------------------------------------------------------------
class Badge(Base):
    __tablename__ = "badges"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    alias: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<Badge id={self.id} alias={self.alias!r}>"


# ---------------------------------------------------------------------------
# Level — point threshold, ordered by points
# ---------------------------------------------------------------------------
class Level(Base):
    __tablename__ = "levels"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, default=None)

    __table_args__ = (
        Index("ix_levels_points", "points"),
    )

    def __repr__(self) -> str:
        return f"<Level id={self.id} points={self.points} title={self.title!r}>"


# ---------------------------------------------------------------------------
# Event — scoreable activity definition
# ---------------------------------------------------------------------------
class Event(Base):
    """A configured activity type.

    ``each_*`` fields apply on every occurrence, ``reach_*`` fields once the
    user reaches ``required_repetitions`` occurrences.  The callbacks are
    opaque handler names interpreted by the rules engine, never by the store.
    """
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    alias: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    allow_repetitions: Mapped[bool] = mapped_column(Boolean, default=True)
    required_repetitions: Mapped[int] = mapped_column(Integer, default=1)
    each_badge_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("badges.id"), nullable=True
    )
    reach_badge_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("badges.id"), nullable=True
    )
    each_points: Mapped[int] = mapped_column(Integer, default=0)
    reach_points: Mapped[int] = mapped_column(Integer, default=0)
    max_points: Mapped[int | None] = mapped_column(Integer, nullable=True)
    each_callback: Mapped[str | None] = mapped_column(String(200), nullable=True)
    reach_callback: Mapped[str | None] = mapped_column(String(200), nullable=True)
    combinable: Mapped[bool] = mapped_column(Boolean, default=False)

    __table_args__ = (
        CheckConstraint("required_repetitions >= 1", name="ck_events_required_repetitions"),
    )

    def __repr__(self) -> str:
        return f"<Event id={self.id} alias={self.alias!r}>"


# ---------------------------------------------------------------------------
# UserScore — points + current level
# ---------------------------------------------------------------------------
class UserScore(Base):
    __tablename__ = "user_scores"

    user_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    level_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("levels.id"), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    level: Mapped[Level] = relationship(lazy="joined")

    def __repr__(self) -> str:
        return f"<UserScore user={self.user_id} points={self.points} level={self.level_id}>"


# Ranking scan order: points DESC, user_id ASC
Index("ix_user_scores_points_desc", UserScore.points.desc(), UserScore.user_id)


# ---------------------------------------------------------------------------
# UserEvent — per-(user, event) counters
# ---------------------------------------------------------------------------
class UserEvent(Base):
    __tablename__ = "user_events"

    user_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    event_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("events.id"), primary_key=True, autoincrement=False
    )
    event_counter: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    points_counter: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return (
            f"<UserEvent user={self.user_id} event={self.event_id} "
            f"count={self.event_counter} points={self.points_counter}>"
        )


# ---------------------------------------------------------------------------
# UserBadge — badge ownership, counter increments on regrant
# ---------------------------------------------------------------------------
class UserBadge(Base):
    __tablename__ = "user_badges"

    user_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    badge_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("badges.id"), primary_key=True, autoincrement=False
    )
    badges_counter: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    grant_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return (
            f"<UserBadge user={self.user_id} badge={self.badge_id} "
            f"count={self.badges_counter}>"
        )


# ---------------------------------------------------------------------------
# UserAlert — pending notification, exactly one of badge/level set
# ---------------------------------------------------------------------------
class UserAlert(Base):
    __tablename__ = "user_alerts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    badge_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("badges.id"), nullable=True
    )
    level_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("levels.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint(
            "(badge_id IS NULL) <> (level_id IS NULL)",
            name="ck_user_alerts_badge_xor_level",
        ),
        Index("ix_user_alerts_user_id", "user_id", "id"),
    )

    def __repr__(self) -> str:
        return (
            f"<UserAlert id={self.id} user={self.user_id} "
            f"badge={self.badge_id} level={self.level_id}>"
        )


# ---------------------------------------------------------------------------
# UserLog — append-only scoring history
# ---------------------------------------------------------------------------
class UserLog(Base):
    __tablename__ = "user_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    event_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("events.id"), nullable=False
    )
    event_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    points: Mapped[int | None] = mapped_column(Integer, nullable=True)
    badge_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("badges.id"), nullable=True
    )
    level_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("levels.id"), nullable=True
    )

    __table_args__ = (
        Index("ix_user_logs_user_date", "user_id", "event_date"),
    )

    def __repr__(self) -> str:
        return f"<UserLog id={self.id} user={self.user_id} event={self.event_id}>"


# Table name → ORM class, used by reset and seeding.
MODELS_BY_TABLE: dict[str, type[Base]] = {
    model.__tablename__: model
    for model in (Badge, Level, Event, UserScore, UserEvent, UserBadge, UserAlert, UserLog)
}
