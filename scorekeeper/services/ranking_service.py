"""
scorekeeper.services.ranking_service — Points Leaderboard
==========================================================

A pure read over ``user_scores``.  Nothing is cached, so every
:func:`~scorekeeper.services.user_state_service.grant_points` is visible to
the next ranking query.

Total order: points descending, then user_id ascending.
"""

from __future__ import annotations

from sqlalchemy import Engine, and_, func, or_, select
from sqlalchemy.orm import Session

from scorekeeper.constants import require_int
from scorekeeper.database.models import UserScore

_RANK_ORDER = (UserScore.points.desc(), UserScore.user_id.asc())


def get_ranking(engine: Engine, limit: int) -> list[UserScore]:
    """Top *limit* scores.

    Raises
    ------
    ValueError
        If *limit* is not a non-negative integer.
    """
    require_int("limit", limit, minimum=0)
    if limit == 0:
        return []
    with Session(engine) as session:
        return list(session.scalars(
            select(UserScore).order_by(*_RANK_ORDER).limit(limit)
        ).all())


def get_user_rank(engine: Engine, user_id: int) -> int | None:
    """1-based position of *user_id* in the ranking, ``None`` if unranked."""
    with Session(engine) as session:
        score = session.get(UserScore, user_id)
        if score is None:
            return None
        ahead = session.scalar(
            select(func.count()).select_from(UserScore).where(
                or_(
                    UserScore.points > score.points,
                    and_(UserScore.points == score.points, UserScore.user_id < user_id),
                )
            )
        )
    return ahead + 1
