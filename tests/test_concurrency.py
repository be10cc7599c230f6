"""
tests/test_concurrency.py — Lost-Update Protection
===================================================
Many threads mutate the same counters through a file-backed SQLite
database with a real connection pool.  Every increment must land.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

from scorekeeper.services import alert_service, catalog_service
from scorekeeper.services import user_state_service as state
from scorekeeper.services.catalog_service import EventDefinition

USER = 4000
WORKERS = 8


def _setup(engine):
    catalog_service.create_level(engine, 0, "Bronze")
    badge = catalog_service.create_badge(engine, "streak", "Streak")
    event = catalog_service.create_event(engine, EventDefinition(alias="login"))
    return badge, event


def _run_all(calls):
    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        futures = [pool.submit(fn, *args) for fn, *args in calls]
        for future in futures:
            future.result()


def test_concurrent_event_increments(file_engine):
    _, event = _setup(file_engine)
    n = 40
    _run_all([(state.increment_event_counter, file_engine, USER, event.id)] * n)
    assert state.get_event_state(file_engine, USER, event.id).event_counter == n


def test_concurrent_point_grants_sum(file_engine):
    _setup(file_engine)
    _run_all([
        (state.grant_points, file_engine, USER, 10),
        (state.grant_points, file_engine, USER, 5),
        (state.grant_points, file_engine, USER, 3),
    ])
    assert state.get_score(file_engine, USER).points == 18


def test_concurrent_badge_grants_single_row(file_engine):
    badge, _ = _setup(file_engine)
    n = 20
    _run_all([(state.grant_badge, file_engine, USER, badge.id)] * n)
    (owned,) = state.list_user_badges(file_engine, USER)
    assert owned.badges_counter == n


def test_concurrent_event_points(file_engine):
    _, event = _setup(file_engine)
    _run_all([(state.add_event_points, file_engine, USER, event.id, 5)] * 16)
    assert state.get_event_state(file_engine, USER, event.id).points_counter == 80


def test_alert_consumed_once(file_engine):
    badge, _ = _setup(file_engine)
    alert_service.enqueue_badge_alert(file_engine, USER, badge.id)

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        results = list(pool.map(
            lambda _: alert_service.get_alerts(file_engine, USER, consume=True),
            range(WORKERS),
        ))

    assert sum(len(r) for r in results) == 1
