from __future__ import annotations

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from userdash.controller import DashboardController
from userdash.sessions import DashboardSessions

from conftest import FakeBackend


class _Clock:
    def __init__(self) -> None:
        self.now = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now


def _registry(backend: FakeBackend, clock: _Clock) -> DashboardSessions:
    client = backend.client()
    sessions = DashboardSessions(
        lambda: DashboardController(client, zone=ZoneInfo("UTC")),
        ttl=timedelta(minutes=30),
    )
    sessions._now = clock
    return sessions


def test_each_session_gets_its_own_controller(backend: FakeBackend) -> None:
    sessions = _registry(backend, _Clock())

    first_token, first = sessions.create()
    second_token, second = sessions.create()

    assert first_token != second_token
    assert first is not second
    assert sessions.resolve(first_token) is first
    assert sessions.resolve(second_token) is second
    assert len(sessions) == 2


def test_unknown_or_missing_token_resolves_to_none(backend: FakeBackend) -> None:
    sessions = _registry(backend, _Clock())

    assert sessions.resolve(None) is None
    assert sessions.resolve("") is None
    assert sessions.resolve("nope") is None


def test_idle_sessions_expire_and_active_ones_slide(backend: FakeBackend) -> None:
    clock = _Clock()
    sessions = _registry(backend, clock)
    idle_token, _ = sessions.create()
    active_token, active = sessions.create()

    clock.now += timedelta(minutes=20)
    assert sessions.resolve(active_token) is active

    clock.now += timedelta(minutes=20)
    assert sessions.resolve(idle_token) is None
    assert sessions.resolve(active_token) is active
    assert len(sessions) == 1


def test_create_prunes_expired_sessions(backend: FakeBackend) -> None:
    clock = _Clock()
    sessions = _registry(backend, clock)
    sessions.create()
    sessions.create()

    clock.now += timedelta(hours=1)
    token, _ = sessions.create()

    assert len(sessions) == 1
    assert sessions.resolve(token) is not None


def test_destroy_forgets_the_session(backend: FakeBackend) -> None:
    sessions = _registry(backend, _Clock())
    token, _ = sessions.create()

    sessions.destroy(token)

    assert sessions.resolve(token) is None
