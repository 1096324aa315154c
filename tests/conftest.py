"""
Shared pytest fixtures for syncguard tests.

This module provides:
- An in-memory SQLite connection with the SyncGuard schema applied
- A controllable clock (epoch seconds) injected into every component
- A fake named-lock provider that behaves like GET_LOCK and records calls
- structlog reset between tests

Usage:
    def test_something(conn, clock, lock_provider):
        clock.advance(300)
"""

from __future__ import annotations

from typing import Any

import pytest
import structlog

from syncguard.core.cache import DatabaseCache
from syncguard.core.connection import create_connection
from syncguard.core.state import StateStore

_UNSET = object()


class FakeClock:
    """Callable epoch clock that only moves when told to."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeLockProvider:
    """In-process stand-in for a server-side named lock.

    Behaves like ``GET_LOCK``: returns 1 when the name is free, 0 when it
    is held. ``signals`` forces a raw signal per lock name.
    """

    def __init__(self, signals: dict[str, Any] | None = None):
        self.signals = dict(signals or {})
        self.held: set[str] = set()
        self.calls: list[tuple[str, int]] = []
        self.released: list[str] = []

    def get_lock(self, name: str, timeout: int) -> Any:
        self.calls.append((name, timeout))
        forced = self.signals.get(name, _UNSET)
        if forced is not _UNSET:
            return forced
        if name in self.held:
            return 0
        self.held.add(name)
        return 1

    def release_lock(self, name: str) -> None:
        self.released.append(name)
        self.held.discard(name)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _reset_structlog():
    """CLI runs point structlog at a temporary stream; undo that after each test."""
    yield
    structlog.reset_defaults()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def conn():
    """In-memory SQLite with all syncguard tables."""
    connection, _ = create_connection(":memory:", init_schema=True)
    yield connection
    connection.close()


@pytest.fixture()
def state(conn, clock) -> StateStore:
    return StateStore(conn, clock=clock)


@pytest.fixture()
def cache(conn, clock) -> DatabaseCache:
    return DatabaseCache(conn, clock=clock)


@pytest.fixture()
def lock_provider() -> FakeLockProvider:
    return FakeLockProvider()
