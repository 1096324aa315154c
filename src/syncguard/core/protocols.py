"""
Structural protocols for the collaborators SyncGuard consumes.

The reliability engine never talks to a concrete database driver, cache
server or lock service directly. It depends on these shapes, and the
adapters in ``syncguard.core`` / ``syncguard.execution.mutex`` satisfy them.

Architecture:
    ::

        protocols.py
        ├── Connection    — sync DB-API style connection (sqlite3, pymysql, ...)
        ├── LockProvider  — server-side named lock (acquire signal / unlock)
        └── Clock         — ``() -> float`` epoch seconds, injectable in tests

Guardrails:
    ❌ DON'T: Add implementation logic to protocol classes
    ✅ DO: Keep protocols pure contracts — implementations go in adapters
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

Clock = Callable[[], float]


@runtime_checkable
class Connection(Protocol):
    """Minimal synchronous connection interface for database operations.

    Implementations:
        - :class:`syncguard.core.connection.SqliteConnection`
        - any DB-API 2.0 connection wrapped to expose ``execute``
    """

    def execute(self, sql: str, params: tuple = ()) -> Any:
        """Execute a single statement and return a cursor-like object."""
        ...

    def executemany(self, sql: str, params: list[tuple]) -> Any:
        """Execute a statement once per parameter tuple."""
        ...

    def fetchone(self) -> Any:
        """Return the next row of the last query, or ``None``."""
        ...

    def fetchall(self) -> list[Any]:
        """Return all remaining rows of the last query."""
        ...

    def commit(self) -> None:
        """Commit the current transaction."""
        ...

    def rollback(self) -> None:
        """Roll back the current transaction."""
        ...


@runtime_checkable
class LockProvider(Protocol):
    """Server-side named lock.

    ``get_lock`` waits up to ``timeout`` seconds and returns the provider's
    raw signal: ``1`` when acquired, ``0`` when denied by timeout, ``None``
    (or anything else) on error. ``release_lock`` is fire-and-forget.
    """

    def get_lock(self, name: str, timeout: int) -> Any:
        ...

    def release_lock(self, name: str) -> None:
        ...


__all__ = [
    "Clock",
    "Connection",
    "LockProvider",
]
