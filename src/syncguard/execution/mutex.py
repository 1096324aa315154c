"""Distributed Mutex — named, timeout-bounded cross-process lock.

WHY
───
The circuit breaker's half-open probe must be single-flight across
independent processes (overlapping scheduled runs, concurrent web
requests). An in-process ``threading.Lock`` cannot see other processes,
so ownership is tracked by a shared external resource: a server-side
session lock (MySQL ``GET_LOCK``) or a lease row in ``syncguard_locks``.

ARCHITECTURE
────────────
::

    DistributedMutex(name, timeout, provider)
      ├── .acquire()   ─ provider.get_lock(name, timeout) == 1 ?
      ├── .release()   ─ provider.release_lock(name) only if held
      ├── .is_held()   ─ local view of ownership
      └── .get_name()

    LockProvider
      ├── MySQLLockProvider  ─ SELECT GET_LOCK / RELEASE_LOCK (session lock)
      └── TableLockProvider  ─ lease rows with expiry (SQLite, any DB)

SIGNALS
───────
``acquire()`` returns ``True`` only for the exact acquired signal ``1``.
``0`` (timeout), ``None`` (error), ``""`` and anything else fail closed.
Contention is an expected outcome and is never raised.

Example::

    mutex = DistributedMutex("syncguard_cb_probe", timeout=1, provider=provider)
    if mutex.acquire():
        try:
            claim_probe()
        finally:
            mutex.release()
"""

from __future__ import annotations

import time
import uuid
from typing import Any

from syncguard.core.dialect import Dialect, MySQLDialect
from syncguard.core.logging import get_logger
from syncguard.core.protocols import Clock, Connection, LockProvider
from syncguard.core.repository import BaseRepository
from syncguard.core.timestamps import epoch_now

logger = get_logger(__name__)

_ACQUIRED = "1"


def _is_acquired(signal: Any) -> bool:
    if isinstance(signal, bytes):
        signal = signal.decode("ascii", "replace")
    return str(signal) == _ACQUIRED


class DistributedMutex:
    """A named lock whose ownership lives in a shared lock provider.

    ``held`` is a local cache of ownership. If the owning session dies the
    provider releases the lock regardless of this flag.
    """

    def __init__(self, name: str, provider: LockProvider, timeout: int = 5):
        self._name = name
        self._provider = provider
        self._timeout = timeout
        self._held = False

    def acquire(self) -> bool:
        """Wait up to ``timeout`` seconds for the lock.

        Returns:
            True only when the provider reports the acquired signal.
        """
        signal = self._provider.get_lock(self._name, self._timeout)
        self._held = _is_acquired(signal)
        if not self._held:
            logger.debug("lock_not_acquired", lock=self._name, signal=signal, timeout=self._timeout)
        return self._held

    def release(self) -> None:
        """Release the lock if held. Repeated calls issue nothing."""
        if not self._held:
            return
        self._provider.release_lock(self._name)
        self._held = False

    def is_held(self) -> bool:
        return self._held

    def get_name(self) -> str:
        return self._name

    def __enter__(self) -> bool:
        return self.acquire()

    def __exit__(self, *args) -> None:
        self.release()

    def __repr__(self) -> str:
        return f"DistributedMutex({self._name!r}, held={self._held})"


class MySQLLockProvider:
    """MySQL/MariaDB named session locks.

    ``GET_LOCK`` returns 1 (acquired), 0 (timeout) or NULL (error). The
    lock is released by the server when the session ends.
    """

    def __init__(self, conn: Connection, dialect: Dialect | None = None):
        self._conn = conn
        self._dialect = dialect or MySQLDialect()

    def get_lock(self, name: str, timeout: int) -> Any:
        ph = self._dialect.placeholder(0)
        cursor = self._conn.execute(f"SELECT GET_LOCK({ph}, {ph})", (name, timeout))
        row = cursor.fetchone()
        return row[0] if row else None

    def release_lock(self, name: str) -> None:
        ph = self._dialect.placeholder(0)
        cursor = self._conn.execute(f"SELECT RELEASE_LOCK({ph})", (name,))
        cursor.fetchone()


class TableLockProvider(BaseRepository):
    """Named locks as lease rows in ``syncguard_locks``.

    A lock is a row keyed by name with an owner token and an expiry. An
    expired lease is reaped by the next acquirer, so a crashed holder
    self-heals after ``lease_seconds``. Re-acquiring a lock this owner
    already holds extends the lease.

    Returns the same signals as ``GET_LOCK``: 1, 0 or None.
    """

    def __init__(
        self,
        conn: Connection,
        dialect: Dialect | None = None,
        *,
        owner: str | None = None,
        lease_seconds: int = 60,
        poll_interval: float = 0.1,
        clock: Clock = epoch_now,
        sleep=time.sleep,
    ):
        super().__init__(conn, dialect)
        self.owner = owner or uuid.uuid4().hex
        self._lease_seconds = lease_seconds
        self._poll_interval = poll_interval
        self._clock = clock
        self._sleep = sleep

    def _try_acquire(self, name: str) -> bool:
        now = self._clock()

        # Reap an expired lease first
        self.execute(
            f"DELETE FROM syncguard_locks WHERE lock_name = {self.ph(1)} "
            f"AND expires_at <= {self.ph(1)}",
            (name, now),
        )

        sql = self.dialect.insert_or_ignore(
            "syncguard_locks", ["lock_name", "owner", "acquired_at", "expires_at"]
        )
        cursor = self.execute(sql, (name, self.owner, now, now + self._lease_seconds))
        if cursor.rowcount == 1:
            self.commit()
            return True

        cursor = self.execute(
            f"UPDATE syncguard_locks SET expires_at = {self.ph(1)} "
            f"WHERE lock_name = {self.ph(1)} AND owner = {self.ph(1)}",
            (now + self._lease_seconds, name, self.owner),
        )
        extended = cursor.rowcount == 1
        self.commit()
        return extended

    def get_lock(self, name: str, timeout: int) -> int | None:
        deadline = self._clock() + max(timeout, 0)
        try:
            while True:
                if self._try_acquire(name):
                    return 1
                if self._clock() >= deadline:
                    return 0
                self._sleep(self._poll_interval)
        except Exception as e:
            logger.error("lock_provider_error", lock=name, error=str(e))
            self.conn.rollback()
            return None

    def release_lock(self, name: str) -> None:
        self.execute(
            f"DELETE FROM syncguard_locks WHERE lock_name = {self.ph(1)} AND owner = {self.ph(1)}",
            (name, self.owner),
        )
        self.commit()

    def list_active(self) -> list[dict[str, Any]]:
        """List unexpired leases, newest first."""
        return self.query(
            "SELECT lock_name, owner, acquired_at, expires_at FROM syncguard_locks "
            f"WHERE expires_at > {self.ph(1)} ORDER BY acquired_at DESC",
            (self._clock(),),
        )


__all__ = [
    "DistributedMutex",
    "MySQLLockProvider",
    "TableLockProvider",
]
