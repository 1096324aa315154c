"""
Transient cache with TTL and atomic claim.

The circuit breaker reads its counters from this cache on every
``is_available()`` call, and claims the half-open probe through
:meth:`CacheBackend.add`, an atomic set-if-absent.

Architecture:
    ::

        CacheBackend (Protocol)
        ├── InMemoryCache  — single process (tests, CLI one-shots)
        ├── DatabaseCache  — syncguard_transients table, shared by processes
        └── RedisCache     — distributed, SET NX EX for claims

        API: get(key) → value | None
             set(key, value, ttl_seconds=None)
             add(key, value, ttl_seconds=None) → bool   (claim)
             delete(key)
             exists(key) → bool
             clear()

Guardrails:
    ❌ DON'T: Use InMemoryCache when several processes share one breaker
    ✅ DO: Use DatabaseCache or RedisCache for multi-process deployments

    ❌ DON'T: Cache without TTL (a lost outcome call would pin the flag)
    ✅ DO: Give every claim a TTL
"""

from __future__ import annotations

import json
import threading
from typing import Any, Protocol

from syncguard.core.dialect import Dialect
from syncguard.core.protocols import Clock, Connection
from syncguard.core.repository import BaseRepository
from syncguard.core.timestamps import epoch_now


class CacheBackend(Protocol):
    """Protocol for transient cache backends.

    Keys are strings, values are JSON-serializable.
    """

    def get(self, key: str) -> Any | None:
        """Return the cached value, or ``None`` if missing or expired."""
        ...

    def set(self, key: str, value: Any, *, ttl_seconds: int | None = None) -> None:
        """Store a value. ``ttl_seconds=None`` uses the backend default."""
        ...

    def add(self, key: str, value: Any, *, ttl_seconds: int | None = None) -> bool:
        """Store a value only if ``key`` is absent (or expired).

        Returns:
            ``True`` if this call stored the value, ``False`` if another
            holder already had it.
        """
        ...

    def delete(self, key: str) -> None:
        """Remove a key. No-op if missing."""
        ...

    def exists(self, key: str) -> bool:
        """``True`` if the key exists and has not expired."""
        ...

    def clear(self) -> None:
        """Remove all keys. Dangerous in production — use for testing only."""
        ...


# ------------------------------------------------------------------ #
# In-Memory Cache
# ------------------------------------------------------------------ #


class InMemoryCache:
    """Thread-safe in-memory cache with TTL support.

    Example:
        cache = InMemoryCache(default_ttl_seconds=3600)
        cache.add("probe", 1, ttl_seconds=360)   # True
        cache.add("probe", 1, ttl_seconds=360)   # False
    """

    def __init__(
        self,
        *,
        default_ttl_seconds: int | None = 3600,
        clock: Clock = epoch_now,
    ):
        self._store: dict[str, tuple[Any, float | None]] = {}
        self._default_ttl = default_ttl_seconds
        self._clock = clock
        self._lock = threading.RLock()

    def _expires_at(self, ttl_seconds: int | None) -> float | None:
        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl
        return (self._clock() + ttl) if ttl else None

    def _live(self, key: str) -> bool:
        if key not in self._store:
            return False
        _, expires_at = self._store[key]
        if expires_at is not None and self._clock() >= expires_at:
            del self._store[key]
            return False
        return True

    def get(self, key: str) -> Any | None:
        with self._lock:
            if not self._live(key):
                return None
            return self._store[key][0]

    def set(self, key: str, value: Any, *, ttl_seconds: int | None = None) -> None:
        with self._lock:
            self._store[key] = (value, self._expires_at(ttl_seconds))

    def add(self, key: str, value: Any, *, ttl_seconds: int | None = None) -> bool:
        with self._lock:
            if self._live(key):
                return False
            self._store[key] = (value, self._expires_at(ttl_seconds))
            return True

    def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def exists(self, key: str) -> bool:
        with self._lock:
            return self._live(key)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def size(self) -> int:
        """Return current number of stored keys (expired ones included)."""
        return len(self._store)


# ------------------------------------------------------------------ #
# Database Cache
# ------------------------------------------------------------------ #


_TRANSIENTS = "syncguard_transients"


class DatabaseCache(BaseRepository):
    """Transient cache rows in ``syncguard_transients``.

    Shared by every process using the same database. ``add`` reaps an
    expired row for the key, then relies on the primary key and
    insert-or-ignore so only one concurrent caller wins.
    """

    def __init__(
        self,
        conn: Connection,
        dialect: Dialect | None = None,
        *,
        default_ttl_seconds: int | None = 3600,
        clock: Clock = epoch_now,
    ):
        super().__init__(conn, dialect)
        self._default_ttl = default_ttl_seconds
        self._clock = clock

    def _expires_at(self, ttl_seconds: int | None) -> float | None:
        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl
        return (self._clock() + ttl) if ttl else None

    def get(self, key: str) -> Any | None:
        row = self.query_one(
            f"SELECT value, expires_at FROM {_TRANSIENTS} WHERE cache_key = {self.ph(1)}",
            (key,),
        )
        if row is None:
            return None
        if row["expires_at"] is not None and self._clock() >= float(row["expires_at"]):
            self.delete(key)
            return None
        return json.loads(row["value"])

    def set(self, key: str, value: Any, *, ttl_seconds: int | None = None) -> None:
        sql = self.dialect.upsert(_TRANSIENTS, ["cache_key", "value", "expires_at"], ["cache_key"])
        self.execute(sql, (key, json.dumps(value), self._expires_at(ttl_seconds)))
        self.commit()

    def add(self, key: str, value: Any, *, ttl_seconds: int | None = None) -> bool:
        self.execute(
            f"DELETE FROM {_TRANSIENTS} "
            f"WHERE cache_key = {self.ph(1)} AND expires_at IS NOT NULL "
            f"AND expires_at <= {self.ph(1)}",
            (key, self._clock()),
        )
        sql = self.dialect.insert_or_ignore(_TRANSIENTS, ["cache_key", "value", "expires_at"])
        cursor = self.execute(sql, (key, json.dumps(value), self._expires_at(ttl_seconds)))
        claimed = cursor.rowcount == 1
        self.commit()
        return claimed

    def delete(self, key: str) -> None:
        self.execute(f"DELETE FROM {_TRANSIENTS} WHERE cache_key = {self.ph(1)}", (key,))
        self.commit()

    def exists(self, key: str) -> bool:
        return self.get(key) is not None

    def clear(self) -> None:
        self.execute(f"DELETE FROM {_TRANSIENTS}")
        self.commit()


# ------------------------------------------------------------------ #
# Redis Cache (optional)
# ------------------------------------------------------------------ #


class RedisCache:
    """Redis-backed distributed cache.

    Requires ``redis`` package (install via ``pip install syncguard[redis]``).
    ``add`` maps to ``SET key value NX EX ttl``.

    Raises:
        ImportError: If ``redis`` package is not installed.
    """

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        *,
        default_ttl_seconds: int | None = 3600,
        client: Any = None,
    ):
        if client is None:
            try:
                import redis
            except ImportError as exc:
                msg = (
                    "Redis backend requires 'redis' package. "
                    "Install with: pip install syncguard[redis]"
                )
                raise ImportError(msg) from exc
            client = redis.from_url(url, decode_responses=False)

        self._client = client
        self._default_ttl = default_ttl_seconds

    def _ttl(self, ttl_seconds: int | None) -> int | None:
        return ttl_seconds if ttl_seconds is not None else self._default_ttl

    def get(self, key: str) -> Any | None:
        raw = self._client.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, key: str, value: Any, *, ttl_seconds: int | None = None) -> None:
        ttl = self._ttl(ttl_seconds)
        serialized = json.dumps(value)
        if ttl:
            self._client.setex(key, ttl, serialized)
        else:
            self._client.set(key, serialized)

    def add(self, key: str, value: Any, *, ttl_seconds: int | None = None) -> bool:
        ttl = self._ttl(ttl_seconds)
        return bool(self._client.set(key, json.dumps(value), nx=True, ex=ttl or None))

    def delete(self, key: str) -> None:
        self._client.delete(key)

    def exists(self, key: str) -> bool:
        return bool(self._client.exists(key))

    def clear(self) -> None:
        """Flush the current Redis database. Use with caution."""
        self._client.flushdb()


__all__ = [
    "CacheBackend",
    "InMemoryCache",
    "DatabaseCache",
    "RedisCache",
]
