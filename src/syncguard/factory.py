"""Wire one reliability stack from settings.

Example::

    ctx = create_reliability()
    if ctx.breaker.is_available():
        jobs = ctx.queue.fetch_pending(50)
"""

from __future__ import annotations

from dataclasses import dataclass

from syncguard.alerts.channels import ConsoleChannel, EmailChannel
from syncguard.alerts.notifier import FailureNotifier
from syncguard.alerts.protocol import AlertChannel
from syncguard.core.cache import CacheBackend, DatabaseCache, InMemoryCache, RedisCache
from syncguard.core.connection import SqliteConnection, create_connection
from syncguard.core.dialect import Dialect, SQLiteDialect
from syncguard.core.errors import ConfigError
from syncguard.core.protocols import Clock, Connection, LockProvider
from syncguard.core.settings import SyncGuardSettings, get_settings
from syncguard.core.state import StateStore
from syncguard.core.timestamps import epoch_now
from syncguard.execution.circuit_breaker import CircuitBreaker
from syncguard.execution.module_breaker import ModuleCircuitBreaker
from syncguard.execution.mutex import MySQLLockProvider, TableLockProvider
from syncguard.execution.queue import QueueManager
from syncguard.execution.repository import SyncQueueRepository


@dataclass
class ReliabilityContext:
    """Everything a sync worker or the CLI needs, sharing one connection."""

    settings: SyncGuardSettings
    conn: Connection
    dialect: Dialect
    state: StateStore
    cache: CacheBackend
    lock_provider: LockProvider
    notifier: FailureNotifier
    breaker: CircuitBreaker
    module_breaker: ModuleCircuitBreaker
    queue: QueueManager


def build_cache(
    settings: SyncGuardSettings,
    conn: Connection,
    dialect: Dialect,
    clock: Clock = epoch_now,
) -> CacheBackend:
    """Transient cache for ``settings.cache_backend``.

    Raises:
        ConfigError: Unknown backend.
    """
    if settings.cache_backend == "database":
        return DatabaseCache(conn, dialect, clock=clock)
    if settings.cache_backend == "memory":
        return InMemoryCache(clock=clock)
    if settings.cache_backend == "redis":
        return RedisCache(settings.redis_url)
    raise ConfigError(f"Unknown cache backend: {settings.cache_backend!r}")


def build_lock_provider(
    settings: SyncGuardSettings,
    conn: Connection,
    dialect: Dialect,
    clock: Clock = epoch_now,
) -> LockProvider:
    """Named-lock provider for ``settings.lock_backend``.

    Raises:
        ConfigError: Unknown backend, or ``mysql`` on a SQLite connection.
    """
    if settings.lock_backend == "table":
        return TableLockProvider(conn, dialect, clock=clock)
    if settings.lock_backend == "mysql":
        if isinstance(conn, SqliteConnection) or dialect.name != "mysql":
            raise ConfigError("lock_backend 'mysql' requires a MySQL connection and dialect")
        return MySQLLockProvider(conn, dialect)
    raise ConfigError(f"Unknown lock backend: {settings.lock_backend!r}")


def build_channels(settings: SyncGuardSettings) -> list[AlertChannel]:
    if settings.smtp_host:
        return [
            EmailChannel(
                "email",
                settings.smtp_host,
                settings.smtp_from,
                smtp_port=settings.smtp_port,
                smtp_user=settings.smtp_user,
                smtp_password=settings.smtp_password,
                use_tls=settings.smtp_use_tls,
            )
        ]
    return [ConsoleChannel()]


def create_reliability(
    settings: SyncGuardSettings | None = None,
    conn: Connection | None = None,
    *,
    dialect: Dialect | None = None,
    channels: list[AlertChannel] | None = None,
    clock: Clock = epoch_now,
) -> ReliabilityContext:
    """Build the breaker, module breaker, notifier and queue on one connection.

    With no ``conn``, opens ``settings.database`` and applies the schema.
    """
    settings = settings or get_settings()
    if conn is None:
        conn, _ = create_connection(settings.database, init_schema=True)
    dialect = dialect or SQLiteDialect()

    state = StateStore(conn, dialect, clock=clock)
    cache = build_cache(settings, conn, dialect, clock)
    lock_provider = build_lock_provider(settings, conn, dialect, clock)

    notifier = FailureNotifier.from_settings(
        settings,
        state,
        channels if channels is not None else build_channels(settings),
        clock=clock,
    )
    breaker = CircuitBreaker.from_settings(
        settings, state, cache, lock_provider, clock=clock, notifier=notifier
    )
    module_breaker = ModuleCircuitBreaker.from_settings(
        settings, state, clock=clock, notifier=notifier
    )
    queue = QueueManager.from_settings(settings, SyncQueueRepository(conn, dialect), clock=clock)

    return ReliabilityContext(
        settings=settings,
        conn=conn,
        dialect=dialect,
        state=state,
        cache=cache,
        lock_provider=lock_provider,
        notifier=notifier,
        breaker=breaker,
        module_breaker=module_breaker,
        queue=queue,
    )


__all__ = [
    "ReliabilityContext",
    "build_cache",
    "build_channels",
    "build_lock_provider",
    "create_reliability",
]
