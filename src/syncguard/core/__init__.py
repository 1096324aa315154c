"""SyncGuard Core — storage, configuration and logging primitives.

Manifesto:
    The reliability engine runs in many independent processes at once, so
    nothing it decides may live in process memory alone. ``syncguard.core``
    provides the shared-storage building blocks (connection, dialect,
    schema, keyed state store, transient cache) plus the ambient concerns
    every layer uses (settings, structured errors, structured logging).

    - **Sync-only primitives:** No event loop assumptions
    - **Protocol-first:** Connection, Dialect, CacheBackend, LockProvider
    - **Import-guarded extras:** Redis loaded lazily

Architecture::

    errors.py        Structured error hierarchy (SyncGuardError, ...)
    logging.py       structlog configuration + context binding
    settings.py      SyncGuardSettings (pydantic-settings)
    protocols.py     Connection, LockProvider, Clock
    timestamps.py    UTC / SQL datetime helpers
    dialect.py       SQLite / MySQL SQL fragments
    connection.py    create_connection, SqliteConnection, DbApiConnection
    schema.py        syncguard_* tables, apply_schema
    repository.py    BaseRepository
    state.py         StateStore (durable JSON key/value)
    cache.py         CacheBackend + InMemory / Database / Redis

Tags:
    syncguard, core, storage, configuration
"""

from syncguard.core.cache import CacheBackend, DatabaseCache, InMemoryCache, RedisCache
from syncguard.core.connection import (
    ConnectionInfo,
    DbApiConnection,
    SqliteConnection,
    create_connection,
)
from syncguard.core.dialect import Dialect, MySQLDialect, SQLiteDialect, get_dialect
from syncguard.core.errors import (
    ConfigError,
    DatabaseError,
    ErrorCategory,
    ErrorContext,
    JobDecodeError,
    SyncGuardError,
    TransientError,
    ValidationError,
    is_retryable,
)
from syncguard.core.logging import configure_logging, get_logger
from syncguard.core.protocols import Clock, Connection, LockProvider
from syncguard.core.repository import BaseRepository
from syncguard.core.schema import SYNCGUARD_TABLES, apply_schema
from syncguard.core.settings import SyncGuardSettings, get_settings
from syncguard.core.state import StateStore

__all__ = [
    # cache
    "CacheBackend",
    "DatabaseCache",
    "InMemoryCache",
    "RedisCache",
    # connection
    "ConnectionInfo",
    "DbApiConnection",
    "SqliteConnection",
    "create_connection",
    # dialect
    "Dialect",
    "MySQLDialect",
    "SQLiteDialect",
    "get_dialect",
    # errors
    "ConfigError",
    "DatabaseError",
    "ErrorCategory",
    "ErrorContext",
    "JobDecodeError",
    "SyncGuardError",
    "TransientError",
    "ValidationError",
    "is_retryable",
    # logging
    "configure_logging",
    "get_logger",
    # protocols
    "Clock",
    "Connection",
    "LockProvider",
    # storage
    "BaseRepository",
    "SYNCGUARD_TABLES",
    "apply_schema",
    "StateStore",
    # settings
    "SyncGuardSettings",
    "get_settings",
]
