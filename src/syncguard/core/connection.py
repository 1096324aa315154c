"""Database connection factory.

Routes a database URL / path to a connection satisfying the
:class:`~syncguard.core.protocols.Connection` protocol.

Supported inputs:
    - ``None`` / ``"memory"`` / ``":memory:"`` — in-memory SQLite
    - ``"sqlite:///path/to/file.db"`` — explicit SQLite URL
    - ``"path/to/file.db"`` — bare file path, SQLite

MySQL deployments hand an already-open DB-API connection (PyMySQL,
mysql.connector) wrapped in :class:`DbApiConnection` to the factory.

Example::

    conn, info = create_connection("/var/lib/syncguard/queue.db", init_schema=True)
    if info.persistent:
        print(f"Using SQLite at {info.resolved_path}")
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from syncguard.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ConnectionInfo:
    """Metadata about a database connection."""

    backend: str
    """Backend identifier: ``"sqlite"`` or ``"mysql"``."""

    persistent: bool
    """Whether data survives process exit."""

    url: str
    """The original URL or path used to create the connection."""

    resolved_path: str | None = None
    """For file-based SQLite, the resolved absolute path."""


class SqliteConnection:
    """Adapter: ``sqlite3.Connection`` → ``Connection`` protocol.

    Maintains a single cursor so that ``execute`` / ``fetchone`` /
    ``fetchall`` operate on the same result set. ``busy_timeout`` makes
    concurrent writers from other processes wait instead of failing.
    """

    def __init__(
        self,
        path: str = ":memory:",
        *,
        row_factory: Any = sqlite3.Row,
        busy_timeout: float = 30.0,
    ) -> None:
        self._conn = sqlite3.connect(path, timeout=busy_timeout, check_same_thread=False)
        self._conn.row_factory = row_factory
        self._cursor = self._conn.cursor()

    def execute(self, sql: str, params: tuple = ()) -> Any:
        self._cursor.execute(sql, params)
        return self._cursor

    def executemany(self, sql: str, params: list[tuple]) -> Any:
        self._cursor.executemany(sql, params)
        return self._cursor

    def fetchone(self) -> Any:
        return self._cursor.fetchone()

    def fetchall(self) -> list:
        return self._cursor.fetchall()

    def commit(self) -> None:
        self._conn.commit()

    def rollback(self) -> None:
        self._conn.rollback()

    def close(self) -> None:
        self._conn.close()

    @property
    def raw(self) -> sqlite3.Connection:
        """Access the underlying ``sqlite3.Connection`` (e.g. for pragmas)."""
        return self._conn

    def __repr__(self) -> str:
        return f"SqliteConnection({self._conn!r})"


class DbApiConnection:
    """Adapter: any DB-API 2.0 connection → ``Connection`` protocol.

    Used for MySQL/MariaDB drivers, whose connections only expose
    ``cursor()``.
    """

    def __init__(self, conn: Any) -> None:
        self._conn = conn
        self._cursor = conn.cursor()

    def execute(self, sql: str, params: tuple = ()) -> Any:
        self._cursor.execute(sql, params)
        return self._cursor

    def executemany(self, sql: str, params: list[tuple]) -> Any:
        self._cursor.executemany(sql, params)
        return self._cursor

    def fetchone(self) -> Any:
        return self._cursor.fetchone()

    def fetchall(self) -> list:
        return list(self._cursor.fetchall())

    def commit(self) -> None:
        self._conn.commit()

    def rollback(self) -> None:
        self._conn.rollback()

    def close(self) -> None:
        self._conn.close()


def _parse_url(db: str | None) -> tuple[str, str]:
    """Parse a database URL into (scheme, target)."""
    if db is None or db in ("", "memory", ":memory:"):
        return "memory", ":memory:"

    for prefix in ("sqlite:///", "sqlite://"):
        if db.startswith(prefix):
            path = db[len(prefix):]
            if not path or path == ":memory:":
                return "memory", ":memory:"
            return "sqlite", path

    return "sqlite", db


def create_connection(
    db: str | None = None,
    *,
    init_schema: bool = False,
) -> tuple[SqliteConnection, ConnectionInfo]:
    """Create a SQLite connection from a URL, path, or keyword.

    Parameters
    ----------
    db:
        ``None``/``"memory"`` for in-memory, otherwise a path or
        ``sqlite:///`` URL. Parent directories are created.
    init_schema:
        If ``True``, apply the SyncGuard schema (idempotent).
    """
    scheme, target = _parse_url(db)

    if scheme == "memory":
        conn = SqliteConnection(":memory:")
        info = ConnectionInfo(backend="sqlite", persistent=False, url=":memory:")
    else:
        path = Path(target).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        resolved = str(path.resolve())
        conn = SqliteConnection(resolved)
        info = ConnectionInfo(
            backend="sqlite",
            persistent=True,
            url=target,
            resolved_path=resolved,
        )

    logger.debug("connection_created", backend=info.backend, persistent=info.persistent)

    if init_schema:
        from syncguard.core.schema import apply_schema

        apply_schema(conn)

    return conn, info


__all__ = [
    "ConnectionInfo",
    "DbApiConnection",
    "SqliteConnection",
    "create_connection",
]
