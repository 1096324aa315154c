"""Durable keyed state store.

A small JSON key/value table (``syncguard_state``) shared by every process
that points at the same database. The circuit breaker keeps its durable
record here, the module breaker keeps its per-module map here, and the
failure notifier keeps its consecutive-failure counter and last-sent
timestamps here.

Example::

    store = StateStore(conn)
    store.set("circuit_breaker_state", {"opened_at": 1700000000, "failures": 3})
    store.get("circuit_breaker_state", {})
"""

from __future__ import annotations

import json
import math
from typing import Any

from syncguard.core.dialect import Dialect
from syncguard.core.protocols import Clock, Connection
from syncguard.core.repository import BaseRepository
from syncguard.core.timestamps import epoch_now, to_sql_datetime

_TABLE = "syncguard_state"


def as_int(value: Any, default: int = 0) -> int:
    """Coerce a stored counter or timestamp; malformed values become ``default``."""
    if isinstance(value, bool):
        return default
    try:
        return int(float(value)) if isinstance(value, str) else int(value or 0)
    except (TypeError, ValueError, OverflowError):
        return default


def as_float(value: Any, default: float = 0.0) -> float:
    """Like :func:`as_int`, keeping fractional seconds."""
    if isinstance(value, bool):
        return default
    try:
        result = float(value or 0)
    except (TypeError, ValueError, OverflowError):
        return default
    return result if math.isfinite(result) else default


class StateStore(BaseRepository):
    """JSON values keyed by string, persisted in ``syncguard_state``."""

    def __init__(
        self,
        conn: Connection,
        dialect: Dialect | None = None,
        *,
        clock: Clock = epoch_now,
    ) -> None:
        super().__init__(conn, dialect)
        self._clock = clock

    def get(self, key: str, default: Any = None) -> Any:
        """Return the decoded value for ``key``, or ``default``.

        Undecodable values are treated as missing.
        """
        raw = self.scalar(
            f"SELECT value FROM {_TABLE} WHERE state_key = {self.ph(1)}",
            (key,),
        )
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            return default

    def set(self, key: str, value: Any) -> None:
        """Insert or overwrite ``key``."""
        sql = self.dialect.upsert(_TABLE, ["state_key", "value", "updated_at"], ["state_key"])
        self.execute(sql, (key, json.dumps(value), to_sql_datetime(self._clock())))
        self.commit()

    def delete(self, key: str) -> None:
        """Remove ``key``. No-op if absent."""
        self.execute(f"DELETE FROM {_TABLE} WHERE state_key = {self.ph(1)}", (key,))
        self.commit()


__all__ = ["StateStore", "as_float", "as_int"]
