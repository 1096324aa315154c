"""Queue data model.

A :class:`Job` is one durable unit of pending synchronization work. Rows
come back from the queue table (or from older, partially populated
tables) and are decoded with :meth:`Job.from_row`, which defaults every
missing field instead of failing.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

from syncguard.core.errors import JobDecodeError


class JobStatus(str, Enum):
    """Lifecycle of a queue row."""

    PENDING = "pending"
    PROCESSING = "processing"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


class SyncDirection(str, Enum):
    """Which side is the source of the change."""

    WP_TO_ODOO = "wp_to_odoo"
    ODOO_TO_WP = "odoo_to_wp"


class JobAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


TERMINAL_STATUSES = frozenset({JobStatus.DONE, JobStatus.FAILED, JobStatus.CANCELLED})

MIN_PRIORITY = 1
MAX_PRIORITY = 10


def _to_int(value: Any, default: int) -> int:
    """Coerce ints and numeric-looking strings; anything else is ``default``."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        try:
            return int(value)
        except (ValueError, OverflowError):
            return default
    if isinstance(value, (str, bytes)):
        text = value.decode(errors="replace") if isinstance(value, bytes) else value
        try:
            return int(text.strip())
        except ValueError:
            try:
                return int(float(text))
            except (ValueError, OverflowError):
                return default
    return default


def _to_enum(enum: type[Enum], value: Any, default: Enum) -> Any:
    try:
        return enum(value)
    except ValueError:
        return default


def _opt_str(value: Any) -> str | None:
    if value is None:
        return None
    return value.decode(errors="replace") if isinstance(value, bytes) else str(value)


@dataclass(frozen=True)
class Job:
    """One row of ``syncguard_sync_queue``.

    ``attempts <= max_attempts`` is enforced by the worker that drains the
    queue, not here; :attr:`is_exhausted` reports it.
    """

    id: int = 0
    correlation_id: str | None = None
    module: str = ""
    direction: SyncDirection = SyncDirection.WP_TO_ODOO
    entity_type: str = ""
    wp_id: int = 0
    odoo_id: int = 0
    action: JobAction = JobAction.UPDATE
    payload: str | None = None
    priority: int = 5
    status: JobStatus = JobStatus.PENDING
    attempts: int = 0
    max_attempts: int = 3
    error_message: str | None = None
    scheduled_at: str | None = None
    processed_at: str | None = None
    created_at: str = ""

    @classmethod
    def from_row(cls, row: Any) -> Job:
        """Decode a persisted row, defaulting every missing or bad field.

        Numeric strings are coerced, unknown enum values fall back to the
        defaults, ``attempts`` is floored at 0 and ``priority`` clamped to
        1..10.

        Raises:
            JobDecodeError: If ``row`` is not a mapping at all.
        """
        if row is None:
            raise JobDecodeError("Cannot decode job from None")
        if not isinstance(row, Mapping):
            if hasattr(row, "keys"):
                row = {key: row[key] for key in row.keys()}
            else:
                raise JobDecodeError(
                    f"Cannot decode job from {type(row).__name__}",
                    value=row,
                )

        priority = _to_int(row.get("priority"), 5)
        return cls(
            id=_to_int(row.get("id"), 0),
            correlation_id=_opt_str(row.get("correlation_id")),
            module=_opt_str(row.get("module")) or "",
            direction=_to_enum(SyncDirection, row.get("direction"), SyncDirection.WP_TO_ODOO),
            entity_type=_opt_str(row.get("entity_type")) or "",
            wp_id=max(_to_int(row.get("wp_id"), 0), 0),
            odoo_id=max(_to_int(row.get("odoo_id"), 0), 0),
            action=_to_enum(JobAction, row.get("action"), JobAction.UPDATE),
            payload=_opt_str(row.get("payload")),
            priority=min(max(priority, MIN_PRIORITY), MAX_PRIORITY),
            status=_to_enum(JobStatus, row.get("status"), JobStatus.PENDING),
            attempts=max(_to_int(row.get("attempts"), 0), 0),
            max_attempts=max(_to_int(row.get("max_attempts"), 3), 1),
            error_message=_opt_str(row.get("error_message")),
            scheduled_at=_opt_str(row.get("scheduled_at")),
            processed_at=_opt_str(row.get("processed_at")),
            created_at=_opt_str(row.get("created_at")) or "",
        )

    @property
    def payload_data(self) -> dict[str, Any]:
        """Decoded payload; ``{}`` when empty or undecodable."""
        if not self.payload:
            return {}
        try:
            data = json.loads(self.payload)
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

    @property
    def is_exhausted(self) -> bool:
        return self.attempts >= self.max_attempts

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def to_dict(self) -> dict[str, Any]:
        result = asdict(self)
        result["direction"] = self.direction.value
        result["action"] = self.action.value
        result["status"] = self.status.value
        return result


__all__ = [
    "Job",
    "JobAction",
    "JobStatus",
    "SyncDirection",
    "TERMINAL_STATUSES",
    "MIN_PRIORITY",
    "MAX_PRIORITY",
]
