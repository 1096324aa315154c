"""Queue Manager — enqueue, inspect, and maintain sync jobs.

WHY
───
Every change that must reach the other side becomes a durable row before
anything talks to the network. If the remote is down (circuit open) the
rows simply wait; the worker drains them later in priority order and
records attempts on each one.

ARCHITECTURE
────────────
::

    QueueManager(repository)
      ├── .push(module, entity_type, action, wp_id, ...)   ─ local → remote
      ├── .pull(module, entity_type, action, odoo_id, ...) ─ remote → local
      ├── .cancel(job_id)          ─ delete, pending rows only
      ├── .get_pending(module?, entity_type?)
      ├── .fetch_pending(batch_size) ─ due jobs for the worker
      ├── .update_status(job_id, status, **extra)
      ├── .retry_failed()          ─ failed → pending, attempts reset
      ├── .cleanup(days_old)       ─ purge old done/failed rows
      ├── .get_stats()             ─ counts by status
      └── .get_health_metrics()    ─ latency, success rate, depth

DEDUPLICATION & DEBOUNCE
────────────────────────
A second enqueue for an entity that still has a pending job (same
module, entity type and direction; same local id, or same remote id
when no local id is known) updates that job in place and returns its id.
``push`` schedules jobs ``debounce_seconds`` in the future so a burst of
saves on one record coalesces into one job; ``pull`` is immediate.

Example::

    manager = QueueManager(SyncQueueRepository(conn))
    job_id = manager.push("crm", "contact", "update", wp_id=42, payload={"email": "a@b.c"})
    for job in manager.fetch_pending(50):
        ...
"""

from __future__ import annotations

import json
import uuid
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from syncguard.core.errors import ValidationError
from syncguard.core.logging import get_logger
from syncguard.core.protocols import Clock
from syncguard.core.timestamps import epoch_now, from_sql_datetime, to_sql_datetime
from syncguard.execution.models import (
    MAX_PRIORITY,
    MIN_PRIORITY,
    Job,
    JobAction,
    JobStatus,
    SyncDirection,
)
from syncguard.execution.repository import SyncQueueRepository

if TYPE_CHECKING:
    from syncguard.core.settings import SyncGuardSettings

logger = get_logger(__name__)

DAY_SECONDS = 86400


class QueueManager:
    """Durable sync job queue."""

    def __init__(
        self,
        repository: SyncQueueRepository,
        *,
        debounce_seconds: int = 5,
        default_priority: int = 5,
        default_max_attempts: int = 3,
        clock: Clock = epoch_now,
    ):
        self._repo = repository
        self.debounce_seconds = debounce_seconds
        self.default_priority = default_priority
        self.default_max_attempts = default_max_attempts
        self._clock = clock

    @classmethod
    def from_settings(
        cls, settings: SyncGuardSettings, repository: SyncQueueRepository, **kwargs: Any
    ) -> QueueManager:
        return cls(
            repository,
            debounce_seconds=settings.debounce_seconds,
            default_priority=settings.default_priority,
            default_max_attempts=settings.default_max_attempts,
            **kwargs,
        )

    # ------------------------------------------------------------------ #
    # Enqueue
    # ------------------------------------------------------------------ #

    def push(
        self,
        module: str,
        entity_type: str,
        action: str,
        wp_id: int,
        odoo_id: int = 0,
        payload: Mapping[str, Any] | None = None,
        priority: int | None = None,
        *,
        debounce: int | None = None,
        correlation_id: str | None = None,
    ) -> int:
        """Enqueue a local → remote job. Returns the job id."""
        return self.enqueue(
            module,
            entity_type,
            SyncDirection.WP_TO_ODOO,
            action,
            wp_id=wp_id,
            odoo_id=odoo_id,
            payload=payload,
            priority=priority,
            debounce=self.debounce_seconds if debounce is None else debounce,
            correlation_id=correlation_id,
        )

    def pull(
        self,
        module: str,
        entity_type: str,
        action: str,
        odoo_id: int,
        wp_id: int = 0,
        payload: Mapping[str, Any] | None = None,
        priority: int | None = None,
        *,
        debounce: int = 0,
        correlation_id: str | None = None,
    ) -> int:
        """Enqueue a remote → local job. Returns the job id."""
        return self.enqueue(
            module,
            entity_type,
            SyncDirection.ODOO_TO_WP,
            action,
            wp_id=wp_id,
            odoo_id=odoo_id,
            payload=payload,
            priority=priority,
            debounce=debounce,
            correlation_id=correlation_id,
        )

    def enqueue(
        self,
        module: str,
        entity_type: str,
        direction: str,
        action: str,
        *,
        wp_id: int = 0,
        odoo_id: int = 0,
        payload: Mapping[str, Any] | None = None,
        priority: int | None = None,
        debounce: int = 0,
        correlation_id: str | None = None,
    ) -> int:
        """Insert a pending job, or update the pending job for the same entity.

        Raises:
            ValidationError: On empty module/entity type, unknown direction
                or action, negative ids, or priority outside 1..10.
        """
        module = (module or "").strip()
        entity_type = (entity_type or "").strip()
        if not module:
            raise ValidationError("module is required", field="module", value=module)
        if not entity_type:
            raise ValidationError("entity_type is required", field="entity_type", value=entity_type)

        try:
            direction = SyncDirection(direction)
        except ValueError:
            raise ValidationError(
                f"Unknown direction: {direction!r}", field="direction", value=direction
            ) from None
        try:
            action = JobAction(action)
        except ValueError:
            raise ValidationError(f"Unknown action: {action!r}", field="action", value=action) from None

        if wp_id < 0 or odoo_id < 0:
            raise ValidationError("ids must be >= 0", field="wp_id" if wp_id < 0 else "odoo_id")

        if priority is None:
            priority = self.default_priority
        if not MIN_PRIORITY <= priority <= MAX_PRIORITY:
            raise ValidationError(
                f"priority must be between {MIN_PRIORITY} and {MAX_PRIORITY}",
                field="priority",
                value=priority,
            )

        now = self._clock()
        encoded = json.dumps(dict(payload or {}))
        scheduled_at = to_sql_datetime(now + debounce) if debounce > 0 else None

        existing = self._repo.find_pending_duplicate(
            module, entity_type, direction.value, wp_id, odoo_id
        )
        if existing is not None:
            self._repo.update_pending(
                existing,
                action=action.value,
                payload=encoded,
                priority=priority,
                scheduled_at=scheduled_at,
            )
            logger.debug(
                "job_deduplicated",
                job_id=existing,
                module=module,
                entity_type=entity_type,
                action=action.value,
            )
            return existing

        job_id = self._repo.insert_job(
            {
                "correlation_id": correlation_id or str(uuid.uuid4()),
                "module": module,
                "direction": direction.value,
                "entity_type": entity_type,
                "wp_id": wp_id,
                "odoo_id": odoo_id,
                "action": action.value,
                "payload": encoded,
                "priority": priority,
                "status": JobStatus.PENDING.value,
                "attempts": 0,
                "max_attempts": self.default_max_attempts,
                "scheduled_at": scheduled_at,
                "created_at": to_sql_datetime(now),
            }
        )
        logger.info(
            "job_enqueued",
            job_id=job_id,
            module=module,
            entity_type=entity_type,
            direction=direction.value,
            action=action.value,
            priority=priority,
        )
        return job_id

    # ------------------------------------------------------------------ #
    # Query
    # ------------------------------------------------------------------ #

    def cancel(self, job_id: int) -> bool:
        """Delete a job that is still pending. ``False`` for any other status."""
        cancelled = self._repo.delete_pending(job_id)
        if cancelled:
            logger.info("job_cancelled", job_id=job_id)
        return cancelled

    def get(self, job_id: int) -> Job | None:
        row = self._repo.get(job_id)
        return Job.from_row(row) if row is not None else None

    def get_pending(
        self,
        module: str | None = None,
        entity_type: str | None = None,
    ) -> list[Job]:
        """Pending jobs in drain order, optionally filtered."""
        return [Job.from_row(row) for row in self._repo.list_pending(module, entity_type)]

    def list_jobs(
        self,
        status: str | None = None,
        limit: int = 50,
        *,
        module: str | None = None,
        entity_type: str | None = None,
    ) -> list[Job]:
        """Most recent jobs first, any status unless filtered."""
        rows = self._repo.list_jobs(status, limit, module, entity_type)
        return [Job.from_row(row) for row in rows]

    def fetch_pending(self, batch_size: int = 50) -> list[Job]:
        """Due pending jobs (``scheduled_at`` passed), in drain order."""
        now = to_sql_datetime(self._clock())
        return [Job.from_row(row) for row in self._repo.fetch_pending(batch_size, now)]

    # ------------------------------------------------------------------ #
    # Worker bookkeeping and maintenance
    # ------------------------------------------------------------------ #

    def update_status(self, job_id: int, status: str, **extra: Any) -> bool:
        """Set a job's status plus any of attempts, error_message, scheduled_at,
        processed_at, wp_id, odoo_id, payload.

        ``processed_at`` is stamped automatically for done/failed.
        """
        try:
            status = JobStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown status: {status!r}", field="status", value=status) from None
        if status in (JobStatus.DONE, JobStatus.FAILED) and "processed_at" not in extra:
            extra["processed_at"] = to_sql_datetime(self._clock())
        return self._repo.update_status(job_id, status.value, extra)

    def get_stats(self) -> dict[str, int]:
        counts = self._repo.count_by_status()
        stats = {status.value: counts.get(status.value, 0) for status in JobStatus}
        stats["total"] = sum(counts.values())
        return stats

    def retry_failed(self) -> int:
        count = self._repo.retry_failed()
        if count:
            logger.info("failed_jobs_requeued", count=count)
        return count

    def cleanup(self, days_old: int = 7) -> int:
        """Delete done and failed jobs created more than ``days_old`` days ago."""
        cutoff = to_sql_datetime(self._clock() - days_old * DAY_SECONDS)
        count = self._repo.delete_finished_before(cutoff)
        if count:
            logger.info("queue_cleaned", deleted=count, days_old=days_old)
        return count

    def get_health_metrics(self) -> dict[str, Any]:
        """Queue health for dashboards and the CLI.

        Returns:
            ``avg_latency_seconds`` over recent done jobs (``None`` when
            there are none), ``success_rate`` as a percentage of finished
            jobs (``None`` when none finished), ``pending`` and
            ``depth_by_module``.
        """
        latencies = []
        for row in self._repo.recent_done():
            created = from_sql_datetime(row["created_at"])
            processed = from_sql_datetime(row["processed_at"])
            if created is not None and processed is not None:
                latencies.append((processed - created).total_seconds())

        counts = self._repo.count_by_status()
        done = counts.get(JobStatus.DONE.value, 0)
        failed = counts.get(JobStatus.FAILED.value, 0)
        finished = done + failed

        return {
            "avg_latency_seconds": round(sum(latencies) / len(latencies), 1) if latencies else None,
            "success_rate": round(done / finished * 100, 1) if finished else None,
            "pending": counts.get(JobStatus.PENDING.value, 0),
            "depth_by_module": self._repo.pending_by_module(),
        }


__all__ = ["QueueManager"]
