"""Sync queue repository — SQL for ``syncguard_sync_queue``.

All ordering is ``priority ASC, created_at ASC, id ASC``: lower priority
numbers drain first, FIFO within a priority. Timestamps are UTC
``YYYY-MM-DD HH:MM:SS`` strings, so comparisons are plain string
comparisons on both SQLite and MySQL.
"""

from __future__ import annotations

from typing import Any

from syncguard.core.errors import ValidationError
from syncguard.core.repository import BaseRepository
from syncguard.core.schema import SYNCGUARD_TABLES

TABLE = SYNCGUARD_TABLES["sync_queue"]

_ORDER = "ORDER BY priority ASC, created_at ASC, id ASC"

# Columns update_status() may touch besides status
UPDATABLE_COLUMNS = frozenset(
    {"attempts", "error_message", "scheduled_at", "processed_at", "wp_id", "odoo_id", "payload"}
)


class SyncQueueRepository(BaseRepository):
    """Row-level access to the sync queue."""

    def find_pending_duplicate(
        self,
        module: str,
        entity_type: str,
        direction: str,
        wp_id: int,
        odoo_id: int,
    ) -> int | None:
        """Id of a pending job for the same entity, if one exists.

        Matches on the local id when set, otherwise on the remote id.
        """
        where = [
            f"module = {self.ph(1)}",
            f"entity_type = {self.ph(1)}",
            f"direction = {self.ph(1)}",
            "status = 'pending'",
        ]
        params: list[Any] = [module, entity_type, direction]
        if wp_id > 0:
            where.append(f"wp_id = {self.ph(1)}")
            params.append(wp_id)
        elif odoo_id > 0:
            where.append(f"odoo_id = {self.ph(1)}")
            params.append(odoo_id)

        existing = self.scalar(
            f"SELECT id FROM {TABLE} WHERE {' AND '.join(where)} ORDER BY id ASC LIMIT 1",
            tuple(params),
        )
        return int(existing) if existing else None

    def update_pending(
        self,
        job_id: int,
        *,
        action: str,
        payload: str | None,
        priority: int,
        scheduled_at: str | None,
    ) -> None:
        self.execute(
            f"UPDATE {TABLE} SET action = {self.ph(1)}, payload = {self.ph(1)}, "
            f"priority = {self.ph(1)}, scheduled_at = {self.ph(1)} "
            f"WHERE id = {self.ph(1)} AND status = 'pending'",
            (action, payload, priority, scheduled_at, job_id),
        )
        self.commit()

    def insert_job(self, data: dict[str, Any]) -> int:
        cursor = self.insert(TABLE, data)
        self.commit()
        return int(cursor.lastrowid)

    def delete_pending(self, job_id: int) -> bool:
        cursor = self.execute(
            f"DELETE FROM {TABLE} WHERE id = {self.ph(1)} AND status = 'pending'",
            (job_id,),
        )
        deleted = cursor.rowcount > 0
        self.commit()
        return deleted

    def get(self, job_id: int) -> dict[str, Any] | None:
        return self.query_one(f"SELECT * FROM {TABLE} WHERE id = {self.ph(1)}", (job_id,))

    def list_pending(
        self,
        module: str | None = None,
        entity_type: str | None = None,
    ) -> list[dict[str, Any]]:
        where = ["status = 'pending'"]
        params: list[Any] = []
        if module is not None:
            where.append(f"module = {self.ph(1)}")
            params.append(module)
        if entity_type is not None:
            where.append(f"entity_type = {self.ph(1)}")
            params.append(entity_type)
        return self.query(
            f"SELECT * FROM {TABLE} WHERE {' AND '.join(where)} {_ORDER}",
            tuple(params),
        )

    def list_jobs(
        self,
        status: str | None = None,
        limit: int = 50,
        module: str | None = None,
        entity_type: str | None = None,
    ) -> list[dict[str, Any]]:
        """Most recent jobs first, optionally filtered by status, module and entity type."""
        where = []
        params: list[Any] = []
        for column, value in (("status", status), ("module", module), ("entity_type", entity_type)):
            if value is not None:
                where.append(f"{column} = {self.ph(1)}")
                params.append(value)
        clause = f"WHERE {' AND '.join(where)} " if where else ""
        return self.query(
            f"SELECT * FROM {TABLE} {clause}ORDER BY id DESC LIMIT {self.ph(1)}",
            (*params, limit),
        )

    def fetch_pending(self, batch_size: int, now: str) -> list[dict[str, Any]]:
        """Pending jobs whose ``scheduled_at`` has passed."""
        return self.query(
            f"SELECT * FROM {TABLE} WHERE status = 'pending' "
            f"AND (scheduled_at IS NULL OR scheduled_at <= {self.ph(1)}) "
            f"{_ORDER} LIMIT {self.ph(1)}",
            (now, batch_size),
        )

    def update_status(self, job_id: int, status: str, extra: dict[str, Any]) -> bool:
        unknown = set(extra) - UPDATABLE_COLUMNS
        if unknown:
            raise ValidationError(
                f"Cannot update column(s): {', '.join(sorted(unknown))}",
                field="extra",
                value=sorted(unknown),
            )

        columns = ["status", *extra]
        assignments = ", ".join(f"{col} = {self.ph(1)}" for col in columns)
        cursor = self.execute(
            f"UPDATE {TABLE} SET {assignments} WHERE id = {self.ph(1)}",
            (status, *extra.values(), job_id),
        )
        updated = cursor.rowcount > 0
        self.commit()
        return updated

    def count_by_status(self) -> dict[str, int]:
        rows = self.query(f"SELECT status, COUNT(*) AS count FROM {TABLE} GROUP BY status")
        return {row["status"]: int(row["count"]) for row in rows}

    def pending_by_module(self) -> dict[str, int]:
        rows = self.query(
            f"SELECT module, COUNT(*) AS count FROM {TABLE} "
            "WHERE status = 'pending' GROUP BY module ORDER BY module"
        )
        return {row["module"]: int(row["count"]) for row in rows}

    def recent_done(self, limit: int = 100) -> list[dict[str, Any]]:
        return self.query(
            f"SELECT created_at, processed_at FROM {TABLE} "
            "WHERE status = 'done' AND processed_at IS NOT NULL "
            f"ORDER BY processed_at DESC LIMIT {self.ph(1)}",
            (limit,),
        )

    def retry_failed(self) -> int:
        cursor = self.execute(
            f"UPDATE {TABLE} SET status = 'pending', attempts = 0, "
            "error_message = NULL, scheduled_at = NULL WHERE status = 'failed'"
        )
        count = cursor.rowcount
        self.commit()
        return count

    def delete_finished_before(self, cutoff: str) -> int:
        cursor = self.execute(
            f"DELETE FROM {TABLE} WHERE status IN ('done', 'failed') AND created_at < {self.ph(1)}",
            (cutoff,),
        )
        count = cursor.rowcount
        self.commit()
        return count


__all__ = ["SyncQueueRepository", "UPDATABLE_COLUMNS"]
