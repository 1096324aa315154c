"""
SyncGuard tables.

Architecture:
    ::

        SYNCGUARD_TABLES:
        ┌────────────────────────────────────────────────────────────┐
        │ sync_queue  → syncguard_sync_queue   (durable jobs)        │
        │ state       → syncguard_state        (keyed JSON store)    │
        │ transients  → syncguard_transients   (TTL cache rows)      │
        │ locks       → syncguard_locks        (named lock leases)   │
        └────────────────────────────────────────────────────────────┘

    The queue is read in ``priority ASC, created_at ASC, id ASC`` order, so
    the pending index leads with status and priority.

Call :func:`apply_schema` once at startup; every statement is idempotent.
"""

from __future__ import annotations

from syncguard.core.dialect import Dialect, SQLiteDialect
from syncguard.core.protocols import Connection

SYNCGUARD_TABLES = {
    "sync_queue": "syncguard_sync_queue",
    "state": "syncguard_state",
    "transients": "syncguard_transients",
    "locks": "syncguard_locks",
}


def schema_ddl(dialect: Dialect | None = None) -> dict[str, str]:
    """Return the DDL statements for ``dialect`` keyed by name."""
    dialect = dialect or SQLiteDialect()
    mysql = dialect.name == "mysql"

    queue_index = (
        ",\n            INDEX idx_sync_queue_pending (status, priority, created_at)"
        if mysql
        else ""
    )

    ddl = {
        # =====================================================================
        # SYNC_QUEUE: one row per pending/processed synchronization unit.
        # Rows are mutated in place by the worker; only pending rows are
        # ever deleted (cancel).
        # =====================================================================
        "sync_queue": f"""
        CREATE TABLE IF NOT EXISTS syncguard_sync_queue (
            id {dialect.auto_increment()},
            correlation_id VARCHAR(36),
            module VARCHAR(50) NOT NULL,
            direction VARCHAR(20) NOT NULL DEFAULT 'wp_to_odoo',
            entity_type VARCHAR(50) NOT NULL,
            wp_id INTEGER NOT NULL DEFAULT 0,
            odoo_id INTEGER NOT NULL DEFAULT 0,
            action VARCHAR(10) NOT NULL DEFAULT 'update',
            payload TEXT,
            priority INTEGER NOT NULL DEFAULT 5,
            status VARCHAR(20) NOT NULL DEFAULT 'pending',
            attempts INTEGER NOT NULL DEFAULT 0,
            max_attempts INTEGER NOT NULL DEFAULT 3,
            error_message TEXT,
            scheduled_at VARCHAR(19),
            processed_at VARCHAR(19),
            created_at VARCHAR(19) NOT NULL{queue_index}
        )
        """,
        # =====================================================================
        # STATE: durable keyed store (breaker state, notifier de-dup state).
        # =====================================================================
        "state": """
        CREATE TABLE IF NOT EXISTS syncguard_state (
            state_key VARCHAR(191) PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at VARCHAR(19) NOT NULL
        )
        """,
        # =====================================================================
        # TRANSIENTS: short-lived values with absolute expiry (epoch seconds).
        # =====================================================================
        "transients": """
        CREATE TABLE IF NOT EXISTS syncguard_transients (
            cache_key VARCHAR(191) PRIMARY KEY,
            value TEXT NOT NULL,
            expires_at DOUBLE PRECISION
        )
        """,
        # =====================================================================
        # LOCKS: named lock leases for TableLockProvider.
        # =====================================================================
        "locks": """
        CREATE TABLE IF NOT EXISTS syncguard_locks (
            lock_name VARCHAR(191) PRIMARY KEY,
            owner VARCHAR(64) NOT NULL,
            acquired_at DOUBLE PRECISION NOT NULL,
            expires_at DOUBLE PRECISION NOT NULL
        )
        """,
    }

    if not mysql:
        ddl["sync_queue_idx_pending"] = """
        CREATE INDEX IF NOT EXISTS idx_sync_queue_pending
        ON syncguard_sync_queue(status, priority, created_at)
        """
        ddl["sync_queue_idx_module"] = """
        CREATE INDEX IF NOT EXISTS idx_sync_queue_module
        ON syncguard_sync_queue(module, entity_type, status)
        """

    return ddl


def apply_schema(conn: Connection, dialect: Dialect | None = None) -> list[str]:
    """
    Create all SyncGuard tables.

    Safe to call multiple times (CREATE IF NOT EXISTS). Returns the names
    of the statements applied.
    """
    applied = []
    for name, ddl in schema_ddl(dialect).items():
        conn.execute(ddl)
        applied.append(name)
    conn.commit()
    return applied


__all__ = [
    "SYNCGUARD_TABLES",
    "apply_schema",
    "schema_ddl",
]
