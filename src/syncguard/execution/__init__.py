"""SyncGuard Execution — gating, coordination and bookkeeping for sync work.

WHY
───
An integration that talks to an unreliable remote service needs to know
*whether* it may call out right now, *who* gets to make the single
recovery probe, and *what* work is still waiting. These primitives answer
those three questions for any number of concurrent processes.

ARCHITECTURE
────────────
::

    DistributedMutex        ─ named cross-process lock (LockProvider signal)
      ├── MySQLLockProvider ─ GET_LOCK / RELEASE_LOCK
      └── TableLockProvider ─ lease rows in syncguard_locks
      │
      ▼
    CircuitBreaker          ─ closed / open / half-open, single-flight probe
    ModuleCircuitBreaker    ─ per-module failure-ratio gate
      │
      ▼
    QueueManager            ─ push / pull / cancel / get_pending / maintenance
      ├── SyncQueueRepository ─ SQL over syncguard_sync_queue
      └── Job                 ─ tolerant row value object

The sync worker itself is an external collaborator: it drains
``fetch_pending()``, checks ``is_available()`` first, and reports each
batch through ``record_batch()``.
"""

from syncguard.execution.circuit_breaker import (
    CircuitBreaker,
    CircuitSnapshot,
    CircuitState,
)
from syncguard.execution.models import Job, JobAction, JobStatus, SyncDirection
from syncguard.execution.module_breaker import ModuleCircuitBreaker
from syncguard.execution.mutex import DistributedMutex, MySQLLockProvider, TableLockProvider
from syncguard.execution.queue import QueueManager
from syncguard.execution.repository import SyncQueueRepository

__all__ = [
    # Mutex
    "DistributedMutex",
    "MySQLLockProvider",
    "TableLockProvider",
    # Breakers
    "CircuitBreaker",
    "CircuitSnapshot",
    "CircuitState",
    "ModuleCircuitBreaker",
    # Queue
    "Job",
    "JobAction",
    "JobStatus",
    "SyncDirection",
    "QueueManager",
    "SyncQueueRepository",
]
