"""Circuit breaker for remote-service connectivity.

Tracks consecutive failed batches and pauses synchronization when the
remote service appears unreachable, avoiding wasted calls and log
flooding during outages. A batch counts as failed when its failure ratio
reaches ``failure_ratio`` (80% by default), so a single lucky success in
a degraded batch does not reset the counter.

States:
    CLOSED: Normal operation, work proceeds
    OPEN: Tripped, work is skipped entirely
    HALF_OPEN: Recovery delay elapsed, one probe batch may run

Unlike an in-process breaker, every counter lives in shared storage so
all worker processes observe the same circuit:

::

    CacheBackend (fast path, TTL)          StateStore (durable record)
    ├── <name>_failures                    └── <name>_state
    ├── <name>_opened_at                         {"opened_at", "failures"}
    └── <name>_probe   (claim flag)

    is_available()
      ├── opened_at == 0             → True
      ├── now - opened_at < delay    → False
      └── probe claim:
            cache.add(<name>_probe)   ─ atomic flag, else False
            mutex <name>_probe        ─ bounded wait, else False
            → True (exactly one caller per open window)

Example:
    >>> breaker = CircuitBreaker(state, cache, provider)
    >>> if breaker.is_available():
    ...     successes, failures = run_batch()
    ...     breaker.record_batch(successes, failures)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

from syncguard.core.cache import CacheBackend
from syncguard.core.logging import get_logger
from syncguard.core.protocols import Clock, LockProvider
from syncguard.core.state import StateStore, as_int
from syncguard.core.timestamps import epoch_now
from syncguard.execution.mutex import DistributedMutex

if TYPE_CHECKING:
    from syncguard.core.settings import SyncGuardSettings

logger = get_logger(__name__)


class CircuitState(str, Enum):
    """Circuit breaker states."""

    CLOSED = "closed"      # Normal operation
    OPEN = "open"          # Rejecting work
    HALF_OPEN = "half_open"  # Probe eligible


class BreakerNotifier(Protocol):
    """Receives the CLOSED → OPEN edge."""

    def notify_circuit_breaker_open(self, failures: int) -> Any:
        ...


@dataclass(frozen=True)
class CircuitSnapshot:
    """Read-only view of the shared circuit state."""

    state: CircuitState
    failure_count: int
    opened_at: int | None
    probe_claimed: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "failure_count": self.failure_count,
            "opened_at": self.opened_at,
            "probe_claimed": self.probe_claimed,
        }


class CircuitBreaker:
    """Shared, multi-process circuit breaker.

    Attributes:
        name: Key prefix for cache entries, durable state and lock names
        failure_threshold: Consecutive failed batches before opening
        recovery_delay: Seconds OPEN before a probe is allowed
        failure_ratio: Batch failure ratio counted as a failed batch
        probe_ttl: Lifetime of the probe claim flag
        probe_lock_timeout: Bounded wait for the probe mutex
        stale_state_seconds: Durable state older than this is discarded
    """

    def __init__(
        self,
        state: StateStore,
        cache: CacheBackend,
        lock_provider: LockProvider,
        *,
        name: str = "circuit_breaker",
        failure_threshold: int = 3,
        recovery_delay: int = 300,
        failure_ratio: float = 0.8,
        probe_ttl: int = 360,
        probe_lock_timeout: int = 1,
        stale_state_seconds: int = 3600,
        clock: Clock = epoch_now,
        notifier: BreakerNotifier | None = None,
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_delay = recovery_delay
        self.failure_ratio = failure_ratio
        self.probe_ttl = probe_ttl
        self.probe_lock_timeout = probe_lock_timeout
        self.stale_state_seconds = stale_state_seconds

        self._state = state
        self._cache = cache
        self._provider = lock_provider
        self._clock = clock
        self._notifier = notifier
        self._log = logger.bind(breaker=name)

        self._key_failures = f"{name}_failures"
        self._key_opened_at = f"{name}_opened_at"
        self._key_probe = f"{name}_probe"
        self._durable_key = f"{name}_state"

    @classmethod
    def from_settings(
        cls,
        settings: SyncGuardSettings,
        state: StateStore,
        cache: CacheBackend,
        lock_provider: LockProvider,
        **kwargs: Any,
    ) -> CircuitBreaker:
        """Build a breaker from :class:`SyncGuardSettings` thresholds."""
        return cls(
            state,
            cache,
            lock_provider,
            failure_threshold=settings.failure_threshold,
            recovery_delay=settings.recovery_delay,
            failure_ratio=settings.failure_ratio,
            probe_ttl=settings.probe_ttl,
            probe_lock_timeout=settings.probe_lock_timeout,
            stale_state_seconds=settings.stale_state_seconds,
            **kwargs,
        )

    def set_failure_notifier(self, notifier: BreakerNotifier) -> None:
        self._notifier = notifier

    # ------------------------------------------------------------------ #
    # Shared state access
    # ------------------------------------------------------------------ #

    def _now(self) -> int:
        return int(self._clock())

    def _failure_count(self) -> int:
        return as_int(self._cache.get(self._key_failures))

    def _opened_at(self) -> int:
        """Return opened_at, restoring the cache from durable state if lost."""
        opened_at = as_int(self._cache.get(self._key_opened_at))
        if opened_at:
            return opened_at

        record = self._state.get(self._durable_key)
        if not isinstance(record, dict):
            return 0
        opened_at = as_int(record.get("opened_at"))
        if not opened_at:
            return 0

        # Prevents a forever-open circuit if no success is ever recorded
        if self._now() - opened_at >= self.stale_state_seconds:
            self._state.delete(self._durable_key)
            self._log.info("circuit_stale_state_discarded", opened_at=opened_at)
            return 0

        failures = as_int(record.get("failures")) or self.failure_threshold
        self._cache.set(self._key_opened_at, opened_at, ttl_seconds=self.stale_state_seconds)
        self._cache.set(self._key_failures, failures, ttl_seconds=self.stale_state_seconds)
        self._log.debug("circuit_state_restored", opened_at=opened_at, failures=failures)
        return opened_at

    def _persist_open(self, opened_at: int, failures: int) -> None:
        self._cache.set(self._key_opened_at, opened_at, ttl_seconds=self.stale_state_seconds)
        self._state.set(self._durable_key, {"opened_at": opened_at, "failures": failures})

    # ------------------------------------------------------------------ #
    # Gate
    # ------------------------------------------------------------------ #

    def is_available(self) -> bool:
        """Whether remote work may be attempted now.

        Returns ``True`` when CLOSED, or for exactly one caller once the
        recovery delay has elapsed (the half-open probe). Never raises for
        an unavailable remote.
        """
        opened_at = self._opened_at()
        if not opened_at:
            return True

        if self._now() - opened_at < self.recovery_delay:
            return False

        if not self._try_claim_probe():
            return False

        self._log.info("circuit_half_open_probe_allowed", opened_at=opened_at)
        return True

    def _try_claim_probe(self) -> bool:
        if not self._cache.add(self._key_probe, 1, ttl_seconds=self.probe_ttl):
            return False

        # The flag stays claimed on contention; the outcome call clears it
        mutex = DistributedMutex(
            f"{self.name}_probe", self._provider, timeout=self.probe_lock_timeout
        )
        if not mutex.acquire():
            return False
        try:
            return True
        finally:
            mutex.release()

    # ------------------------------------------------------------------ #
    # Outcomes
    # ------------------------------------------------------------------ #

    def record_batch(self, successes: int, failures: int) -> None:
        """Record a batch as one weighted outcome.

        ``failures / (successes + failures) >= failure_ratio`` counts as one
        failure, anything lower as one success. An empty batch is ignored.
        """
        total = successes + failures
        if total == 0:
            return

        if failures / total >= self.failure_ratio:
            self.record_failure(successes, failures)
        else:
            self.record_success()

    def record_failure(self, successes: int = 0, failures: int = 0) -> None:
        """Record a failed batch.

        ``successes`` and ``failures`` are the batch counts, for logging.
        """
        # Non-blocking; a lost increment only delays opening by one batch
        mutex = DistributedMutex(f"{self.name}_failure", self._provider, timeout=0)
        mutex.acquire()
        try:
            self._record_failure(successes, failures)
        finally:
            mutex.release()

    def _record_failure(self, successes: int, failures: int) -> None:
        opened_at = self._opened_at()
        count = self._failure_count() + 1
        self._cache.set(self._key_failures, count, ttl_seconds=self.stale_state_seconds)
        now = self._now()

        if not opened_at:
            if count < self.failure_threshold:
                return
            self._persist_open(now, count)
            self._log.warning(
                "circuit_opened",
                consecutive_batch_failures=count,
                last_batch_successes=successes,
                last_batch_failures=failures,
                recovery_delay_seconds=self.recovery_delay,
            )
            if self._notifier is not None:
                try:
                    self._notifier.notify_circuit_breaker_open(count)
                except Exception as e:
                    self._log.error("circuit_notify_failed", error=str(e))
            return

        if self._cache.exists(self._key_probe):
            self._persist_open(now, count)
            self._cache.delete(self._key_probe)
            self._log.warning(
                "circuit_probe_failed",
                consecutive_batch_failures=count,
                recovery_delay_seconds=self.recovery_delay,
            )
            return

        self._state.set(self._durable_key, {"opened_at": opened_at, "failures": count})

    def record_success(self) -> None:
        """Reset the failure streak and close the circuit. Idempotent."""
        if self._cache.get(self._key_opened_at) or self._state.get(self._durable_key):
            self._log.info("circuit_closed")

        self._cache.delete(self._key_failures)
        self._cache.delete(self._key_opened_at)
        self._cache.delete(self._key_probe)
        self._state.delete(self._durable_key)

    def reset(self) -> None:
        """Manually close the circuit (operator action)."""
        self._log.info("circuit_reset")
        self.record_success()

    def get_state(self) -> CircuitSnapshot:
        opened_at = self._opened_at()
        if not opened_at:
            state = CircuitState.CLOSED
        elif self._now() - opened_at < self.recovery_delay:
            state = CircuitState.OPEN
        else:
            state = CircuitState.HALF_OPEN
        return CircuitSnapshot(
            state=state,
            failure_count=self._failure_count(),
            opened_at=opened_at or None,
            probe_claimed=self._cache.exists(self._key_probe),
        )


__all__ = [
    "BreakerNotifier",
    "CircuitBreaker",
    "CircuitSnapshot",
    "CircuitState",
]
