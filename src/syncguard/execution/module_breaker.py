"""Per-module circuit breaker.

The global :class:`~syncguard.execution.circuit_breaker.CircuitBreaker`
trips when the remote service is down. This one trips when a single
integration module keeps failing while others are healthy (bad mapping,
a plugin that changed its data shape), so only that module's jobs are
skipped.

All module states share one keyed-store entry::

    module_circuit_breaker_states = {
        "crm":    {"failures": 5, "opened_at": 1700000000},
        "events": {"failures": 2, "opened_at": 0},
    }

States are read fresh on every call; several processes update the same
entry. A module whose state is older than ``stale_seconds`` is reset
automatically.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

from syncguard.core.logging import get_logger
from syncguard.core.protocols import Clock
from syncguard.core.state import StateStore, as_int
from syncguard.core.timestamps import epoch_now

if TYPE_CHECKING:
    from syncguard.core.settings import SyncGuardSettings

logger = get_logger(__name__)

STATES_KEY = "module_circuit_breaker_states"


class ModuleNotifier(Protocol):
    def notify_module_circuit_breaker_open(self, module: str, failures: int) -> Any:
        ...


class ModuleCircuitBreaker:
    """Failure-ratio breaker keyed by module name."""

    def __init__(
        self,
        state: StateStore,
        *,
        failure_threshold: int = 5,
        failure_ratio: float = 0.8,
        recovery_delay: int = 600,
        stale_seconds: int = 7200,
        clock: Clock = epoch_now,
        notifier: ModuleNotifier | None = None,
    ):
        self._state = state
        self.failure_threshold = failure_threshold
        self.failure_ratio = failure_ratio
        self.recovery_delay = recovery_delay
        self.stale_seconds = stale_seconds
        self._clock = clock
        self._notifier = notifier

    @classmethod
    def from_settings(
        cls, settings: SyncGuardSettings, state: StateStore, **kwargs: Any
    ) -> ModuleCircuitBreaker:
        return cls(
            state,
            failure_threshold=settings.module_failure_threshold,
            failure_ratio=settings.failure_ratio,
            recovery_delay=settings.module_recovery_delay,
            stale_seconds=settings.module_stale_seconds,
            **kwargs,
        )

    def set_failure_notifier(self, notifier: ModuleNotifier) -> None:
        self._notifier = notifier

    def _now(self) -> int:
        return int(self._clock())

    def _load(self) -> dict[str, dict[str, int]]:
        raw = self._state.get(STATES_KEY, {})
        if not isinstance(raw, dict):
            return {}
        states = {}
        for module, entry in raw.items():
            if isinstance(entry, dict):
                states[module] = {
                    "failures": max(as_int(entry.get("failures")), 0),
                    "opened_at": max(as_int(entry.get("opened_at")), 0),
                }
        return states

    def _save(self, states: dict[str, dict[str, int]]) -> None:
        if states:
            self._state.set(STATES_KEY, states)
        else:
            self._state.delete(STATES_KEY)

    def is_module_available(self, module: str) -> bool:
        """``False`` only while the module is open and inside its recovery delay."""
        entry = self._load().get(module)
        if entry is None or not entry["opened_at"]:
            return True

        elapsed = self._now() - entry["opened_at"]
        if elapsed >= self.stale_seconds:
            self.reset_module(module)
            return True

        # Half-open: allow a probe batch
        return elapsed >= self.recovery_delay

    def record_module_batch(self, module: str, successes: int, failures: int) -> None:
        total = successes + failures
        if total == 0:
            return

        if failures / total < self.failure_ratio:
            self._record_success(module)
        else:
            self._record_failure(module)

    def get_open_modules(self) -> dict[str, dict[str, int]]:
        """Modules opened within the last ``stale_seconds``."""
        now = self._now()
        return {
            module: entry
            for module, entry in self._load().items()
            if entry["opened_at"] and now - entry["opened_at"] < self.stale_seconds
        }

    def reset_module(self, module: str) -> None:
        states = self._load()
        if module not in states:
            return
        del states[module]
        self._save(states)
        logger.info("module_circuit_reset", module=module)

    def _record_success(self, module: str) -> None:
        states = self._load()
        if module not in states:
            return
        was_open = states.pop(module)["opened_at"] > 0
        self._save(states)
        if was_open:
            logger.info("module_circuit_closed", module=module)

    def _record_failure(self, module: str) -> None:
        states = self._load()
        entry = states.setdefault(module, {"failures": 0, "opened_at": 0})
        entry["failures"] += 1
        now = self._now()

        if not entry["opened_at"]:
            if entry["failures"] >= self.failure_threshold:
                entry["opened_at"] = now
                logger.warning(
                    "module_circuit_opened",
                    module=module,
                    consecutive_failures=entry["failures"],
                    recovery_delay=self.recovery_delay,
                )
                self._save(states)
                if self._notifier is not None:
                    try:
                        self._notifier.notify_module_circuit_breaker_open(module, entry["failures"])
                    except Exception as e:
                        logger.error("module_circuit_notify_failed", module=module, error=str(e))
                return
        elif now - entry["opened_at"] >= self.recovery_delay:
            # Failed probe re-arms the recovery window
            entry["opened_at"] = now
            logger.warning("module_circuit_probe_failed", module=module, failures=entry["failures"])

        self._save(states)


__all__ = [
    "ModuleCircuitBreaker",
    "ModuleNotifier",
    "STATES_KEY",
]
