"""Failure notifier — tells an administrator that sync is in trouble.

Three triggers:

- ``check(successes, failures)`` after each batch. Failed jobs add to a
  consecutive-failure counter that any success resets. At ``threshold``
  an alert is sent.
- ``notify_circuit_breaker_open(failures)`` on the global breaker's
  CLOSED → OPEN edge.
- ``notify_module_circuit_breaker_open(module, failures)`` on a module
  breaker's edge.

Every kind of alert has its own cooldown, persisted in the keyed state
store so that all processes share it. Nothing is sent when no recipient
is configured. Delivery failures come back as ``DeliveryResult`` values
and are logged; they never propagate into breaker bookkeeping.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from syncguard.alerts.protocol import Alert, AlertChannel, AlertSeverity, DeliveryResult
from syncguard.core.logging import get_logger
from syncguard.core.protocols import Clock
from syncguard.core.state import StateStore, as_float, as_int
from syncguard.core.timestamps import epoch_now

if TYPE_CHECKING:
    from syncguard.core.settings import SyncGuardSettings

logger = get_logger(__name__)

CONSECUTIVE_KEY = "failure_notifier_consecutive"
LAST_SENT_KEY = "failure_notifier_last_sent"


class FailureNotifier:
    """Cooldown-guarded administrator alerts."""

    def __init__(
        self,
        state: StateStore,
        channels: Sequence[AlertChannel],
        recipient: str | None,
        *,
        threshold: int = 5,
        cooldown: int = 3600,
        clock: Clock = epoch_now,
    ):
        self._state = state
        self._channels = list(channels)
        self.recipient = recipient
        self.threshold = threshold
        self.cooldown = cooldown
        self._clock = clock

    @classmethod
    def from_settings(
        cls,
        settings: SyncGuardSettings,
        state: StateStore,
        channels: Sequence[AlertChannel],
        **kwargs: Any,
    ) -> FailureNotifier:
        return cls(
            state,
            channels,
            settings.admin_email,
            threshold=settings.notify_threshold,
            cooldown=settings.notify_cooldown,
            **kwargs,
        )

    @property
    def consecutive_failures(self) -> int:
        return max(as_int(self._state.get(CONSECUTIVE_KEY)), 0)

    def check(self, successes: int, failures: int) -> list[DeliveryResult]:
        """Track a batch outcome; alert once the failure streak reaches the threshold."""
        consecutive = self.consecutive_failures

        if successes > 0:
            if consecutive > 0:
                self._state.set(CONSECUTIVE_KEY, 0)
            return []

        if failures == 0:
            return []

        consecutive += failures
        self._state.set(CONSECUTIVE_KEY, consecutive)

        if consecutive < self.threshold:
            return []

        return self._maybe_send(
            "consecutive_failures",
            Alert(
                severity=AlertSeverity.ERROR,
                title=f"{consecutive} consecutive sync failures",
                message=(
                    f"The sync queue has encountered {consecutive} consecutive failures.\n\n"
                    "Inspect it with: syncguard queue stats"
                ),
                source="sync_queue",
                metadata={"consecutive_failures": consecutive},
            ),
        )

    def notify_circuit_breaker_open(self, failures: int) -> list[DeliveryResult]:
        return self._maybe_send(
            "circuit_breaker",
            Alert(
                severity=AlertSeverity.CRITICAL,
                title="Circuit breaker opened: remote service unreachable",
                message=(
                    f"The circuit breaker opened after {failures} consecutive failed batches. "
                    "Synchronization is paused and will probe for recovery automatically.\n\n"
                    "Inspect it with: syncguard breaker status"
                ),
                source="circuit_breaker",
                metadata={"failures": failures},
            ),
        )

    def notify_module_circuit_breaker_open(self, module: str, failures: int) -> list[DeliveryResult]:
        return self._maybe_send(
            f"module:{module}",
            Alert(
                severity=AlertSeverity.ERROR,
                title=f"Circuit breaker opened for module {module}",
                message=(
                    f"Module '{module}' failed {failures} consecutive batches; its jobs are "
                    "skipped until it recovers.\n\n"
                    f"Reset it with: syncguard breaker reset-module {module}"
                ),
                source="module_circuit_breaker",
                module=module,
                metadata={"failures": failures},
            ),
        )

    def _maybe_send(self, kind: str, alert: Alert) -> list[DeliveryResult]:
        last_sent = self._state.get(LAST_SENT_KEY, {})
        if not isinstance(last_sent, dict):
            last_sent = {}

        now = self._clock()
        if now - as_float(last_sent.get(kind)) < self.cooldown:
            logger.debug("notification_suppressed", kind=kind, cooldown=self.cooldown)
            return []

        if not self.recipient:
            return []

        alert.recipients = [self.recipient]
        results = []
        for channel in self._channels:
            if not channel.should_send(alert):
                continue
            try:
                result = channel.send(alert)
            except Exception as e:
                result = DeliveryResult.fail(channel.name, e)
            results.append(result)
            if not result.success:
                logger.error(
                    "notification_delivery_failed",
                    kind=kind,
                    channel=result.channel_name,
                    error=result.message,
                )

        if any(result.success for result in results):
            last_sent[kind] = now
            self._state.set(LAST_SENT_KEY, last_sent)
            logger.warning("notification_sent", kind=kind, recipient=self.recipient, title=alert.title)

        return results


__all__ = ["FailureNotifier"]
