"""Tests for FailureNotifier."""

from __future__ import annotations

import pytest

from syncguard.alerts.base import BaseChannel
from syncguard.alerts.notifier import CONSECUTIVE_KEY, LAST_SENT_KEY, FailureNotifier
from syncguard.alerts.protocol import Alert, AlertSeverity, ChannelType, DeliveryResult
from syncguard.core.errors import TransientError
from syncguard.core.settings import SyncGuardSettings
from syncguard.execution.circuit_breaker import CircuitBreaker
from syncguard.execution.module_breaker import ModuleCircuitBreaker


class RecordingChannel(BaseChannel):
    """Channel that stores alerts instead of delivering them."""

    def __init__(self, name: str = "recording", *, fail: bool = False, **kwargs):
        super().__init__(name, ChannelType.CONSOLE, min_severity=AlertSeverity.INFO, **kwargs)
        self.fail = fail
        self.sent: list[Alert] = []

    def send(self, alert: Alert) -> DeliveryResult:
        if self.fail:
            return DeliveryResult.fail(self.name, TransientError("smtp down"))
        self.sent.append(alert)
        return DeliveryResult.ok(self.name)


@pytest.fixture()
def channel():
    return RecordingChannel()


@pytest.fixture()
def notifier(state, channel, clock):
    return FailureNotifier(state, [channel], "admin@example.com", clock=clock)


class TestCheck:
    def test_below_threshold_silent(self, notifier, channel):
        assert notifier.check(0, 4) == []
        assert notifier.consecutive_failures == 4
        assert channel.sent == []

    def test_streak_across_batches(self, notifier, channel):
        notifier.check(0, 3)
        results = notifier.check(0, 2)
        assert len(results) == 1
        assert results[0].success is True
        [alert] = channel.sent
        assert alert.severity == AlertSeverity.ERROR
        assert "5 consecutive" in alert.title
        assert alert.recipients == ["admin@example.com"]

    def test_success_resets_streak(self, notifier, state, channel):
        notifier.check(0, 4)
        notifier.check(1, 3)
        assert state.get(CONSECUTIVE_KEY) == 0
        notifier.check(0, 4)
        assert channel.sent == []

    def test_empty_batch_ignored(self, notifier):
        notifier.check(0, 2)
        notifier.check(0, 0)
        assert notifier.consecutive_failures == 2


class TestCooldown:
    def test_suppressed_within_cooldown(self, notifier, channel, clock):
        notifier.check(0, 5)
        clock.advance(3599)
        assert notifier.check(0, 1) == []
        assert len(channel.sent) == 1

    def test_sent_again_after_cooldown(self, notifier, channel, clock):
        notifier.check(0, 5)
        clock.advance(3600)
        notifier.check(0, 1)
        assert len(channel.sent) == 2

    def test_cooldown_per_alert_kind(self, notifier, channel):
        notifier.check(0, 5)
        notifier.notify_circuit_breaker_open(3)
        notifier.notify_module_circuit_breaker_open("crm", 5)
        notifier.notify_module_circuit_breaker_open("events", 5)
        assert len(channel.sent) == 4

    def test_cooldown_shared_between_instances(self, notifier, state, channel, clock):
        notifier.notify_circuit_breaker_open(3)
        other = FailureNotifier(state, [channel], "admin@example.com", clock=clock)
        assert other.notify_circuit_breaker_open(3) == []
        assert set(state.get(LAST_SENT_KEY)) == {"circuit_breaker"}

    def test_failed_delivery_does_not_start_cooldown(self, state, clock):
        failing = RecordingChannel("smtp", fail=True)
        notifier = FailureNotifier(state, [failing], "admin@example.com", clock=clock)
        [result] = notifier.notify_circuit_breaker_open(3)
        assert result.success is False
        assert isinstance(result.error, TransientError)
        assert state.get(LAST_SENT_KEY) is None


class TestRecipients:
    def test_no_recipient_no_send(self, state, channel, clock):
        notifier = FailureNotifier(state, [channel], None, clock=clock)
        assert notifier.notify_circuit_breaker_open(3) == []
        assert channel.sent == []

    def test_channel_filtering(self, state, clock):
        scoped = RecordingChannel("scoped", modules=["woo*"])
        notifier = FailureNotifier(state, [scoped], "admin@example.com", clock=clock)
        notifier.notify_module_circuit_breaker_open("crm", 5)
        notifier.notify_module_circuit_breaker_open("woocommerce", 5)
        assert [alert.module for alert in scoped.sent] == ["woocommerce"]

    def test_from_settings(self, state, channel, clock):
        settings = SyncGuardSettings(admin_email="ops@example.com", notify_threshold=2)
        notifier = FailureNotifier.from_settings(settings, state, [channel], clock=clock)
        notifier.check(0, 2)
        assert channel.sent[0].recipients == ["ops@example.com"]


class TestBreakerIntegration:
    def test_circuit_breaker_alert(self, state, cache, lock_provider, clock, notifier, channel):
        breaker = CircuitBreaker(state, cache, lock_provider, clock=clock)
        breaker.set_failure_notifier(notifier)
        for _ in range(5):
            breaker.record_failure()

        [alert] = channel.sent
        assert "Circuit breaker" in alert.title
        assert alert.severity == AlertSeverity.CRITICAL
        assert "3 consecutive failed batches" in alert.message

    def test_module_breaker_alert(self, state, clock, notifier, channel):
        breaker = ModuleCircuitBreaker(state, clock=clock, notifier=notifier)
        for _ in range(5):
            breaker.record_module_batch("crm", 0, 4)

        [alert] = channel.sent
        assert alert.title == "Circuit breaker opened for module crm"
        assert alert.module == "crm"

    def test_delivery_failure_does_not_break_breaker(self, state, cache, lock_provider, clock):
        notifier = FailureNotifier(
            state, [RecordingChannel(fail=True)], "admin@example.com", clock=clock
        )
        breaker = CircuitBreaker(state, cache, lock_provider, clock=clock, notifier=notifier)
        for _ in range(3):
            breaker.record_failure()
        assert breaker.is_available() is False


class ExplodingChannel(RecordingChannel):
    def send(self, alert: Alert) -> DeliveryResult:
        raise RuntimeError("connection reset")


class TestMalformedState:
    def test_malformed_last_sent_treated_as_never_sent(self, notifier, state, channel):
        state.set(LAST_SENT_KEY, {"circuit_breaker": "yesterday"})
        results = notifier.notify_circuit_breaker_open(3)
        assert [r.success for r in results] == [True]
        assert len(channel.sent) == 1

    def test_non_dict_last_sent_ignored(self, notifier, state, channel):
        state.set(LAST_SENT_KEY, ["circuit_breaker"])
        notifier.notify_circuit_breaker_open(3)
        assert len(channel.sent) == 1

    def test_malformed_counter_restarts_from_zero(self, notifier, state, channel):
        state.set(CONSECUTIVE_KEY, "abc")
        assert notifier.consecutive_failures == 0
        notifier.check(0, 1)
        assert state.get(CONSECUTIVE_KEY) == 1
        assert channel.sent == []

    def test_raising_channel_reported_as_failure(self, state, clock):
        healthy = RecordingChannel("healthy")
        notifier = FailureNotifier(
            state, [ExplodingChannel("broken"), healthy], "admin@example.com", clock=clock
        )
        results = notifier.notify_circuit_breaker_open(3)

        assert [(r.channel_name, r.success) for r in results] == [("broken", False), ("healthy", True)]
        assert len(healthy.sent) == 1
        assert "circuit_breaker" in state.get(LAST_SENT_KEY)
