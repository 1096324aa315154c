"""Tests for SyncGuardSettings (pydantic-settings)."""

import pydantic
import pytest

from syncguard.core.settings import SyncGuardSettings


class TestDefaults:
    def test_breaker_defaults(self):
        settings = SyncGuardSettings()
        assert settings.failure_threshold == 3
        assert settings.recovery_delay == 300
        assert settings.failure_ratio == 0.8
        assert settings.probe_ttl == 360
        assert settings.stale_state_seconds == 3600

    def test_module_and_notifier_defaults(self):
        settings = SyncGuardSettings()
        assert settings.module_failure_threshold == 5
        assert settings.module_recovery_delay == 600
        assert settings.module_stale_seconds == 7200
        assert settings.notify_threshold == 5
        assert settings.notify_cooldown == 3600

    def test_queue_defaults(self):
        settings = SyncGuardSettings()
        assert settings.debounce_seconds == 5
        assert settings.default_priority == 5
        assert settings.default_max_attempts == 3
        assert settings.cache_backend == "database"
        assert settings.lock_backend == "table"


class TestEnvironment:
    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("SYNCGUARD_FAILURE_THRESHOLD", "7")
        monkeypatch.setenv("SYNCGUARD_CACHE_BACKEND", "memory")
        settings = SyncGuardSettings()
        assert settings.failure_threshold == 7
        assert settings.cache_backend == "memory"

    def test_explicit_value_wins(self, monkeypatch):
        monkeypatch.setenv("SYNCGUARD_RECOVERY_DELAY", "10")
        assert SyncGuardSettings(recovery_delay=20).recovery_delay == 20


class TestValidation:
    @pytest.mark.parametrize(
        "field,value",
        [
            ("failure_ratio", 0),
            ("failure_ratio", 1.5),
            ("failure_threshold", 0),
            ("default_priority", 11),
            ("cache_backend", "memcached"),
        ],
    )
    def test_rejects_invalid(self, field, value):
        with pytest.raises(pydantic.ValidationError):
            SyncGuardSettings(**{field: value})
