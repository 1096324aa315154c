"""SyncGuard settings.

Every tunable of the reliability engine (breaker thresholds, recovery
delays, notifier cooldown, queue defaults, storage backends) lives on one
``SyncGuardSettings`` model so deployments configure it through the
environment instead of code.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.

    - **Pydantic validation:** Type-checked at startup, not mid-outage
    - **Environment-driven:** ``SYNCGUARD_*`` env vars and ``.env`` files
    - **Sensible defaults:** Works out of the box against a local SQLite file

Examples:
    >>> from syncguard.core.settings import SyncGuardSettings
    >>> settings = SyncGuardSettings(failure_threshold=5)
    >>> settings.recovery_delay
    300

Tags:
    settings, configuration, pydantic, environment, syncguard
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SyncGuardSettings(BaseSettings):
    """Settings for the sync reliability engine.

    Fields
    ──────
    database            : SQLite path / URL for queue, state, locks
    cache_backend       : Transient cache for breaker fast path + probe flag
    lock_backend        : Named-lock provider for the probe mutex
    failure_threshold   : Consecutive failed batches before opening
    recovery_delay      : Seconds OPEN before a half-open probe is allowed
    failure_ratio       : Batch failure ratio counted as a failed batch
    probe_ttl           : Lifetime of the half-open probe claim flag
    stale_state_seconds : Durable breaker state older than this is dropped
    """

    model_config = SettingsConfigDict(
        env_prefix="SYNCGUARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Storage ──────────────────────────────────────────────────
    database: str = Field(
        default_factory=lambda: str(Path.home() / ".syncguard" / "syncguard.db"),
        description="SQLite file path or sqlite:/// URL",
    )
    cache_backend: Literal["database", "memory", "redis"] = "database"
    redis_url: str = "redis://localhost:6379/0"
    lock_backend: Literal["table", "mysql"] = "table"

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    json_logs: bool | None = None

    # ── Circuit breaker ──────────────────────────────────────────
    failure_threshold: int = Field(default=3, ge=1)
    recovery_delay: int = Field(default=300, ge=0)
    failure_ratio: float = Field(default=0.8, gt=0.0, le=1.0)
    probe_ttl: int = Field(default=360, ge=1)
    probe_lock_timeout: int = Field(default=1, ge=0)
    stale_state_seconds: int = Field(default=3600, ge=1)

    # ── Per-module circuit breaker ───────────────────────────────
    module_failure_threshold: int = Field(default=5, ge=1)
    module_recovery_delay: int = Field(default=600, ge=0)
    module_stale_seconds: int = Field(default=7200, ge=1)

    # ── Failure notifier ─────────────────────────────────────────
    notify_threshold: int = Field(default=5, ge=1)
    notify_cooldown: int = Field(default=3600, ge=0)
    admin_email: str | None = None
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_user: str | None = None
    smtp_password: str | None = None
    smtp_from: str = "syncguard@localhost"
    smtp_use_tls: bool = True

    # ── Queue ────────────────────────────────────────────────────
    debounce_seconds: int = Field(default=5, ge=0)
    default_priority: int = Field(default=5, ge=1, le=10)
    default_max_attempts: int = Field(default=3, ge=1)
    cleanup_days: int = Field(default=7, ge=1)


@lru_cache(maxsize=1)
def get_settings() -> SyncGuardSettings:
    """Return the process-wide settings (read once from the environment)."""
    return SyncGuardSettings()
