"""
Alerting protocol and data classes.

Defines the contract for alert channels and the values that flow through
them. Concrete channels live in channels/, the base class in base.py.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from syncguard.core.errors import SyncGuardError


class AlertSeverity(str, Enum):
    """Alert severity levels."""

    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    def _order(self) -> list[AlertSeverity]:
        return [
            AlertSeverity.INFO,
            AlertSeverity.WARNING,
            AlertSeverity.ERROR,
            AlertSeverity.CRITICAL,
        ]

    def __lt__(self, other: AlertSeverity) -> bool:
        return self._order().index(self) < self._order().index(other)

    def __le__(self, other: AlertSeverity) -> bool:
        return self._order().index(self) <= self._order().index(other)

    def __ge__(self, other: AlertSeverity) -> bool:
        return self._order().index(self) >= self._order().index(other)

    def __gt__(self, other: AlertSeverity) -> bool:
        return self._order().index(self) > self._order().index(other)


class ChannelType(str, Enum):
    """Alert channel types."""

    EMAIL = "email"
    CONSOLE = "console"  # For development/testing


@dataclass
class Alert:
    """
    A notification about the sync engine's health.

    ``recipients`` overrides a channel's configured recipients when set.
    """

    # Required
    severity: AlertSeverity
    title: str
    message: str
    source: str  # "circuit_breaker", "module_circuit_breaker", "sync_queue"

    # Optional context
    module: str | None = None
    recipients: list[str] = field(default_factory=list)
    error: SyncGuardError | None = None

    # Metadata
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.now)

    # For deduplication/throttling
    fingerprint: str | None = None

    def __post_init__(self):
        if self.fingerprint is None:
            parts = [self.severity.value, self.source, self.title]
            if self.module:
                parts.append(self.module)
            self.fingerprint = "|".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        result = {
            "severity": self.severity.value,
            "title": self.title,
            "message": self.message,
            "source": self.source,
            "created_at": self.created_at.isoformat(),
            "fingerprint": self.fingerprint,
        }
        if self.module:
            result["module"] = self.module
        if self.recipients:
            result["recipients"] = list(self.recipients)
        if self.error:
            result["error"] = self.error.to_dict()
        if self.metadata:
            result["metadata"] = self.metadata
        return result


@dataclass
class DeliveryResult:
    """Result of alert delivery attempt."""

    channel_name: str
    success: bool
    message: str | None = None
    error: Exception | None = None
    delivered_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def ok(cls, channel_name: str, message: str | None = None) -> DeliveryResult:
        return cls(channel_name=channel_name, success=True, message=message)

    @classmethod
    def fail(cls, channel_name: str, error: Exception) -> DeliveryResult:
        return cls(
            channel_name=channel_name,
            success=False,
            error=error,
            message=str(error),
        )


@runtime_checkable
class AlertChannel(Protocol):
    """
    Protocol for alert channels.

    Implementations must provide:
    - name: Unique channel identifier
    - channel_type: Type classification
    - send(): Deliver an alert
    """

    @property
    def name(self) -> str:
        """Unique channel name."""
        ...

    @property
    def channel_type(self) -> ChannelType:
        """Channel type."""
        ...

    @property
    def min_severity(self) -> AlertSeverity:
        """Minimum severity to send."""
        ...

    @property
    def enabled(self) -> bool:
        """Whether channel is enabled."""
        ...

    def should_send(self, alert: Alert) -> bool:
        """Check if alert should be sent to this channel."""
        ...

    def send(self, alert: Alert) -> DeliveryResult:
        """Send alert to the channel."""
        ...


__all__ = [
    "AlertSeverity",
    "ChannelType",
    "Alert",
    "DeliveryResult",
    "AlertChannel",
]
