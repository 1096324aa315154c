"""
Alert channel base class.

Provides common functionality for alert channel implementations:
- Severity filtering
- Module filtering
- Enable/disable
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from syncguard.alerts.protocol import (
    Alert,
    AlertSeverity,
    ChannelType,
    DeliveryResult,
)


class BaseChannel(ABC):
    """
    Base class for alert channel implementations.

    ``modules`` restricts module-scoped alerts to the listed modules
    (``"woo*"`` style prefixes allowed). Alerts without a module always
    pass the filter.
    """

    def __init__(
        self,
        name: str,
        channel_type: ChannelType,
        *,
        min_severity: AlertSeverity = AlertSeverity.WARNING,
        modules: list[str] | None = None,
        enabled: bool = True,
    ):
        self._name = name
        self._channel_type = channel_type
        self._min_severity = min_severity
        self._modules = modules  # None means all modules
        self._enabled = enabled

    @property
    def name(self) -> str:
        return self._name

    @property
    def channel_type(self) -> ChannelType:
        return self._channel_type

    @property
    def min_severity(self) -> AlertSeverity:
        return self._min_severity

    @property
    def enabled(self) -> bool:
        return self._enabled

    def should_send(self, alert: Alert) -> bool:
        """Check if alert should be sent."""
        if not self._enabled:
            return False

        if alert.severity < self._min_severity:
            return False

        if self._modules and alert.module:
            for pattern in self._modules:
                if pattern.endswith("*"):
                    if alert.module.startswith(pattern[:-1]):
                        return True
                elif pattern == alert.module:
                    return True
            return False

        return True

    @abstractmethod
    def send(self, alert: Alert) -> DeliveryResult:
        """Send alert to the channel."""
        ...
