"""Console alert channel for development and testing."""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.markup import escape

from syncguard.alerts.base import BaseChannel
from syncguard.alerts.protocol import (
    Alert,
    AlertSeverity,
    ChannelType,
    DeliveryResult,
)

_STYLES = {
    AlertSeverity.INFO: "blue",
    AlertSeverity.WARNING: "yellow",
    AlertSeverity.ERROR: "red",
    AlertSeverity.CRITICAL: "magenta",
}


class ConsoleChannel(BaseChannel):
    """
    Console output channel.

    Prints alerts to stderr; used when no SMTP host is configured.
    """

    def __init__(
        self,
        name: str = "console",
        *,
        min_severity: AlertSeverity = AlertSeverity.INFO,
        console: Console | None = None,
        **kwargs: Any,
    ):
        super().__init__(name, ChannelType.CONSOLE, min_severity=min_severity, **kwargs)
        self._console = console or Console(stderr=True)

    def send(self, alert: Alert) -> DeliveryResult:
        style = _STYLES.get(alert.severity, "")
        header = escape(f"[{alert.severity.value}] {alert.title}")
        self._console.print(f"[{style}]{header}[/{style}]")
        self._console.print(f"  Source: {alert.source}", markup=False)
        if alert.module:
            self._console.print(f"  Module: {alert.module}", markup=False)
        if alert.recipients:
            self._console.print(f"  To: {', '.join(alert.recipients)}", markup=False)
        self._console.print(f"  Message: {alert.message}", markup=False)
        self._console.print()

        return DeliveryResult.ok(self._name)
