"""
Alerting package.

Channels deliver :class:`Alert` values; :class:`FailureNotifier` decides
when the sync engine's health warrants one.
"""

from syncguard.alerts.base import BaseChannel
from syncguard.alerts.channels import ConsoleChannel, EmailChannel
from syncguard.alerts.notifier import FailureNotifier
from syncguard.alerts.protocol import (
    Alert,
    AlertChannel,
    AlertSeverity,
    ChannelType,
    DeliveryResult,
)

__all__ = [
    # Enums
    "AlertSeverity",
    "ChannelType",
    # Data classes
    "Alert",
    "DeliveryResult",
    # Protocols
    "AlertChannel",
    # Base class
    "BaseChannel",
    # Implementations
    "ConsoleChannel",
    "EmailChannel",
    "FailureNotifier",
]
