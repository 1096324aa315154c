"""Alert channel implementations.

Manifesto:
    Each channel module implements a single delivery target.

Tags:
    syncguard, alerts, channels, delivery
"""

from syncguard.alerts.channels.console import ConsoleChannel
from syncguard.alerts.channels.email import EmailChannel

__all__ = [
    "ConsoleChannel",
    "EmailChannel",
]
