"""
SyncGuard - reliability primitives for integrations with an unreliable remote.

- ``syncguard.execution``: circuit breaker, distributed mutex, sync queue
- ``syncguard.alerts``: failure notifier and alert channels
- ``syncguard.core``: storage, settings, errors, logging
"""

__version__ = "0.1.0"

from syncguard.factory import ReliabilityContext, create_reliability

__all__ = ["ReliabilityContext", "create_reliability", "__version__"]
