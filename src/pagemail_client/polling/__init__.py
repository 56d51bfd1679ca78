"""
Polling subsystem.

Components:
- poller.py: Poller (adaptive cadence, visibility-aware, no overlapping refreshes)
- reactive.py: Ref observable cell used for status flags and live configuration
- clock.py: LoopClock (asyncio call_later)
- visibility.py: ManualVisibility (host-driven "is anyone looking" source)
"""

from .poller import DEFAULT_INTERVAL_SECONDS, PENDING_INTERVAL_SECONDS, Poller, PollingOptions
from .reactive import Ref, unref

__all__ = [
    "DEFAULT_INTERVAL_SECONDS",
    "PENDING_INTERVAL_SECONDS",
    "Poller",
    "PollingOptions",
    "Ref",
    "unref",
]
