# src/pagemail_client/polling/clock.py

from __future__ import annotations

import asyncio
from collections.abc import Callable


class LoopClock:
    """
    Clock backed by the asyncio event loop (loop.call_later).

    If no loop is given, the running loop is looked up on each call, so the
    clock must be used from inside the loop thread.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(max(0.0, float(delay)), callback)
