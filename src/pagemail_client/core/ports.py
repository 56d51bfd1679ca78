# src/pagemail_client/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the poller and the task stores.

The scheduler depends on Protocols instead of concrete implementations.
This keeps the timer source, the visibility source and the REST client swappable
and lets tests drive everything with fakes (no real clock, no real server).
"""

from collections.abc import Callable
from typing import Any, Protocol

ErrorSink = Callable[[Exception], None]
# Receives failures the poller discarded at the tick boundary.


class TimerHandle(Protocol):
    """A single scheduled wake-up. asyncio.TimerHandle satisfies this."""

    def cancel(self) -> None: ...


class Clock(Protocol):
    """Timer source: run `callback` once after `delay` seconds."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class VisibilitySource(Protocol):
    """
    Host-side port: is the user currently looking?

    - is_hidden() is polled at tick time
    - subscribe() delivers the "became visible" transition; returns an unsubscribe callable
    """

    def is_hidden(self) -> bool: ...

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]: ...


class TasksApi(Protocol):
    async def list_tasks(
            self,
            *,
            page: int = 1,
            limit: int = 20,
            status: str | None = None,
    ) -> Any: ...

    async def get_task(self, task_id: str) -> Any: ...
    async def create_task(self, request: Any) -> Any: ...
    async def retry_task(self, task_id: str) -> None: ...
    async def delete_task(self, task_id: str) -> None: ...
    async def list_outputs(self, task_id: str) -> Any: ...
    async def download_output(self, task_id: str, output_id: str) -> bytes: ...
