# src/pagemail_client/connectors/watch_runner.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from ..core.state import AppState

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _run_watch(state: AppState, stop_event: asyncio.Event) -> None:
    """
    Watch host (async):

    open session (list poller auto-starts) -> wait for stop -> close pollers -> close HTTP client

    Shutdown model:
    - main thread sets stop_event via loop.call_soon_threadsafe(stop_event.set)
    - in-flight refreshes are allowed to finish before the HTTP client closes.
    """
    session = state.session
    try:
        session.open()
        logger.info("Watching tasks at %s", getattr(state.settings, "api_base_url", "?"))
        await stop_event.wait()
    except asyncio.CancelledError:
        logger.info("Watch loop cancelled.")
    except Exception:
        logger.exception("Watch loop crashed.")
    finally:
        with contextlib.suppress(Exception):
            await session.aclose()
        with contextlib.suppress(Exception):
            await state.api.aclose()
        logger.info("Watch loop stopped.")


@dataclass
class WatchBackgroundRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except Exception:
            logger.debug("Failed to signal watch loop stop.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)

    def run(self, coro: Awaitable[T], *, timeout: float = 60.0) -> T:
        """Run a coroutine on the watch loop and wait for its result (call from another thread)."""
        future = asyncio.run_coroutine_threadsafe(coro, self.loop)  # type: ignore[arg-type]
        return future.result(timeout=timeout)

    def run_sync(self, fn: Callable[..., T], *args: Any, timeout: float = 10.0) -> T:
        """Run a plain callable on the watch loop thread (poller controls are not thread-safe)."""

        async def _call() -> T:
            return fn(*args)

        return self.run(_call(), timeout=timeout)


def start_watch_in_background(state: AppState) -> WatchBackgroundRunner | None:
    """
    Start the watch loop in a background thread (so the console REPL can run in parallel).

    Why a thread:
    - console REPL is blocking (input()).
    - pollers are async and want their own event loop.
    """
    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        ready.set()

        try:
            loop.run_until_complete(_run_watch(state, stop_event))
        finally:
            with contextlib.suppress(Exception):
                loop.run_until_complete(loop.shutdown_asyncgens())
            with contextlib.suppress(Exception):
                loop.close()

    t = threading.Thread(target=runner, name="pagemail-watch", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Watch thread did not initialize properly.")
        return None

    runner_handle = WatchBackgroundRunner(thread=t, loop=loop, stop_event=stop_event)
    state.runner = runner_handle
    logger.info("Watch background thread started.")
    return runner_handle
