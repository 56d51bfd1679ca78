# src/pagemail_client/polling/poller.py

from __future__ import annotations

"""
Adaptive background poller.

One logical timeline per instance that:
- invokes a refresh callback, never two at a time,
- waits pending_interval_seconds while the pending signal reports outstanding work,
  interval_seconds otherwise (re-read on every scheduling decision),
- defers (does not drop) refreshes while the host surface is hidden,
- catches up with a zero-delay wake-up when the surface becomes visible again.

Callback failures are handed to an error sink and never stop the loop; the callback
is expected to record its own error state for whoever displays it.

All control calls (start/stop/pause/resume) must run on the event loop thread.
"""

import asyncio
import inspect
import logging
import math
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from ..core.ports import Clock, ErrorSink, TimerHandle, VisibilitySource
from .clock import LoopClock
from .reactive import MaybeRef, Ref, unref

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 10.0
PENDING_INTERVAL_SECONDS = 5.0

RefreshCallback = Callable[[], Awaitable[None] | None]
PendingSource = Ref[bool] | Callable[[], bool]


@dataclass(slots=True)
class PollingOptions:
    interval_seconds: MaybeRef[float] = DEFAULT_INTERVAL_SECONDS
    pending_interval_seconds: MaybeRef[float] = PENDING_INTERVAL_SECONDS
    is_pending: PendingSource | None = None
    immediate: bool = True
    auto_start: bool = True


class Poller:
    def __init__(
            self,
            callback: RefreshCallback,
            options: PollingOptions | None = None,
            *,
            clock: Clock | None = None,
            visibility: VisibilitySource | None = None,
            on_error: ErrorSink | None = None,
            name: str = "poller",
    ) -> None:
        self.name = name
        self._callback = callback
        self._options = options or PollingOptions()
        self._clock: Clock = clock or LoopClock()
        self._visibility = visibility
        self._on_error = on_error

        self.is_active: Ref[bool] = Ref(False)
        self.is_paused: Ref[bool] = Ref(False)
        self.is_running: Ref[bool] = Ref(False)

        self._timer: TimerHandle | None = None
        self._inflight: set[asyncio.Task[None]] = set()
        self._unsubscribers: list[Callable[[], None]] = []
        self._attached = False

    @property
    def options(self) -> PollingOptions:
        return self._options

    @property
    def has_timer(self) -> bool:
        return self._timer is not None

    # ---- Signals ----

    def _is_hidden(self) -> bool:
        return self._visibility is not None and self._visibility.is_hidden()

    def _get_is_pending(self) -> bool:
        source = self._options.is_pending
        if source is None:
            return False
        if isinstance(source, Ref):
            return bool(source.value)
        try:
            return bool(source())
        except Exception:
            logger.exception("%s: pending predicate failed; assuming idle", self.name)
            return False

    def resolve_interval(self) -> float:
        """Delay for the next wake-up, based on the latest pending state."""
        opts = self._options
        base = opts.pending_interval_seconds if self._get_is_pending() else opts.interval_seconds
        raw = unref(base)
        # Numbers only: "5" and True are configuration mistakes, not intervals.
        if not isinstance(raw, (int, float)) or isinstance(raw, bool):
            return DEFAULT_INTERVAL_SECONDS
        value = float(raw)
        if math.isfinite(value) and value > 0:
            return value
        return DEFAULT_INTERVAL_SECONDS

    # ---- Timer ----

    def _clear_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _schedule_next(self, delay: float | None = None) -> None:
        self._clear_timer()
        if not self.is_active.value or self.is_paused.value:
            return
        seconds = self.resolve_interval() if delay is None else delay
        self._timer = self._clock.call_later(seconds, self._on_timer)

    def _on_timer(self) -> None:
        # The handle that just fired is the current one: every reschedule cancels its predecessor.
        self._timer = None
        self._spawn_tick()

    def _spawn_tick(self) -> None:
        task = asyncio.get_running_loop().create_task(self._tick(), name=f"{self.name}-tick")
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _tick(self) -> None:
        self._clear_timer()
        if not self.is_active.value or self.is_paused.value:
            return

        if self._is_hidden():
            logger.debug("%s: host hidden, deferring refresh", self.name)
            self._schedule_next()
            return

        if self.is_running.value:
            self._schedule_next()
            return

        self.is_running.value = True
        try:
            result = self._callback()
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            self._report(exc)
        finally:
            self.is_running.value = False

        self._schedule_next()

    def _report(self, exc: Exception) -> None:
        if self._on_error is None:
            logger.warning("%s: refresh failed: %s", self.name, exc, exc_info=exc)
            return
        try:
            self._on_error(exc)
        except Exception:
            logger.exception("%s: error sink failed", self.name)

    # ---- Controls ----

    def start(self, *, immediate: bool | None = None) -> None:
        """Activate. `immediate` overrides the configured option for this call only."""
        if self.is_active.value:
            return
        self.is_active.value = True
        self.is_paused.value = False
        logger.debug("%s: started", self.name)

        if self.is_running.value:
            # A refresh from the previous cycle is still in flight; its completion schedules the next tick.
            return
        if immediate is None:
            immediate = self._options.immediate
        if immediate:
            self._spawn_tick()
        else:
            self._schedule_next()

    def stop(self) -> None:
        self.is_active.value = False
        self.is_paused.value = False
        self._clear_timer()

    def pause(self) -> None:
        if not self.is_active.value or self.is_paused.value:
            return
        self.is_paused.value = True
        self._clear_timer()

    def resume(self) -> None:
        if not self.is_active.value or not self.is_paused.value:
            return
        self.is_paused.value = False
        if self.is_running.value:
            return
        self._schedule_next(0.0 if self._options.immediate else None)

    def reschedule(self) -> None:
        """Re-derive the pending wake-up now (e.g. after a plain-callable predicate changed)."""
        if not self.is_active.value or self.is_paused.value or self.is_running.value:
            return
        self._schedule_next()

    # ---- Host attachment ----

    def _handle_visible(self) -> None:
        if not self.is_active.value or self.is_paused.value or self.is_running.value:
            return
        if self._is_hidden():
            return
        logger.debug("%s: host visible again, catching up", self.name)
        self._schedule_next(0.0)

    def _handle_config_change(self, _value: object = None) -> None:
        self.reschedule()

    def attach(self) -> None:
        """Subscribe to visibility and configuration changes; auto-start if configured."""
        if self._attached:
            return
        self._attached = True

        if self._visibility is not None:
            self._unsubscribers.append(self._visibility.subscribe(self._handle_visible))

        opts = self._options
        for source in (opts.interval_seconds, opts.pending_interval_seconds, opts.is_pending):
            if isinstance(source, Ref):
                self._unsubscribers.append(source.subscribe(self._handle_config_change))

        if opts.auto_start:
            self.start()

    def detach(self) -> None:
        self.stop()
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        self._attached = False

    async def aclose(self) -> None:
        """Detach and wait for an in-flight refresh to finish."""
        self.detach()
        if self._inflight:
            await asyncio.wait(list(self._inflight))

    async def __aenter__(self) -> Poller:
        self.attach()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return (
            f"Poller(name={self.name!r}, active={self.is_active.value}, "
            f"paused={self.is_paused.value}, running={self.is_running.value})"
        )
