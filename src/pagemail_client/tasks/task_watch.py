# src/pagemail_client/tasks/task_watch.py

from __future__ import annotations

"""
Watch session: the call sites of the poller.

- one poller refreshing the task list (short cadence while any task is pending/processing),
- one poller per opened task detail view (short cadence while that task is unfinished).

All pollers share the session's visibility source, so going "away" defers every
refresh and coming back catches every view up at once.
Must be created and driven from the event loop thread.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ..core.errors import ApiError, friendly_api_error_message
from ..core.ports import Clock, TasksApi, VisibilitySource
from ..polling.poller import Poller, PollingOptions
from .task_models import Task, TaskStatus
from .task_store import TaskDetailStore, TaskListStore

logger = logging.getLogger(__name__)

Notifier = Callable[[str], None]


def short_id(task_id: str) -> str:
    return task_id[:8]


def describe_status_change(task: Task, previous: TaskStatus | None) -> str:
    before = previous.value if previous is not None else "new"
    line = f"Task {short_id(task.id)} ({task.url}): {before} -> {task.status.value}"
    if task.status == TaskStatus.FAILED and task.error_message:
        line += f" [{task.error_message}]"
    return line


class _RefreshHealth:
    """
    Error sink for one poller.

    Logs the first failure of a streak as WARNING and the rest at DEBUG, so a
    server outage does not flood the console every few seconds. Logs recovery once.
    A 404 goes to `on_not_found` instead (the task is gone, retrying is pointless).
    """

    def __init__(self, label: str, store: Any, on_not_found: Callable[[], None] | None = None) -> None:
        self.label = label
        self.store = store
        self.on_not_found = on_not_found
        self.failures = 0

    def on_error(self, exc: Exception) -> None:
        if self.on_not_found is not None and isinstance(exc, ApiError) and exc.is_not_found:
            self.on_not_found()
            return
        self.failures += 1
        if self.failures == 1:
            logger.warning("%s refresh failed: %s", self.label, friendly_api_error_message(exc))
        else:
            logger.debug("%s refresh failed again (%d in a row): %r", self.label, self.failures, exc)

    def on_running_change(self, running: bool) -> None:
        if running or self.failures == 0 or self.store.last_error is not None:
            return
        logger.info("%s refresh recovered after %d failure(s)", self.label, self.failures)
        self.failures = 0


@dataclass(slots=True)
class DetailView:
    store: TaskDetailStore
    poller: Poller
    health: _RefreshHealth


class WatchSession:
    def __init__(
            self,
            api: TasksApi,
            settings: Any,
            *,
            visibility: VisibilitySource | None = None,
            clock: Clock | None = None,
            notify: Notifier | None = None,
    ) -> None:
        self.api = api
        self.settings = settings
        self.visibility = visibility
        self._clock = clock
        self._notify = notify

        self.list_store = TaskListStore(api, page_size=settings.page_size)
        self.list_store.on_status_change(self._on_status_change)
        self._list_health = _RefreshHealth("Task list", self.list_store)
        self.list_poller = Poller(
            self.list_store.refresh,
            PollingOptions(
                interval_seconds=settings.poll_interval_seconds,
                pending_interval_seconds=settings.poll_pending_interval_seconds,
                is_pending=self.list_store.pending,
                immediate=settings.poll_immediate,
            ),
            clock=clock,
            visibility=visibility,
            on_error=self._list_health.on_error,
            name="task-list",
        )
        self.list_poller.is_running.subscribe(self._list_health.on_running_change)

        self.details: dict[str, DetailView] = {}
        # Last status announced per task: list and detail views may both see one transition.
        self._announced: dict[str, TaskStatus] = {}

    def _announce(self, line: str) -> None:
        logger.info(line)
        if self._notify is not None:
            self._notify(line)

    def _on_status_change(self, task: Task, previous: TaskStatus | None) -> None:
        if self._announced.get(task.id) == task.status:
            return
        self._announced[task.id] = task.status
        self._announce(describe_status_change(task, previous))

    def open(self) -> None:
        """Attach the list poller (auto-starts it)."""
        self.list_poller.attach()

    def set_list_view(self, *, status_filter: str | None, page: int = 1) -> None:
        """Change the list filter/page and refresh right away unless the user paused or stopped it."""
        self.list_store.set_view(status_filter=status_filter, page=page)
        poller = self.list_poller
        if poller.is_active.value and not poller.is_paused.value:
            poller.stop()
            poller.start(immediate=True)

    def _add_detail(self, store: TaskDetailStore, *, immediate: bool) -> DetailView:
        task_id = store.task_id
        store.on_status_change(self._on_status_change)
        health = _RefreshHealth(
            f"Task {short_id(task_id)}",
            store,
            on_not_found=lambda: self._drop_missing(task_id),
        )
        poller = Poller(
            store.refresh,
            PollingOptions(
                interval_seconds=self.settings.detail_interval_seconds,
                pending_interval_seconds=self.settings.detail_pending_interval_seconds,
                is_pending=store.pending,
                immediate=True,
                auto_start=False,
            ),
            clock=self._clock,
            visibility=self.visibility,
            on_error=health.on_error,
            name=f"task-{short_id(task_id)}",
        )
        poller.is_running.subscribe(health.on_running_change)

        view = DetailView(store=store, poller=poller, health=health)
        self.details[task_id] = view
        # The detail view sets its own baseline; a stale entry would hide its next transition.
        self._announced.pop(task_id, None)
        poller.attach()
        poller.start(immediate=immediate)
        logger.info("Watching task %s", task_id)
        return view

    def open_detail(self, task_id: str) -> DetailView:
        """Watch a task already known to exist (just created or retried); first fetch happens on the poller."""
        existing = self.details.get(task_id)
        if existing is not None:
            return existing
        return self._add_detail(TaskDetailStore(self.api, task_id), immediate=True)

    async def watch(self, task_id: str) -> DetailView:
        """
        Fetch the task once, then keep it polled.

        Raises ApiError (404 for an unknown id) before any poller exists, so a
        typo never turns into a view polling a task that is not there.
        """
        existing = self.details.get(task_id)
        if existing is not None:
            return existing

        store = TaskDetailStore(self.api, task_id)
        await store.refresh()

        existing = self.details.get(task_id)
        if existing is not None:
            return existing
        return self._add_detail(store, immediate=False)

    def _drop_missing(self, task_id: str) -> None:
        # Runs inside the failing tick: detach only, the tick itself finishes normally.
        view = self.details.pop(task_id, None)
        if view is None:
            return
        view.poller.detach()
        self._announced.pop(task_id, None)
        self._announce(f"Task {short_id(task_id)} no longer exists; stopped watching it.")

    async def close_detail(self, task_id: str) -> bool:
        view = self.details.pop(task_id, None)
        if view is None:
            return False
        await view.poller.aclose()
        logger.info("Stopped watching task %s", task_id)
        return True

    def all_pollers(self) -> list[Poller]:
        return [self.list_poller] + [v.poller for v in self.details.values()]

    async def aclose(self) -> None:
        for task_id in list(self.details):
            await self.close_detail(task_id)
        await self.list_poller.aclose()
