# src/pagemail_client/tasks/task_store.py

from __future__ import annotations

"""
State containers refreshed by pollers.

Each store owns:
- the latest snapshot fetched from the API,
- its own error state (last_error), so the poller can discard failures safely,
- a `pending` Ref the poller reads to pick the short cadence.

refresh() re-raises after recording the failure: the poller decides what to do
with it (log and keep going), the store only remembers it for display.
"""

import logging
from collections.abc import Callable

from ..core.ports import TasksApi
from ..polling.reactive import Ref
from .task_models import Task, TaskPage, TaskStatus

logger = logging.getLogger(__name__)

StatusListener = Callable[[Task, TaskStatus | None], None]
# Called with (task, previous_status); previous_status is None for a task seen for the first time.


class TaskListStore:
    def __init__(self, api: TasksApi, *, page_size: int = 20, status_filter: str | None = None) -> None:
        self._api = api
        self.page_size = page_size
        self.page = 1
        self.status_filter = status_filter

        self.tasks: list[Task] = []
        self.total = 0
        self.total_pages = 1
        self.last_error: Exception | None = None
        self.loaded = False
        self.pending: Ref[bool] = Ref(False)

        self._listeners: list[StatusListener] = []

    def on_status_change(self, listener: StatusListener) -> None:
        self._listeners.append(listener)

    def set_view(self, *, status_filter: str | None, page: int = 1) -> None:
        """
        Switch filter/page. The next refresh counts as a first load: tasks that merely
        enter the new view are not reported as status changes.
        """
        self.status_filter = status_filter
        self.page = max(1, page)
        self.tasks = []
        self.total = 0
        self.total_pages = 1
        self.loaded = False

    def _notify(self, task: Task, previous: TaskStatus | None) -> None:
        for listener in list(self._listeners):
            try:
                listener(task, previous)
            except Exception:
                logger.exception("status listener failed task_id=%s", task.id)

    async def refresh(self) -> None:
        view = (self.status_filter, self.page)
        try:
            page: TaskPage = await self._api.list_tasks(
                page=self.page,
                limit=self.page_size,
                status=self.status_filter,
            )
        except Exception as exc:
            self.last_error = exc
            raise

        if (self.status_filter, self.page) != view:
            # View switched while the request was in flight; the next refresh loads the new one.
            return

        previous = {t.id: t.status for t in self.tasks}
        first_load = not self.loaded

        self.tasks = page.items
        self.total = page.total
        self.total_pages = page.total_pages
        self.last_error = None
        self.loaded = True
        self.pending.value = any(t.is_pending for t in page.items)

        if first_load:
            return
        for task in page.items:
            before = previous.get(task.id)
            if before != task.status:
                self._notify(task, before)

    def find(self, task_id: str) -> Task | None:
        for task in self.tasks:
            if task.id == task_id or task.id.startswith(task_id):
                return task
        return None


class TaskDetailStore:
    def __init__(self, api: TasksApi, task_id: str) -> None:
        self._api = api
        self.task_id = task_id

        self.task: Task | None = None
        self.last_error: Exception | None = None
        self.pending: Ref[bool] = Ref(True)  # unknown until the first fetch: poll fast

        self._listeners: list[StatusListener] = []

    def on_status_change(self, listener: StatusListener) -> None:
        self._listeners.append(listener)

    async def refresh(self) -> None:
        try:
            task: Task = await self._api.get_task(self.task_id)
        except Exception as exc:
            self.last_error = exc
            raise

        before = self.task.status if self.task is not None else None
        self.task = task
        self.last_error = None
        self.pending.value = task.is_pending

        if before is not None and before != task.status:
            for listener in list(self._listeners):
                try:
                    listener(task, before)
                except Exception:
                    logger.exception("status listener failed task_id=%s", task.id)
