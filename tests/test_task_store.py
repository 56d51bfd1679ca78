# tests/test_task_store.py

from __future__ import annotations

import asyncio

import pytest

from pagemail_client.core.errors import ApiConnectionError
from pagemail_client.tasks.task_models import Task, TaskStatus
from pagemail_client.tasks.task_store import TaskDetailStore, TaskListStore

from .fakes import FakeTasksApi, make_task, settle


@pytest.mark.asyncio
async def test_list_store_tracks_pending_and_totals(api: FakeTasksApi) -> None:
    store = TaskListStore(api, page_size=10)
    assert store.loaded is False
    assert store.pending.value is False

    await store.refresh()
    assert store.loaded is True
    assert store.total == 2
    assert store.pending.value is True

    api.set_status("aaaa1111-0000", TaskStatus.COMPLETED)
    await store.refresh()
    assert store.pending.value is False


@pytest.mark.asyncio
async def test_list_store_reports_changes_after_first_load(api: FakeTasksApi) -> None:
    store = TaskListStore(api)
    changes: list[tuple[str, TaskStatus, TaskStatus | None]] = []

    def listener(task: Task, previous: TaskStatus | None) -> None:
        changes.append((task.id, task.status, previous))

    store.on_status_change(listener)

    await store.refresh()
    assert changes == []

    api.set_status("aaaa1111-0000", TaskStatus.PROCESSING)
    api.tasks["cccc3333-0000"] = make_task("cccc3333-0000")
    await store.refresh()
    assert changes == [
        ("aaaa1111-0000", TaskStatus.PROCESSING, TaskStatus.PENDING),
        ("cccc3333-0000", TaskStatus.PENDING, None),
    ]

    await store.refresh()
    assert len(changes) == 2


@pytest.mark.asyncio
async def test_list_store_records_and_reraises_errors(api: FakeTasksApi) -> None:
    store = TaskListStore(api)
    await store.refresh()

    api.errors.append(ApiConnectionError("refused"))
    with pytest.raises(ApiConnectionError):
        await store.refresh()

    assert isinstance(store.last_error, ApiConnectionError)
    # Previous snapshot is kept for display.
    assert len(store.tasks) == 2

    await store.refresh()
    assert store.last_error is None


@pytest.mark.asyncio
async def test_list_store_find_by_prefix(api: FakeTasksApi) -> None:
    store = TaskListStore(api)
    await store.refresh()

    found = store.find("bbbb")
    assert found is not None
    assert found.id == "bbbb2222-0000"
    assert found.error_message == "navigation timeout"
    assert store.find("zzzz") is None


@pytest.mark.asyncio
async def test_list_store_passes_filter_and_page_size() -> None:
    api = FakeTasksApi(
        [
            make_task("t1", TaskStatus.FAILED),
            make_task("t2", TaskStatus.COMPLETED),
            make_task("t3", TaskStatus.FAILED),
        ]
    )
    store = TaskListStore(api, page_size=1, status_filter="failed")
    await store.refresh()

    assert [t.id for t in store.tasks] == ["t1"]
    assert store.total == 2


@pytest.mark.asyncio
async def test_list_store_view_switch_is_a_fresh_load(api: FakeTasksApi) -> None:
    store = TaskListStore(api, page_size=20)
    changes: list[tuple[str, TaskStatus | None]] = []
    store.on_status_change(lambda t, prev: changes.append((t.id, prev)))
    await store.refresh()

    store.set_view(status_filter="failed", page=0)
    assert store.page == 1
    assert store.tasks == []
    assert store.loaded is False

    await store.refresh()
    assert [t.id for t in store.tasks] == ["bbbb2222-0000"]
    assert store.pending.value is False
    # Entering a new view is not a status change.
    assert changes == []


class _GatedApi(FakeTasksApi):
    def __init__(self, tasks: list[Task]) -> None:
        super().__init__(tasks)
        self.gate = asyncio.Event()

    async def list_tasks(self, **kwargs):
        await self.gate.wait()
        return await super().list_tasks(**kwargs)


@pytest.mark.asyncio
async def test_list_store_drops_result_of_previous_view() -> None:
    api = _GatedApi([make_task("t1", TaskStatus.PENDING), make_task("t2", TaskStatus.FAILED)])
    store = TaskListStore(api)

    inflight = asyncio.create_task(store.refresh())
    await settle()
    store.set_view(status_filter="failed")
    api.gate.set()
    await inflight

    assert store.loaded is False
    assert store.tasks == []

    await store.refresh()
    assert [t.id for t in store.tasks] == ["t2"]


@pytest.mark.asyncio
async def test_detail_store_is_pending_until_first_fetch(api: FakeTasksApi) -> None:
    store = TaskDetailStore(api, "bbbb2222-0000")
    assert store.pending.value is True

    await store.refresh()
    assert store.task is not None
    assert store.task.status == TaskStatus.FAILED
    assert store.pending.value is False


@pytest.mark.asyncio
async def test_detail_store_notifies_on_status_change(api: FakeTasksApi) -> None:
    store = TaskDetailStore(api, "aaaa1111-0000")
    seen: list[tuple[TaskStatus, TaskStatus | None]] = []
    store.on_status_change(lambda task, previous: seen.append((task.status, previous)))

    await store.refresh()
    await store.refresh()
    assert seen == []

    api.set_status("aaaa1111-0000", TaskStatus.FAILED, error_message="dns failure")
    await store.refresh()
    assert seen == [(TaskStatus.FAILED, TaskStatus.PENDING)]
    assert store.task is not None
    assert store.task.error_message == "dns failure"


@pytest.mark.asyncio
async def test_detail_store_keeps_last_task_on_error(api: FakeTasksApi) -> None:
    store = TaskDetailStore(api, "aaaa1111-0000")
    await store.refresh()

    api.errors.append(RuntimeError("boom"))
    with pytest.raises(RuntimeError):
        await store.refresh()

    assert store.task is not None
    assert isinstance(store.last_error, RuntimeError)
    assert store.pending.value is True
