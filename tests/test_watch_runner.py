# tests/test_watch_runner.py

from __future__ import annotations

import time
from collections.abc import Callable
from types import SimpleNamespace

from pagemail_client.connectors.watch_runner import start_watch_in_background
from pagemail_client.core.state import AppState
from pagemail_client.polling.visibility import ManualVisibility
from pagemail_client.tasks.task_watch import WatchSession

from .fakes import FakeTasksApi


def _wait_until(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def test_background_runner_hosts_session_and_shuts_down(settings: SimpleNamespace, api: FakeTasksApi) -> None:
    visibility = ManualVisibility()
    session = WatchSession(api, settings, visibility=visibility)
    state = AppState(settings=settings, api=api, session=session, visibility=visibility)  # type: ignore[arg-type]

    runner = start_watch_in_background(state)
    assert runner is not None
    assert state.runner is runner
    try:
        assert _wait_until(lambda: api.list_calls >= 1)
        assert runner.run_sync(lambda: session.list_store.loaded) is True

        runner.run_sync(session.list_poller.pause)
        assert session.list_poller.is_paused.value is True
    finally:
        runner.stop()
        runner.join(timeout=5.0)

    assert not runner.thread.is_alive()
    assert session.list_poller.is_active.value is False
    assert visibility.listener_count == 0
    assert api.closed is True
