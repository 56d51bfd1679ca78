# tests/conftest.py

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from types import SimpleNamespace

import pytest

from pagemail_client.core.state import AppState
from pagemail_client.polling.visibility import ManualVisibility
from pagemail_client.tasks.task_models import TaskStatus
from pagemail_client.tasks.task_watch import WatchSession

from .fakes import FakeClock, FakeTasksApi, InlineRunner, make_task


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with WatchSession and the CLI helpers.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment.
    """
    return SimpleNamespace(
        app_name="pagemail-test",
        data_dir=tmp_path / "data",
        api_base_url="http://pagemail.test/api",
        api_token="test-token",
        http_timeout_seconds=5.0,
        page_size=20,
        poll_interval_seconds=10.0,
        poll_pending_interval_seconds=5.0,
        poll_immediate=True,
        detail_interval_seconds=10.0,
        detail_pending_interval_seconds=2.0,
        console_enabled=False,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def visibility() -> ManualVisibility:
    return ManualVisibility()


@pytest.fixture()
def api() -> FakeTasksApi:
    return FakeTasksApi(
        [
            make_task("aaaa1111-0000", TaskStatus.PENDING),
            make_task("bbbb2222-0000", TaskStatus.FAILED, error_message="navigation timeout"),
        ]
    )


@pytest.fixture()
def state(
        settings: SimpleNamespace,
        clock: FakeClock,
        visibility: ManualVisibility,
        api: FakeTasksApi,
) -> Iterator[AppState]:
    """
    AppState wired with deterministic fakes and an opened session.

    Timers never fire on their own (FakeClock); commands only see the immediate
    refreshes they trigger.
    """
    session = WatchSession(api, settings, visibility=visibility, clock=clock)
    runner = InlineRunner()
    app_state = AppState(settings=settings, api=api, session=session, visibility=visibility)
    app_state.runner = runner  # type: ignore[assignment]

    runner.run_sync(session.open)
    yield app_state

    runner.run(session.aclose())
    runner.close()
