# tests/test_bootstrap.py

from __future__ import annotations

import logging
from types import SimpleNamespace

import pytest

from pagemail_client.cli.bootstrap import create_initial_state
from pagemail_client.tasks.task_api import TasksClient


@pytest.mark.asyncio
async def test_create_initial_state_wires_session(settings: SimpleNamespace) -> None:
    notes: list[str] = []
    state = create_initial_state(settings=settings, notify=notes.append)
    try:
        assert settings.data_dir.is_dir()
        assert isinstance(state.api, TasksClient)
        assert state.session.api is state.api
        assert state.session.visibility is state.visibility
        assert state.session.list_poller.name == "task-list"
        # Built, not started: the watch loop opens the session.
        assert state.session.list_poller.is_active.value is False
        assert state.runner is None
    finally:
        await state.api.aclose()


@pytest.mark.asyncio
async def test_missing_token_is_a_warning_not_an_error(
        settings: SimpleNamespace,
        caplog: pytest.LogCaptureFixture,
) -> None:
    settings.api_token = None
    caplog.set_level(logging.WARNING, logger="pagemail_client")

    state = create_initial_state(settings=settings)
    await state.api.aclose()

    assert any("PAGEMAIL_API_TOKEN is not set" in r.getMessage() for r in caplog.records)
