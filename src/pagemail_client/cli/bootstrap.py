# src/pagemail_client/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the REST client, the visibility source and the watch session into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.state import AppState
from ..polling.visibility import ManualVisibility
from ..tasks.task_api import TasksClient
from ..tasks.task_watch import Notifier, WatchSession

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, notify: Notifier | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    The session is only built here; it is opened on the watch loop (see connectors.watch_runner).
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    if not getattr(settings, "api_token", None):
        logger.warning("PAGEMAIL_API_TOKEN is not set; the server will likely answer 401.")

    api = TasksClient.from_settings(settings)
    visibility = ManualVisibility()
    session = WatchSession(api, settings, visibility=visibility, notify=notify)

    return AppState(settings=settings, api=api, session=session, visibility=visibility)
