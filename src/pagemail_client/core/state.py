# src/pagemail_client/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..polling.visibility import ManualVisibility

if TYPE_CHECKING:
    from ..connectors.watch_runner import WatchBackgroundRunner
    from ..tasks.task_api import TasksClient
    from ..tasks.task_watch import WatchSession


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules.
    settings: Any

    api: TasksClient
    session: WatchSession
    visibility: ManualVisibility = field(default_factory=ManualVisibility)

    # Set once the background loop is up; console commands go through it.
    runner: WatchBackgroundRunner | None = None
