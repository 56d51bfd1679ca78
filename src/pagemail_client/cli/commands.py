# src/pagemail_client/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from pathlib import Path
from typing import cast

from ..core.errors import ApiError, friendly_api_error_message
from ..core.state import AppState
from ..polling.poller import Poller
from ..tasks.task_models import FORMAT_SCREENSHOT, KNOWN_FORMATS, CaptureRequest, Task, TaskOutput, TaskStatus
from ..tasks.task_watch import short_id

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /pause, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except Exception:
            nparams = 3

        try:
            if nparams >= 3:
                h3 = cast(CommandHandler3, handler)
                return h3(state, args, emit)
            h2 = cast(CommandHandler2, handler)
            return h2(state, args)
        except ApiError as exc:
            return friendly_api_error_message(exc)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- Helpers ----


def _runner(state: AppState):
    if state.runner is None:
        raise RuntimeError("Watch loop is not running.")
    return state.runner


def _resolve_task_id(state: AppState, raw: str) -> str:
    """Accept a full id or a unique prefix of a task we have seen."""
    for task_id in state.session.details:
        if task_id.startswith(raw):
            return task_id
    task = state.session.list_store.find(raw)
    if task is not None:
        return task.id
    return raw


def _targets(state: AppState, args: list[str]) -> list[Poller]:
    """No args -> the list poller; 'all' -> every poller; '<id>' -> that detail view."""
    if not args:
        return [state.session.list_poller]
    if args[0].lower() == "all":
        return state.session.all_pollers()
    task_id = _resolve_task_id(state, args[0])
    view = state.session.details.get(task_id)
    return [view.poller] if view is not None else []


def _poller_line(poller: Poller) -> str:
    if not poller.is_active.value:
        mode = "stopped"
    elif poller.is_paused.value:
        mode = "paused"
    else:
        mode = "active"
    running = ", refreshing" if poller.is_running.value else ""
    return f"  {poller.name}: {mode}{running}, next interval {poller.resolve_interval():g}s"


def _task_line(task: Task) -> str:
    line = f"  {short_id(task.id)}  {task.status.value:<10}  {task.url}"
    if task.error_message:
        line += f"  [{task.error_message}]"
    return line


def _task_detail(task: Task) -> str:
    lines = [
        f"Task {task.id}",
        f"  URL: {task.url}",
        f"  Status: {task.status.value}",
        f"  Formats: {', '.join(task.formats) or '-'}",
        f"  Created: {task.created_at}",
        f"  Updated: {task.updated_at}",
    ]
    if task.error_message:
        lines.append(f"  Error: {task.error_message}")
    for out in task.outputs:
        lines.append(f"  Output {out.format}: {out.size} bytes ({out.id})")
    for attempt in task.delivery_history:
        err = f" - {attempt.error}" if attempt.error else ""
        lines.append(f"  Delivery {attempt.channel}: {attempt.status} at {attempt.attempt_time}{err}")
    return "\n".join(lines)


# ---- Commands ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    def snapshot() -> str:
        store = state.session.list_store
        lines = ["Status:"]
        lines.append(f"  Server: {getattr(state.settings, 'api_base_url', '?')}")
        lines.append(f"  Visibility: {'away (refreshes deferred)' if state.visibility.is_hidden() else 'watching'}")
        lines.append(f"  Tasks: {len(store.tasks)} shown of {store.total}")
        if store.last_error is not None:
            lines.append(f"  Last list error: {friendly_api_error_message(store.last_error)}")
        lines.append("Pollers:")
        lines.extend(_poller_line(p) for p in state.session.all_pollers())
        return "\n".join(lines)

    return _runner(state).run_sync(snapshot)


_LIST_USAGE = f"Usage: /list [all | {' | '.join(s.value for s in TaskStatus)}] [page]"


def cmd_list(state: AppState, args: list[str]) -> str:
    """
    /list          -> latest snapshot of the current view
    /list failed   -> only failed tasks, page 1
    /list all 2    -> no filter, page 2
    /list 3        -> page 3 of the current filter
    """
    session = state.session
    store = session.list_store

    if args:
        status_filter = store.status_filter
        page: int | None = None
        status_given = False
        for arg in args:
            value = arg.lower()
            if value.isdigit() and int(value) >= 1:
                page = int(value)
            elif value == "all":
                status_filter, status_given = None, True
            elif value in {s.value for s in TaskStatus}:
                status_filter, status_given = value, True
            else:
                return _LIST_USAGE
        if page is None:
            page = 1 if status_given else store.page

        def apply() -> None:
            session.set_list_view(status_filter=status_filter, page=page)

        _runner(state).run_sync(apply)

    def snapshot() -> str:
        view = f"{store.status_filter or 'all'}, page {store.page}"
        if not store.loaded:
            return f"Task list ({view}) not loaded yet."
        if not store.tasks:
            return f"No capture tasks ({view})."
        lines = [f"Tasks ({view}/{store.total_pages}, {store.total} total):"]
        lines.extend(_task_line(t) for t in store.tasks)
        return "\n".join(lines)

    return _runner(state).run_sync(snapshot)


def cmd_open(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /open <task-id>"
    task_id = _resolve_task_id(state, args[0])
    view = _runner(state).run(state.session.watch(task_id))
    task = view.store.task
    status = f" ({task.status.value})" if task is not None else ""
    return f"Watching task {task_id}{status}."


def cmd_close(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /close <task-id>"
    task_id = _resolve_task_id(state, args[0])
    closed = _runner(state).run(state.session.close_detail(task_id))
    return f"Stopped watching task {task_id}." if closed else f"Task {task_id} is not open."


def cmd_show(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /show <task-id>"
    task_id = _resolve_task_id(state, args[0])
    view = state.session.details.get(task_id)
    if view is not None and view.store.task is not None:
        return _task_detail(view.store.task)
    task = _runner(state).run(state.api.get_task(task_id))
    return _task_detail(task)


def _output_filename(task_id: str, output: TaskOutput) -> str:
    ext = "png" if output.format == FORMAT_SCREENSHOT else output.format
    return f"{short_id(task_id)}-{output.format}.{ext}"


def cmd_download(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /download <id>          -> save every output of the task
    /download <id> <format> -> save only that format
    Files land in <data_dir>/downloads.
    """
    if not args:
        return f"Usage: /download <task-id> [{' | '.join(KNOWN_FORMATS)}]"

    task_id = _resolve_task_id(state, args[0])
    fmt = args[1].lower() if len(args) > 1 else None
    if fmt is not None and fmt not in KNOWN_FORMATS:
        return f"Unknown format: {fmt}. Known: {', '.join(KNOWN_FORMATS)}."

    runner = _runner(state)
    outputs = runner.run(state.api.list_outputs(task_id))
    chosen = [o for o in outputs if fmt is None or o.format == fmt]
    if not chosen:
        what = f"{fmt} output" if fmt else "outputs"
        return f"Task {task_id} has no {what} yet."

    target_dir = Path(state.settings.data_dir) / "downloads"
    target_dir.mkdir(parents=True, exist_ok=True)

    saved: list[Path] = []
    for output in chosen:
        if emit:
            emit(f"Downloading {output.format} ({output.size} bytes)...")
        data = runner.run(state.api.download_output(task_id, output.id))
        path = target_dir / _output_filename(task_id, output)
        path.write_bytes(data)
        logger.info("Saved output %s of task %s to %s", output.id, task_id, path)
        saved.append(path)

    return "Saved:\n" + "\n".join(f"  {p}" for p in saved)


def cmd_new(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /new <url>                 -> capture as PDF
    /new <url> html screenshot -> capture in the given formats
    """
    if not args:
        return f"Usage: /new <url> [{' | '.join(KNOWN_FORMATS)} ...]"

    url = args[0]
    formats = [f.lower() for f in args[1:]] or ["pdf"]
    unknown = [f for f in formats if f not in KNOWN_FORMATS]
    if unknown:
        return f"Unknown format(s): {', '.join(unknown)}. Known: {', '.join(KNOWN_FORMATS)}."

    if emit:
        emit(f"Submitting capture of {url}...")
    task = _runner(state).run(state.api.create_task(CaptureRequest(url=url, formats=formats)))
    _runner(state).run_sync(state.session.open_detail, task.id)
    return f"Created task {task.id} ({task.status.value}); watching it."


def cmd_retry(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /retry <task-id>"
    task_id = _resolve_task_id(state, args[0])
    _runner(state).run(state.api.retry_task(task_id))
    _runner(state).run_sync(state.session.open_detail, task_id)
    return f"Retry requested for {task_id}; watching it."


def cmd_delete(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /delete <task-id>"
    task_id = _resolve_task_id(state, args[0])
    _runner(state).run(state.api.delete_task(task_id))
    _runner(state).run(state.session.close_detail(task_id))
    return f"Deleted task {task_id}."


def _control(action: str) -> CommandHandler2:
    def handler(state: AppState, args: list[str]) -> str:
        pollers = _targets(state, args)
        if not pollers:
            return f"Task {args[0]} is not open. Use /open <task-id> first."

        def apply() -> None:
            for poller in pollers:
                getattr(poller, action)()

        _runner(state).run_sync(apply)
        names = ", ".join(p.name for p in pollers)
        return f"{action}: {names}"

    return handler


def cmd_away(state: AppState, args: list[str]) -> str:
    _runner(state).run_sync(state.visibility.hide)
    return "Away: refreshes are deferred until /back."


def cmd_back(state: AppState, args: list[str]) -> str:
    _runner(state).run_sync(state.visibility.show)
    return "Back: catching up now."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show server, visibility and poller state.")
registry.register(
    "list",
    cmd_list,
    help_text="Show the task list: /list [all|pending|processing|completed|failed] [page].",
    aliases=["ls"],
)
registry.register("open", cmd_open, help_text="Watch one task closely: /open <id>.")
registry.register("close", cmd_close, help_text="Stop watching a task: /close <id>.")
registry.register("show", cmd_show, help_text="Show task details: /show <id>.")
registry.register(
    "download",
    cmd_download,
    help_text="Save task outputs to the data dir: /download <id> [pdf|html|screenshot].",
    aliases=["dl"],
)
registry.register("new", cmd_new, help_text="Submit a capture: /new <url> [pdf|html|screenshot ...].")
registry.register("retry", cmd_retry, help_text="Retry a failed task: /retry <id>.")
registry.register("delete", cmd_delete, help_text="Delete a task: /delete <id>.", aliases=["rm"])
for _action in ("start", "stop", "pause", "resume"):
    registry.register(
        _action,
        _control(_action),
        help_text=f"{_action.capitalize()} polling: /{_action} [<id> | all] (default: task list).",
    )
registry.register("away", cmd_away, help_text="Pretend nobody is looking (defer refreshes).")
registry.register("back", cmd_back, help_text="Resume looking (refresh immediately).")
