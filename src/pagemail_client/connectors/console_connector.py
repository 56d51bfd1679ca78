# src/pagemail_client/connectors/console_connector.py

from __future__ import annotations

import logging
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.errors import friendly_api_error_message
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started.")
    app_name = str(getattr(state.settings, "app_name", "pagemail"))
    print_ts(f"[{app_name}] Watching capture tasks. Use /help for commands. Use /exit to quit.\n")

    while True:
        try:
            line = input(">>> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            print_ts("Exiting.")
            break

        if not line:
            continue

        if line.lower() in ("/exit", "/quit", "exit", "quit"):
            print_ts("Bye.")
            break

        if not line.startswith("/"):
            print_ts("Commands start with '/'. Try /help.")
            continue

        try:
            reply = command_registry.handle(state, line, emit=print_ts)
        except Exception as exc:
            logger.exception("Command failed: %s", line)
            reply = f"Command failed: {friendly_api_error_message(exc)}"

        if reply:
            print(reply, flush=True)
