# src/pagemail_client/logging_setup.py

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

APP_LOGGER = "pagemail_client"

# Per-subsystem console floors. Pollers log every deferred/skipped tick at DEBUG.
_CONSOLE_FLOORS: dict[str, int] = {
    f"{APP_LOGGER}.polling.": logging.INFO,
    f"{APP_LOGGER}.connectors.watch_runner": logging.INFO,
}


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the interactive console readable while the watch loop runs:
    - pagemail_client logs pass, except subsystem floors above
    - httpx request lines, py.warnings and other third-party logs only at ERROR+
    """

    def __init__(self, floors: dict[str, int] | None = None) -> None:
        super().__init__()
        self._floors = dict(_CONSOLE_FLOORS if floors is None else floors)

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if not name.startswith(f"{APP_LOGGER}."):
            return record.levelno >= logging.ERROR

        for prefix, floor in self._floors.items():
            if name.startswith(prefix):
                return record.levelno >= floor
        return True


def setup_logging(
    *,
    log_dir: str | Path = ".local/pagemail",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
) -> Path:
    """
    Configure root logging for the watch client and return the log file path.

    - console (stderr): filtered, so refresh chatter does not interleave with the REPL
    - file (<log_dir>/pagemail.log): everything at file_level, size-rotated because
      a watcher left running logs a line per tick

    Call once, before the watch thread starts.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "pagemail.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s [%(threadName)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    file_handler = RotatingFileHandler(
        str(log_file),
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    logging.captureWarnings(True)

    # One INFO line per request is enough in the file; connection-pool internals are not.
    logging.getLogger("httpx").setLevel(logging.INFO)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return log_file
