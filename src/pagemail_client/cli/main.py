# src/pagemail_client/cli/main.py

"""
CLI entrypoint (`pagemail-watch`).

Initializes logging, builds AppState, then starts:
- the watch loop (pollers + HTTP client) in a background thread,
- the console REPL in the main thread, or a plain wait when the console is disabled.

Shutdown always goes through WatchBackgroundRunner.stop(): pollers are detached,
in-flight refreshes finish, then the HTTP client closes.
"""

from __future__ import annotations

import logging
import signal
import threading

from ..cli.bootstrap import create_initial_state
from ..config import Settings, get_settings
from ..connectors.console_connector import print_ts, run_console_loop
from ..connectors.watch_runner import start_watch_in_background
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)

SHUTDOWN_TIMEOUT_SECONDS = 10.0


def _install_signal_handlers(settings: Settings, stop_main: threading.Event) -> None:
    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()
        if settings.console_enabled:
            # Unblocks input() in the REPL, which treats it like Ctrl+C.
            raise KeyboardInterrupt

    try:
        signal.signal(signal.SIGTERM, _handle_signal)
        if not settings.console_enabled:
            # With the console on, Ctrl+C is handled by the REPL itself.
            signal.signal(signal.SIGINT, _handle_signal)
    except (ValueError, OSError, AttributeError):
        logger.debug("Signal handlers not installed.", exc_info=True)


def main() -> None:
    settings = get_settings()

    console_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    log_file = setup_logging(log_dir=settings.data_dir, console_level=console_level)
    logger.info("Starting %s (log file: %s)", settings.app_name, log_file)

    state = create_initial_state(settings=settings, notify=print_ts)

    runner = start_watch_in_background(state)
    if runner is None:
        logger.error("Could not start the watch loop; exiting.")
        return

    stop_main = threading.Event()
    _install_signal_handlers(settings, stop_main)

    try:
        if settings.console_enabled:
            run_console_loop(state)
        else:
            logger.info("Console disabled. Watching in the background. Press Ctrl+C to stop.")
            stop_main.wait()
    finally:
        runner.stop()
        runner.join(timeout=SHUTDOWN_TIMEOUT_SECONDS)
        if runner.thread.is_alive():
            logger.warning("Watch loop did not stop within %.0fs.", SHUTDOWN_TIMEOUT_SECONDS)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
