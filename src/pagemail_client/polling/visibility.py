# src/pagemail_client/polling/visibility.py

from __future__ import annotations

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class ManualVisibility:
    """
    VisibilitySource driven explicitly by the host.

    The console host flips it with /away and /back; tests flip it directly.
    Listeners only hear the hidden -> visible transition.
    Not thread-safe: call hide()/show() from the event loop thread.
    """

    def __init__(self, *, hidden: bool = False) -> None:
        self._hidden = hidden
        self._listeners: list[Callable[[], None]] = []

    def is_hidden(self) -> bool:
        return self._hidden

    def hide(self) -> None:
        self._hidden = True

    def show(self) -> None:
        if not self._hidden:
            return
        self._hidden = False
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("Visibility listener failed")

    def set_hidden(self, hidden: bool) -> None:
        if hidden:
            self.hide()
        else:
            self.show()

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)
