# src/pagemail_client/polling/reactive.py

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Generic, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Ref(Generic[T]):
    """
    Observable value cell.

    Listeners are called synchronously with the new value, and only when the
    value actually changes. A failing listener is logged and does not block the others.
    """

    __slots__ = ("_value", "_listeners")

    def __init__(self, value: T) -> None:
        self._value = value
        self._listeners: list[Callable[[T], None]] = []

    @property
    def value(self) -> T:
        return self._value

    @value.setter
    def value(self, new_value: T) -> None:
        if new_value == self._value:
            return
        self._value = new_value
        for listener in list(self._listeners):
            try:
                listener(new_value)
            except Exception:
                logger.exception("Ref listener failed")

    def subscribe(self, listener: Callable[[T], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def __repr__(self) -> str:
        return f"Ref({self._value!r})"


MaybeRef = Union[T, Ref[T]]


def unref(source: MaybeRef[T]) -> T:
    """Plain value of a Ref, or the value itself."""
    if isinstance(source, Ref):
        return source.value
    return source
