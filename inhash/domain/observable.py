"""Observable state containers bound to the view layer."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

Listener = Callable[[T], None]


class StateContainer(Generic[T]):
    """
    Holds one immutable state value and notifies subscribers on change.

    The container is the only owner of its value: components receive the
    container by injection and mutate it through set/update/reset.
    """

    def __init__(self, initial: Callable[[], T]) -> None:
        self._initial = initial
        self._value: T = initial()
        self._listeners: list[Listener[T]] = []

    @property
    def value(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        if value == self._value:
            return
        self._value = value
        self._notify()

    def update(self, **changes: Any) -> T:
        """Replace fields of the value. The result is validated like a fresh model."""
        new_value = type(self._value).model_validate({**self._value.model_dump(), **changes})
        self.set(new_value)
        return self._value

    def reset(self) -> None:
        self.set(self._initial())

    def subscribe(self, listener: Listener[T]) -> Callable[[], None]:
        """Register a listener. Returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._value)
            except Exception:
                logger.exception("State listener %r failed", listener)
