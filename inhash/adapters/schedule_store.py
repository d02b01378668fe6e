"""In-memory schedule store.

Receives the items of the last successful collection for the presentation
layer (home list, calendar). Cleared on logout and unlink.
"""

from __future__ import annotations

from collections.abc import Sequence

from inhash.domain.entities import ScheduleItem, ScheduleType


class InMemoryScheduleStore:
    def __init__(self) -> None:
        self._items: list[ScheduleItem] = []

    def replace_items(self, items: Sequence[ScheduleItem]) -> None:
        self._items = sorted(items, key=lambda item: item.due)

    def list_items(self, types: set[ScheduleType] | None = None) -> list[ScheduleItem]:
        if types is None:
            return list(self._items)
        return [item for item in self._items if item.type in types]

    def clear(self) -> None:
        self._items = []
