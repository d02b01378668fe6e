from collections.abc import Sequence
from datetime import datetime
from typing import Protocol

from inhash.domain.entities import LinkState, ScheduleItem


class LinkStateStorePort(Protocol):
    """Durable storage for the linkage flag, surviving process restarts."""

    def load(self) -> LinkState | None:
        """Return the last saved state, or None if nothing was saved."""
        ...

    def save(self, state: LinkState) -> None:
        """Persist the linkage part of the state."""
        ...


class ScheduleStorePort(Protocol):
    """Hands collected items to the presentation layer."""

    def replace_items(self, items: Sequence[ScheduleItem]) -> None: ...

    def list_items(self) -> list[ScheduleItem]: ...

    def clear(self) -> None: ...


class TimePort(Protocol):
    """Port for time operations - enables deterministic testing."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...
