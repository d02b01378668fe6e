"""In-memory link-state store adapter.

Implements LinkStateStorePort for tests and single-process dev runs.
For durable storage use SQLiteLinkStateStore.
"""

from inhash.domain.entities import LinkState


class InMemoryLinkStateStore:
    def __init__(self, initial: LinkState | None = None) -> None:
        self._state = initial
        self.saves = 0

    def load(self) -> LinkState | None:
        return self._state

    def save(self, state: LinkState) -> None:
        # Only the linkage survives a restart, never an in-flight attempt
        self._state = state.model_copy(update={"is_linking": False, "error_message": None})
        self.saves += 1

    def clear(self) -> None:
        """Clear stored state - useful for testing."""
        self._state = None
