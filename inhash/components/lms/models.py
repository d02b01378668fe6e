from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from inhash.domain.entities import CollectionSummary, LmsSessionToken
from inhash.domain.errors import CollectionError, LmsAuthError

ProgressCallback = Callable[[int], None]


@dataclass(frozen=True)
class LmsAuthOutput:
    token: LmsSessionToken | None = None
    error: LmsAuthError | None = None

    @property
    def success(self) -> bool:
        return self.token is not None and self.error is None


@dataclass(frozen=True)
class CollectionOutput:
    """
    Result of a collection run.

    `summary` is set only on success. `warning` carries a PARTIAL_DATA error
    when some sections were skipped; the run still counts as a success.
    """

    summary: CollectionSummary | None = None
    error: CollectionError | None = None
    warning: CollectionError | None = None

    @property
    def success(self) -> bool:
        return self.summary is not None and self.error is None
