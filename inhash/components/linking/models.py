from __future__ import annotations

from dataclasses import dataclass, field

from inhash.domain.entities import CollectionSummary, LinkState
from inhash.domain.errors import (
    CollectionError,
    LinkError,
    LmsAuthError,
    ValidationError,
)


@dataclass(frozen=True)
class LinkOutput:
    """
    Outcome of a link command.

    For start_lms_link, `accepted` tells whether an attempt was started; the
    attempt's own outcome comes from submit_lms_link / wait_for_link.
    """

    state: LinkState
    accepted: bool = False
    success: bool = False
    error: LmsAuthError | CollectionError | LinkError | None = None
    warning: CollectionError | None = None
    summary: CollectionSummary | None = None
    validation_errors: list[ValidationError] = field(default_factory=list)

    @property
    def cancelled(self) -> bool:
        return self.error is not None and self.error.kind.value == "cancelled"
