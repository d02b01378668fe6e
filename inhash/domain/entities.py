"""
Core entities shared by the auth, LMS and linking components.

Session and LinkState are immutable snapshots: the state containers swap
whole values, so a subscriber never observes a half-applied update.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from inhash.domain.errors import AuthErrorKind

# --- App account ---


class Session(BaseModel):
    """Authentication state of the app account."""

    model_config = ConfigDict(frozen=True)

    is_authenticated: bool = False
    user_id: str | None = None
    error_message: str | None = None
    error_kind: AuthErrorKind | None = None


# --- LMS linkage ---


class LinkState(BaseModel):
    """
    Linkage state of the user's LMS account.

    Invariants:
    - collection_progress is within [0, 100]
    - is_linking implies not is_lms_linked
    """

    model_config = ConfigDict(frozen=True)

    is_lms_linked: bool = False
    is_linking: bool = False
    collection_progress: int = Field(default=0, ge=0, le=100)
    error_message: str | None = None
    warnings: tuple[str, ...] = ()
    linked_user_id: str | None = None
    linked_at: datetime | None = None

    @model_validator(mode="after")
    def _linking_excludes_linked(self) -> LinkState:
        if self.is_linking and self.is_lms_linked:
            raise ValueError("LinkState cannot be linking and linked at the same time")
        return self


class LmsCredentials(BaseModel):
    """LMS login pair. Held only for the duration of one link attempt."""

    model_config = ConfigDict(frozen=True)

    student_id: str
    password: str = Field(repr=False)


class LmsSessionToken(BaseModel):
    """Opaque LMS session handed from authenticate to collect."""

    model_config = ConfigDict(frozen=True)

    value: str = Field(repr=False)
    student_id: str = ""


# --- Collected data ---


class ScheduleType(Enum):
    ASSIGNMENT = "assignment"
    LECTURE = "lecture"


class Course(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str


class ScheduleItem(BaseModel):
    """An assignment deadline or a lecture to watch, as shown in the schedule."""

    model_config = ConfigDict(frozen=True)

    type: ScheduleType
    course: str
    title: str
    due: datetime


class SkippedSection(BaseModel):
    """A course section the LMS could not serve during collection."""

    model_config = ConfigDict(frozen=True)

    course_id: str
    course_name: str
    kind: ScheduleType
    reason: str

    def describe(self) -> str:
        return f"{self.course_name} ({self.kind.value})"


class CollectionSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    courses: tuple[Course, ...]
    items: tuple[ScheduleItem, ...]
    skipped_sections: tuple[SkippedSection, ...] = ()
    retries: int = 0

    @property
    def is_partial(self) -> bool:
        return bool(self.skipped_sections)


def mask_student_id(student_id: str) -> str:
    """Mask the middle of a student ID for log output."""
    if len(student_id) <= 4:
        return "*" * len(student_id)
    return f"{student_id[:2]}{'*' * (len(student_id) - 4)}{student_id[-2:]}"
