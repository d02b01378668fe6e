"""
LmsLinkClient - LMS authentication handshake and data collection.

Key behaviors:
- authenticate verifies credentials only, no data is fetched
- collect fetches the course list, then assignments and lectures per course
- Progress is monotonically non-decreasing within [0, 100], ending at 100
- Cancellation is all-or-nothing: partial results are discarded
- A section the LMS cannot serve is skipped and reported as PARTIAL_DATA
- At most one collect runs at a time
"""

from __future__ import annotations

import logging

from inhash.domain.cancellation import CancellationToken
from inhash.domain.entities import (
    CollectionSummary,
    LmsSessionToken,
    ScheduleItem,
    ScheduleType,
    SkippedSection,
    mask_student_id,
)
from inhash.domain.errors import (
    CollectionError,
    CollectionErrorKind,
    LmsAuthError,
    LmsAuthErrorKind,
)
from inhash.ports.errors import SectionUnavailableError
from inhash.rules.models import Rules

from ._impl import ProgressTracker, RetryingCaller, StepCancelled, StepFailed
from .models import CollectionOutput, LmsAuthOutput, ProgressCallback
from .ports import LmsBackendPort

logger = logging.getLogger(__name__)


class LmsLinkClient:
    def __init__(self, backend: LmsBackendPort, *, rules: Rules | None = None) -> None:
        self._backend = backend
        self._rules = rules or Rules()
        self._collecting = False

    @property
    def collecting(self) -> bool:
        return self._collecting

    async def authenticate(
        self,
        student_id: str,
        password: str,
        cancel: CancellationToken | None = None,
    ) -> LmsAuthOutput:
        cancel = cancel or CancellationToken()
        caller = RetryingCaller(self._rules.retry, self._rules.timeouts.lms_authenticate_seconds)
        masked = mask_student_id(student_id)

        try:
            token = await caller.call(
                f"LMS authenticate {masked}",
                lambda: self._backend.authenticate(student_id, password),
                cancel,
            )
        except StepCancelled:
            logger.info("LMS authenticate cancelled for %s", masked)
            return LmsAuthOutput(error=LmsAuthError.of(LmsAuthErrorKind.CANCELLED))
        except StepFailed as e:
            logger.info("LMS authenticate failed for %s: %s", masked, e.reason)
            return LmsAuthOutput(error=LmsAuthError.of(LmsAuthErrorKind(e.reason), e.attempts))

        logger.info("LMS authenticate succeeded for %s", masked)
        return LmsAuthOutput(token=token)

    async def collect(
        self,
        token: LmsSessionToken,
        on_progress: ProgressCallback | None = None,
        cancel: CancellationToken | None = None,
    ) -> CollectionOutput:
        if self._collecting:
            logger.warning("Rejected collect: a collection is already running")
            return CollectionOutput(error=CollectionError.of(CollectionErrorKind.BUSY))

        cancel = cancel or CancellationToken()
        tracker = ProgressTracker(on_progress)
        self._collecting = True
        try:
            tracker.report(0)
            summary = await self._collect(token, tracker, cancel)
        except StepCancelled:
            logger.info("Collection cancelled at %d%%, partial results discarded", tracker.last)
            return CollectionOutput(error=CollectionError.of(CollectionErrorKind.CANCELLED))
        except StepFailed as e:
            logger.info("Collection failed at %d%%: %s", tracker.last, e.reason)
            return CollectionOutput(
                error=CollectionError.of(CollectionErrorKind(e.reason), attempts=e.attempts)
            )
        finally:
            self._collecting = False

        tracker.report(100)
        logger.info(
            "Collection finished: %d courses, %d items, %d skipped sections, %d retries",
            len(summary.courses),
            len(summary.items),
            len(summary.skipped_sections),
            summary.retries,
        )

        warning = None
        if summary.is_partial:
            warning = CollectionError.of(
                CollectionErrorKind.PARTIAL_DATA,
                details=tuple(s.describe() for s in summary.skipped_sections),
            )
        return CollectionOutput(summary=summary, warning=warning)

    async def _collect(
        self,
        token: LmsSessionToken,
        tracker: ProgressTracker,
        cancel: CancellationToken,
    ) -> CollectionSummary:
        caller = RetryingCaller(self._rules.retry, self._rules.timeouts.lms_fetch_seconds)
        course_weight = self._rules.collection.course_list_weight

        courses = await caller.call(
            "Fetch course list", lambda: self._backend.list_courses(token, cancel), cancel
        )
        self._checkpoint(cancel)
        tracker.report(course_weight)

        sections = [(course, kind) for course in courses for kind in ScheduleType]
        items: list[ScheduleItem] = []
        skipped: list[SkippedSection] = []

        for index, (course, kind) in enumerate(sections, start=1):
            try:
                fetched = await caller.call(
                    f"Fetch {kind.value}s for {course.id}",
                    lambda: self._backend.list_items(token, course, kind, cancel),
                    cancel,
                )
            except SectionUnavailableError as e:
                logger.warning("Skipping %s %ss: %s", course.name, kind.value, e)
                skipped.append(
                    SkippedSection(
                        course_id=course.id,
                        course_name=course.name,
                        kind=kind,
                        reason=str(e) or "unavailable",
                    )
                )
            else:
                items.extend(fetched)

            self._checkpoint(cancel)
            tracker.report(course_weight + (100 - course_weight) * index // len(sections))

        return CollectionSummary(
            courses=tuple(courses),
            items=tuple(sorted(items, key=lambda item: item.due)),
            skipped_sections=tuple(skipped),
            retries=caller.retries,
        )

    @staticmethod
    def _checkpoint(cancel: CancellationToken) -> None:
        if cancel.cancelled:
            raise StepCancelled("checkpoint")
