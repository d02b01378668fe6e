from typing import Protocol

from inhash.domain.cancellation import CancellationToken
from inhash.domain.entities import Course, LmsSessionToken, ScheduleItem, ScheduleType


class LmsBackendPort(Protocol):
    """
    External LMS.

    Calls raise InvalidCredentialsError, RateLimitedError or
    BackendUnavailableError from inhash.ports.errors. list_items may also raise
    SectionUnavailableError when one course section cannot be served.

    Paginated calls check `cancel` before every page request and raise
    FetchCancelledError once it is set.
    """

    async def authenticate(self, student_id: str, password: str) -> LmsSessionToken:
        """Verify credentials without fetching any data."""
        ...

    async def list_courses(
        self, token: LmsSessionToken, cancel: CancellationToken | None = None
    ) -> list[Course]:
        """All courses of the current term (pagination handled by the adapter)."""
        ...

    async def list_items(
        self,
        token: LmsSessionToken,
        course: Course,
        kind: ScheduleType,
        cancel: CancellationToken | None = None,
    ) -> list[ScheduleItem]:
        """Assignments or lectures of one course."""
        ...
