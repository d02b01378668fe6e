"""
Dev LMS backend.

Scripted in-memory LMS for local development, demos and tests.

Key behaviors:
- Accounts, courses and items are registered up front
- Failures can be queued per operation to exercise retry paths
- Sections can be marked unavailable to exercise partial collection
- Every call is recorded in `calls` and passed to `on_call`
"""

from __future__ import annotations

import asyncio
import secrets
from collections import defaultdict, deque
from collections.abc import Callable, Iterable
from datetime import UTC, datetime, timedelta
from typing import Literal

from inhash.domain.cancellation import CancellationToken
from inhash.domain.entities import Course, LmsSessionToken, ScheduleItem, ScheduleType
from inhash.ports.errors import (
    BackendError,
    InvalidCredentialsError,
    SectionUnavailableError,
)

Operation = Literal["authenticate", "list_courses", "list_items"]


class DevLmsBackend:
    def __init__(self, *, latency: float = 0.0) -> None:
        self._latency = latency
        self._accounts: dict[str, str] = {}
        self._courses: list[Course] = []
        self._items: dict[tuple[str, ScheduleType], list[ScheduleItem]] = defaultdict(list)
        self._unavailable: set[tuple[str, ScheduleType]] = set()
        self._failures: dict[str, deque[BackendError]] = defaultdict(deque)
        self._tokens: set[str] = set()
        self.calls: list[str] = []
        self.on_call: Callable[[str], None] | None = None

    # --- Setup ---

    def add_account(self, student_id: str, password: str) -> None:
        self._accounts[student_id] = password

    def add_course(self, course_id: str, name: str, items: Iterable[ScheduleItem] = ()) -> Course:
        course = Course(id=course_id, name=name)
        self._courses.append(course)
        for item in items:
            self._items[(course_id, item.type)].append(item)
        return course

    def fail_next(self, operation: Operation, *errors: BackendError) -> None:
        """Queue errors raised by the next calls of `operation`, one per call."""
        self._failures[operation].extend(errors)

    def mark_unavailable(self, course_id: str, kind: ScheduleType) -> None:
        self._unavailable.add((course_id, kind))

    def revoke_tokens(self) -> None:
        self._tokens.clear()

    @classmethod
    def with_sample_data(
        cls, now: datetime | None = None, *, latency: float = 0.0
    ) -> DevLmsBackend:
        """Backend preloaded with a demo account (12345678 / password) and three courses."""
        now = now or datetime.now(UTC)
        backend = cls(latency=latency)
        backend.add_account("12345678", "password")

        oop = "객체지향프로그래밍"
        bio = "생명과학"
        net = "컴퓨터네트워크"
        backend.add_course(
            "OOP101",
            oop,
            [
                _item(ScheduleType.ASSIGNMENT, oop, "1주차 실습과제", now + timedelta(hours=10)),
                _item(ScheduleType.ASSIGNMENT, oop, "2주차 실습과제", now + timedelta(days=3)),
            ],
        )
        backend.add_course(
            "BIO110",
            bio,
            [_item(ScheduleType.LECTURE, bio, "1주차 1교시 동영상", now + timedelta(days=1))],
        )
        backend.add_course(
            "NET301",
            net,
            [_item(ScheduleType.LECTURE, net, "Chap1-1 동영상", now + timedelta(days=4))],
        )
        return backend

    # --- LmsBackendPort ---

    async def authenticate(self, student_id: str, password: str) -> LmsSessionToken:
        await self._enter("authenticate")
        if self._accounts.get(student_id) != password:
            raise InvalidCredentialsError("LMS login rejected")
        value = secrets.token_urlsafe(16)
        self._tokens.add(value)
        return LmsSessionToken(value=value, student_id=student_id)

    async def list_courses(
        self, token: LmsSessionToken, cancel: CancellationToken | None = None
    ) -> list[Course]:
        await self._enter("list_courses")
        self._check_token(token)
        return list(self._courses)

    async def list_items(
        self,
        token: LmsSessionToken,
        course: Course,
        kind: ScheduleType,
        cancel: CancellationToken | None = None,
    ) -> list[ScheduleItem]:
        await self._enter("list_items")
        self._check_token(token)
        if (course.id, kind) in self._unavailable:
            raise SectionUnavailableError(f"{kind.value}s of {course.id} are not available")
        return list(self._items[(course.id, kind)])

    # --- Helpers ---

    async def _enter(self, operation: Operation) -> None:
        self.calls.append(operation)
        if self.on_call is not None:
            self.on_call(operation)
        await asyncio.sleep(self._latency)
        queue = self._failures[operation]
        if queue:
            raise queue.popleft()

    def _check_token(self, token: LmsSessionToken) -> None:
        if token.value not in self._tokens:
            raise InvalidCredentialsError("LMS session expired")


def _item(kind: ScheduleType, course: str, title: str, due: datetime) -> ScheduleItem:
    return ScheduleItem(type=kind, course=course, title=title, due=due)
