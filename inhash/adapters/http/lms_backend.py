"""
HTTP LMS backend adapter.

Endpoints (all collection endpoints are paginated with ?page=N and return
`next_page: null` on the last page):
- POST /api/login {student_id, password} -> {token}
- GET  /api/courses -> {courses: [{id, name}], next_page}
- GET  /api/courses/{id}/assignments -> {items: [{title, due}], next_page}
- GET  /api/courses/{id}/lectures -> {items: [{title, due}], next_page}
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

import httpx

from inhash.domain.cancellation import CancellationToken
from inhash.domain.entities import Course, LmsSessionToken, ScheduleItem, ScheduleType
from inhash.ports.errors import BackendUnavailableError, FetchCancelledError

from ._status import raise_for_backend_status

logger = logging.getLogger(__name__)

SECTION_PATHS = {
    ScheduleType.ASSIGNMENT: "assignments",
    ScheduleType.LECTURE: "lectures",
}


class HttpLmsBackend:
    def __init__(
        self,
        base_url: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 20.0,
        max_pages: int = 50,
    ) -> None:
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._max_pages = max_pages

    async def authenticate(self, student_id: str, password: str) -> LmsSessionToken:
        response = await self._request(
            "POST", "/api/login", json={"student_id": student_id, "password": password}
        )
        raise_for_backend_status(response)
        data = self._json(response)
        try:
            return LmsSessionToken(value=str(data["token"]), student_id=student_id)
        except KeyError as e:
            raise BackendUnavailableError("Malformed login response") from e

    async def list_courses(
        self, token: LmsSessionToken, cancel: CancellationToken | None = None
    ) -> list[Course]:
        rows = await self._paginate("/api/courses", "courses", token, cancel=cancel)
        try:
            return [Course(id=str(row["id"]), name=str(row["name"])) for row in rows]
        except (KeyError, TypeError) as e:
            raise BackendUnavailableError("Malformed course list") from e

    async def list_items(
        self,
        token: LmsSessionToken,
        course: Course,
        kind: ScheduleType,
        cancel: CancellationToken | None = None,
    ) -> list[ScheduleItem]:
        path = f"/api/courses/{course.id}/{SECTION_PATHS[kind]}"
        rows = await self._paginate(path, "items", token, section=True, cancel=cancel)
        try:
            return [
                ScheduleItem(
                    type=kind,
                    course=course.name,
                    title=str(row["title"]),
                    due=datetime.fromisoformat(str(row["due"])),
                )
                for row in rows
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise BackendUnavailableError(f"Malformed {kind.value} list for {course.id}") from e

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _paginate(
        self,
        path: str,
        key: str,
        token: LmsSessionToken,
        *,
        section: bool = False,
        cancel: CancellationToken | None = None,
    ) -> list[dict[str, Any]]:
        rows: list[dict[str, Any]] = []
        page: int | None = 1
        fetched = 0
        while page is not None:
            if fetched >= self._max_pages:
                logger.warning("Stopped paginating %s after %d pages", path, fetched)
                break
            if cancel is not None and cancel.cancelled:
                raise FetchCancelledError(f"Cancelled after {fetched} page(s) of {path}")
            response = await self._request(
                "GET",
                path,
                params={"page": page},
                headers={"Authorization": f"Bearer {token.value}"},
            )
            raise_for_backend_status(response, section=section)
            data = self._json(response)
            rows.extend(data.get(key) or [])
            page = data.get("next_page")
            fetched += 1
        return rows

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            raise BackendUnavailableError(str(e) or type(e).__name__) from e

    @staticmethod
    def _json(response: httpx.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise BackendUnavailableError("Response is not JSON") from e
        if not isinstance(data, dict):
            raise BackendUnavailableError("Unexpected response shape")
        return data
