"""
HTTP API tests: auth, background linking, cancellation and schedule access.
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient

from inhash.adapters.dev_auth import DevAuthBackend
from inhash.adapters.dev_lms import DevLmsBackend
from inhash.adapters.http import HttpLmsBackend
from inhash.api.deps import get_context
from inhash.api.main import app
from inhash.context import AppContext
from inhash.rules.models import Rules


def _serve(ctx: AppContext) -> Iterator[TestClient]:
    app.dependency_overrides[get_context] = lambda: ctx
    try:
        with TestClient(app) as client:
            yield client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def client(test_ctx: AppContext) -> Iterator[TestClient]:
    yield from _serve(test_ctx)


@pytest.fixture
def slow_client(fast_rules: Rules, auth_backend: DevAuthBackend) -> Iterator[TestClient]:
    ctx = AppContext.create(
        fast_rules,
        auth_backend=auth_backend,
        lms_backend=DevLmsBackend.with_sample_data(latency=0.2),
    )
    yield from _serve(ctx)


def _login(client: TestClient) -> dict[str, Any]:
    response = client.post(
        "/api/auth/login", json={"email": "student@inha.edu", "password": "pw123456"}
    )
    assert response.status_code == 200
    return response.json()


def _wait_for_phase(client: TestClient, phase: str, timeout: float = 5.0) -> dict[str, Any]:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        state = client.get("/api/state").json()
        if state["phase"] == phase:
            return state
        time.sleep(0.01)
    raise AssertionError(f"phase {phase} not reached, last state: {state}")


class TestAuthRoutes:
    def test_health(self, client: TestClient) -> None:
        assert client.get("/health").json()["status"] == "ok"

    def test_initial_state(self, client: TestClient) -> None:
        state = client.get("/api/state").json()

        assert state["phase"] == "unauthenticated"
        assert state["route"] == "auth"
        assert state["session"]["is_authenticated"] is False

    def test_login(self, client: TestClient) -> None:
        state = _login(client)

        assert state["phase"] == "unlinked"
        assert state["route"] == "link"
        assert state["session"]["user_id"] == "user-1"

    def test_login_invalid_credentials(self, client: TestClient) -> None:
        response = client.post(
            "/api/auth/login", json={"email": "student@inha.edu", "password": "nope"}
        )

        assert response.status_code == 401
        assert response.json()["detail"]["kind"] == "invalid_credentials"

    def test_login_validation_errors(self, client: TestClient) -> None:
        response = client.post("/api/auth/login", json={"email": "bad", "password": ""})

        assert response.status_code == 422
        codes = [e["code"] for e in response.json()["detail"]]
        assert codes == ["INVALID_EMAIL", "EMPTY_PASSWORD"]

    def test_signup_duplicate(self, client: TestClient) -> None:
        response = client.post(
            "/api/auth/signup", json={"email": "student@inha.edu", "password": "pw123456"}
        )

        assert response.status_code == 409
        assert response.json()["detail"]["kind"] == "duplicate_account"

    def test_logout(self, client: TestClient) -> None:
        _login(client)

        state = client.post("/api/auth/logout").json()

        assert state["phase"] == "unauthenticated"


class TestLinkRoutes:
    def test_link_requires_login(self, client: TestClient) -> None:
        response = client.post("/api/link", json={"student_id": "12345678", "password": "pw"})

        assert response.status_code == 401
        assert response.json()["detail"]["kind"] == "not_authenticated"

    def test_link_validation_errors(self, client: TestClient) -> None:
        _login(client)

        response = client.post("/api/link", json={"student_id": "abc", "password": "pw"})

        assert response.status_code == 422
        assert response.json()["detail"][0]["field"] == "student_id"

    def test_link_runs_in_background(self, client: TestClient) -> None:
        _login(client)

        response = client.post(
            "/api/link", json={"student_id": "12345678", "password": "password"}
        )

        assert response.status_code == 202
        assert response.json()["phase"] == "linking"
        state = _wait_for_phase(client, "linked")
        assert state["route"] == "main"
        assert state["link"]["collection_progress"] == 100
        assert state["schedule_items"] == 4

    def test_failed_link_reports_error(self, client: TestClient) -> None:
        _login(client)

        client.post("/api/link", json={"student_id": "12345678", "password": "wrong"})
        state = _wait_for_phase(client, "unlinked")

        assert state["link"]["error_message"] == "The LMS rejected this student ID or password."

    def test_busy_then_cancel(self, slow_client: TestClient) -> None:
        _login(slow_client)
        body = {"student_id": "12345678", "password": "password"}
        assert slow_client.post("/api/link", json=body).status_code == 202

        busy = slow_client.post("/api/link", json=body)
        cancel = slow_client.post("/api/link/cancel").json()

        assert busy.status_code == 409
        assert busy.json()["detail"]["kind"] == "busy"
        assert cancel["cancelled"] is True
        state = _wait_for_phase(slow_client, "unlinked")
        assert state["link"]["error_message"] is None
        assert state["link"]["collection_progress"] == 0

    def test_unlink(self, client: TestClient) -> None:
        _login(client)
        client.post("/api/link", json={"student_id": "12345678", "password": "password"})
        _wait_for_phase(client, "linked")

        state = client.delete("/api/link").json()

        assert state["phase"] == "unlinked"
        assert state["schedule_items"] == 0

    def test_unlink_requires_login(self, client: TestClient) -> None:
        assert client.delete("/api/link").status_code == 401


class TestScheduleRoute:
    def test_schedule_requires_linkage(self, client: TestClient) -> None:
        _login(client)

        assert client.get("/api/schedule").status_code == 403

    def test_schedule_filters_by_type(self, client: TestClient) -> None:
        _login(client)
        client.post("/api/link", json={"student_id": "12345678", "password": "password"})
        _wait_for_phase(client, "linked")

        everything = client.get("/api/schedule").json()
        lectures = client.get("/api/schedule", params={"type": "lecture"}).json()

        assert len(everything) == 4
        assert [item["course"] for item in lectures] == ["생명과학", "컴퓨터네트워크"]
        assert all(item["type"] == "lecture" for item in lectures)


class TestLifespan:
    def test_shutdown_closes_backend_clients(
        self, fast_rules: Rules, auth_backend: DevAuthBackend
    ) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(503))
        lms_client = httpx.AsyncClient(transport=transport, base_url="https://lms.test")
        ctx = AppContext.create(
            fast_rules,
            auth_backend=auth_backend,
            lms_backend=HttpLmsBackend("https://lms.test", client=lms_client),
        )

        for client in _serve(ctx):
            assert client.get("/health").status_code == 200
            assert not lms_client.is_closed

        assert lms_client.is_closed
