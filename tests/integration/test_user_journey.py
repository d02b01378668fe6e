"""
End-to-end journeys through a fully wired AppContext: dev backends, the
SQLite link store and the in-memory schedule store.
"""

from pathlib import Path

import pytest

from inhash.adapters.dev_auth import DevAuthBackend
from inhash.adapters.dev_lms import DevLmsBackend
from inhash.context import AppContext
from inhash.domain.entities import ScheduleType
from inhash.domain.state import AppPhase, Route
from inhash.ports.errors import BackendUnavailableError
from inhash.rules.models import Rules


@pytest.mark.asyncio
async def test_signup_link_and_browse(test_ctx: AppContext) -> None:
    orchestrator = test_ctx.orchestrator
    progress: list[int] = []
    test_ctx.link_state.subscribe(lambda s: progress.append(s.collection_progress))

    signup = await orchestrator.signup("fresh@inha.edu", "secret1")
    assert signup.success
    assert orchestrator.route is Route.LINK

    result = await orchestrator.submit_lms_link("12345678", "password")

    assert result.success
    assert orchestrator.phase is AppPhase.LINKED
    assert orchestrator.route is Route.MAIN
    assert progress == sorted(progress)
    assert progress[-1] == 100
    lectures = test_ctx.schedule_store.list_items({ScheduleType.LECTURE})
    assert [item.course for item in lectures] == ["생명과학", "컴퓨터네트워크"]


@pytest.mark.asyncio
async def test_linkage_restored_after_relogin(test_ctx: AppContext) -> None:
    orchestrator = test_ctx.orchestrator
    await orchestrator.login("student@inha.edu", "pw123456")
    await orchestrator.submit_lms_link("12345678", "password")
    orchestrator.logout()
    assert orchestrator.phase is AppPhase.UNAUTHENTICATED

    result = await orchestrator.login("student@inha.edu", "pw123456")

    assert result.success
    assert orchestrator.phase is AppPhase.LINKED
    # Items are not persisted; a re-link collects them again
    assert test_ctx.schedule_store.list_items() == []


@pytest.mark.asyncio
async def test_linkage_survives_restart(
    test_data_dir: str,
    fast_rules: Rules,
    test_ctx: AppContext,
    auth_backend: DevAuthBackend,
    lms_backend: DevLmsBackend,
) -> None:
    await test_ctx.orchestrator.login("student@inha.edu", "pw123456")
    await test_ctx.orchestrator.submit_lms_link("12345678", "password")

    restarted = AppContext.create(
        fast_rules,
        db_path=str(Path(test_data_dir) / fast_rules.storage.db_filename),
        auth_backend=auth_backend,
        lms_backend=lms_backend,
    )
    await restarted.orchestrator.login("student@inha.edu", "pw123456")

    assert restarted.orchestrator.phase is AppPhase.LINKED
    assert restarted.orchestrator.link.linked_user_id == "user-1"


@pytest.mark.asyncio
async def test_other_user_starts_unlinked(
    test_ctx: AppContext, auth_backend: DevAuthBackend
) -> None:
    auth_backend.add_account("other@inha.edu", "pw654321", user_id="user-2")
    await test_ctx.orchestrator.login("student@inha.edu", "pw123456")
    await test_ctx.orchestrator.submit_lms_link("12345678", "password")

    await test_ctx.orchestrator.login("other@inha.edu", "pw654321")

    assert test_ctx.orchestrator.session.user_id == "user-2"
    assert test_ctx.orchestrator.phase is AppPhase.UNLINKED


@pytest.mark.asyncio
async def test_flaky_lms_still_links(test_ctx: AppContext, lms_backend: DevLmsBackend) -> None:
    lms_backend.fail_next("list_items", BackendUnavailableError("reset"))
    lms_backend.fail_next("list_courses", BackendUnavailableError("reset"))
    await test_ctx.orchestrator.login("student@inha.edu", "pw123456")

    result = await test_ctx.orchestrator.submit_lms_link("12345678", "password")

    assert result.success
    assert result.summary is not None
    assert result.summary.retries == 2


@pytest.mark.asyncio
async def test_unlink_persists(test_ctx: AppContext) -> None:
    await test_ctx.orchestrator.login("student@inha.edu", "pw123456")
    await test_ctx.orchestrator.submit_lms_link("12345678", "password")

    test_ctx.orchestrator.unlink()
    test_ctx.orchestrator.logout()
    await test_ctx.orchestrator.login("student@inha.edu", "pw123456")

    assert test_ctx.orchestrator.phase is AppPhase.UNLINKED


def test_default_context_uses_dev_backends(rules: Rules) -> None:
    ctx = AppContext.create(rules)

    assert ctx.orchestrator.phase is AppPhase.UNAUTHENTICATED
    assert ctx.link_store.load() is None
