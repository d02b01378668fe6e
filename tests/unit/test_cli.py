import argparse
from unittest.mock import AsyncMock

import pytest

from inhash.app_shell.cli import link_and_close, run_link
from inhash.context import AppContext
from inhash.domain.state import AppPhase


def _args(**overrides: object) -> argparse.Namespace:
    values: dict[str, object] = {
        "email": "student@inha.edu",
        "student_id": "12345678",
        "signup": False,
        "relink": False,
    }
    values.update(overrides)
    return argparse.Namespace(**values)


@pytest.fixture
def lms_password(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    answers = ["password"]
    monkeypatch.setattr("getpass.getpass", lambda prompt="": answers[0])
    return answers


@pytest.mark.asyncio
async def test_link_prints_summary(
    test_ctx: AppContext, lms_password: list[str], capsys: pytest.CaptureFixture[str]
) -> None:
    code = await run_link(test_ctx, _args(), "pw123456")

    out = capsys.readouterr().out
    assert code == 0
    assert "100%" in out
    assert "Linked: 4 items from 3 courses." in out
    assert "[lecture] 생명과학" in out
    assert test_ctx.orchestrator.phase is AppPhase.LINKED


@pytest.mark.asyncio
async def test_bad_app_password(
    test_ctx: AppContext, lms_password: list[str], capsys: pytest.CaptureFixture[str]
) -> None:
    code = await run_link(test_ctx, _args(), "wrong-password")

    assert code == 1
    assert "Incorrect email or password." in capsys.readouterr().out


@pytest.mark.asyncio
async def test_bad_lms_password(
    test_ctx: AppContext, lms_password: list[str], capsys: pytest.CaptureFixture[str]
) -> None:
    lms_password[0] = "wrong"

    code = await run_link(test_ctx, _args(), "pw123456")

    assert code == 1
    assert "The LMS rejected this student ID or password." in capsys.readouterr().out
    assert test_ctx.orchestrator.phase is AppPhase.UNLINKED


@pytest.mark.asyncio
async def test_signup_flag(
    test_ctx: AppContext, lms_password: list[str], capsys: pytest.CaptureFixture[str]
) -> None:
    code = await run_link(test_ctx, _args(email="new@inha.edu", signup=True), "secret1")

    assert code == 0
    assert test_ctx.orchestrator.session.is_authenticated


@pytest.mark.asyncio
async def test_validation_errors_printed(
    test_ctx: AppContext, lms_password: list[str], capsys: pytest.CaptureFixture[str]
) -> None:
    code = await run_link(test_ctx, _args(student_id="12-34"), "pw123456")

    assert code == 1
    assert "student_id: Student ID must contain digits only" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_context_closed_after_failed_sign_in(
    test_ctx: AppContext, lms_password: list[str], monkeypatch: pytest.MonkeyPatch
) -> None:
    aclose = AsyncMock()
    monkeypatch.setattr(test_ctx, "aclose", aclose)

    code = await link_and_close(test_ctx, _args(), "wrong-password")

    assert code == 1
    aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_context_closed_after_link(
    test_ctx: AppContext, lms_password: list[str], monkeypatch: pytest.MonkeyPatch
) -> None:
    aclose = AsyncMock()
    monkeypatch.setattr(test_ctx, "aclose", aclose)

    code = await link_and_close(test_ctx, _args(), "pw123456")

    assert code == 0
    aclose.assert_awaited_once()
