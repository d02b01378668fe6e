from datetime import datetime

from pydantic import BaseModel, ConfigDict

from inhash.context import AppContext
from inhash.domain.entities import ScheduleType
from inhash.domain.errors import AuthErrorKind, ValidationError


class CredentialsRequest(BaseModel):
    email: str
    password: str


class LmsLinkRequest(BaseModel):
    student_id: str
    password: str


class FieldError(BaseModel):
    code: str
    message: str
    field: str


class SessionView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    is_authenticated: bool
    user_id: str | None = None
    error_message: str | None = None
    error_kind: AuthErrorKind | None = None


class LinkView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    is_lms_linked: bool
    is_linking: bool
    collection_progress: int
    error_message: str | None = None
    warnings: list[str] = []
    linked_at: datetime | None = None


class StateView(BaseModel):
    phase: str
    route: str
    session: SessionView
    link: LinkView
    schedule_items: int


class ScheduleItemView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    type: ScheduleType
    course: str
    title: str
    due: datetime


class CancelResponse(BaseModel):
    cancelled: bool
    state: StateView


def state_view(ctx: AppContext) -> StateView:
    orchestrator = ctx.orchestrator
    return StateView(
        phase=orchestrator.phase.value,
        route=orchestrator.route.value,
        session=SessionView.model_validate(orchestrator.session),
        link=LinkView.model_validate(orchestrator.link),
        schedule_items=len(ctx.schedule_store.list_items()),
    )


def field_errors(errors: list[ValidationError]) -> list[dict[str, str]]:
    return [FieldError(code=e.code, message=e.message, field=e.field).model_dump() for e in errors]
