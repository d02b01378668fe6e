from fastapi import APIRouter, Depends, HTTPException, status

from inhash.api.deps import get_context
from inhash.api.schemas import (
    CancelResponse,
    LmsLinkRequest,
    StateView,
    field_errors,
    state_view,
)
from inhash.context import AppContext
from inhash.domain.errors import LinkErrorKind

router = APIRouter()


@router.post("", response_model=StateView, status_code=status.HTTP_202_ACCEPTED)
async def start_link(body: LmsLinkRequest, ctx: AppContext = Depends(get_context)) -> StateView:
    """
    Start linking the LMS account.

    Returns as soon as the attempt is running; poll GET /api/state for
    progress and the outcome.
    """
    result = ctx.orchestrator.start_lms_link(body.student_id, body.password)
    if result.validation_errors:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=field_errors(result.validation_errors),
        )
    if result.error is not None:
        code = (
            status.HTTP_401_UNAUTHORIZED
            if result.error.kind is LinkErrorKind.NOT_AUTHENTICATED
            else status.HTTP_409_CONFLICT
        )
        raise HTTPException(
            status_code=code,
            detail={"kind": result.error.kind.value, "message": result.error.message},
        )
    return state_view(ctx)


@router.post("/cancel", response_model=CancelResponse)
def cancel_link(ctx: AppContext = Depends(get_context)) -> CancelResponse:
    """Request cancellation of the running link attempt."""
    cancelled = ctx.orchestrator.cancel_link()
    return CancelResponse(cancelled=cancelled, state=state_view(ctx))


@router.delete("", response_model=StateView)
def unlink(ctx: AppContext = Depends(get_context)) -> StateView:
    """Forget the LMS linkage and the collected schedule."""
    if not ctx.orchestrator.session.is_authenticated:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not signed in")
    ctx.orchestrator.unlink()
    return state_view(ctx)
