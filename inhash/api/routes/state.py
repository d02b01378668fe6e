from fastapi import APIRouter, Depends, HTTPException, Query, status

from inhash.api.deps import get_context
from inhash.api.schemas import ScheduleItemView, StateView, state_view
from inhash.context import AppContext
from inhash.domain.entities import ScheduleType
from inhash.domain.state import Route

router = APIRouter()


@router.get("/state", response_model=StateView)
def read_state(ctx: AppContext = Depends(get_context)) -> StateView:
    """Current phase, navigation route, session and linkage state."""
    return state_view(ctx)


@router.get("/schedule", response_model=list[ScheduleItemView])
def read_schedule(
    kind: ScheduleType | None = Query(default=None, alias="type"),
    ctx: AppContext = Depends(get_context),
) -> list[ScheduleItemView]:
    """Collected schedule items, only available once linked."""
    if ctx.orchestrator.route is not Route.MAIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="LMS account not linked")
    types = {kind} if kind is not None else None
    return [ScheduleItemView.model_validate(item) for item in ctx.schedule_store.list_items(types)]
