from fastapi import APIRouter, Depends, HTTPException, status

from inhash.api.deps import get_context
from inhash.api.schemas import CredentialsRequest, StateView, field_errors, state_view
from inhash.components.auth import AuthOutput
from inhash.context import AppContext
from inhash.domain.errors import AuthErrorKind

router = APIRouter()

AUTH_ERROR_STATUS = {
    AuthErrorKind.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    AuthErrorKind.DUPLICATE_ACCOUNT: status.HTTP_409_CONFLICT,
    AuthErrorKind.BUSY: status.HTTP_409_CONFLICT,
    AuthErrorKind.NETWORK_ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _raise_for_auth(result: AuthOutput) -> None:
    if result.validation_errors:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=field_errors(result.validation_errors),
        )
    if result.error is not None:
        raise HTTPException(
            status_code=AUTH_ERROR_STATUS[result.error.kind],
            detail={"kind": result.error.kind.value, "message": result.error.message},
        )


@router.post("/login", response_model=StateView)
async def login(body: CredentialsRequest, ctx: AppContext = Depends(get_context)) -> StateView:
    """Sign in to the app account."""
    result = await ctx.orchestrator.login(body.email, body.password)
    _raise_for_auth(result)
    return state_view(ctx)


@router.post("/signup", response_model=StateView)
async def signup(body: CredentialsRequest, ctx: AppContext = Depends(get_context)) -> StateView:
    """Create an app account and sign in."""
    result = await ctx.orchestrator.signup(body.email, body.password)
    _raise_for_auth(result)
    return state_view(ctx)


@router.post("/logout", response_model=StateView)
def logout(ctx: AppContext = Depends(get_context)) -> StateView:
    """Sign out; resets session, linkage state and the schedule."""
    ctx.orchestrator.logout()
    return state_view(ctx)
