"""Session endpoints for the TopBreja API."""

from fastapi import APIRouter, Response, status

from topbreja.api.v1.dependencies import AuthStateDep, ResolverDep, SessionDep, TokenDep
from topbreja.schemas.user import AuthState

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/me", response_model=AuthState)
async def read_session(auth: AuthStateDep) -> AuthState:
    """Return the current user and admin flag; anonymous requests get nulls."""
    return auth


@router.post("/refresh", response_model=AuthState)
async def refresh_session(token: TokenDep, db: SessionDep, resolver: ResolverDep) -> AuthState:
    """Drop the cached session state and resolve it again."""
    return resolver.refresh_auth(db, token)


@router.post("/sign-out", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(token: TokenDep, resolver: ResolverDep) -> Response:
    """Forget the cached session state for this token."""
    resolver.sign_out(token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
