"""Shared API dependencies for authentication and common functionality."""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from topbreja.core.errors import NotAuthenticated, NotAuthorized
from topbreja.db.session import get_db
from topbreja.schemas.user import AuthState, UserOut
from topbreja.services.session_resolver import SessionRoleResolver, get_session_resolver

# Anonymous visitors may browse, so a missing header is not an error here.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]
ResolverDep = Annotated[SessionRoleResolver, Depends(get_session_resolver)]


def get_session_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> str | None:
    """Return the raw bearer token, if the request carries one."""
    if credentials is None:
        return None
    return credentials.credentials


TokenDep = Annotated[str | None, Depends(get_session_token)]


def get_auth_state(token: TokenDep, db: SessionDep, resolver: ResolverDep) -> AuthState:
    """Resolve the request's session; anonymous when there is none."""
    return resolver.resolve(db, token)


AuthStateDep = Annotated[AuthState, Depends(get_auth_state)]


def get_current_user(auth: AuthStateDep) -> UserOut:
    """Get the signed-in user.

    Raises:
        NotAuthenticated: If the request has no valid session.
    """
    if auth.user is None:
        raise NotAuthenticated()
    return auth.user


CurrentUserDep = Annotated[UserOut, Depends(get_current_user)]


def get_current_admin(auth: AuthStateDep) -> UserOut:
    """Get the signed-in administrator.

    Raises:
        NotAuthenticated: If the request has no valid session.
        NotAuthorized: If the user is not an administrator.
    """
    if auth.user is None:
        raise NotAuthenticated()
    if not auth.is_admin:
        raise NotAuthorized()
    return auth.user


AdminDep = Annotated[UserOut, Depends(get_current_admin)]
