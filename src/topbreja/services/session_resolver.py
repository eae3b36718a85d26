"""Session and role resolution with a short-lived cache.

Tokens come from the hosted auth provider. The resolver turns a token into
``AuthState`` (current user plus admin flag) and caches the answer for a few
seconds so a burst of requests from one page does not repeat the lookups.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from jose import JWTError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from topbreja.core.security import decode_access_token
from topbreja.core.settings import settings
from topbreja.models import Usuario
from topbreja.schemas.user import AuthState, UserOut
from topbreja.services.auth_cache import AuthCache, build_auth_cache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthSession:
    """Identity asserted by a valid session token."""

    user_id: UUID
    email: str | None = None
    expires_at: datetime | None = None


class AuthProvider(Protocol):
    """Capability exposed by the hosted auth provider."""

    def get_session(self, token: str) -> AuthSession | None: ...

    def get_user(self, token: str) -> AuthSession | None: ...


class JWTAuthProvider:
    """Validate provider-issued JWTs locally with the shared signing secret."""

    def get_session(self, token: str) -> AuthSession | None:
        try:
            payload = decode_access_token(token)
        except JWTError as err:
            logger.debug("Rejected session token: %s", err)
            return None

        subject = payload.get("sub")
        if not subject:
            return None
        try:
            user_id = UUID(str(subject))
        except ValueError:
            logger.debug("Session token subject is not a UUID: %r", subject)
            return None

        expires_at = None
        if "exp" in payload:
            expires_at = datetime.fromtimestamp(int(payload["exp"]), UTC)
        return AuthSession(user_id=user_id, email=payload.get("email"), expires_at=expires_at)

    def get_user(self, token: str) -> AuthSession | None:
        return self.get_session(token)


class SessionRoleResolver:
    """Resolve ``AuthState`` for a session token.

    Args:
        provider: Auth provider used to validate tokens.
        cache: Store for resolved states; entries live ``ttl_seconds``.
        ttl_seconds: Cache lifetime, 30 seconds by default.
        cache_key: Fixed prefix for cache entries.
    """

    def __init__(
        self,
        provider: AuthProvider,
        cache: AuthCache,
        *,
        ttl_seconds: float | None = None,
        cache_key: str | None = None,
    ) -> None:
        self.provider = provider
        self.cache = cache
        self.ttl_seconds = settings.auth_cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        self.cache_key = cache_key or settings.auth_cache_key

    def _entry_key(self, token: str) -> str:
        # Keyed by token fingerprint so one process never mixes up users.
        fingerprint = hashlib.sha256(token.encode("utf-8")).hexdigest()
        return f"{self.cache_key}:{fingerprint}"

    def resolve(self, db: Session, token: str | None) -> AuthState:
        """Return the cached state for ``token`` or look it up.

        Never raises: any failure resolves to an anonymous state.
        """
        if not token:
            return AuthState.anonymous()

        key = self._entry_key(token)
        cached = self.cache.get(key)
        if cached is not None:
            try:
                return AuthState.model_validate_json(cached)
            except ValueError:
                logger.warning("Discarding unreadable auth cache entry")
                self.cache.delete(key)

        try:
            state = self._lookup(db, token)
        except Exception as exc:  # fail closed: lookup errors mean "no user"
            logger.warning("Session lookup failed; treating request as anonymous", exc_info=True)
            if isinstance(exc, SQLAlchemyError):
                db.rollback()
            return AuthState.anonymous()

        self.cache.set(key, state.model_dump_json(), self.ttl_seconds)
        return state

    def refresh_auth(self, db: Session, token: str | None) -> AuthState:
        """Drop any cached state for ``token`` and resolve it again."""
        if token:
            self.invalidate(token)
        return self.resolve(db, token)

    def sign_out(self, token: str | None) -> None:
        """Forget the cached state for ``token``."""
        if token:
            self.invalidate(token)

    def invalidate(self, token: str) -> None:
        self.cache.delete(self._entry_key(token))

    def _lookup(self, db: Session, token: str) -> AuthState:
        session = self.provider.get_session(token)
        if session is None:
            return AuthState.anonymous()

        user = db.get(Usuario, session.user_id)
        if user is None:
            user = db.query(Usuario).filter(Usuario.auth_id == str(session.user_id)).first()
        if user is None:
            logger.info("No profile found for session user %s", session.user_id)
            return AuthState.anonymous()

        return AuthState(user=UserOut.model_validate(user), is_admin=user.is_admin)


_resolver: SessionRoleResolver | None = None


def get_session_resolver() -> SessionRoleResolver:
    """Return the shared session resolver."""
    global _resolver
    if _resolver is None:
        _resolver = SessionRoleResolver(JWTAuthProvider(), build_auth_cache())
    return _resolver


__all__ = [
    "AuthProvider",
    "AuthSession",
    "JWTAuthProvider",
    "SessionRoleResolver",
    "get_session_resolver",
]
