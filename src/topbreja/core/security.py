"""Session token helpers built on python-jose.

Real tokens are issued by the hosted auth provider; ``create_access_token``
mints compatible tokens for local development and tests.
"""
from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from jose import jwt

from topbreja.core.settings import settings


def create_access_token(
    subject: UUID | str,
    *,
    email: str | None = None,
    expires_minutes: int | None = None,
    extra_claims: dict[str, Any] | None = None,
) -> str:
    """Create a signed session token for ``subject``."""
    to_encode: dict[str, Any] = {"sub": str(subject)}
    if email is not None:
        to_encode["email"] = email
    if settings.auth_jwt_audience:
        to_encode["aud"] = settings.auth_jwt_audience
    if extra_claims:
        to_encode.update(extra_claims)
    minutes = settings.access_token_expire_minutes if expires_minutes is None else expires_minutes
    to_encode["exp"] = datetime.now(UTC) + timedelta(minutes=minutes)
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.auth_jwt_secret,
        algorithm=settings.auth_jwt_algorithm,
    )
    return encoded_jwt


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and verify a session token.

    Raises:
        jose.JWTError: If the signature, audience or expiry is invalid.
    """
    options = {"verify_aud": bool(settings.auth_jwt_audience)}
    payload: dict[str, Any] = jwt.decode(
        token,
        settings.auth_jwt_secret,
        algorithms=[settings.auth_jwt_algorithm],
        audience=settings.auth_jwt_audience,
        options=options,
    )
    return payload
