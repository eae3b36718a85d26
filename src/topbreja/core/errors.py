"""Domain exceptions shared by services and the API layer.

Services raise these; the FastAPI app maps them onto HTTP responses in
``topbreja.main``. Authorization errors are only raised by API dependencies.
"""

from __future__ import annotations

from typing import Any


class TopBrejaError(Exception):
    """Base class for all domain errors."""

    status_code: int = 400

    def __init__(self, detail: str, **extra: Any) -> None:
        super().__init__(detail)
        self.detail = detail
        self.extra = extra

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON body sent to clients."""
        return {"detail": self.detail, **self.extra}


class NotAuthenticated(TopBrejaError):
    """No valid session; clients are sent to the login page."""

    status_code = 401

    def __init__(self, detail: str = "Login required") -> None:
        super().__init__(detail, redirect="/login")


class NotAuthorized(TopBrejaError):
    """Authenticated, but the role does not allow the action."""

    status_code = 403

    def __init__(self, detail: str = "Administrator access required") -> None:
        super().__init__(detail, redirect="/")


class NotFound(TopBrejaError):
    """A referenced beer, user or comment does not exist."""

    status_code = 404


class ConflictOrTransient(TopBrejaError):
    """Concurrent write or backend outage; safe to retry."""

    status_code = 409

    def __init__(self, detail: str = "Operation failed, please try again") -> None:
        super().__init__(detail, retryable=True)


class ValidationError(TopBrejaError):
    """Malformed input such as an empty beer name."""

    status_code = 422


class InvalidTransition(TopBrejaError):
    """An engagement record was asked to make a transition it cannot make."""

    status_code = 409
