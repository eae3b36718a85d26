"""User and session Pydantic schemas."""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserOut(BaseModel):
    """Public profile information for a user."""

    uuid: UUID
    nome: str
    email: str
    foto_perfil: str | None = None
    role: str = "member"

    model_config = ConfigDict(from_attributes=True)


class AuthState(BaseModel):
    """Resolved session: the current user, if any, and the admin flag."""

    user: UserOut | None = None
    is_admin: bool = False

    @classmethod
    def anonymous(cls) -> AuthState:
        return cls(user=None, is_admin=False)

    @property
    def authenticated(self) -> bool:
        return self.user is not None


class ProfileUpdate(BaseModel):
    """Partial profile update submitted by the owner."""

    nome: str | None = Field(None, min_length=1, max_length=80, description="Display name")
    foto_perfil: str | None = Field(None, max_length=1024, description="Storage path or URL")

    @field_validator("nome")
    @classmethod
    def _strip_name(cls, value: str | None) -> str | None:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("Name cannot be blank")
        return value
