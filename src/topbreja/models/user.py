# src/topbreja/models/user.py
"""SQLAlchemy model for application users."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from topbreja.db.session import Base
from topbreja.db.time import utcnow

ROLE_ADMIN = "admin"
ROLE_MEMBER = "member"


class Usuario(Base):
    """Profile row mirrored from the hosted auth provider at sign-up."""

    __tablename__ = "usuario"

    uuid: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    # Identifier of the auth provider account; equal to ``uuid`` for most rows.
    auth_id: Mapped[str | None] = mapped_column(Text, unique=True, nullable=True)
    nome: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    foto_perfil: Mapped[str | None] = mapped_column(Text, nullable=True)
    role: Mapped[str] = mapped_column(Text, nullable=False, default=ROLE_MEMBER)
    data_criacao: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    ultima_atualizacao: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    @property
    def is_admin(self) -> bool:
        """Return True when the user holds the administrator role."""
        return self.role == ROLE_ADMIN
