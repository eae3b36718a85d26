# src/topbreja/models/engagement.py
"""Join records capturing a user's vote, favorite or rating on a beer.

Each table holds at most one row per (user, beer). Toggling flips
``deletado`` on that row instead of inserting duplicates, so a record moves
between active and inactive for its whole life.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from topbreja.db.session import Base
from topbreja.db.time import utcnow


class Voto(Base):
    """Per-user vote on a beer."""

    __tablename__ = "voto"
    __table_args__ = (
        UniqueConstraint("usuario_id", "cerveja_id", name="uq_voto_usuario_cerveja"),
        Index("ix_voto_cerveja_id", "cerveja_id"),
    )

    uuid: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    usuario_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("usuario.uuid", ondelete="CASCADE"), nullable=False
    )
    cerveja_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("cerveja.uuid", ondelete="CASCADE"), nullable=False
    )
    # Every vote counts as one.
    quantidade: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    status: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    deletado: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    criado_em: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    atualizado_em: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    @property
    def active(self) -> bool:
        return self.status and not self.deletado


class Favorito(Base):
    """Per-user favorite mark on a beer."""

    __tablename__ = "favorito"
    __table_args__ = (
        UniqueConstraint("usuario_id", "cerveja_id", name="uq_favorito_usuario_cerveja"),
        Index("ix_favorito_cerveja_id", "cerveja_id"),
    )

    uuid: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    usuario_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("usuario.uuid", ondelete="CASCADE"), nullable=False
    )
    cerveja_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("cerveja.uuid", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    deletado: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    criado_em: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    atualizado_em: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    @property
    def active(self) -> bool:
        return self.status and not self.deletado


class Avaliacao(Base):
    """Star rating (1-5) given by a user to a beer."""

    __tablename__ = "avaliacao"
    __table_args__ = (
        UniqueConstraint("usuario_id", "cerveja_id", name="uq_avaliacao_usuario_cerveja"),
        CheckConstraint(
            "quantidade_estrela BETWEEN 1 AND 5",
            name="ck_avaliacao_quantidade_estrela",
        ),
        Index("ix_avaliacao_cerveja_id", "cerveja_id"),
    )

    uuid: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    usuario_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("usuario.uuid", ondelete="CASCADE"), nullable=False
    )
    cerveja_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("cerveja.uuid", ondelete="CASCADE"), nullable=False
    )
    quantidade_estrela: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    status: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    deletado: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    criado_em: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    atualizado_em: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
