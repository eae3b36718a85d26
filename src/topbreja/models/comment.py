# src/topbreja/models/comment.py
"""Comment threads on beers and the reactions left on them."""

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
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from topbreja.db.session import Base
from topbreja.db.time import utcnow

REACAO_CURTIDA = "curtida"
REACAO_DESCURTIDA = "descurtida"


class Comentario(Base):
    """User comment on a beer; replies point at their parent comment."""

    __tablename__ = "comentario"
    __table_args__ = (Index("ix_comentario_cerveja_id", "cerveja_id"),)

    uuid: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    usuario_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("usuario.uuid", ondelete="CASCADE"), nullable=False
    )
    cerveja_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("cerveja.uuid", ondelete="CASCADE"), nullable=False
    )
    descricao: Mapped[str] = mapped_column(Text, nullable=False)
    reply_to_comment_id: Mapped[UUID | None] = mapped_column(
        Uuid, ForeignKey("comentario.uuid", ondelete="CASCADE"), nullable=True
    )
    # Denormalised reaction counters, recomputed from comentario_curtida.
    curtidas: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    descurtidas: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    criado_em: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    editado_em: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    deletado: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class ComentarioCurtida(Base):
    """A single like or dislike from a user on a comment."""

    __tablename__ = "comentario_curtida"
    __table_args__ = (
        UniqueConstraint("comentario_id", "usuario_id", name="uq_comentario_curtida_usuario"),
        CheckConstraint(
            "tipo IN ('curtida', 'descurtida')",
            name="ck_comentario_curtida_tipo",
        ),
    )

    uuid: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    comentario_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("comentario.uuid", ondelete="CASCADE"), nullable=False
    )
    usuario_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("usuario.uuid", ondelete="CASCADE"), nullable=False
    )
    tipo: Mapped[str] = mapped_column(Text, nullable=False)
