# src/topbreja/models/ranking.py
"""Aggregate ranking rows and the badges derived from them."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from topbreja.db.session import Base
from topbreja.db.time import utcnow

if TYPE_CHECKING:
    from .beer import Cerveja

SELO_OURO = "ouro"
SELO_PRATA = "prata"
SELO_BRONZE = "bronze"


class Ranking(Base):
    """Per-beer counters and the position derived from the composite score.

    Counters are recomputed from the engagement tables; ``posicao`` is only
    written by the ranking service and is NULL for inactive beers.
    """

    __tablename__ = "ranking"

    uuid: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    cerveja_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("cerveja.uuid", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    total_votos: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    media_estrelas: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    # Star average rounded to one decimal, as shown on cards.
    media_avaliacao: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    total_favoritos: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_comentarios: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    pontuacao_total: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    posicao: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    ultima_atualizacao: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    cerveja: Mapped[Cerveja] = relationship("Cerveja", back_populates="ranking")


class Selo(Base):
    """Badge tier held by a beer because of its ranking position."""

    __tablename__ = "selo"
    __table_args__ = (
        UniqueConstraint("cerveja_id", "tipo_selo", name="uq_selo_cerveja_tipo"),
    )

    uuid: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    cerveja_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("cerveja.uuid", ondelete="CASCADE"),
        nullable=False,
    )
    tipo_selo: Mapped[str] = mapped_column(Text, nullable=False)
    imagem_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    criado_em: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    cerveja: Mapped[Cerveja] = relationship("Cerveja", back_populates="selos")
