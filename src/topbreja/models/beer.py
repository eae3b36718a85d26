# src/topbreja/models/beer.py
"""SQLAlchemy model for catalog beers."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import Boolean, DateTime, Float, Integer, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from topbreja.db.session import Base
from topbreja.db.time import utcnow

if TYPE_CHECKING:
    from .ranking import Ranking, Selo


class Cerveja(Base):
    """Catalog item. Only administrators create or edit these rows."""

    __tablename__ = "cerveja"

    uuid: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    nome: Mapped[str] = mapped_column(Text, nullable=False)
    marca: Mapped[str] = mapped_column(Text, nullable=False)
    cervejaria: Mapped[str | None] = mapped_column(Text, nullable=True)
    estilo: Mapped[str | None] = mapped_column(Text, nullable=True)
    teor_alcoolico: Mapped[float | None] = mapped_column(Float, nullable=True)
    ibu: Mapped[int | None] = mapped_column(Integer, nullable=True)
    descricao: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Storage path or absolute URL; resolved by StorageResolver.
    imagem_main: Mapped[str | None] = mapped_column(Text, nullable=True)
    ativo: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    data_criacao: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    ultima_atualizacao: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    ranking: Mapped[Ranking | None] = relationship(
        "Ranking",
        back_populates="cerveja",
        uselist=False,
        cascade="all, delete-orphan",
    )
    selos: Mapped[list[Selo]] = relationship(
        "Selo",
        back_populates="cerveja",
        cascade="all, delete-orphan",
    )
