"""Beer, ranking and badge Pydantic schemas.

Joined relations from the store arrive in loose shapes (a related row, a list
holding one row, or nothing). ``BeerSummary`` pins them down: ``ranking`` is
zero-or-one and ``badges`` is always a list.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any, Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

T = TypeVar("T")

MAX_NAME_LENGTH = 120


class SortOption(StrEnum):
    """Catalog orderings."""

    NAME = "name"
    RATING = "rating"
    VOTES = "votes"
    RECENT = "recent"
    ALCOHOL = "alcohol"


def _strip_required(value: str, label: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValueError(f"{label} cannot be blank")
    return value


class BeerCreate(BaseModel):
    """Fields an administrator submits to create a beer."""

    nome: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    marca: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    cervejaria: str | None = Field(None, max_length=MAX_NAME_LENGTH)
    estilo: str | None = Field(None, max_length=MAX_NAME_LENGTH)
    teor_alcoolico: float | None = Field(None, ge=0, le=100, description="ABV in percent")
    ibu: int | None = Field(None, ge=0)
    descricao: str | None = Field(None, max_length=5000)
    imagem_main: str | None = Field(None, max_length=1024, description="Storage path or URL")
    ativo: bool = True

    @field_validator("nome")
    @classmethod
    def _nome_not_blank(cls, value: str) -> str:
        return _strip_required(value, "Name")

    @field_validator("marca")
    @classmethod
    def _marca_not_blank(cls, value: str) -> str:
        return _strip_required(value, "Brand")


class BeerUpdate(BaseModel):
    """Partial update of a beer; omitted fields stay unchanged."""

    nome: str | None = Field(None, min_length=1, max_length=MAX_NAME_LENGTH)
    marca: str | None = Field(None, min_length=1, max_length=MAX_NAME_LENGTH)
    cervejaria: str | None = Field(None, max_length=MAX_NAME_LENGTH)
    estilo: str | None = Field(None, max_length=MAX_NAME_LENGTH)
    teor_alcoolico: float | None = Field(None, ge=0, le=100)
    ibu: int | None = Field(None, ge=0)
    descricao: str | None = Field(None, max_length=5000)
    imagem_main: str | None = Field(None, max_length=1024)
    ativo: bool | None = None

    @field_validator("nome")
    @classmethod
    def _nome_not_blank(cls, value: str | None) -> str | None:
        return None if value is None else _strip_required(value, "Name")

    @field_validator("marca")
    @classmethod
    def _marca_not_blank(cls, value: str | None) -> str | None:
        return None if value is None else _strip_required(value, "Brand")


class RankingOut(BaseModel):
    """Aggregate counters and position for a beer."""

    total_votos: int = 0
    media_estrelas: float = 0.0
    media_avaliacao: float = 0.0
    total_favoritos: int = 0
    total_comentarios: int = 0
    pontuacao_total: float = 0.0
    posicao: int | None = None

    model_config = ConfigDict(from_attributes=True)


class BadgeOut(BaseModel):
    """A badge currently held by a beer."""

    tipo_selo: str
    imagem_url: str | None = None

    model_config = ConfigDict(from_attributes=True)


class BeerSummary(BaseModel):
    """Beer card: catalog fields, ranking, badges and the viewer's flags."""

    uuid: UUID
    nome: str
    marca: str
    cervejaria: str | None = None
    estilo: str | None = None
    teor_alcoolico: float | None = None
    ibu: int | None = None
    imagem_main: str | None = None
    image_url: str | None = None
    ativo: bool = True
    data_criacao: datetime | None = None
    ranking: RankingOut | None = None
    badges: list[BadgeOut] = Field(default_factory=list)
    user_voto: bool = False
    user_favorito: bool = False
    user_avaliacao: int | None = None

    model_config = ConfigDict(from_attributes=True)

    @model_validator(mode="before")
    @classmethod
    def _normalise_relations(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            extracted: dict[str, Any] = {}
            for field_name in cls.model_fields:
                if hasattr(data, field_name):
                    extracted[field_name] = getattr(data, field_name)
            if "badges" not in extracted and hasattr(data, "selos"):
                extracted["badges"] = data.selos
            data = extracted
        else:
            data = dict(data)
            if "badges" not in data and "selo" in data:
                data["badges"] = data.pop("selo")

        ranking = data.get("ranking")
        if isinstance(ranking, list | tuple):
            data["ranking"] = ranking[0] if ranking else None

        badges = data.get("badges")
        if badges is None:
            data["badges"] = []
        else:
            data["badges"] = [
                badge
                for badge in badges
                if (badge.get("status", True) if isinstance(badge, dict) else getattr(badge, "status", True))
            ]
        return data


class BeerDetail(BeerSummary):
    """Full beer page."""

    descricao: str | None = None
    ultima_atualizacao: datetime | None = None


class PaginatedResponse(BaseModel, Generic[T]):
    """One page of results plus paging metadata."""

    data: list[T]
    total: int
    page: int
    page_size: int
    total_pages: int


class RankedBeerOut(BaseModel):
    """Leaderboard entry."""

    posicao: int
    pontuacao: float
    total_votos: int
    media_estrelas: float
    total_favoritos: int
    total_comentarios: int
    selo: str | None = None
    cerveja: BeerSummary


class BattleOut(BaseModel):
    """Two beers facing each other."""

    beer1: BeerSummary
    beer2: BeerSummary
    pair_key: str
