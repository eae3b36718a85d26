"""Beer catalog reads and administrator maintenance.

Read paths return schema objects with the joined ranking and badges already
normalised and the viewer's own engagement filled in, so endpoints never deal
with raw relation shapes.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal
from uuid import UUID

from sqlalchemy import delete, exists, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from topbreja.core.errors import ConflictOrTransient, NotFound
from topbreja.core.settings import settings
from topbreja.models import (
    Avaliacao,
    Cerveja,
    Comentario,
    ComentarioCurtida,
    Favorito,
    Ranking,
    Selo,
    Voto,
)
from topbreja.schemas.beer import (
    BadgeOut,
    BeerCreate,
    BeerDetail,
    BeerSummary,
    BeerUpdate,
    PaginatedResponse,
    RankingOut,
    SortOption,
)
from topbreja.services.engagement import UserEngagement, get_active_beer, user_engagement
from topbreja.services.ranking import recompute_counters, recompute_positions
from topbreja.services.storage import StorageResolver, get_storage_resolver

logger = logging.getLogger(__name__)

__all__ = [
    "CatalogQuery",
    "admin_beer_detail",
    "create_beer",
    "delete_beer",
    "get_beer_detail",
    "list_admin_beers",
    "list_beers",
    "summarize_beers",
    "update_beer",
]


@dataclass
class CatalogQuery:
    """Search, filter, sort and paging options for the public catalog."""

    q: str | None = None
    estilo: str | None = None
    sort: SortOption = SortOption.NAME
    page: int = 1
    page_size: int | None = None


def _page_size(requested: int | None) -> int:
    if requested is None or requested <= 0:
        return settings.catalog_page_size
    return min(requested, settings.catalog_max_page_size)


def _order_by(sort: SortOption) -> list:
    if sort == SortOption.RATING:
        return [func.coalesce(Ranking.media_estrelas, 0).desc(), Cerveja.nome.asc()]
    if sort == SortOption.VOTES:
        return [func.coalesce(Ranking.total_votos, 0).desc(), Cerveja.nome.asc()]
    if sort == SortOption.RECENT:
        return [Cerveja.data_criacao.desc()]
    if sort == SortOption.ALCOHOL:
        return [func.coalesce(Cerveja.teor_alcoolico, -1).desc(), Cerveja.nome.asc()]
    return [Cerveja.nome.asc()]


def _beer_fields(beer: Cerveja, storage: StorageResolver, engagement: UserEngagement) -> dict:
    ranking = beer.ranking
    return {
        "uuid": beer.uuid,
        "nome": beer.nome,
        "marca": beer.marca,
        "cervejaria": beer.cervejaria,
        "estilo": beer.estilo,
        "teor_alcoolico": beer.teor_alcoolico,
        "ibu": beer.ibu,
        "imagem_main": beer.imagem_main,
        "image_url": storage.resolve(beer.imagem_main),
        "ativo": beer.ativo,
        "data_criacao": beer.data_criacao,
        "ranking": RankingOut.model_validate(ranking) if ranking is not None else None,
        "badges": [BadgeOut.model_validate(selo) for selo in beer.selos if selo.status],
        "user_voto": beer.uuid in engagement.voted,
        "user_favorito": beer.uuid in engagement.favorited,
        "user_avaliacao": engagement.ratings.get(beer.uuid),
    }


def summarize_beers(
    db: Session,
    beers: Sequence[Cerveja],
    user_id: UUID | None = None,
    storage: StorageResolver | None = None,
) -> list[BeerSummary]:
    """Turn beer rows into cards with the viewer's engagement flags."""
    storage = storage or get_storage_resolver()
    engagement = user_engagement(db, user_id, [beer.uuid for beer in beers])
    return [BeerSummary(**_beer_fields(beer, storage, engagement)) for beer in beers]


def list_beers(
    db: Session,
    query: CatalogQuery,
    user_id: UUID | None = None,
) -> PaginatedResponse[BeerSummary]:
    """Search the active catalog.

    ``q`` matches name, brand or brewery case-insensitively; ``estilo``
    matches the style exactly, ignoring case.
    """
    page = max(query.page, 1)
    page_size = _page_size(query.page_size)

    stmt = select(Cerveja).outerjoin(Ranking, Ranking.cerveja_id == Cerveja.uuid)
    stmt = stmt.where(Cerveja.ativo.is_(True))
    if query.q and query.q.strip():
        pattern = f"%{query.q.strip()}%"
        stmt = stmt.where(
            or_(
                Cerveja.nome.ilike(pattern),
                Cerveja.marca.ilike(pattern),
                Cerveja.cervejaria.ilike(pattern),
            )
        )
    if query.estilo and query.estilo.strip():
        stmt = stmt.where(func.lower(Cerveja.estilo) == query.estilo.strip().lower())

    total = db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
    beers = db.scalars(
        stmt.options(selectinload(Cerveja.ranking), selectinload(Cerveja.selos))
        .order_by(*_order_by(query.sort), Cerveja.uuid)
        .offset((page - 1) * page_size)
        .limit(page_size)
        .execution_options(populate_existing=True)
    ).all()

    return PaginatedResponse[BeerSummary](
        data=summarize_beers(db, beers, user_id),
        total=total,
        page=page,
        page_size=page_size,
        total_pages=math.ceil(total / page_size) if total else 0,
    )


def get_beer_detail(db: Session, beer_id: UUID, user_id: UUID | None = None) -> BeerDetail:
    """Return the full beer page DTO.

    Raises:
        NotFound: If the beer is missing or inactive.
    """
    beer = get_active_beer(db, beer_id)
    db.refresh(beer)
    storage = get_storage_resolver()
    return _detail(beer, storage, user_engagement(db, user_id, [beer.uuid]))


def _detail(beer: Cerveja, storage: StorageResolver, engagement: UserEngagement) -> BeerDetail:
    return BeerDetail(
        **_beer_fields(beer, storage, engagement),
        descricao=beer.descricao,
        ultima_atualizacao=beer.ultima_atualizacao,
    )


def list_admin_beers(db: Session, include_inactive: bool = True) -> list[BeerDetail]:
    """Return every beer for the admin table, newest first."""
    stmt = select(Cerveja).options(selectinload(Cerveja.ranking), selectinload(Cerveja.selos))
    if not include_inactive:
        stmt = stmt.where(Cerveja.ativo.is_(True))
    beers = db.scalars(
        stmt.order_by(Cerveja.data_criacao.desc(), Cerveja.uuid).execution_options(populate_existing=True)
    ).all()
    storage = get_storage_resolver()
    return [_detail(beer, storage, UserEngagement()) for beer in beers]


def admin_beer_detail(db: Session, beer_id: UUID) -> BeerDetail:
    """Return any beer, active or not, as the admin sees it."""
    beer = _get_beer(db, beer_id)
    db.refresh(beer)
    return _detail(beer, get_storage_resolver(), UserEngagement())


def _get_beer(db: Session, beer_id: UUID) -> Cerveja:
    beer = db.get(Cerveja, beer_id)
    if beer is None:
        raise NotFound("Beer not found")
    return beer


def create_beer(db: Session, data: BeerCreate) -> Cerveja:
    """Add a beer to the catalog and give it a ranking row."""
    beer = Cerveja(**data.model_dump())
    db.add(beer)
    try:
        db.flush()
        recompute_counters(db, beer.uuid)
        recompute_positions(db)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Failed to create beer %r: %s", data.nome, exc)
        raise ConflictOrTransient() from exc
    db.refresh(beer)
    logger.info("Beer %s created (%s)", beer.uuid, beer.nome)
    return beer


def update_beer(db: Session, beer_id: UUID, data: BeerUpdate) -> Cerveja:
    """Apply a partial update; positions are refreshed when ``ativo`` changes."""
    beer = _get_beer(db, beer_id)
    changes = data.model_dump(exclude_unset=True)
    if changes.get("nome") is None:
        changes.pop("nome", None)
    if changes.get("marca") is None:
        changes.pop("marca", None)
    if changes.get("ativo") is None:
        changes.pop("ativo", None)

    activation_changed = "ativo" in changes and changes["ativo"] != beer.ativo
    for key, value in changes.items():
        setattr(beer, key, value)

    try:
        db.flush()
        if activation_changed:
            recompute_counters(db, beer.uuid)
            recompute_positions(db)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Failed to update beer %s: %s", beer_id, exc)
        raise ConflictOrTransient() from exc
    db.refresh(beer)
    if activation_changed:
        logger.info("Beer %s %s", beer.uuid, "activated" if beer.ativo else "deactivated")
    return beer


def _has_active_engagement(db: Session, beer_id: UUID) -> bool:
    checks = [
        exists().where(
            model.cerveja_id == beer_id,
            model.deletado.is_(False),
            model.status.is_(True),
        )
        for model in (Voto, Favorito, Avaliacao)
    ]
    checks.append(
        exists().where(Comentario.cerveja_id == beer_id, Comentario.deletado.is_(False))
    )
    return bool(db.scalar(select(or_(*checks))))


def delete_beer(db: Session, beer_id: UUID) -> Literal["deactivated", "deleted"]:
    """Remove a beer, or only deactivate it while users still engage with it."""
    beer = _get_beer(db, beer_id)
    try:
        if _has_active_engagement(db, beer_id):
            beer.ativo = False
            db.flush()
            recompute_positions(db)
            outcome: Literal["deactivated", "deleted"] = "deactivated"
        else:
            comment_ids = select(Comentario.uuid).where(Comentario.cerveja_id == beer_id)
            db.execute(delete(ComentarioCurtida).where(ComentarioCurtida.comentario_id.in_(comment_ids)))
            for model in (Comentario, Voto, Favorito, Avaliacao, Selo, Ranking):
                db.execute(delete(model).where(model.cerveja_id == beer_id))
            db.expire(beer)
            db.delete(beer)
            db.flush()
            recompute_positions(db)
            outcome = "deleted"
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Failed to delete beer %s: %s", beer_id, exc)
        raise ConflictOrTransient() from exc
    logger.info("Beer %s %s", beer_id, outcome)
    return outcome
