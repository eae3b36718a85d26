"""Record votes, favorites and ratings and keep rankings in step.

Every write is one transaction: the engagement upsert, the counter recompute
for the affected beer and the position/badge refresh either all commit or all
roll back.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import and_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from topbreja.core.errors import ConflictOrTransient, NotFound, ValidationError
from topbreja.db.time import utcnow
from topbreja.db.upsert import insert_for
from topbreja.models import Avaliacao, Cerveja, Favorito, Voto
from topbreja.services.engagement_state import EngagementState, state_from_flags
from topbreja.services.ranking import recompute_counters, recompute_positions

logger = logging.getLogger(__name__)

MIN_STARS = 1
MAX_STARS = 5

__all__ = [
    "UserEngagement",
    "engagement_state",
    "get_active_beer",
    "list_favorites",
    "submit_rating",
    "toggle_favorite",
    "toggle_vote",
    "user_engagement",
]


@dataclass
class UserEngagement:
    """What one user has done to a set of beers."""

    voted: set[UUID] = field(default_factory=set)
    favorited: set[UUID] = field(default_factory=set)
    ratings: dict[UUID, int] = field(default_factory=dict)


def get_active_beer(db: Session, beer_id: UUID) -> Cerveja:
    """Return the active beer ``beer_id`` or raise ``NotFound``."""
    beer = db.get(Cerveja, beer_id)
    if beer is None or not beer.ativo:
        raise NotFound("Beer not found")
    return beer


def _refresh_ranking(db: Session, beer_id: UUID) -> None:
    recompute_counters(db, beer_id)
    recompute_positions(db)


def _toggle(
    db: Session,
    model: type[Voto] | type[Favorito],
    *,
    user_id: UUID,
    beer_id: UUID,
    extra: dict[str, Any] | None = None,
) -> EngagementState:
    now = utcnow()
    stmt = insert_for(db, model).values(
        uuid=uuid4(),
        usuario_id=user_id,
        cerveja_id=beer_id,
        status=True,
        deletado=False,
        criado_em=now,
        atualizado_em=now,
        **(extra or {}),
    )
    # Existing row: deactivate it if active, otherwise reactivate it.
    stmt = stmt.on_conflict_do_update(
        index_elements=[model.usuario_id, model.cerveja_id],
        set_={
            "deletado": and_(model.deletado.is_(False), model.status.is_(True)),
            "status": True,
            "atualizado_em": now,
        },
    ).returning(model.deletado)

    try:
        get_active_beer(db, beer_id)
        deletado = bool(db.execute(stmt).scalar_one())
        _refresh_ranking(db, beer_id)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning(
            "%s toggle failed for user %s on beer %s: %s",
            model.__tablename__,
            user_id,
            beer_id,
            exc,
        )
        raise ConflictOrTransient() from exc

    state = EngagementState.INACTIVE if deletado else EngagementState.ACTIVE
    logger.info("%s by %s on %s is now %s", model.__tablename__, user_id, beer_id, state.value)
    return state


def toggle_vote(db: Session, user_id: UUID, beer_id: UUID) -> EngagementState:
    """Flip the user's vote on a beer and return its new state."""
    return _toggle(db, Voto, user_id=user_id, beer_id=beer_id, extra={"quantidade": 1})


def toggle_favorite(db: Session, user_id: UUID, beer_id: UUID) -> EngagementState:
    """Flip the user's favorite mark on a beer and return its new state."""
    return _toggle(db, Favorito, user_id=user_id, beer_id=beer_id)


def submit_rating(db: Session, user_id: UUID, beer_id: UUID, stars: int) -> bool:
    """Store the user's star rating for a beer, replacing any previous one.

    Raises:
        ValidationError: If ``stars`` is outside 1-5.
        NotFound: If the beer is missing or inactive.
        ConflictOrTransient: If the store rejects the write.
    """
    if isinstance(stars, bool) or not isinstance(stars, int) or not MIN_STARS <= stars <= MAX_STARS:
        raise ValidationError(f"Rating must be between {MIN_STARS} and {MAX_STARS} stars")

    now = utcnow()
    stmt = insert_for(db, Avaliacao).values(
        uuid=uuid4(),
        usuario_id=user_id,
        cerveja_id=beer_id,
        quantidade_estrela=stars,
        status=True,
        deletado=False,
        criado_em=now,
        atualizado_em=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[Avaliacao.usuario_id, Avaliacao.cerveja_id],
        set_={
            "quantidade_estrela": stmt.excluded.quantidade_estrela,
            "status": True,
            "deletado": False,
            "atualizado_em": now,
        },
    )

    try:
        get_active_beer(db, beer_id)
        db.execute(stmt)
        _refresh_ranking(db, beer_id)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Rating failed for user %s on beer %s: %s", user_id, beer_id, exc)
        raise ConflictOrTransient() from exc

    logger.info("User %s rated beer %s with %d stars", user_id, beer_id, stars)
    return True


def engagement_state(
    db: Session,
    model: type[Voto] | type[Favorito],
    user_id: UUID,
    beer_id: UUID,
) -> EngagementState:
    """Return the stored state of a user's vote or favorite on a beer."""
    row = db.execute(
        select(model.status, model.deletado).where(
            model.usuario_id == user_id,
            model.cerveja_id == beer_id,
        )
    ).first()
    if row is None:
        return state_from_flags(exists=False)
    return state_from_flags(exists=True, status=row.status, deletado=row.deletado)


def user_engagement(
    db: Session,
    user_id: UUID | None,
    beer_ids: Iterable[UUID] | None = None,
) -> UserEngagement:
    """Collect the user's active votes, favorites and ratings.

    When ``beer_ids`` is given only those beers are inspected.
    """
    result = UserEngagement()
    if user_id is None:
        return result
    ids = None if beer_ids is None else list(beer_ids)
    if ids is not None and not ids:
        return result

    def _scope(model: Any) -> Any:
        stmt = select(model.cerveja_id).where(
            model.usuario_id == user_id,
            model.deletado.is_(False),
            model.status.is_(True),
        )
        if ids is not None:
            stmt = stmt.where(model.cerveja_id.in_(ids))
        return stmt

    result.voted = set(db.scalars(_scope(Voto)))
    result.favorited = set(db.scalars(_scope(Favorito)))

    rating_stmt = select(Avaliacao.cerveja_id, Avaliacao.quantidade_estrela).where(
        Avaliacao.usuario_id == user_id,
        Avaliacao.deletado.is_(False),
        Avaliacao.status.is_(True),
    )
    if ids is not None:
        rating_stmt = rating_stmt.where(Avaliacao.cerveja_id.in_(ids))
    result.ratings = {row.cerveja_id: row.quantidade_estrela for row in db.execute(rating_stmt)}
    return result


def list_favorites(db: Session, user_id: UUID) -> list[Cerveja]:
    """Return the active beers the user has favorited, most recent first."""
    stmt = (
        select(Cerveja)
        .join(Favorito, Favorito.cerveja_id == Cerveja.uuid)
        .where(
            Favorito.usuario_id == user_id,
            Favorito.deletado.is_(False),
            Favorito.status.is_(True),
            Cerveja.ativo.is_(True),
        )
        .order_by(Favorito.atualizado_em.desc())
    )
    return list(db.scalars(stmt))
