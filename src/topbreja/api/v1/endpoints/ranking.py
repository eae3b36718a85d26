"""Leaderboard and battle endpoints for the TopBreja API."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query
from sqlalchemy.orm import Session, selectinload

from topbreja.api.v1.dependencies import AuthStateDep, SessionDep
from topbreja.models import Cerveja
from topbreja.schemas.beer import BattleOut, RankedBeerOut
from topbreja.services.catalog import summarize_beers
from topbreja.services.ranking import RankedBeer, compute_ranking, pair_key, pick_battle

router = APIRouter(tags=["ranking"])


def _ranked_out(db: Session, ranked: list[RankedBeer], user_id: UUID | None) -> list[RankedBeerOut]:
    if not ranked:
        return []
    ids = [item.beer_id for item in ranked]
    beers = (
        db.query(Cerveja)
        .options(selectinload(Cerveja.ranking), selectinload(Cerveja.selos))
        .filter(Cerveja.uuid.in_(ids))
        .populate_existing()
        .all()
    )
    summaries = {summary.uuid: summary for summary in summarize_beers(db, beers, user_id)}
    return [
        RankedBeerOut(
            posicao=item.position,
            pontuacao=item.score,
            total_votos=item.votes,
            media_estrelas=round(item.avg_stars, 1),
            total_favoritos=item.favorites,
            total_comentarios=item.comments,
            selo=item.badge,
            cerveja=summaries[item.beer_id],
        )
        for item in ranked
        if item.beer_id in summaries
    ]


@router.get("/ranking", response_model=list[RankedBeerOut])
async def read_ranking(db: SessionDep, auth: AuthStateDep) -> list[RankedBeerOut]:
    """Return the full leaderboard of active beers."""
    user_id = auth.user.uuid if auth.user else None
    return _ranked_out(db, compute_ranking(db), user_id)


@router.get("/ranking/top", response_model=list[RankedBeerOut])
async def read_top_ranking(
    db: SessionDep,
    auth: AuthStateDep,
    limit: Annotated[int, Query(ge=1, le=50)] = 3,
) -> list[RankedBeerOut]:
    """Return the first ``limit`` beers of the leaderboard."""
    user_id = auth.user.uuid if auth.user else None
    return _ranked_out(db, compute_ranking(db)[:limit], user_id)


@router.get("/battle", response_model=BattleOut)
async def read_battle(
    db: SessionDep,
    auth: AuthStateDep,
    recent: Annotated[str | None, Query(description="Comma-separated pair keys to avoid")] = None,
) -> BattleOut:
    """Pick two distinct active beers to face each other."""
    recent_pairs = [key.strip() for key in (recent or "").split(",") if key.strip()]
    first, second = pick_battle(db, recent_pairs=recent_pairs)
    user_id = auth.user.uuid if auth.user else None
    beer1, beer2 = summarize_beers(db, [first, second], user_id)
    return BattleOut(beer1=beer1, beer2=beer2, pair_key=pair_key(first.uuid, second.uuid))
