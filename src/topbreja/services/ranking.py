"""Ranking aggregation, badge assignment and battle pairing.

Counters on ``ranking`` rows are always recomputed from the engagement tables
with SQL sub-selects, so concurrent writers never lose updates. Positions and
badges are derived from the counters afterwards while the writer holds the
ranking lock, so the last committer always publishes a complete picture.
"""
from __future__ import annotations

import logging
import random
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID, uuid4

from sqlalchemy import Row, func, select, update
from sqlalchemy.orm import Session, selectinload

from topbreja.core.errors import NotFound
from topbreja.core.settings import settings
from topbreja.db.time import utcnow
from topbreja.db.upsert import insert_for
from topbreja.models import Avaliacao, Cerveja, Comentario, Favorito, Ranking, Selo, Voto

logger = logging.getLogger(__name__)

MAX_STARS = 5

# pg_advisory_xact_lock key shared by every ranking writer.
RANKING_LOCK_KEY = 7_420_113

__all__ = [
    "RankedBeer",
    "RankingInput",
    "RankingWeights",
    "assign_badges",
    "battle_candidates",
    "compute_ranking",
    "lock_rankings",
    "pair_key",
    "pick_battle",
    "pick_battle_pair",
    "rank_entries",
    "rebuild_all",
    "recompute_counters",
    "recompute_positions",
]


@dataclass(frozen=True)
class RankingWeights:
    """Weights applied to each normalised counter in the composite score."""

    votes: float = 0.4
    rating: float = 0.3
    favorites: float = 0.2
    comments: float = 0.1

    @classmethod
    def from_settings(cls) -> RankingWeights:
        return cls(**settings.ranking_weights)


@dataclass(frozen=True)
class RankingInput:
    """Counters for one active beer."""

    beer_id: UUID
    votes: int = 0
    avg_stars: float = 0.0
    favorites: int = 0
    comments: int = 0


@dataclass(frozen=True)
class RankedBeer:
    """A beer's place in the leaderboard."""

    beer_id: UUID
    position: int
    score: float
    votes: int
    avg_stars: float
    favorites: int
    comments: int
    badge: str | None = None


def _composite_score(entry: RankingInput, weights: RankingWeights, maxima: dict[str, float]) -> float:
    def normalised(value: float, maximum: float) -> float:
        return value / maximum if maximum > 0 else 0.0

    score = (
        weights.votes * normalised(entry.votes, maxima["votes"])
        + weights.rating * normalised(entry.avg_stars, MAX_STARS)
        + weights.favorites * normalised(entry.favorites, maxima["favorites"])
        + weights.comments * normalised(entry.comments, maxima["comments"])
    )
    # Rounded so equal counters always compare equal and fall to the id tie-break.
    return round(score, 9)


def rank_entries(
    entries: Iterable[RankingInput],
    weights: RankingWeights | None = None,
) -> list[RankedBeer]:
    """Order ``entries`` by composite score, highest first.

    Equal scores are ordered by the beer id's string form, ascending, which
    makes the result a deterministic total order.
    """
    weights = weights or RankingWeights.from_settings()
    items = list(entries)
    maxima = {
        "votes": float(max((e.votes for e in items), default=0)),
        "favorites": float(max((e.favorites for e in items), default=0)),
        "comments": float(max((e.comments for e in items), default=0)),
    }
    scored = [(_composite_score(e, weights, maxima), e) for e in items]
    scored.sort(key=lambda pair: (-pair[0], str(pair[1].beer_id)))
    return [
        RankedBeer(
            beer_id=entry.beer_id,
            position=index,
            score=score,
            votes=entry.votes,
            avg_stars=entry.avg_stars,
            favorites=entry.favorites,
            comments=entry.comments,
        )
        for index, (score, entry) in enumerate(scored, start=1)
    ]


def assign_badges(ranked: Sequence[RankedBeer], tiers: Sequence[str] | None = None) -> list[RankedBeer]:
    """Attach badge tiers to the top positions.

    Position ``n`` receives ``tiers[n-1]`` provided its score is positive;
    beers nobody has engaged with never hold a badge.
    """
    tiers = list(settings.badge_tiers if tiers is None else tiers)
    result = []
    for item in ranked:
        badge = None
        if item.position <= len(tiers) and item.score > 0:
            badge = tiers[item.position - 1]
        result.append(
            RankedBeer(
                beer_id=item.beer_id,
                position=item.position,
                score=item.score,
                votes=item.votes,
                avg_stars=item.avg_stars,
                favorites=item.favorites,
                comments=item.comments,
                badge=badge,
            )
        )
    return result


def _ensure_ranking_row(db: Session, beer_id: UUID) -> None:
    stmt = insert_for(db, Ranking).values(
        uuid=uuid4(),
        cerveja_id=beer_id,
        total_votos=0,
        media_estrelas=0.0,
        media_avaliacao=0.0,
        total_favoritos=0,
        total_comentarios=0,
        pontuacao_total=0.0,
        status=True,
        ultima_atualizacao=utcnow(),
    )
    db.execute(stmt.on_conflict_do_nothing(index_elements=[Ranking.cerveja_id]))


def lock_rankings(db: Session) -> None:
    """Hold the ranking lock until the current transaction ends.

    Every statement run after the lock is taken sees all writes committed by
    earlier holders, so counters, positions and badges are never derived from
    a snapshot another writer has already moved past. SQLite allows a single
    writer at a time and needs nothing extra.
    """
    if db.get_bind().dialect.name == "postgresql":
        db.execute(select(func.pg_advisory_xact_lock(RANKING_LOCK_KEY)))


def recompute_counters(db: Session, beer_id: UUID) -> None:
    """Recompute the counters of ``beer_id``'s ranking row inside the store."""
    db.flush()
    lock_rankings(db)
    _ensure_ranking_row(db, beer_id)

    total_votos = (
        select(func.count(Voto.uuid))
        .where(Voto.cerveja_id == beer_id, Voto.deletado.is_(False), Voto.status.is_(True))
        .scalar_subquery()
    )
    total_favoritos = (
        select(func.count(Favorito.uuid))
        .where(
            Favorito.cerveja_id == beer_id,
            Favorito.deletado.is_(False),
            Favorito.status.is_(True),
        )
        .scalar_subquery()
    )
    media_estrelas = (
        select(func.coalesce(func.avg(Avaliacao.quantidade_estrela), 0))
        .where(
            Avaliacao.cerveja_id == beer_id,
            Avaliacao.deletado.is_(False),
            Avaliacao.status.is_(True),
        )
        .scalar_subquery()
    )
    total_comentarios = (
        select(func.count(Comentario.uuid))
        .where(Comentario.cerveja_id == beer_id, Comentario.deletado.is_(False))
        .scalar_subquery()
    )

    db.execute(
        update(Ranking)
        .where(Ranking.cerveja_id == beer_id)
        .values(
            total_votos=total_votos,
            total_favoritos=total_favoritos,
            media_estrelas=media_estrelas,
            media_avaliacao=func.round(media_estrelas, 1),
            total_comentarios=total_comentarios,
            ultima_atualizacao=utcnow(),
        )
        .execution_options(synchronize_session="fetch")
    )


def _load_inputs(db: Session) -> tuple[list[RankingInput], list[Ranking]]:
    rows = db.execute(
        select(Ranking, Cerveja.ativo)
        .join(Cerveja, Cerveja.uuid == Ranking.cerveja_id)
        .execution_options(populate_existing=True)
    ).all()
    inputs = []
    rankings = []
    for ranking, ativo in rows:
        rankings.append(ranking)
        if ativo:
            inputs.append(
                RankingInput(
                    beer_id=ranking.cerveja_id,
                    votes=ranking.total_votos,
                    avg_stars=float(ranking.media_estrelas or 0.0),
                    favorites=ranking.total_favoritos,
                    comments=ranking.total_comentarios,
                )
            )
    return inputs, rankings


def compute_ranking(db: Session, weights: RankingWeights | None = None) -> list[RankedBeer]:
    """Return the active catalog ordered by composite score with badges attached."""
    db.flush()
    inputs, _ = _load_inputs(db)
    return assign_badges(rank_entries(inputs, weights))


def recompute_positions(db: Session, weights: RankingWeights | None = None) -> list[RankedBeer]:
    """Persist scores, positions and badges derived from the current counters."""
    db.flush()
    lock_rankings(db)
    inputs, rankings = _load_inputs(db)
    ranked = assign_badges(rank_entries(inputs, weights))
    by_beer = {item.beer_id: item for item in ranked}

    for ranking in rankings:
        item = by_beer.get(ranking.cerveja_id)
        if item is None:
            ranking.posicao = None
            ranking.status = False
            continue
        ranking.pontuacao_total = item.score
        ranking.posicao = item.position
        ranking.status = True

    _sync_badges(db, ranked)
    db.flush()
    return ranked


def _sync_badges(db: Session, ranked: Sequence[RankedBeer]) -> None:
    wanted = {(item.beer_id, item.badge) for item in ranked if item.badge}
    held = set(
        db.execute(select(Selo.cerveja_id, Selo.tipo_selo).where(Selo.status.is_(True))).tuples()
    )

    for beer_id, tier in sorted(held - wanted, key=str):
        logger.info("Badge %s revoked for beer %s", tier, beer_id)
        db.execute(
            update(Selo)
            .where(Selo.cerveja_id == beer_id, Selo.tipo_selo == tier)
            .values(status=False)
            .execution_options(synchronize_session="fetch")
        )

    for beer_id, tier in sorted(wanted - held, key=str):
        logger.info("Badge %s granted for beer %s", tier, beer_id)
        stmt = insert_for(db, Selo).values(
            uuid=uuid4(),
            cerveja_id=beer_id,
            tipo_selo=tier,
            status=True,
            criado_em=utcnow(),
        )
        # A revoked row for the same tier is switched back on in place.
        stmt = stmt.on_conflict_do_update(
            index_elements=[Selo.cerveja_id, Selo.tipo_selo],
            set_={"status": True},
        ).returning(Selo)
        db.scalars(stmt, execution_options={"populate_existing": True}).all()


def rebuild_all(db: Session, weights: RankingWeights | None = None) -> list[RankedBeer]:
    """Recompute every beer's counters, then positions and badges."""
    beer_ids = db.scalars(select(Cerveja.uuid)).all()
    for beer_id in beer_ids:
        recompute_counters(db, beer_id)
    ranked = recompute_positions(db, weights)
    logger.info("Rebuilt ranking for %d beers (%d active)", len(beer_ids), len(ranked))
    return ranked


class _BattleBeer(Protocol):
    uuid: UUID
    ativo: bool


def pair_key(first: UUID | str, second: UUID | str) -> str:
    """Return an order-independent key for a pair of beer ids."""
    return "_".join(sorted((str(first), str(second))))


def pick_battle_pair(
    beers: Sequence[_BattleBeer],
    rng: random.Random | None = None,
    recent_pairs: Iterable[str] = (),
) -> tuple[_BattleBeer, _BattleBeer]:
    """Pick two distinct active beers uniformly at random.

    Pairs listed in ``recent_pairs`` (see :func:`pair_key`) are skipped while
    any other pair remains; once every pair has been seen the history is
    ignored.

    Raises:
        NotFound: If fewer than two active beers exist.
    """
    rng = rng or random.Random()
    candidates: dict[UUID, _BattleBeer] = {}
    for beer in beers:
        if beer.ativo:
            candidates.setdefault(beer.uuid, beer)
    active = sorted(candidates.values(), key=lambda beer: str(beer.uuid))
    if len(active) < 2:
        raise NotFound("At least two active beers are needed for a battle")

    seen = set(recent_pairs)
    if seen:
        fresh = [
            (a, b)
            for i, a in enumerate(active)
            for b in active[i + 1:]
            if pair_key(a.uuid, b.uuid) not in seen
        ]
        if fresh:
            first, second = rng.choice(fresh)
            if rng.random() < 0.5:
                first, second = second, first
            return first, second

    first, second = rng.sample(active, 2)
    return first, second


def battle_candidates(db: Session) -> list[Row[tuple[UUID, bool]]]:
    """Return the id and active flag of every active beer."""
    return list(db.execute(select(Cerveja.uuid, Cerveja.ativo).where(Cerveja.ativo.is_(True))))


def pick_battle(
    db: Session,
    rng: random.Random | None = None,
    recent_pairs: Iterable[str] = (),
) -> tuple[Cerveja, Cerveja]:
    """Pick a battle pair from the whole active catalog and load both beers.

    Raises:
        NotFound: If fewer than two active beers exist.
    """
    first, second = pick_battle_pair(battle_candidates(db), rng=rng, recent_pairs=recent_pairs)
    beers = {
        beer.uuid: beer
        for beer in db.scalars(
            select(Cerveja)
            .options(selectinload(Cerveja.ranking), selectinload(Cerveja.selos))
            .where(Cerveja.uuid.in_([first.uuid, second.uuid]), Cerveja.ativo.is_(True))
            .execution_options(populate_existing=True)
        )
    }
    if len(beers) < 2:
        raise NotFound("A battle beer was removed, please try again")
    return beers[first.uuid], beers[second.uuid]
