# tests/services/test_ranking.py
"""Tests for composite ranking, badges and battle pairing."""

import random
from dataclasses import dataclass
from unittest.mock import MagicMock
from uuid import UUID, uuid4

import pytest
from sqlalchemy import select

from topbreja.core.errors import NotFound
from topbreja.models import Cerveja, Ranking, Selo
from topbreja.services import ranking as ranking_service
from topbreja.services.engagement import submit_rating, toggle_favorite, toggle_vote
from topbreja.services.ranking import (
    RankingInput,
    RankingWeights,
    RANKING_LOCK_KEY,
    assign_badges,
    battle_candidates,
    compute_ranking,
    lock_rankings,
    pair_key,
    pick_battle,
    pick_battle_pair,
    recompute_counters,
    rank_entries,
    rebuild_all,
    recompute_positions,
)

WEIGHTS = RankingWeights(votes=0.4, rating=0.3, favorites=0.2, comments=0.1)


@dataclass
class FakeBeer:
    uuid: UUID
    ativo: bool = True


def _ids(n: int) -> list[UUID]:
    return sorted((uuid4() for _ in range(n)), key=str)


class TestRankEntries:
    """Pure ordering rules."""

    def test_orders_by_score_descending(self) -> None:
        low, high = _ids(2)
        ranked = rank_entries(
            [RankingInput(low, votes=1), RankingInput(high, votes=5, favorites=2)],
            WEIGHTS,
        )
        assert [item.beer_id for item in ranked] == [high, low]
        assert [item.position for item in ranked] == [1, 2]
        assert ranked[0].score > ranked[1].score

    def test_ties_break_by_id_ascending(self) -> None:
        ids = _ids(4)
        entries = [RankingInput(beer_id, votes=3, avg_stars=4.0) for beer_id in reversed(ids)]
        ranked = rank_entries(entries, WEIGHTS)
        assert [item.beer_id for item in ranked] == ids

    def test_order_is_deterministic_regardless_of_input_order(self) -> None:
        ids = _ids(6)
        entries = [
            RankingInput(beer_id, votes=i % 3, favorites=i % 2, comments=i % 4)
            for i, beer_id in enumerate(ids)
        ]
        first = [item.beer_id for item in rank_entries(entries, WEIGHTS)]
        shuffled = entries[:]
        random.Random(7).shuffle(shuffled)
        assert [item.beer_id for item in rank_entries(shuffled, WEIGHTS)] == first

    def test_zero_maximum_contributes_nothing(self) -> None:
        (beer_id,) = _ids(1)
        ranked = rank_entries([RankingInput(beer_id)], WEIGHTS)
        assert ranked[0].score == 0.0

    def test_rating_is_normalised_by_five_stars(self) -> None:
        (beer_id,) = _ids(1)
        ranked = rank_entries([RankingInput(beer_id, avg_stars=5.0)], WEIGHTS)
        assert ranked[0].score == pytest.approx(0.3)

    def test_weights_change_the_winner(self) -> None:
        voted, rated = _ids(2)
        entries = [RankingInput(voted, votes=10, avg_stars=1.0), RankingInput(rated, votes=1, avg_stars=5.0)]
        by_votes = rank_entries(entries, RankingWeights(votes=1.0, rating=0.0, favorites=0.0, comments=0.0))
        by_rating = rank_entries(entries, RankingWeights(votes=0.0, rating=1.0, favorites=0.0, comments=0.0))
        assert by_votes[0].beer_id == voted
        assert by_rating[0].beer_id == rated


class TestAssignBadges:
    def test_top_three_get_tiers_in_order(self) -> None:
        ids = _ids(4)
        entries = [RankingInput(beer_id, votes=10 - i) for i, beer_id in enumerate(ids)]
        ranked = assign_badges(rank_entries(entries, WEIGHTS), ["ouro", "prata", "bronze"])
        assert [item.badge for item in ranked] == ["ouro", "prata", "bronze", None]

    def test_beers_without_engagement_get_no_badge(self) -> None:
        scored, idle = _ids(2)
        ranked = assign_badges(
            rank_entries([RankingInput(scored, votes=1), RankingInput(idle)], WEIGHTS),
            ["ouro", "prata", "bronze"],
        )
        assert [item.badge for item in ranked] == ["ouro", None]


class TestBattlePair:
    def test_returns_two_distinct_active_beers(self) -> None:
        beers = [FakeBeer(beer_id) for beer_id in _ids(5)] + [FakeBeer(uuid4(), ativo=False)]
        rng = random.Random(1)
        for _ in range(50):
            first, second = pick_battle_pair(beers, rng)
            assert first.uuid != second.uuid
            assert first.ativo and second.ativo

    def test_fewer_than_two_active_beers_raises(self) -> None:
        beers = [FakeBeer(uuid4()), FakeBeer(uuid4(), ativo=False)]
        with pytest.raises(NotFound):
            pick_battle_pair(beers)

    def test_duplicate_rows_do_not_count_as_two_beers(self) -> None:
        beer_id = uuid4()
        with pytest.raises(NotFound):
            pick_battle_pair([FakeBeer(beer_id), FakeBeer(beer_id)])

    def test_recent_pairs_are_avoided_while_others_remain(self) -> None:
        a, b, c = (FakeBeer(beer_id) for beer_id in _ids(3))
        recent = [pair_key(a.uuid, b.uuid), pair_key(a.uuid, c.uuid)]
        rng = random.Random(3)
        for _ in range(20):
            first, second = pick_battle_pair([a, b, c], rng, recent_pairs=recent)
            assert pair_key(first.uuid, second.uuid) == pair_key(b.uuid, c.uuid)

    def test_history_is_ignored_once_every_pair_was_seen(self) -> None:
        a, b = (FakeBeer(beer_id) for beer_id in _ids(2))
        first, second = pick_battle_pair([a, b], recent_pairs=[pair_key(a.uuid, b.uuid)])
        assert {first.uuid, second.uuid} == {a.uuid, b.uuid}

    def test_pair_key_is_order_independent(self) -> None:
        x, y = uuid4(), uuid4()
        assert pair_key(x, y) == pair_key(y, x)

    def test_pairs_are_roughly_uniform(self) -> None:
        beers = [FakeBeer(beer_id) for beer_id in _ids(3)]
        rng = random.Random(42)
        counts: dict[str, int] = {}
        for _ in range(3000):
            first, second = pick_battle_pair(beers, rng)
            key = pair_key(first.uuid, second.uuid)
            counts[key] = counts.get(key, 0) + 1
        assert len(counts) == 3
        assert all(800 < value < 1200 for value in counts.values())


class TestStoredRanking:
    """Ranking rows and badges kept in the database."""

    def test_single_vote_grants_and_revokes_gold(self, db_session, test_user, make_beer) -> None:
        make_beer("Alpha")
        target = make_beer("Bravo")

        toggle_vote(db_session, test_user.uuid, target.uuid)
        ranking = db_session.query(Ranking).filter_by(cerveja_id=target.uuid).one()
        db_session.refresh(ranking)
        assert ranking.total_votos == 1
        assert ranking.posicao == 1
        gold = db_session.query(Selo).filter_by(cerveja_id=target.uuid, tipo_selo="ouro").one()
        assert gold.status is True

        toggle_vote(db_session, test_user.uuid, target.uuid)
        db_session.refresh(ranking)
        db_session.refresh(gold)
        assert ranking.total_votos == 0
        assert gold.status is False

    def test_inactive_beers_lose_their_position(self, db_session, test_user, make_beer) -> None:
        active = make_beer("Ativa")
        retired = make_beer("Aposentada")
        toggle_vote(db_session, test_user.uuid, retired.uuid)

        retired.ativo = False
        db_session.flush()
        ranked = recompute_positions(db_session, WEIGHTS)
        db_session.commit()

        assert [item.beer_id for item in ranked] == [active.uuid]
        row = db_session.query(Ranking).filter_by(cerveja_id=retired.uuid).one()
        db_session.refresh(row)
        assert row.posicao is None
        assert row.status is False
        assert row.total_votos == 1

    def test_compute_ranking_reflects_all_counters(self, db_session, test_user, other_user, make_beer) -> None:
        voted = make_beer("Votada")
        loved = make_beer("Favorita")
        toggle_vote(db_session, test_user.uuid, voted.uuid)
        toggle_vote(db_session, other_user.uuid, voted.uuid)
        toggle_favorite(db_session, test_user.uuid, loved.uuid)
        submit_rating(db_session, test_user.uuid, loved.uuid, 5)

        ranked = compute_ranking(db_session, WEIGHTS)
        by_id = {item.beer_id: item for item in ranked}
        assert by_id[voted.uuid].votes == 2
        assert by_id[loved.uuid].favorites == 1
        assert by_id[loved.uuid].avg_stars == pytest.approx(5.0)
        # 0.4 * 1.0 for votes vs 0.2 * 1.0 + 0.3 * 1.0 for favorite and rating
        assert ranked[0].beer_id == loved.uuid

    def test_rebuild_all_repairs_drifted_counters(self, db_session, test_user, beer) -> None:
        toggle_vote(db_session, test_user.uuid, beer.uuid)
        row = db_session.query(Ranking).filter_by(cerveja_id=beer.uuid).one()
        row.total_votos = 99
        db_session.commit()

        rebuild_all(db_session, WEIGHTS)
        db_session.commit()
        db_session.refresh(row)
        assert row.total_votos == 1

    def test_revoked_badge_is_switched_back_on_in_place(self, db_session, test_user, make_beer) -> None:
        make_beer("Alpha")
        target = make_beer("Bravo")
        toggle_vote(db_session, test_user.uuid, target.uuid)
        gold = db_session.query(Selo).filter_by(cerveja_id=target.uuid, tipo_selo="ouro").one()
        toggle_vote(db_session, test_user.uuid, target.uuid)
        toggle_vote(db_session, test_user.uuid, target.uuid)

        rows = db_session.query(Selo).filter_by(cerveja_id=target.uuid, tipo_selo="ouro").all()
        assert rows == [gold]
        assert gold.status is True

    def test_grant_tolerates_a_row_written_by_another_writer(self, db_session, test_user, beer) -> None:
        db_session.add(Selo(cerveja_id=beer.uuid, tipo_selo="ouro", status=False))
        db_session.commit()

        toggle_vote(db_session, test_user.uuid, beer.uuid)

        statuses = db_session.scalars(
            select(Selo.status).where(Selo.cerveja_id == beer.uuid, Selo.tipo_selo == "ouro")
        ).all()
        assert statuses == [True]


class TestRankingLock:
    """Writers serialize ranking recomputes on PostgreSQL."""

    @staticmethod
    def _session(dialect: str) -> MagicMock:
        db = MagicMock()
        db.get_bind.return_value.dialect.name = dialect
        return db

    def test_postgresql_takes_transaction_advisory_lock(self) -> None:
        db = self._session("postgresql")
        lock_rankings(db)

        db.execute.assert_called_once()
        statement = db.execute.call_args.args[0]
        assert "pg_advisory_xact_lock" in str(statement)
        assert RANKING_LOCK_KEY in statement.compile().params.values()

    def test_sqlite_needs_no_lock(self) -> None:
        db = self._session("sqlite")
        lock_rankings(db)
        db.execute.assert_not_called()

    def test_lock_is_taken_before_counters_are_read(self, db_session, beer, monkeypatch) -> None:
        calls: list[str] = []
        ensure_row = ranking_service._ensure_ranking_row
        load_inputs = ranking_service._load_inputs

        def _ensure(db, beer_id):
            calls.append("ensure")
            ensure_row(db, beer_id)

        def _load(db):
            calls.append("load")
            return load_inputs(db)

        monkeypatch.setattr(ranking_service, "lock_rankings", lambda db: calls.append("lock"))
        monkeypatch.setattr(ranking_service, "_ensure_ranking_row", _ensure)
        monkeypatch.setattr(ranking_service, "_load_inputs", _load)

        recompute_counters(db_session, beer.uuid)
        recompute_positions(db_session, WEIGHTS)

        assert calls == ["lock", "ensure", "lock", "load"]


class TestBattleCatalog:
    """Battles draw from every active beer, however large the catalog."""

    class _HighestPair(random.Random):
        def sample(self, population, k, **kwargs):
            return list(population[-k:])

    def test_every_active_beer_is_a_candidate(self, db_session) -> None:
        beers = [Cerveja(nome=f"Cerveja {n:03d}", marca="Lote", ativo=True) for n in range(105)]
        beers.append(Cerveja(nome="Fora", marca="Lote", ativo=False))
        db_session.add_all(beers)
        db_session.commit()

        candidates = battle_candidates(db_session)
        assert len(candidates) == 105
        assert all(row.ativo for row in candidates)

        highest = sorted((str(beer.uuid) for beer in beers if beer.ativo))[-2:]
        first, second = pick_battle(db_session, rng=self._HighestPair())
        assert sorted([str(first.uuid), str(second.uuid)]) == highest
        assert isinstance(first, Cerveja)
