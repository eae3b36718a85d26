# tests/services/test_comments.py
"""Tests for comment threads and reactions."""

from uuid import uuid4

import pytest
from sqlalchemy import select

from topbreja.core.errors import NotAuthorized, NotFound, ValidationError
from topbreja.models import Comentario, Ranking
from topbreja.services.comments import (
    add_comment,
    delete_comment,
    edit_comment,
    list_comments,
    react_to_comment,
    reply_to_comment,
)


def _total_comments(db_session, beer_id) -> int:
    return db_session.execute(
        select(Ranking.total_comentarios)
        .where(Ranking.cerveja_id == beer_id)
        .execution_options(populate_existing=True)
    ).scalar_one()


def test_add_comment_updates_counter(db_session, test_user, beer) -> None:
    comment = add_comment(db_session, test_user.uuid, beer.uuid, "  Muito boa!  ")
    assert comment.descricao == "Muito boa!"
    assert _total_comments(db_session, beer.uuid) == 1


@pytest.mark.parametrize("body", ["", "   ", "x" * 1001])
def test_invalid_bodies_are_rejected(db_session, test_user, beer, body) -> None:
    with pytest.raises(ValidationError):
        add_comment(db_session, test_user.uuid, beer.uuid, body)


def test_comment_on_missing_beer(db_session, test_user) -> None:
    with pytest.raises(NotFound):
        add_comment(db_session, test_user.uuid, uuid4(), "Olá")


def test_thread_order(db_session, test_user, other_user, beer) -> None:
    first = add_comment(db_session, test_user.uuid, beer.uuid, "primeiro")
    second = add_comment(db_session, other_user.uuid, beer.uuid, "segundo")
    reply_a = reply_to_comment(db_session, other_user.uuid, first.uuid, "resposta a")
    reply_b = reply_to_comment(db_session, test_user.uuid, first.uuid, "resposta b")

    tree = list_comments(db_session, beer.uuid)
    assert [node.comment.uuid for node in tree] == [second.uuid, first.uuid]
    assert [node.comment.uuid for node in tree[1].replies] == [reply_a.uuid, reply_b.uuid]
    assert tree[1].author.uuid == test_user.uuid


def test_reply_must_stay_on_the_same_beer(db_session, test_user, make_beer) -> None:
    one = make_beer("Uma")
    other = make_beer("Outra")
    parent = add_comment(db_session, test_user.uuid, one.uuid, "pai")
    with pytest.raises(ValidationError):
        add_comment(db_session, test_user.uuid, other.uuid, "filho", reply_to_comment_id=parent.uuid)


def test_only_author_can_edit(db_session, test_user, other_user, beer) -> None:
    comment = add_comment(db_session, test_user.uuid, beer.uuid, "original")
    with pytest.raises(NotAuthorized):
        edit_comment(db_session, other_user.uuid, comment.uuid, "hack")

    edited = edit_comment(db_session, test_user.uuid, comment.uuid, "editado")
    assert edited.descricao == "editado"
    assert edited.editado_em is not None


def test_delete_by_author_or_admin(db_session, test_user, other_user, admin_user, beer) -> None:
    mine = add_comment(db_session, test_user.uuid, beer.uuid, "meu")
    theirs = add_comment(db_session, other_user.uuid, beer.uuid, "deles")

    with pytest.raises(NotAuthorized):
        delete_comment(db_session, test_user.uuid, theirs.uuid)

    delete_comment(db_session, test_user.uuid, mine.uuid)
    delete_comment(db_session, admin_user.uuid, theirs.uuid, is_admin=True)

    assert list_comments(db_session, beer.uuid) == []
    assert _total_comments(db_session, beer.uuid) == 0
    assert db_session.get(Comentario, mine.uuid).deletado is True


def test_deleted_comment_cannot_be_edited(db_session, test_user, beer) -> None:
    comment = add_comment(db_session, test_user.uuid, beer.uuid, "tchau")
    delete_comment(db_session, test_user.uuid, comment.uuid)
    with pytest.raises(NotFound):
        edit_comment(db_session, test_user.uuid, comment.uuid, "volta")


class TestReactions:
    def test_like_then_unlike(self, db_session, test_user, other_user, beer) -> None:
        comment = add_comment(db_session, test_user.uuid, beer.uuid, "curta")
        assert react_to_comment(db_session, other_user.uuid, comment.uuid, "curtida") == "curtida"
        db_session.refresh(comment)
        assert (comment.curtidas, comment.descurtidas) == (1, 0)

        assert react_to_comment(db_session, other_user.uuid, comment.uuid, "curtida") is None
        db_session.refresh(comment)
        assert (comment.curtidas, comment.descurtidas) == (0, 0)

    def test_switching_reaction(self, db_session, test_user, other_user, beer) -> None:
        comment = add_comment(db_session, test_user.uuid, beer.uuid, "polêmica")
        react_to_comment(db_session, other_user.uuid, comment.uuid, "curtida")
        assert react_to_comment(db_session, other_user.uuid, comment.uuid, "descurtida") == "descurtida"
        db_session.refresh(comment)
        assert (comment.curtidas, comment.descurtidas) == (0, 1)

        tree = list_comments(db_session, beer.uuid, viewer_id=other_user.uuid)
        assert tree[0].user_reaction == "descurtida"

    def test_unknown_reaction(self, db_session, test_user, beer) -> None:
        comment = add_comment(db_session, test_user.uuid, beer.uuid, "x")
        with pytest.raises(ValidationError):
            react_to_comment(db_session, test_user.uuid, comment.uuid, "amei")

    def test_thread_shows_each_viewers_own_reaction(self, db_session, test_user, other_user, beer) -> None:
        first = add_comment(db_session, test_user.uuid, beer.uuid, "primeiro")
        second = add_comment(db_session, test_user.uuid, beer.uuid, "segundo")
        react_to_comment(db_session, other_user.uuid, first.uuid, "curtida")
        react_to_comment(db_session, test_user.uuid, second.uuid, "descurtida")

        seen_by_other = {node.comment.uuid: node.user_reaction for node in list_comments(db_session, beer.uuid, other_user.uuid)}
        assert seen_by_other == {first.uuid: "curtida", second.uuid: None}

        seen_by_author = {node.comment.uuid: node.user_reaction for node in list_comments(db_session, beer.uuid, test_user.uuid)}
        assert seen_by_author == {first.uuid: None, second.uuid: "descurtida"}

        anonymous = list_comments(db_session, beer.uuid)
        assert all(node.user_reaction is None for node in anonymous)
