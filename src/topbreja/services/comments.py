"""Comment threads and comment reactions."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from topbreja.core.errors import ConflictOrTransient, NotAuthorized, NotFound, ValidationError
from topbreja.db.time import utcnow
from topbreja.models import Comentario, ComentarioCurtida, Usuario
from topbreja.models.comment import REACAO_CURTIDA, REACAO_DESCURTIDA
from topbreja.schemas.comment import MAX_COMMENT_LENGTH
from topbreja.services.engagement import get_active_beer
from topbreja.services.ranking import recompute_counters, recompute_positions

logger = logging.getLogger(__name__)
REACTIONS = (REACAO_CURTIDA, REACAO_DESCURTIDA)


@dataclass
class CommentNode:
    """A comment with its author and replies, ready for rendering."""

    comment: Comentario
    author: Usuario | None
    user_reaction: str | None = None
    replies: list[CommentNode] = field(default_factory=list)


def _clean_body(body: str) -> str:
    text = (body or "").strip()
    if not text:
        raise ValidationError("Comment cannot be empty")
    if len(text) > MAX_COMMENT_LENGTH:
        raise ValidationError(f"Comment cannot exceed {MAX_COMMENT_LENGTH} characters")
    return text


def _get_comment(db: Session, comment_id: UUID) -> Comentario:
    comment = db.get(Comentario, comment_id)
    if comment is None or comment.deletado:
        raise NotFound("Comment not found")
    return comment


def _commit_with_ranking(db: Session, beer_id: UUID) -> None:
    try:
        recompute_counters(db, beer_id)
        recompute_positions(db)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Comment write failed for beer %s: %s", beer_id, exc)
        raise ConflictOrTransient() from exc


def add_comment(
    db: Session,
    user_id: UUID,
    beer_id: UUID,
    body: str,
    reply_to_comment_id: UUID | None = None,
) -> Comentario:
    """Create a comment, or a reply when ``reply_to_comment_id`` is set."""
    text = _clean_body(body)
    get_active_beer(db, beer_id)
    if reply_to_comment_id is not None:
        parent = _get_comment(db, reply_to_comment_id)
        if parent.cerveja_id != beer_id:
            raise ValidationError("Replies must target a comment on the same beer")

    comment = Comentario(
        usuario_id=user_id,
        cerveja_id=beer_id,
        descricao=text,
        reply_to_comment_id=reply_to_comment_id,
        curtidas=0,
        descurtidas=0,
        criado_em=utcnow(),
        deletado=False,
    )
    db.add(comment)
    _commit_with_ranking(db, beer_id)
    db.refresh(comment)
    return comment


def reply_to_comment(db: Session, user_id: UUID, comment_id: UUID, body: str) -> Comentario:
    """Reply to an existing comment on the same beer."""
    parent = _get_comment(db, comment_id)
    return add_comment(db, user_id, parent.cerveja_id, body, reply_to_comment_id=parent.uuid)


def edit_comment(db: Session, user_id: UUID, comment_id: UUID, body: str) -> Comentario:
    """Replace the text of the user's own comment."""
    comment = _get_comment(db, comment_id)
    if comment.usuario_id != user_id:
        raise NotAuthorized("Only the author can edit this comment")
    comment.descricao = _clean_body(body)
    comment.editado_em = utcnow()
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise ConflictOrTransient() from exc
    db.refresh(comment)
    return comment


def delete_comment(db: Session, user_id: UUID, comment_id: UUID, *, is_admin: bool = False) -> None:
    """Soft-delete a comment. Authors and administrators may do this."""
    comment = _get_comment(db, comment_id)
    if comment.usuario_id != user_id and not is_admin:
        raise NotAuthorized("Only the author can delete this comment")
    comment.deletado = True
    _commit_with_ranking(db, comment.cerveja_id)
    logger.info("Comment %s deleted by %s", comment_id, user_id)


def react_to_comment(db: Session, user_id: UUID, comment_id: UUID, tipo: str) -> str | None:
    """Toggle a like/dislike and return the user's reaction afterwards.

    Repeating the same reaction removes it; choosing the other one switches.
    """
    if tipo not in REACTIONS:
        raise ValidationError(f"Reaction must be one of {', '.join(REACTIONS)}")
    comment = _get_comment(db, comment_id)

    existing = db.execute(
        select(ComentarioCurtida).where(
            ComentarioCurtida.comentario_id == comment.uuid,
            ComentarioCurtida.usuario_id == user_id,
        )
    ).scalar_one_or_none()

    if existing is None:
        db.add(ComentarioCurtida(comentario_id=comment.uuid, usuario_id=user_id, tipo=tipo))
        result: str | None = tipo
    elif existing.tipo == tipo:
        db.delete(existing)
        result = None
    else:
        existing.tipo = tipo
        result = tipo

    try:
        db.flush()
        _recount_reactions(db, comment.uuid)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Reaction failed on comment %s: %s", comment_id, exc)
        raise ConflictOrTransient() from exc
    return result


def _recount_reactions(db: Session, comment_id: UUID) -> None:
    def _count(tipo: str):
        return (
            select(func.count(ComentarioCurtida.uuid))
            .where(ComentarioCurtida.comentario_id == comment_id, ComentarioCurtida.tipo == tipo)
            .scalar_subquery()
        )

    db.execute(
        update(Comentario)
        .where(Comentario.uuid == comment_id)
        .values(curtidas=_count(REACAO_CURTIDA), descurtidas=_count(REACAO_DESCURTIDA))
        .execution_options(synchronize_session="fetch")
    )


def list_comments(db: Session, beer_id: UUID, viewer_id: UUID | None = None) -> list[CommentNode]:
    """Return the beer's visible comments as a thread tree.

    Top-level comments are newest first; replies are oldest first. Replies
    whose parent was deleted are dropped along with it.
    """
    get_active_beer(db, beer_id)
    rows = db.execute(
        select(Comentario, Usuario)
        .outerjoin(Usuario, Usuario.uuid == Comentario.usuario_id)
        .where(Comentario.cerveja_id == beer_id, Comentario.deletado.is_(False))
        .order_by(Comentario.criado_em, Comentario.uuid)
        .execution_options(populate_existing=True)
    ).all()

    reactions: dict[UUID, str] = {}
    if viewer_id is not None and rows:
        reactions = {
            row.comentario_id: row.tipo
            for row in db.execute(
                select(ComentarioCurtida.comentario_id, ComentarioCurtida.tipo).where(
                    ComentarioCurtida.usuario_id == viewer_id,
                    ComentarioCurtida.comentario_id.in_([c.uuid for c, _ in rows]),
                )
            )
        }

    nodes = {
        comment.uuid: CommentNode(comment=comment, author=author, user_reaction=reactions.get(comment.uuid))
        for comment, author in rows
    }
    roots: list[CommentNode] = []
    for node in nodes.values():
        parent_id = node.comment.reply_to_comment_id
        if parent_id is None:
            roots.append(node)
        elif parent_id in nodes:
            nodes[parent_id].replies.append(node)
    roots.reverse()
    return roots
