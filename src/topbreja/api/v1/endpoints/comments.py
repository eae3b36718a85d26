"""Comment maintenance and reaction endpoints for the TopBreja API."""

from uuid import UUID

from fastapi import APIRouter, Response, status

from topbreja.api.v1.dependencies import AuthStateDep, CurrentUserDep, SessionDep
from topbreja.models import Usuario
from topbreja.schemas.comment import CommentOut, CommentUpdate
from topbreja.schemas.engagement import ReactionCreate, ReactionResponse
from topbreja.services.comments import (
    CommentNode,
    delete_comment,
    edit_comment,
    react_to_comment,
)

router = APIRouter(prefix="/comments", tags=["comments"])


@router.patch("/{comment_id}", response_model=CommentOut)
async def update_comment(
    comment_id: UUID,
    comment_data: CommentUpdate,
    db: SessionDep,
    current_user: CurrentUserDep,
) -> CommentOut:
    """Edit the text of one of the user's own comments."""
    comment = edit_comment(db, current_user.uuid, comment_id, comment_data.descricao)
    author = db.get(Usuario, current_user.uuid)
    return CommentOut.from_node(CommentNode(comment=comment, author=author))


@router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_comment(
    comment_id: UUID,
    db: SessionDep,
    current_user: CurrentUserDep,
    auth: AuthStateDep,
) -> Response:
    """Soft-delete a comment (author or administrator)."""
    delete_comment(db, current_user.uuid, comment_id, is_admin=auth.is_admin)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{comment_id}/reaction", response_model=ReactionResponse)
async def react(
    comment_id: UUID,
    reaction: ReactionCreate,
    db: SessionDep,
    current_user: CurrentUserDep,
) -> ReactionResponse:
    """Like or dislike a comment; repeating the same reaction removes it."""
    return ReactionResponse(tipo=react_to_comment(db, current_user.uuid, comment_id, reaction.tipo))
