"""Comment-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from topbreja.services.comments import CommentNode

MAX_COMMENT_LENGTH = 1000


class CommentCreate(BaseModel):
    """Schema for posting a comment or a reply."""

    descricao: str = Field(..., min_length=1, max_length=MAX_COMMENT_LENGTH)
    reply_to_comment_id: UUID | None = Field(None, description="Parent comment for replies")


class CommentUpdate(BaseModel):
    descricao: str = Field(..., min_length=1, max_length=MAX_COMMENT_LENGTH)


class CommentOut(BaseModel):
    """A comment with its replies."""

    uuid: UUID
    cerveja_id: UUID
    usuario_id: UUID
    autor_nome: str | None = None
    autor_foto: str | None = None
    descricao: str
    reply_to_comment_id: UUID | None = None
    curtidas: int = 0
    descurtidas: int = 0
    criado_em: datetime
    editado_em: datetime | None = None
    user_reaction: str | None = None
    replies: list[CommentOut] = Field(default_factory=list)

    @classmethod
    def from_node(cls, node: CommentNode) -> CommentOut:
        comment = node.comment
        return cls(
            uuid=comment.uuid,
            cerveja_id=comment.cerveja_id,
            usuario_id=comment.usuario_id,
            autor_nome=node.author.nome if node.author else None,
            autor_foto=node.author.foto_perfil if node.author else None,
            descricao=comment.descricao,
            reply_to_comment_id=comment.reply_to_comment_id,
            curtidas=comment.curtidas,
            descurtidas=comment.descurtidas,
            criado_em=comment.criado_em,
            editado_em=comment.editado_em,
            user_reaction=node.user_reaction,
            replies=[cls.from_node(reply) for reply in node.replies],
        )
