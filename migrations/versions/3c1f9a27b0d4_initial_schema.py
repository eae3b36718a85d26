"""initial schema

Revision ID: 3c1f9a27b0d4
Revises:
Create Date: 2026-10-19 10:12:41.518302

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3c1f9a27b0d4"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _engagement_columns() -> list[sa.Column]:
    return [
        sa.Column("uuid", sa.Uuid(), nullable=False),
        sa.Column("usuario_id", sa.Uuid(), nullable=False),
        sa.Column("cerveja_id", sa.Uuid(), nullable=False),
    ]


def _soft_delete_columns() -> list[sa.Column]:
    return [
        sa.Column("status", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("deletado", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("criado_em", sa.DateTime(timezone=True), nullable=False),
        sa.Column("atualizado_em", sa.DateTime(timezone=True), nullable=False),
    ]


def _engagement_keys(table: str) -> list[sa.SchemaItem]:
    return [
        sa.PrimaryKeyConstraint("uuid"),
        sa.ForeignKeyConstraint(["usuario_id"], ["usuario.uuid"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["cerveja_id"], ["cerveja.uuid"], ondelete="CASCADE"),
        sa.UniqueConstraint("usuario_id", "cerveja_id", name=f"uq_{table}_usuario_cerveja"),
    ]


def upgrade() -> None:
    """Create the catalog, engagement, ranking and comment tables."""
    op.create_table(
        "usuario",
        sa.Column("uuid", sa.Uuid(), nullable=False),
        sa.Column("auth_id", sa.Text(), nullable=True),
        sa.Column("nome", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("foto_perfil", sa.Text(), nullable=True),
        sa.Column("role", sa.Text(), nullable=False, server_default="member"),
        sa.Column("data_criacao", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ultima_atualizacao", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("uuid"),
        sa.UniqueConstraint("auth_id"),
        sa.UniqueConstraint("email"),
    )
    op.create_table(
        "cerveja",
        sa.Column("uuid", sa.Uuid(), nullable=False),
        sa.Column("nome", sa.Text(), nullable=False),
        sa.Column("marca", sa.Text(), nullable=False),
        sa.Column("cervejaria", sa.Text(), nullable=True),
        sa.Column("estilo", sa.Text(), nullable=True),
        sa.Column("teor_alcoolico", sa.Float(), nullable=True),
        sa.Column("ibu", sa.Integer(), nullable=True),
        sa.Column("descricao", sa.Text(), nullable=True),
        sa.Column("imagem_main", sa.Text(), nullable=True),
        sa.Column("ativo", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("data_criacao", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ultima_atualizacao", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("uuid"),
    )
    op.create_table(
        "ranking",
        sa.Column("uuid", sa.Uuid(), nullable=False),
        sa.Column("cerveja_id", sa.Uuid(), nullable=False),
        sa.Column("total_votos", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("media_estrelas", sa.Float(), nullable=False, server_default="0"),
        sa.Column("media_avaliacao", sa.Float(), nullable=False, server_default="0"),
        sa.Column("total_favoritos", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_comentarios", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("pontuacao_total", sa.Float(), nullable=False, server_default="0"),
        sa.Column("posicao", sa.Integer(), nullable=True),
        sa.Column("status", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("ultima_atualizacao", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("uuid"),
        sa.ForeignKeyConstraint(["cerveja_id"], ["cerveja.uuid"], ondelete="CASCADE"),
        sa.UniqueConstraint("cerveja_id"),
    )
    op.create_table(
        "selo",
        sa.Column("uuid", sa.Uuid(), nullable=False),
        sa.Column("cerveja_id", sa.Uuid(), nullable=False),
        sa.Column("tipo_selo", sa.Text(), nullable=False),
        sa.Column("imagem_url", sa.Text(), nullable=True),
        sa.Column("status", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("criado_em", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("uuid"),
        sa.ForeignKeyConstraint(["cerveja_id"], ["cerveja.uuid"], ondelete="CASCADE"),
        sa.UniqueConstraint("cerveja_id", "tipo_selo", name="uq_selo_cerveja_tipo"),
    )
    op.create_table(
        "voto",
        *_engagement_columns(),
        sa.Column("quantidade", sa.Integer(), nullable=False, server_default="1"),
        *_soft_delete_columns(),
        *_engagement_keys("voto"),
    )
    op.create_index("ix_voto_cerveja_id", "voto", ["cerveja_id"])
    op.create_table(
        "favorito",
        *_engagement_columns(),
        *_soft_delete_columns(),
        *_engagement_keys("favorito"),
    )
    op.create_index("ix_favorito_cerveja_id", "favorito", ["cerveja_id"])
    op.create_table(
        "avaliacao",
        *_engagement_columns(),
        sa.Column("quantidade_estrela", sa.SmallInteger(), nullable=False),
        *_soft_delete_columns(),
        *_engagement_keys("avaliacao"),
        sa.CheckConstraint(
            "quantidade_estrela BETWEEN 1 AND 5",
            name="ck_avaliacao_quantidade_estrela",
        ),
    )
    op.create_index("ix_avaliacao_cerveja_id", "avaliacao", ["cerveja_id"])
    op.create_table(
        "comentario",
        sa.Column("uuid", sa.Uuid(), nullable=False),
        sa.Column("usuario_id", sa.Uuid(), nullable=False),
        sa.Column("cerveja_id", sa.Uuid(), nullable=False),
        sa.Column("descricao", sa.Text(), nullable=False),
        sa.Column("reply_to_comment_id", sa.Uuid(), nullable=True),
        sa.Column("curtidas", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("descurtidas", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("criado_em", sa.DateTime(timezone=True), nullable=False),
        sa.Column("editado_em", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deletado", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.PrimaryKeyConstraint("uuid"),
        sa.ForeignKeyConstraint(["usuario_id"], ["usuario.uuid"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["cerveja_id"], ["cerveja.uuid"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["reply_to_comment_id"], ["comentario.uuid"], ondelete="CASCADE"),
    )
    op.create_index("ix_comentario_cerveja_id", "comentario", ["cerveja_id"])
    op.create_table(
        "comentario_curtida",
        sa.Column("uuid", sa.Uuid(), nullable=False),
        sa.Column("comentario_id", sa.Uuid(), nullable=False),
        sa.Column("usuario_id", sa.Uuid(), nullable=False),
        sa.Column("tipo", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("uuid"),
        sa.ForeignKeyConstraint(["comentario_id"], ["comentario.uuid"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["usuario_id"], ["usuario.uuid"], ondelete="CASCADE"),
        sa.UniqueConstraint("comentario_id", "usuario_id", name="uq_comentario_curtida_usuario"),
        sa.CheckConstraint("tipo IN ('curtida', 'descurtida')", name="ck_comentario_curtida_tipo"),
    )


def downgrade() -> None:
    """Drop every table created by :func:`upgrade`."""
    op.drop_table("comentario_curtida")
    op.drop_index("ix_comentario_cerveja_id", table_name="comentario")
    op.drop_table("comentario")
    op.drop_index("ix_avaliacao_cerveja_id", table_name="avaliacao")
    op.drop_table("avaliacao")
    op.drop_index("ix_favorito_cerveja_id", table_name="favorito")
    op.drop_table("favorito")
    op.drop_index("ix_voto_cerveja_id", table_name="voto")
    op.drop_table("voto")
    op.drop_table("selo")
    op.drop_table("ranking")
    op.drop_table("cerveja")
    op.drop_table("usuario")
