# src/topbreja/models/__init__.py
"""SQLAlchemy models for the TopBreja application."""

from .beer import Cerveja
from .comment import Comentario, ComentarioCurtida
from .engagement import Avaliacao, Favorito, Voto
from .ranking import Ranking, Selo
from .user import Usuario

__all__ = [
    "Cerveja",
    "Comentario", "ComentarioCurtida",
    "Avaliacao", "Favorito", "Voto",
    "Ranking", "Selo",
    "Usuario",
]
