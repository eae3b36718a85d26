"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .beer import (
    BadgeOut,
    BattleOut,
    BeerCreate,
    BeerDetail,
    BeerSummary,
    BeerUpdate,
    PaginatedResponse,
    RankedBeerOut,
    RankingOut,
    SortOption,
)
from .comment import CommentCreate, CommentOut, CommentUpdate
from .engagement import (
    EngagementResponse,
    RatingCreate,
    RatingResponse,
    ReactionCreate,
    ReactionResponse,
)
from .user import AuthState, ProfileUpdate, UserOut

__all__ = [
    "BadgeOut", "BattleOut", "BeerCreate", "BeerDetail", "BeerSummary", "BeerUpdate",
    "PaginatedResponse", "RankedBeerOut", "RankingOut", "SortOption",
    "CommentCreate", "CommentOut", "CommentUpdate",
    "EngagementResponse", "RatingCreate", "RatingResponse", "ReactionCreate", "ReactionResponse",
    "AuthState", "ProfileUpdate", "UserOut",
]
