"""API endpoint modules for version 1."""

from .admin import router as admin_router
from .auth import router as auth_router
from .beers import router as beers_router
from .comments import router as comments_router
from .ranking import router as ranking_router
from .users import router as users_router

__all__ = [
    "admin_router",
    "auth_router",
    "beers_router",
    "comments_router",
    "ranking_router",
    "users_router",
]
