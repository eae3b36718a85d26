"""Version 1 API endpoints."""

from .endpoints import (
    admin_router,
    auth_router,
    beers_router,
    comments_router,
    ranking_router,
    users_router,
)

__all__ = [
    "admin_router",
    "auth_router",
    "beers_router",
    "comments_router",
    "ranking_router",
    "users_router",
]
