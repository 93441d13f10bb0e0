"""Version 1 API endpoints."""

from .endpoints import (
    authentication_router,
    comments_router,
    posts_router,
    users_router,
)

__all__ = [
    "authentication_router",
    "comments_router",
    "posts_router",
    "users_router",
]
