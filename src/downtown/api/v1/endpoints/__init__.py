"""API endpoint modules for version 1."""

from .authentication import router as authentication_router
from .comments import router as comments_router
from .posts import router as posts_router
from .users import router as users_router

__all__ = [
    "authentication_router",
    "comments_router",
    "posts_router",
    "users_router",
]
