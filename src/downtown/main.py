"""Main entry point for the downtown application."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from downtown import __version__
from downtown.api.v1 import (
    authentication_router,
    comments_router,
    posts_router,
    users_router,
)
from downtown.core.errors import register_exception_handlers
from downtown.core.logging import configure_logging
from downtown.core.settings import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    configure_logging()
    logger.info("Starting %s %s", settings.app_name, __version__)
    yield
    logger.info("Shutting down %s", settings.app_name)


# Initialize FastAPI app
app = FastAPI(
    title="downtown API",
    description="Neighbourhood social network API",
    version=__version__,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

register_exception_handlers(app)

# Authentication routes share the /user prefix and must win over /user/{user_id}.
app.include_router(authentication_router)
app.include_router(users_router)
app.include_router(posts_router)
app.include_router(comments_router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": "downtown API",
        "version": __version__,
        "description": "Neighbourhood social network API",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("downtown.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
