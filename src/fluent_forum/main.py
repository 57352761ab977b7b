# src/fluent_forum/main.py
"""Main entry point for the Fluent Forum application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from fluent_forum.api.v1 import (
    answers_router,
    auth_router,
    questions_router,
    users_router,
    votes_router,
)
from fluent_forum.core.settings import settings
from fluent_forum.services.errors import ForumError, PartialFailureError

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Fluent Forum API",
    description="Q&A API for English-language learners",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Compress large list responses
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(auth_router, prefix="/api/v1")
app.include_router(questions_router, prefix="/api/v1")
app.include_router(answers_router, prefix="/api/v1")
app.include_router(votes_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")


@app.exception_handler(ForumError)
async def forum_error_handler(request: Request, exc: ForumError) -> JSONResponse:
    """Translate domain errors into JSON responses."""
    if isinstance(exc, PartialFailureError):
        logger.error("%s %s failed at step %s", request.method, request.url.path, exc.step)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Liveness probe; does not touch the database."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Describe the API and where its docs live."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("fluent_forum.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
