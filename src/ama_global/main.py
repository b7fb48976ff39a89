# src/ama_global/main.py
"""Main entry point for the AMA Global application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from ama_global import __version__
from ama_global.api.v1 import (
    answers_router,
    auth_router,
    notifications_router,
    questions_router,
    search_router,
    shares_router,
    system_router,
    tags_router,
    users_router,
)
from ama_global.api.v1.dependencies import get_key_value_storage
from ama_global.core.errors import AmaError, ValidationFailedError
from ama_global.core.gate import is_offline_mode
from ama_global.core.logging import setup_logging
from ama_global.core.settings import settings
from ama_global.db.session import create_tables
from ama_global.services.identity import get_identity_provider
from ama_global.storage.session_store import SessionStore

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="AMA Global API",
    description="Global ask-me-anything Q&A with an offline fallback store",
    version=__version__,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(auth_router, prefix="/api/v1")
app.include_router(questions_router, prefix="/api/v1")
app.include_router(answers_router, prefix="/api/v1")
app.include_router(shares_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")
app.include_router(tags_router, prefix="/api/v1")
app.include_router(search_router, prefix="/api/v1")
app.include_router(notifications_router, prefix="/api/v1")
app.include_router(system_router, prefix="/api/v1")


@app.exception_handler(AmaError)
async def handle_ama_error(request: Request, exc: AmaError) -> JSONResponse:
    """Render blocking errors as ``{"detail", "title"}`` bodies."""
    body: dict[str, object] = {"detail": exc.message, "title": exc.title}
    if isinstance(exc, ValidationFailedError) and exc.errors:
        body["errors"] = exc.errors
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=body)


@app.on_event("startup")
async def on_startup() -> None:
    setup_logging(settings.log_level)
    session_store = SessionStore(get_key_value_storage())
    session_store.init()
    create_tables()
    logger.info(
        "%s %s started (offline=%s)",
        settings.app_name,
        __version__,
        is_offline_mode(session_store.offline_preference()),
    )


@app.on_event("shutdown")
async def on_shutdown() -> None:
    if settings.has_valid_remote_credentials:
        await get_identity_provider().close()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": "AMA Global API",
        "version": __version__,
        "description": "Global ask-me-anything Q&A with an offline fallback store",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("ama_global.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
