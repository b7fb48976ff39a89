# src/ama_global/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
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

__all__ = [
    "auth_router",
    "questions_router",
    "answers_router",
    "shares_router",
    "users_router",
    "tags_router",
    "search_router",
    "notifications_router",
    "system_router",
]
