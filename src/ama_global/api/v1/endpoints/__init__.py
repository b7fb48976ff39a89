# src/ama_global/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .answers import router as answers_router
from .auth import router as auth_router
from .notifications import router as notifications_router
from .questions import router as questions_router
from .search import router as search_router
from .shares import router as shares_router
from .system import router as system_router
from .tags import router as tags_router
from .users import router as users_router

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
