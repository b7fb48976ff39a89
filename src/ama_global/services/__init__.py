"""Business logic services for the AMA Global application."""

from .auth_service import AuthService, AuthState, AuthStatus
from .engagement_service import EngagementService
from .identity import IdentityProvider
from .question_service import QuestionFeed
from .search_service import SearchService
from .share_service import ShareService
from .thread_service import QuestionThread

__all__ = [
    "AuthService",
    "AuthState",
    "AuthStatus",
    "EngagementService",
    "IdentityProvider",
    "QuestionFeed",
    "QuestionThread",
    "SearchService",
    "ShareService",
]
