"""SQLAlchemy models for the AMA Global schema."""

from .engagement import NOTIFICATION_TYPES, Follow, Notification, QuestionShare, TagSubscription
from .profile import DEFAULT_NOTIFICATION_PREFERENCES, Profile
from .question import Answer, Comment, Question
from .vote import TARGET_TYPES, VOTE_TYPES, Vote

# Attach counter and notification triggers to the tables defined above.
from ama_global.db import triggers as _triggers  # noqa: E402,F401

__all__ = [
    "Answer", "Comment", "Question",
    "DEFAULT_NOTIFICATION_PREFERENCES", "Profile",
    "Follow", "Notification", "QuestionShare", "TagSubscription",
    "NOTIFICATION_TYPES", "TARGET_TYPES", "VOTE_TYPES",
    "Vote",
]
