"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .auth import AuthStateResponse, SignInRequest, SignUpRequest
from .common import ErrorResponse, NoticeResponse
from .engagement import FollowResponse, NotificationResponse, TagSubscriptionResponse
from .profile import ProfileResponse, ProfileSummary, ProfileUpdate
from .question import (
    AnswerCreate,
    AnswerResponse,
    CommentCreate,
    CommentResponse,
    QuestionCreate,
    QuestionDetailResponse,
    QuestionFeedResponse,
    QuestionResponse,
    SearchResponse,
    VoteRequest,
    VoteResponse,
)
from .share import ShareCreate, ShareResponse

__all__ = [
    "AuthStateResponse", "SignInRequest", "SignUpRequest",
    "ErrorResponse", "NoticeResponse",
    "FollowResponse", "NotificationResponse", "TagSubscriptionResponse",
    "ProfileResponse", "ProfileSummary", "ProfileUpdate",
    "AnswerCreate", "AnswerResponse", "CommentCreate", "CommentResponse",
    "QuestionCreate", "QuestionDetailResponse", "QuestionFeedResponse",
    "QuestionResponse", "SearchResponse", "VoteRequest", "VoteResponse",
    "ShareCreate", "ShareResponse",
]
