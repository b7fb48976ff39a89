"""Question, answer and comment schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ama_global.schemas.common import NoticeResponse
from ama_global.schemas.profile import ProfileSummary


class QuestionCreate(BaseModel):
    """Payload submitted by the ask-question form."""

    title: str
    content: str
    tags: list[str] = Field(default_factory=list)
    asker_name: str | None = Field(None, description="Display name for guests")
    is_anonymous: bool = False
    content_type: Literal["plain", "rich"] = "plain"
    target_username: str | None = Field(None, description="Ask a specific user (?to=)")


class QuestionResponse(BaseModel):
    """A question as shown in the feed."""

    id: str
    title: str
    content: str
    content_type: str = "plain"
    author_id: str | None = None
    asker_name: str | None = None
    is_anonymous: bool = False
    target_user_id: str | None = None
    votes: int = 0
    answer_count: int = 0
    tags: list[str] = Field(default_factory=list)
    is_answered: bool = False
    is_featured: bool = False
    created_at: datetime
    updated_at: datetime | None = None
    author: ProfileSummary | None = None

    model_config = ConfigDict(extra="ignore")


class QuestionFeedResponse(BaseModel):
    """Feed listing with the data source and any degradation notices."""

    questions: list[QuestionResponse]
    pending: list[QuestionResponse] = Field(default_factory=list)
    offline: bool
    warning: str | None = None
    notices: list[NoticeResponse] = Field(default_factory=list)


class QuestionCreateResponse(BaseModel):
    """Result of asking a question."""

    question: QuestionResponse
    confirmed: bool = Field(..., description="False when the write only reached the local store")
    notices: list[NoticeResponse] = Field(default_factory=list)


class VoteRequest(BaseModel):
    """Direction of a vote."""

    direction: Literal["up", "down"]


class VoteResponse(BaseModel):
    """Vote total after a vote was applied."""

    target_id: str
    votes: int
    notices: list[NoticeResponse] = Field(default_factory=list)


class CommentCreate(BaseModel):
    """Payload for commenting on an answer."""

    content: str


class CommentResponse(BaseModel):
    """A comment on an answer."""

    id: str
    answer_id: str
    content: str
    author_id: str | None = None
    votes: int = 0
    created_at: datetime
    author: ProfileSummary | None = None

    model_config = ConfigDict(extra="ignore")


class AnswerCreate(BaseModel):
    """Payload for answering a question."""

    content: str


class AnswerResponse(BaseModel):
    """An answer with its comments."""

    id: str
    question_id: str
    content: str
    author_id: str | None = None
    votes: int = 0
    is_accepted: bool = False
    created_at: datetime
    updated_at: datetime | None = None
    author: ProfileSummary | None = None
    comments: list[CommentResponse] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class QuestionDetailResponse(BaseModel):
    """A question with its ordered answers."""

    question: QuestionResponse
    answers: list[AnswerResponse]
    notices: list[NoticeResponse] = Field(default_factory=list)


class TagSummary(BaseModel):
    """Tag with the number of questions carrying it."""

    tag: str
    count: int


class SearchResponse(BaseModel):
    """Matches across profiles and questions."""

    users: list[ProfileSummary]
    questions: list[QuestionResponse]
    notices: list[NoticeResponse] = Field(default_factory=list)
