"""Share-code schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from ama_global.schemas.question import AnswerResponse, QuestionResponse


class ShareCreate(BaseModel):
    """Policy flags chosen when sharing a question."""

    allow_anonymous: bool = True
    require_auth: bool = False


class ShareResponse(BaseModel):
    """A share code and the link that embeds it."""

    id: str
    question_id: str
    share_code: str
    allow_anonymous: bool
    require_auth: bool
    created_by: str | None = None
    created_at: datetime
    share_url: str

    model_config = ConfigDict(extra="ignore")


class SharedQuestionResponse(BaseModel):
    """Question reached through a share link."""

    question: QuestionResponse
    allow_anonymous: bool
    require_auth: bool


class ShareRespond(BaseModel):
    """Answer submitted from the share landing page."""

    content: str


class ShareRespondResponse(BaseModel):
    """Answer created through a share link."""

    answer: AnswerResponse
