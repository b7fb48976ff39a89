"""Shared response fragments."""

from pydantic import BaseModel, Field

from ama_global.core.notices import Notice, NoticeLevel


class NoticeResponse(BaseModel):
    """Non-blocking message the client should show as a toast."""

    level: NoticeLevel
    title: str
    message: str

    @classmethod
    def from_notice(cls, notice: Notice) -> "NoticeResponse":
        return cls(level=notice.level, title=notice.title, message=notice.message)


class ErrorResponse(BaseModel):
    """Body returned for blocking errors."""

    detail: str = Field(..., description="Human-readable error message")
    title: str = Field(..., description="Short error heading")
