"""Follow, tag subscription and notification schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class FollowResponse(BaseModel):
    """Follow state between the current user and a profile."""

    following: bool
    followers_count: int


class TagSubscriptionResponse(BaseModel):
    """A tag the current user follows."""

    id: str
    tag: str
    created_at: datetime

    model_config = ConfigDict(extra="ignore")


class NotificationResponse(BaseModel):
    """Notification delivered to the current user."""

    id: str
    type: str
    title: str
    message: str
    data: dict[str, Any] = Field(default_factory=dict)
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(extra="ignore")
