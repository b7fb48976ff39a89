"""Profile-related Pydantic schemas."""

import re
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]{3,}$")


class ProfileSummary(BaseModel):
    """Author fields embedded in questions, answers and comments."""

    id: str
    username: str
    avatar_url: str | None = None
    reputation: int = 0
    is_moderator: bool = False

    model_config = ConfigDict(from_attributes=True, extra="ignore")


class ProfileResponse(ProfileSummary):
    """Full public profile."""

    email: str
    created_at: datetime | None = None
    bio: str | None = None
    location: str | None = None
    website: str | None = None
    questions_count: int = 0
    answers_count: int = 0
    accepted_answers_count: int = 0
    followers_count: int = 0
    following_count: int = 0
    notification_preferences: dict[str, Any] = Field(default_factory=dict)


class ProfileUpdate(BaseModel):
    """Fields a user may change on their own profile."""

    username: str | None = Field(None, description="Unique handle, letters, digits, _ and -")
    avatar_url: str | None = None
    bio: str | None = Field(None, max_length=500)
    location: str | None = Field(None, max_length=100)
    website: str | None = None
    notification_preferences: dict[str, bool] | None = None

    @field_validator("username")
    @classmethod
    def _check_username(cls, value: str | None) -> str | None:
        if value is None:
            return value
        value = value.strip()
        if not USERNAME_PATTERN.match(value):
            raise ValueError(
                "Username must be at least 3 characters of letters, numbers, _ or -"
            )
        return value

    def changes(self) -> dict[str, Any]:
        """Return only the fields the client actually sent."""
        return self.model_dump(exclude_unset=True)
