"""SQLAlchemy model for user profiles."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ama_global.db.session import Base
from ama_global.db.time import utcnow

DEFAULT_NOTIFICATION_PREFERENCES: dict[str, bool] = {
    "email": True,
    "push": True,
    "new_answers": True,
    "new_followers": True,
    "mentions": True,
}


def _new_id() -> str:
    return str(uuid.uuid4())


def _default_preferences() -> dict[str, bool]:
    return dict(DEFAULT_NOTIFICATION_PREFERENCES)


class Profile(Base):
    """Public identity record created on first authentication.

    Counter columns are maintained by database triggers and are never written
    directly by the application.
    """

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    email: Mapped[str] = mapped_column(Text, unique=True, nullable=False, index=True)
    username: Mapped[str] = mapped_column(Text, unique=True, nullable=False, index=True)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    reputation: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    is_moderator: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str | None] = mapped_column(Text, nullable=True)
    website: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Denormalized counts.
    questions_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    answers_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    accepted_answers_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    followers_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    following_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    notification_preferences: Mapped[dict[str, Any]] = mapped_column(
        JSON, nullable=False, default=_default_preferences
    )
