"""Auxiliary engagement records: notifications, follows, tags and shares."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from ama_global.db.session import Base
from ama_global.db.time import utcnow

NOTIFICATION_TYPES = (
    "new_answer",
    "new_comment",
    "question_answered",
    "follow",
    "mention",
    "announcement",
)


def _new_id() -> str:
    return str(uuid.uuid4())


class Notification(Base):
    """Message delivered to a single user, mostly written by triggers."""

    __tablename__ = "notifications"
    __table_args__ = (
        CheckConstraint(
            "type IN ('new_answer', 'new_comment', 'question_answered', "
            "'follow', 'mention', 'announcement')",
            name="ck_notifications_type",
        ),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class Follow(Base):
    """Directed follow edge between two profiles."""

    __tablename__ = "follows"
    __table_args__ = (
        UniqueConstraint("follower_id", "following_id", name="uq_follows_pair"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    follower_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    following_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class TagSubscription(Base):
    """A user's subscription to questions carrying a tag."""

    __tablename__ = "tag_subscriptions"
    __table_args__ = (
        UniqueConstraint("user_id", "tag", name="uq_tag_subscriptions_pair"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tag: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class QuestionShare(Base):
    """Share code granting outsiders answer access to one question."""

    __tablename__ = "question_shares"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    question_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("questions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    share_code: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    allow_anonymous: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    require_auth: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_by: Mapped[str | None] = mapped_column(
        String(64),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
