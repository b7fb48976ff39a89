"""Models capturing voting interactions."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from ama_global.db.session import Base
from ama_global.db.time import utcnow

TARGET_TYPES = ("question", "answer", "comment")
VOTE_TYPES = ("up", "down")


class Vote(Base):
    """Per-user vote on a question, answer or comment."""

    __tablename__ = "votes"
    __table_args__ = (
        CheckConstraint(
            "target_type IN ('question', 'answer', 'comment')",
            name="ck_votes_target_type",
        ),
        CheckConstraint("vote_type IN ('up', 'down')", name="ck_votes_vote_type"),
        # One live vote per user and target in the relational store.
        UniqueConstraint("user_id", "target_id", "target_type", name="uq_votes_user_target"),
        Index("idx_votes_target", "target_type", "target_id"),
    )

    id: Mapped[str] = mapped_column(
        String(64), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    target_id: Mapped[str] = mapped_column(String(64), nullable=False)
    target_type: Mapped[str] = mapped_column(String(16), nullable=False)
    vote_type: Mapped[str] = mapped_column(String(8), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
