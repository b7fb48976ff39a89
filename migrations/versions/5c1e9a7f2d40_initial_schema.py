"""initial schema

Revision ID: 5c1e9a7f2d40
Revises:
Create Date: 2026-10-19 09:12:44.318205

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from ama_global.db.triggers import POSTGRES_FUNCTIONS, iter_postgres_ddl

# revision identifiers, used by Alembic.
revision: str = "5c1e9a7f2d40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column("id", sa.String(length=64), nullable=False)


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)


def _profile_fk(name: str, *, nullable: bool, ondelete: str = "CASCADE") -> sa.Column:
    return sa.Column(
        name,
        sa.String(length=64),
        sa.ForeignKey("profiles.id", ondelete=ondelete),
        nullable=nullable,
    )


def upgrade() -> None:
    """Create the Q&A tables and, on PostgreSQL, their counter triggers."""
    op.create_table(
        "profiles",
        _id(),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("username", sa.Text(), nullable=False),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column("reputation", sa.Integer(), nullable=False, server_default="0"),
        _created_at(),
        sa.Column("is_moderator", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("location", sa.Text(), nullable=True),
        sa.Column("website", sa.Text(), nullable=True),
        sa.Column("questions_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("answers_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("accepted_answers_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("followers_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("following_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("notification_preferences", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
        sa.UniqueConstraint("username"),
    )
    op.create_index("ix_profiles_email", "profiles", ["email"])
    op.create_index("ix_profiles_username", "profiles", ["username"])

    op.create_table(
        "questions",
        _id(),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("content_type", sa.String(length=8), nullable=False, server_default="plain"),
        _profile_fk("author_id", nullable=True),
        sa.Column("asker_name", sa.Text(), nullable=True),
        sa.Column("is_anonymous", sa.Boolean(), nullable=False, server_default=sa.false()),
        _profile_fk("target_user_id", nullable=True, ondelete="SET NULL"),
        sa.Column("votes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("answer_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("is_answered", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_featured", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("content_type IN ('plain', 'rich')", name="ck_questions_content_type"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_questions_author_id", "questions", ["author_id"])
    op.create_index("idx_questions_created_at", "questions", ["created_at"])
    op.create_index("idx_questions_votes", "questions", ["votes"])

    op.create_table(
        "answers",
        _id(),
        sa.Column(
            "question_id",
            sa.String(length=64),
            sa.ForeignKey("questions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("content", sa.Text(), nullable=False),
        _profile_fk("author_id", nullable=True),
        sa.Column("votes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_accepted", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_answers_question_id", "answers", ["question_id"])
    op.create_index("ix_answers_author_id", "answers", ["author_id"])

    op.create_table(
        "comments",
        _id(),
        sa.Column(
            "answer_id",
            sa.String(length=64),
            sa.ForeignKey("answers.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("content", sa.Text(), nullable=False),
        _profile_fk("author_id", nullable=True),
        sa.Column("votes", sa.Integer(), nullable=False, server_default="0"),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_comments_answer_id", "comments", ["answer_id"])

    op.create_table(
        "votes",
        _id(),
        _profile_fk("user_id", nullable=False),
        sa.Column("target_id", sa.String(length=64), nullable=False),
        sa.Column("target_type", sa.String(length=16), nullable=False),
        sa.Column("vote_type", sa.String(length=8), nullable=False),
        _created_at(),
        sa.CheckConstraint(
            "target_type IN ('question', 'answer', 'comment')",
            name="ck_votes_target_type",
        ),
        sa.CheckConstraint("vote_type IN ('up', 'down')", name="ck_votes_vote_type"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "target_id", "target_type", name="uq_votes_user_target"),
    )
    op.create_index("idx_votes_target", "votes", ["target_type", "target_id"])

    op.create_table(
        "notifications",
        _id(),
        _profile_fk("user_id", nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
        sa.CheckConstraint(
            "type IN ('new_answer', 'new_comment', 'question_answered', "
            "'follow', 'mention', 'announcement')",
            name="ck_notifications_type",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])

    op.create_table(
        "follows",
        _id(),
        _profile_fk("follower_id", nullable=False),
        _profile_fk("following_id", nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("follower_id", "following_id", name="uq_follows_pair"),
    )
    op.create_index("ix_follows_follower_id", "follows", ["follower_id"])
    op.create_index("ix_follows_following_id", "follows", ["following_id"])

    op.create_table(
        "tag_subscriptions",
        _id(),
        _profile_fk("user_id", nullable=False),
        sa.Column("tag", sa.Text(), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "tag", name="uq_tag_subscriptions_pair"),
    )
    op.create_index("ix_tag_subscriptions_user_id", "tag_subscriptions", ["user_id"])
    op.create_index("ix_tag_subscriptions_tag", "tag_subscriptions", ["tag"])

    op.create_table(
        "question_shares",
        _id(),
        sa.Column(
            "question_id",
            sa.String(length=64),
            sa.ForeignKey("questions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("share_code", sa.Text(), nullable=False),
        sa.Column("allow_anonymous", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("require_auth", sa.Boolean(), nullable=False, server_default=sa.false()),
        _profile_fk("created_by", nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("share_code"),
    )
    op.create_index("ix_question_shares_question_id", "question_shares", ["question_id"])

    if op.get_bind().dialect.name == "postgresql":
        for statement in iter_postgres_ddl():
            op.execute(statement)


def downgrade() -> None:
    """Drop every table created by this revision."""
    for table in (
        "question_shares",
        "tag_subscriptions",
        "follows",
        "notifications",
        "votes",
        "comments",
        "answers",
        "questions",
        "profiles",
    ):
        op.drop_table(table)

    if op.get_bind().dialect.name == "postgresql":
        for name in POSTGRES_FUNCTIONS:
            op.execute(f"DROP FUNCTION IF EXISTS {name}() CASCADE")
