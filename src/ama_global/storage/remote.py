"""Relational store backed by SQLAlchemy.

Every write runs in its own transaction. Counter columns are never written
here except for vote totals; the database triggers maintain the rest, so the
session is expired after each commit to pick up trigger side effects.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any, TypeVar

from sqlalchemy import Select, String, cast, delete, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ama_global.core.errors import NotFoundError
from ama_global.db.session import Base
from ama_global.models import (
    Answer,
    Comment,
    Follow,
    Notification,
    Profile,
    Question,
    QuestionShare,
    TagSubscription,
    Vote,
)
from ama_global.storage.base import DIRECTION_DELTAS, Record

logger = logging.getLogger(__name__)

T = TypeVar("T")

USER_SEARCH_LIMIT = 10
QUESTION_SEARCH_LIMIT = 20
AUTHOR_QUESTION_SEARCH_LIMIT = 10

_VOTE_TARGETS: dict[str, type[Question] | type[Answer] | type[Comment]] = {
    "question": Question,
    "answer": Answer,
    "comment": Comment,
}


def as_record(row: Base) -> Record:
    """Render an ORM row as a plain dictionary with ISO-8601 timestamps."""
    record: Record = {}
    for column in row.__table__.columns:
        value = getattr(row, column.key)
        if isinstance(value, datetime):
            if value.tzinfo is None:
                value = value.replace(tzinfo=UTC)
            value = value.isoformat()
        record[column.key] = value
    return record


def _read_back(row: T | None, kind: str, row_id: str) -> T:
    """Return a row re-read after its insert committed."""
    if row is None:
        raise NotFoundError(f"{kind} {row_id} was not found after it was stored")
    return row


class RemoteStore:
    """Data access against the relational database."""

    is_remote = True

    def __init__(self, session: Session) -> None:
        self.session = session

    @contextmanager
    def _transaction(self) -> Iterator[Session]:
        try:
            yield self.session
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        finally:
            self.session.expire_all()

    def reset(self) -> None:
        """Discard a failed transaction so the session stays usable."""
        try:
            self.session.rollback()
        except SQLAlchemyError:
            logger.warning("Rollback after remote failure also failed", exc_info=True)

    # -- joins -----------------------------------------------------------

    def _profiles_by_id(self, ids: Iterable[str | None]) -> dict[str, Record]:
        wanted = {author_id for author_id in ids if author_id}
        if not wanted:
            return {}
        rows = self.session.scalars(select(Profile).where(Profile.id.in_(wanted)))
        return {profile.id: as_record(profile) for profile in rows}

    def _with_authors(self, rows: Iterable[Base]) -> list[Record]:
        records = [as_record(row) for row in rows]
        profiles = self._profiles_by_id(record.get("author_id") for record in records)
        for record in records:
            author_id = record.get("author_id")
            record["author"] = profiles.get(author_id) if author_id else None
        return records

    def _questions(self, stmt: Select[tuple[Question]]) -> list[Record]:
        return self._with_authors(self.session.scalars(stmt))

    # -- questions -------------------------------------------------------

    def list_questions(self) -> list[Record]:
        return self._questions(select(Question).order_by(Question.created_at.desc()))

    def get_question(self, question_id: str) -> Record | None:
        question = self.session.get(Question, question_id)
        if question is None:
            return None
        return self._with_authors([question])[0]

    def insert_question(self, record: Record) -> Record:
        with self._transaction() as session:
            question = Question(**_columns(Question, record))
            session.add(question)
            session.flush()
            question_id = question.id
        logger.info("Question %s stored", question_id)
        return _read_back(self.get_question(question_id), "Question", question_id)

    def cast_vote(
        self,
        user_id: str,
        target_id: str,
        target_type: str,
        direction: str,
    ) -> int | None:
        """Apply a vote atomically and return the target's new total.

        The target row and the user's existing vote are locked for the
        duration of the transaction. Repeating a direction is a no-op and
        switching direction moves the total by two steps.
        """
        model = _VOTE_TARGETS[target_type]
        delta = DIRECTION_DELTAS[direction]

        with self._transaction() as session:
            target = session.execute(
                select(model.id).where(model.id == target_id).with_for_update()
            ).first()
            if target is None:
                return None

            existing = session.scalars(
                select(Vote)
                .where(
                    Vote.user_id == user_id,
                    Vote.target_id == target_id,
                    Vote.target_type == target_type,
                )
                .with_for_update()
            ).first()

            if existing is None:
                session.add(
                    Vote(
                        user_id=user_id,
                        target_id=target_id,
                        target_type=target_type,
                        vote_type=direction,
                    )
                )
                step = delta
            elif existing.vote_type != direction:
                existing.vote_type = direction
                step = 2 * delta
            else:
                step = 0

            if step:
                session.execute(
                    update(model)
                    .where(model.id == target_id)
                    .values(votes=model.votes + step)
                    .execution_options(synchronize_session=False)
                )

        return self.session.scalar(select(model.votes).where(model.id == target_id))

    # -- profiles --------------------------------------------------------

    def list_profiles(self) -> list[Record]:
        rows = self.session.scalars(
            select(Profile).order_by(Profile.reputation.desc(), Profile.username.asc())
        )
        return [as_record(profile) for profile in rows]

    def get_profile(self, user_id: str) -> Record | None:
        profile = self.session.get(Profile, user_id)
        return None if profile is None else as_record(profile)

    def get_profile_by_username(self, username: str) -> Record | None:
        profile = self.session.scalars(
            select(Profile).where(func.lower(Profile.username) == username.lower())
        ).first()
        return None if profile is None else as_record(profile)

    def find_profile_by_email(self, email: str) -> Record | None:
        profile = self.session.scalars(
            select(Profile).where(func.lower(Profile.email) == email.strip().lower())
        ).first()
        return None if profile is None else as_record(profile)

    def insert_profile(self, record: Record) -> Record:
        with self._transaction() as session:
            profile = Profile(**_columns(Profile, record))
            session.add(profile)
            session.flush()
            profile_id = profile.id
        logger.info("Profile %s created", profile_id)
        return _read_back(self.get_profile(profile_id), "Profile", profile_id)

    def update_profile(self, user_id: str, changes: Record) -> Record | None:
        with self._transaction() as session:
            profile = session.get(Profile, user_id)
            if profile is None:
                return None
            for key, value in _columns(Profile, changes).items():
                setattr(profile, key, value)
        return self.get_profile(user_id)

    # -- answers and comments --------------------------------------------

    def _comments_for(self, answer_ids: list[str]) -> dict[str, list[Record]]:
        grouped: dict[str, list[Record]] = {answer_id: [] for answer_id in answer_ids}
        if not answer_ids:
            return grouped
        comments = self._with_authors(
            self.session.scalars(
                select(Comment)
                .where(Comment.answer_id.in_(answer_ids))
                .order_by(Comment.created_at.asc())
            )
        )
        for comment in comments:
            grouped[comment["answer_id"]].append(comment)
        return grouped

    def list_answers(self, question_id: str) -> list[Record]:
        answers = self._with_authors(
            self.session.scalars(
                select(Answer)
                .where(Answer.question_id == question_id)
                .order_by(
                    Answer.is_accepted.desc(),
                    Answer.votes.desc(),
                    Answer.created_at.asc(),
                )
            )
        )
        comments = self._comments_for([answer["id"] for answer in answers])
        for answer in answers:
            answer["comments"] = comments[answer["id"]]
        return answers

    def get_answer(self, answer_id: str) -> Record | None:
        answer = self.session.get(Answer, answer_id)
        if answer is None:
            return None
        record = self._with_authors([answer])[0]
        record["comments"] = self._comments_for([answer_id])[answer_id]
        return record

    def insert_answer(self, record: Record) -> Record:
        with self._transaction() as session:
            answer = Answer(**_columns(Answer, record))
            session.add(answer)
            session.flush()
            answer_id = answer.id
        logger.info("Answer %s stored", answer_id)
        return _read_back(self.get_answer(answer_id), "Answer", answer_id)

    def accept_answer(self, answer_id: str) -> Record | None:
        """Mark one answer accepted and clear any other on the same question.

        The parent question row is locked first so two concurrent
        acceptances on one question serialize and at most one answer ends
        up accepted.
        """
        with self._transaction() as session:
            question_id = session.scalar(select(Answer.question_id).where(Answer.id == answer_id))
            if question_id is None:
                return None
            session.execute(select(Question.id).where(Question.id == question_id).with_for_update())
            session.execute(
                update(Answer)
                .where(
                    Answer.question_id == question_id,
                    Answer.id != answer_id,
                    Answer.is_accepted.is_(True),
                )
                .values(is_accepted=False)
                .execution_options(synchronize_session=False)
            )
            session.execute(
                update(Answer)
                .where(Answer.id == answer_id, Answer.is_accepted.is_(False))
                .values(is_accepted=True)
                .execution_options(synchronize_session=False)
            )
        return self.get_answer(answer_id)

    def insert_comment(self, record: Record) -> Record:
        with self._transaction() as session:
            comment = Comment(**_columns(Comment, record))
            session.add(comment)
            session.flush()
            comment_id = comment.id
        comment_row = self.session.get(Comment, comment_id)
        return self._with_authors([comment_row])[0]

    # -- search ----------------------------------------------------------

    def search(self, term: str) -> dict[str, list[Record]]:
        """Search profiles and questions the way the feed search box does.

        Profiles match on username or email, questions on title, content or
        an exact tag. Questions written by matching profiles are appended
        after the direct matches without duplicates.
        """
        term = term.strip()
        if not term:
            return {"users": [], "questions": []}
        pattern = f"%{term.lower()}%"

        users = [
            as_record(profile)
            for profile in self.session.scalars(
                select(Profile)
                .where(
                    or_(
                        func.lower(Profile.username).like(pattern),
                        func.lower(Profile.email).like(pattern),
                    )
                )
                .limit(USER_SEARCH_LIMIT)
            )
        ]

        # Tags are stored as a JSON array; match the quoted element text.
        tag_pattern = f'%"{term.lower()}"%'
        questions = self._questions(
            select(Question)
            .where(
                or_(
                    func.lower(Question.title).like(pattern),
                    func.lower(Question.content).like(pattern),
                    func.lower(cast(Question.tags, String)).like(tag_pattern),
                )
            )
            .order_by(Question.created_at.desc())
            .limit(QUESTION_SEARCH_LIMIT)
        )

        if users:
            seen = {question["id"] for question in questions}
            by_author = self._questions(
                select(Question)
                .where(Question.author_id.in_([user["id"] for user in users]))
                .order_by(Question.created_at.desc())
                .limit(AUTHOR_QUESTION_SEARCH_LIMIT)
            )
            questions.extend(q for q in by_author if q["id"] not in seen)

        return {"users": users, "questions": questions}

    # -- shares ----------------------------------------------------------

    def insert_share(self, record: Record) -> Record:
        with self._transaction() as session:
            share = QuestionShare(**_columns(QuestionShare, record))
            session.add(share)
            session.flush()
            share_id = share.id
        return as_record(_read_back(self.session.get(QuestionShare, share_id), "Share", share_id))

    def get_share(self, share_code: str) -> Record | None:
        share = self.session.scalars(
            select(QuestionShare).where(QuestionShare.share_code == share_code)
        ).first()
        return None if share is None else as_record(share)

    # -- follows ---------------------------------------------------------

    def is_following(self, follower_id: str, following_id: str) -> bool:
        found = self.session.scalar(
            select(Follow.id).where(
                Follow.follower_id == follower_id,
                Follow.following_id == following_id,
            )
        )
        return found is not None

    def follow(self, follower_id: str, following_id: str) -> None:
        if self.is_following(follower_id, following_id):
            return
        with self._transaction() as session:
            session.add(Follow(follower_id=follower_id, following_id=following_id))

    def unfollow(self, follower_id: str, following_id: str) -> None:
        with self._transaction() as session:
            session.execute(
                delete(Follow).where(
                    Follow.follower_id == follower_id,
                    Follow.following_id == following_id,
                )
            )

    # -- tag subscriptions -----------------------------------------------

    def list_tag_subscriptions(self, user_id: str) -> list[Record]:
        rows = self.session.scalars(
            select(TagSubscription)
            .where(TagSubscription.user_id == user_id)
            .order_by(TagSubscription.tag.asc())
        )
        return [as_record(row) for row in rows]

    def subscribe_tag(self, user_id: str, tag: str) -> Record:
        existing = self.session.scalars(
            select(TagSubscription).where(
                TagSubscription.user_id == user_id,
                TagSubscription.tag == tag,
            )
        ).first()
        if existing is not None:
            return as_record(existing)
        with self._transaction() as session:
            subscription = TagSubscription(user_id=user_id, tag=tag)
            session.add(subscription)
            session.flush()
            subscription_id = subscription.id
        row = self.session.get(TagSubscription, subscription_id)
        return as_record(_read_back(row, "Tag subscription", subscription_id))

    def unsubscribe_tag(self, user_id: str, tag: str) -> None:
        with self._transaction() as session:
            session.execute(
                delete(TagSubscription).where(
                    TagSubscription.user_id == user_id,
                    TagSubscription.tag == tag,
                )
            )

    # -- notifications ---------------------------------------------------

    def list_notifications(self, user_id: str, *, unread_only: bool = False) -> list[Record]:
        stmt = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            stmt = stmt.where(Notification.is_read.is_(False))
        rows = self.session.scalars(stmt.order_by(Notification.created_at.desc()))
        return [as_record(row) for row in rows]

    def mark_notifications_read(self, user_id: str, notification_id: str | None = None) -> int:
        stmt = update(Notification).where(
            Notification.user_id == user_id,
            Notification.is_read.is_(False),
        )
        if notification_id is not None:
            stmt = stmt.where(Notification.id == notification_id)
        with self._transaction() as session:
            result = session.execute(
                stmt.values(is_read=True).execution_options(synchronize_session=False)
            )
        return int(result.rowcount or 0)


def _columns(model: type[Base], record: Record) -> dict[str, Any]:
    """Keep only keys that are real columns of ``model``."""
    names = {column.key for column in model.__table__.columns}
    return {key: value for key, value in record.items() if key in names}
