"""Question detail pages: answers, acceptance and comments."""

from __future__ import annotations

import logging

from ama_global.core.errors import (
    AuthRequiredError,
    NotFoundError,
    PermissionDeniedError,
    ValidationFailedError,
)
from ama_global.storage.base import DataStore, Record

logger = logging.getLogger(__name__)


def order_answers(answers: list[Record]) -> list[Record]:
    """Accepted answer first, then by votes, oldest first on ties."""
    by_age = sorted(answers, key=lambda a: str(a.get("created_at")))
    return sorted(
        by_age,
        key=lambda a: (not a.get("is_accepted"), -int(a.get("votes") or 0)),
    )


def can_accept(question: Record, user: Record | None) -> bool:
    """Only the question's author or a moderator may accept answers."""
    if user is None:
        return False
    return bool(user.get("is_moderator")) or (
        question.get("author_id") is not None and question.get("author_id") == user.get("id")
    )


class QuestionThread:
    """Operations on a single question and its answers."""

    def __init__(self, store: DataStore, user: Record | None = None) -> None:
        self.store = store
        self.user = user

    def _question(self, question_id: str) -> Record:
        question = self.store.get_question(question_id)
        if question is None:
            raise NotFoundError("Question not found")
        return question

    def load(self, question_id: str) -> tuple[Record, list[Record]]:
        question = self._question(question_id)
        answers = order_answers(self.store.list_answers(question_id))
        return question, answers

    def post_answer(self, question_id: str, content: str) -> Record:
        if self.user is None:
            raise AuthRequiredError("Please sign in to answer questions")
        content = content.strip()
        if not content:
            raise ValidationFailedError("Answer content is required", errors={"content": "required"})
        self._question(question_id)

        answer = self.store.insert_answer(
            {
                "question_id": question_id,
                "content": content,
                "author_id": self.user["id"],
                "votes": 0,
                "is_accepted": False,
            }
        )
        if answer.get("author") is None:
            answer = {**answer, "author": self.user}
        logger.info("Answer %s posted on %s", answer.get("id"), question_id)
        return answer

    def accept_answer(self, answer_id: str) -> Record:
        if self.user is None:
            raise AuthRequiredError("Please sign in to accept answers")
        answer = self.store.get_answer(answer_id)
        if answer is None:
            raise NotFoundError("Answer not found")
        question = self._question(answer["question_id"])
        if not can_accept(question, self.user):
            raise PermissionDeniedError(
                "Only the question author or a moderator can accept answers"
            )

        accepted = self.store.accept_answer(answer_id)
        if accepted is None:
            raise NotFoundError("Answer not found")
        logger.info("Answer %s accepted by %s", answer_id, self.user.get("id"))
        return accepted

    def post_comment(self, answer_id: str, content: str) -> Record:
        if self.user is None:
            raise AuthRequiredError("Please sign in to comment")
        content = content.strip()
        if not content:
            raise ValidationFailedError("Comment content is required", errors={"content": "required"})
        if self.store.get_answer(answer_id) is None:
            raise NotFoundError("Answer not found")

        comment = self.store.insert_comment(
            {"answer_id": answer_id, "content": content, "author_id": self.user["id"], "votes": 0}
        )
        if comment.get("author") is None:
            comment = {**comment, "author": self.user}
        return comment
