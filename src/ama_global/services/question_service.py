"""Question feed: load, ask and vote.

``QuestionFeed`` depends only on the storage port. Remote failures have
already been degraded by the store by the time a call returns; the feed only
records the resulting warning. Questions that reached the local store while
the remote store was expected are kept apart in ``pending`` rather than being
mixed into the confirmed list.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from ama_global.core.errors import AuthRequiredError, NotFoundError, ValidationFailedError
from ama_global.core.notices import NoticeLevel, Notifier
from ama_global.storage.base import DataStore, Record

logger = logging.getLogger(__name__)

MIN_TITLE_LENGTH = 10
MAX_TITLE_LENGTH = 200
MIN_CONTENT_LENGTH = 20
MAX_TAGS = 5

SORT_OPTIONS = ("newest", "oldest", "votes", "answers", "username-az", "username-za")


def normalize_tags(tags: Iterable[str]) -> list[str]:
    """Lower-case, trim and de-duplicate tags, keeping at most five."""
    result: list[str] = []
    for tag in tags:
        cleaned = tag.strip().lower()
        if cleaned and cleaned not in result:
            result.append(cleaned)
    return result[:MAX_TAGS]


def target_suffix(username: str) -> str:
    return f" (asked to @{username})"


def _author_name(question: Mapping[str, Any]) -> str:
    author = question.get("author") or {}
    return str(author.get("username") or "").lower()


def sort_questions(questions: list[Record], sort: str = "newest") -> list[Record]:
    """Return ``questions`` ordered by one of :data:`SORT_OPTIONS`."""
    if sort not in SORT_OPTIONS:
        raise ValidationFailedError(f"Unknown sort option: {sort}")
    if sort == "newest":
        return sorted(questions, key=lambda q: str(q.get("created_at")), reverse=True)
    if sort == "oldest":
        return sorted(questions, key=lambda q: str(q.get("created_at")))
    if sort == "votes":
        return sorted(questions, key=lambda q: int(q.get("votes") or 0), reverse=True)
    if sort == "answers":
        return sorted(questions, key=lambda q: int(q.get("answer_count") or 0), reverse=True)
    return sorted(questions, key=_author_name, reverse=sort == "username-za")


class QuestionFeed:
    """In-memory view of the global feed for one user."""

    def __init__(self, store: DataStore, notifier: Notifier, user: Record | None = None) -> None:
        self.store = store
        self.notifier = notifier
        self.user = user
        self.questions: list[Record] = []
        self.pending: list[Record] = []
        self.loading = False
        self.error: str | None = None
        self.warning: str | None = None

    def _warning_since(self, mark: int) -> str | None:
        for notice in reversed(self.notifier.notices[mark:]):
            if notice.level is NoticeLevel.WARNING:
                return notice.message
        return None

    def load_questions(self) -> list[Record]:
        """Load every question, newest first, with its author joined."""
        self.loading = True
        self.error = None
        mark = len(self.notifier.notices)
        try:
            self.questions = self.store.list_questions()
        finally:
            self.loading = False
        self.warning = self._warning_since(mark)
        return self.questions

    def validate(
        self,
        title: str,
        content: str,
        asker_name: str | None,
        is_anonymous: bool,
    ) -> None:
        """Apply the ask-form rules, raising with per-field messages."""
        errors: dict[str, str] = {}
        if not title.strip():
            errors["title"] = "Title is required"
        elif len(title.strip()) < MIN_TITLE_LENGTH:
            errors["title"] = f"Title must be at least {MIN_TITLE_LENGTH} characters"
        elif len(title.strip()) > MAX_TITLE_LENGTH:
            errors["title"] = f"Title must be at most {MAX_TITLE_LENGTH} characters"

        if not content.strip():
            errors["content"] = "Content is required"
        elif len(content.strip()) < MIN_CONTENT_LENGTH:
            errors["content"] = f"Content must be at least {MIN_CONTENT_LENGTH} characters"

        if self.user is None and not is_anonymous and not (asker_name or "").strip():
            errors["asker_name"] = "Please provide your name or choose to ask anonymously"

        if errors:
            raise ValidationFailedError(next(iter(errors.values())), errors=errors)

    def create_question(
        self,
        title: str,
        content: str,
        tags: Iterable[str] = (),
        asker_name: str | None = None,
        is_anonymous: bool = False,
        content_type: str = "plain",
        target_username: str | None = None,
    ) -> Record:
        """Ask a question as the current user, a named guest, or anonymously.

        Anonymous questions never carry an author or a name. A name is only
        kept for guests who are not anonymous.
        """
        self.error = None
        self.validate(title, content, asker_name, is_anonymous)

        title = title.strip()
        target_user_id = None
        if target_username:
            target = self.store.get_profile_by_username(target_username.strip().lstrip("@"))
            if target is None:
                raise NotFoundError(f"User @{target_username} was not found")
            target_user_id = target["id"]
            title = f"{title}{target_suffix(target['username'])}"

        author_id = None if is_anonymous or self.user is None else self.user["id"]
        name = None
        if self.user is None and not is_anonymous:
            name = (asker_name or "").strip() or None
        record: Record = {
            "title": title,
            "content": content.strip(),
            "content_type": content_type,
            "author_id": author_id,
            "asker_name": name,
            "is_anonymous": is_anonymous,
            "target_user_id": target_user_id,
            "votes": 0,
            "answer_count": 0,
            "tags": normalize_tags(tags),
            "is_answered": False,
            "is_featured": False,
        }

        mark = len(self.notifier.notices)
        question = self.store.insert_question(record)
        self.warning = self._warning_since(mark)

        if question.get("author") is None and author_id is not None:
            # The fallback store may not know the signed-in user yet.
            question = {**question, "author": self.store.get_profile(author_id) or self.user}

        if str(question.get("id", "")).startswith("offline_") and self.store.is_remote:
            self.pending.insert(0, question)
        else:
            self.questions.insert(0, question)
        logger.info("Question %s created (author=%s)", question.get("id"), author_id)
        return question

    def _vote(self, target_id: str, target_type: str, direction: str) -> int:
        if self.user is None:
            raise AuthRequiredError("Please sign in to vote", title="Authentication Required")
        if direction not in ("up", "down"):
            raise ValidationFailedError("Vote direction must be 'up' or 'down'")

        mark = len(self.notifier.notices)
        total = self.store.cast_vote(self.user["id"], target_id, target_type, direction)
        self.warning = self._warning_since(mark)
        if total is not None:
            return total
        if self.warning is None:
            raise NotFoundError(f"{target_type.capitalize()} not found")
        # Degraded to a store that has never seen the target: keep the last known total.
        known = next((q for q in self.questions if q.get("id") == target_id), None)
        return int(known.get("votes") or 0) if known else 0

    def vote_on_question(self, question_id: str, direction: str) -> int:
        """Vote on a question and refresh the feed; returns the new total."""
        total = self._vote(question_id, "question", direction)
        warning = self.warning
        self.load_questions()
        self.warning = warning or self.warning
        return total

    def vote_on_answer(self, answer_id: str, direction: str) -> int:
        return self._vote(answer_id, "answer", direction)

    def sorted_questions(self, sort: str = "newest") -> list[Record]:
        return sort_questions(self.questions, sort)

    def questions_for_tag(self, tag: str) -> list[Record]:
        wanted = tag.strip().lower()
        return [
            q for q in self.questions
            if any(str(t).lower() == wanted for t in q.get("tags") or [])
        ]

    def questions_for_user(self, username: str) -> list[Record]:
        """Questions written by ``username`` or asked to them."""
        wanted = username.lower()
        profile = self.store.get_profile_by_username(username)
        target_id = profile["id"] if profile else None
        suffix = target_suffix(username).lower()
        result = []
        for question in self.questions:
            authored = _author_name(question) == wanted
            received = (target_id is not None and question.get("target_user_id") == target_id) or (
                suffix in str(question.get("title", "")).lower()
            )
            if authored or received:
                result.append(question)
        return result

    def tag_counts(self) -> list[tuple[str, int]]:
        """Return every tag with its question count, most used first."""
        counts: dict[str, int] = {}
        for question in self.questions:
            for tag in question.get("tags") or []:
                counts[str(tag)] = counts.get(str(tag), 0) + 1
        return sorted(counts.items(), key=lambda item: (-item[1], item[0]))
