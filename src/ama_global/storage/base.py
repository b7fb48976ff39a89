"""Storage port shared by the remote, local and resilient stores.

Records cross the port as plain dictionaries shaped like the relational rows,
with timestamps rendered as ISO-8601 strings. Questions, answers and comments
carry an ``author`` key holding the joined profile (or ``None``).
"""

from __future__ import annotations

from typing import Any, Literal, Protocol

Record = dict[str, Any]
TargetType = Literal["question", "answer", "comment"]
Direction = Literal["up", "down"]

DIRECTION_DELTAS: dict[str, int] = {"up": 1, "down": -1}


class DataStore(Protocol):
    """Operations every backend offers to the services."""

    is_remote: bool

    # Questions
    def list_questions(self) -> list[Record]: ...

    def get_question(self, question_id: str) -> Record | None: ...

    def insert_question(self, record: Record) -> Record: ...

    def cast_vote(
        self,
        user_id: str,
        target_id: str,
        target_type: TargetType,
        direction: Direction,
    ) -> int | None: ...

    # Profiles
    def list_profiles(self) -> list[Record]: ...

    def get_profile(self, user_id: str) -> Record | None: ...

    def get_profile_by_username(self, username: str) -> Record | None: ...

    def find_profile_by_email(self, email: str) -> Record | None: ...

    def insert_profile(self, record: Record) -> Record: ...

    def update_profile(self, user_id: str, changes: Record) -> Record | None: ...

    # Answers and comments
    def list_answers(self, question_id: str) -> list[Record]: ...

    def get_answer(self, answer_id: str) -> Record | None: ...

    def insert_answer(self, record: Record) -> Record: ...

    def accept_answer(self, answer_id: str) -> Record | None: ...

    def insert_comment(self, record: Record) -> Record: ...

    # Search
    def search(self, term: str) -> dict[str, list[Record]]: ...

    # Shares
    def insert_share(self, record: Record) -> Record: ...

    def get_share(self, share_code: str) -> Record | None: ...

    # Follows
    def is_following(self, follower_id: str, following_id: str) -> bool: ...

    def follow(self, follower_id: str, following_id: str) -> None: ...

    def unfollow(self, follower_id: str, following_id: str) -> None: ...

    # Tag subscriptions
    def list_tag_subscriptions(self, user_id: str) -> list[Record]: ...

    def subscribe_tag(self, user_id: str, tag: str) -> Record: ...

    def unsubscribe_tag(self, user_id: str, tag: str) -> None: ...

    # Notifications
    def list_notifications(self, user_id: str, *, unread_only: bool = False) -> list[Record]: ...

    def mark_notifications_read(self, user_id: str, notification_id: str | None = None) -> int: ...


def matches_term(question: Record, term: str) -> bool:
    """Return True if a question matches a lower-cased search term.

    Title, content, tags and the joined author's username are compared by
    case-insensitive substring.
    """
    if term in str(question.get("title", "")).lower():
        return True
    if term in str(question.get("content", "")).lower():
        return True
    if any(term in str(tag).lower() for tag in question.get("tags") or []):
        return True
    author = question.get("author")
    return bool(author and term in str(author.get("username", "")).lower())
