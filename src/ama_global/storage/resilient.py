"""Degrade remote failures to the local store.

``safe_operation`` makes exactly one attempt and hands back a caller-chosen
fallback value on any exception. ``ResilientStore`` builds on it to serve
reads and question writes from the local store when the remote store fails,
emitting one warning notice per degradation.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from ama_global.core.notices import Notifier
from ama_global.storage.base import Record
from ama_global.storage.local import LocalStore
from ama_global.storage.remote import RemoteStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

_FAILED = object()


def safe_operation(op: Callable[[], T], fallback: T, *, description: str = "remote operation") -> T:
    """Run ``op`` once and return ``fallback`` if it raises anything."""
    try:
        return op()
    except Exception:
        logger.warning("%s failed; using fallback", description, exc_info=True)
        return fallback


async def safe_async_operation(
    op: Callable[[], Awaitable[T]],
    fallback: T,
    *,
    description: str = "remote operation",
) -> T:
    """Await ``op`` once and return ``fallback`` if it raises anything."""
    try:
        return await op()
    except Exception:
        logger.warning("%s failed; using fallback", description, exc_info=True)
        return fallback


class ResilientStore:
    """Remote-first store that falls back to the local store."""

    is_remote = True

    def __init__(self, remote: RemoteStore, local: LocalStore, notifier: Notifier) -> None:
        self.remote = remote
        self.local = local
        self.notifier = notifier
        self.degraded = False

    def _attempt(
        self,
        description: str,
        remote_call: Callable[[], T],
        local_call: Callable[[], T],
        title: str,
        message: str,
    ) -> T:
        result = safe_operation(remote_call, _FAILED, description=description)
        if result is _FAILED:
            self._degrade()
            self.notifier.warning(title, message)
            return local_call()
        return result  # type: ignore[return-value]

    def _degrade(self) -> None:
        self.remote.reset()
        self.degraded = True

    def _read(self, description: str, remote_call: Callable[[], T], local_call: Callable[[], T]) -> T:
        return self._attempt(
            description,
            remote_call,
            local_call,
            "Connection Issues",
            "Unable to connect to server. Loading offline data.",
        )

    # -- questions -------------------------------------------------------

    def list_questions(self) -> list[Record]:
        return self._read("load questions", self.remote.list_questions, self.local.list_questions)

    def get_question(self, question_id: str) -> Record | None:
        return self._read(
            "load question",
            lambda: self.remote.get_question(question_id),
            lambda: self.local.get_question(question_id),
        )

    def insert_question(self, record: Record) -> Record:
        return self._attempt(
            "create question",
            lambda: self.remote.insert_question(record),
            lambda: self.local.insert_question(record),
            "Saved Offline",
            "Question saved locally on this device.",
        )

    def cast_vote(self, user_id: str, target_id: str, target_type: str, direction: str) -> int | None:
        """Vote remotely, else locally; a target this device never stored is not voted on."""
        total = safe_operation(
            lambda: self.remote.cast_vote(user_id, target_id, target_type, direction),
            _FAILED,
            description="vote",
        )
        if total is not _FAILED:
            return total  # type: ignore[return-value]

        self._degrade()
        total = self.local.cast_vote(user_id, target_id, target_type, direction)
        if total is None:
            self.notifier.warning(
                "Connection Issues",
                "Unable to reach the server. Your vote was not saved.",
            )
        else:
            self.notifier.warning(
                "Vote Saved Offline",
                "Your vote has been saved locally on this device.",
            )
        return total

    # -- profiles --------------------------------------------------------

    def list_profiles(self) -> list[Record]:
        return self._read("load profiles", self.remote.list_profiles, self.local.list_profiles)

    def get_profile(self, user_id: str) -> Record | None:
        return self._read(
            "load profile",
            lambda: self.remote.get_profile(user_id),
            lambda: self.local.get_profile(user_id),
        )

    def get_profile_by_username(self, username: str) -> Record | None:
        return self._read(
            "load profile",
            lambda: self.remote.get_profile_by_username(username),
            lambda: self.local.get_profile_by_username(username),
        )

    def find_profile_by_email(self, email: str) -> Record | None:
        return self._read(
            "find profile",
            lambda: self.remote.find_profile_by_email(email),
            lambda: self.local.find_profile_by_email(email),
        )

    def insert_profile(self, record: Record) -> Record:
        return self.remote.insert_profile(record)

    def update_profile(self, user_id: str, changes: Record) -> Record | None:
        return self.remote.update_profile(user_id, changes)

    # -- answers and comments --------------------------------------------

    def list_answers(self, question_id: str) -> list[Record]:
        return self._read(
            "load answers",
            lambda: self.remote.list_answers(question_id),
            lambda: self.local.list_answers(question_id),
        )

    def get_answer(self, answer_id: str) -> Record | None:
        return self._read(
            "load answer",
            lambda: self.remote.get_answer(answer_id),
            lambda: self.local.get_answer(answer_id),
        )

    def insert_answer(self, record: Record) -> Record:
        return self.remote.insert_answer(record)

    def accept_answer(self, answer_id: str) -> Record | None:
        return self.remote.accept_answer(answer_id)

    def insert_comment(self, record: Record) -> Record:
        return self.remote.insert_comment(record)

    # -- search ----------------------------------------------------------

    def search(self, term: str) -> dict[str, list[Record]]:
        return self._attempt(
            "search",
            lambda: self.remote.search(term),
            lambda: self.local.search(term),
            "Search Offline",
            "Unable to connect to server. Searching local data only.",
        )

    # -- online-only features --------------------------------------------

    def insert_share(self, record: Record) -> Record:
        return self.remote.insert_share(record)

    def get_share(self, share_code: str) -> Record | None:
        return self.remote.get_share(share_code)

    def is_following(self, follower_id: str, following_id: str) -> bool:
        return self.remote.is_following(follower_id, following_id)

    def follow(self, follower_id: str, following_id: str) -> None:
        self.remote.follow(follower_id, following_id)

    def unfollow(self, follower_id: str, following_id: str) -> None:
        self.remote.unfollow(follower_id, following_id)

    def list_tag_subscriptions(self, user_id: str) -> list[Record]:
        return self.remote.list_tag_subscriptions(user_id)

    def subscribe_tag(self, user_id: str, tag: str) -> Record:
        return self.remote.subscribe_tag(user_id, tag)

    def unsubscribe_tag(self, user_id: str, tag: str) -> None:
        self.remote.unsubscribe_tag(user_id, tag)

    def list_notifications(self, user_id: str, *, unread_only: bool = False) -> list[Record]:
        return self.remote.list_notifications(user_id, unread_only=unread_only)

    def mark_notifications_read(self, user_id: str, notification_id: str | None = None) -> int:
        return self.remote.mark_notifications_read(user_id, notification_id)
