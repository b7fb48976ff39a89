"""Share codes that let outsiders answer a question without navigating to it."""

from __future__ import annotations

import logging
import time

from ama_global.core.errors import (
    AuthRequiredError,
    NotFoundError,
    OfflineUnavailableError,
    PermissionDeniedError,
    ValidationFailedError,
)
from ama_global.core.settings import settings
from ama_global.storage.base import DataStore, Record

logger = logging.getLogger(__name__)

INVALID_SHARE_MESSAGE = "This shared question link is invalid or has expired."


def make_share_code(question_id: str, *, now_ms: int | None = None) -> str:
    """Return ``q_<question id>_<milliseconds>``."""
    millis = int(time.time() * 1000) if now_ms is None else now_ms
    return f"q_{question_id}_{millis}"


def share_url(share_code: str) -> str:
    return settings.redirect_url(f"/share/{share_code}")


class ShareService:
    """Create shares, resolve them and accept responses through them."""

    def __init__(self, store: DataStore, user: Record | None = None) -> None:
        self.store = store
        self.user = user

    def _require_online(self) -> None:
        if not self.store.is_remote:
            raise OfflineUnavailableError("Shared questions are not available in offline mode")

    def create_share(
        self,
        question_id: str,
        *,
        allow_anonymous: bool = True,
        require_auth: bool = False,
    ) -> Record:
        self._require_online()
        if self.user is None:
            raise AuthRequiredError("Please sign in to share questions")
        if self.store.get_question(question_id) is None:
            raise NotFoundError("Question not found")

        share = self.store.insert_share(
            {
                "question_id": question_id,
                "share_code": make_share_code(question_id),
                "allow_anonymous": allow_anonymous,
                "require_auth": require_auth,
                "created_by": self.user["id"],
            }
        )
        logger.info("Share %s created for question %s", share["share_code"], question_id)
        return {**share, "share_url": share_url(share["share_code"])}

    def load_shared_question(self, share_code: str) -> tuple[Record, Record]:
        """Return ``(share, question)`` for a code."""
        self._require_online()
        share = self.store.get_share(share_code)
        if share is None:
            raise NotFoundError(INVALID_SHARE_MESSAGE)
        question = self.store.get_question(share["question_id"])
        if question is None:
            raise NotFoundError(INVALID_SHARE_MESSAGE)
        return share, question

    def respond(self, share_code: str, content: str) -> Record:
        """Answer a shared question, possibly without an account."""
        share, question = self.load_shared_question(share_code)
        content = content.strip()
        if not content:
            raise ValidationFailedError("Response content is required", errors={"content": "required"})
        if share.get("require_auth") and self.user is None:
            raise AuthRequiredError("You must be signed in to respond to this question")
        if not share.get("allow_anonymous") and self.user is None:
            raise PermissionDeniedError("Anonymous responses are not allowed for this question")

        answer = self.store.insert_answer(
            {
                "question_id": question["id"],
                "content": content,
                "author_id": self.user["id"] if self.user else None,
                "votes": 0,
                "is_accepted": False,
            }
        )
        logger.info("Response %s submitted through share %s", answer.get("id"), share_code)
        return answer
