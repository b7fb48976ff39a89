"""Local store emulating the relational tables on top of key/value storage.

Each table lives under one key as a JSON array that is always read and
written wholesale. The store is the authority in offline mode and the
fallback target when the remote store fails.
"""

from __future__ import annotations

import json
import logging
import secrets
import string
import time

from ama_global.core.errors import OfflineUnavailableError
from ama_global.db.time import utcnow_iso
from ama_global.models.profile import DEFAULT_NOTIFICATION_PREFERENCES
from ama_global.storage.base import DIRECTION_DELTAS, Record, matches_term
from ama_global.storage.kv import KeyValueStorage

logger = logging.getLogger(__name__)

USERS_KEY = "offline_users"
QUESTIONS_KEY = "offline_questions"
ANSWERS_KEY = "offline_answers"
VOTES_KEY = "offline_votes"

TABLE_KEYS = (USERS_KEY, QUESTIONS_KEY, ANSWERS_KEY, VOTES_KEY)

_ID_ALPHABET = string.digits + string.ascii_lowercase
_ID_SUFFIX_LENGTH = 9
_ACCEPTED_ANSWER_REPUTATION = 15

_TARGET_KEYS = {"question": QUESTIONS_KEY, "answer": ANSWERS_KEY}


def _created_desc(record: Record) -> str:
    return str(record.get("created_at") or "")


class LocalStore:
    """Table emulation over a :class:`KeyValueStorage`."""

    is_remote = False

    def __init__(self, storage: KeyValueStorage) -> None:
        self.storage = storage

    # -- generic helpers -------------------------------------------------

    def load(self, key: str) -> list[Record]:
        """Return every row stored under ``key``; malformed data reads as empty."""
        raw = self.storage.get_item(key)
        if raw is None:
            return []
        try:
            rows = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring malformed local data under %s", key)
            return []
        if not isinstance(rows, list):
            logger.warning("Ignoring non-list local data under %s", key)
            return []
        return [row for row in rows if isinstance(row, dict)]

    def save(self, key: str, rows: list[Record]) -> None:
        """Overwrite the whole collection stored under ``key``."""
        self.storage.set_item(key, json.dumps(rows))

    @staticmethod
    def generate_id() -> str:
        """Return an identifier like ``offline_1719650000000_k3j9x0a2b``."""
        millis = int(time.time() * 1000)
        suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_SUFFIX_LENGTH))
        return f"offline_{millis}_{suffix}"

    def _append(self, key: str, record: Record, *, stamp_updated: bool = True) -> Record:
        rows = self.load(key)
        now = utcnow_iso()
        new_record = {**record, "id": self.generate_id(), "created_at": now}
        if stamp_updated:
            new_record["updated_at"] = now
        rows.append(new_record)
        self.save(key, rows)
        return new_record

    def update(self, key: str, record_id: str, changes: Record) -> Record | None:
        """Merge ``changes`` into one row and persist the collection.

        Returns the updated row, or ``None`` when no row has ``record_id``.
        There is deliberately no delete counterpart.
        """
        rows = self.load(key)
        for index, row in enumerate(rows):
            if row.get("id") == record_id:
                updated = {**row, **changes}
                if "updated_at" in row:
                    updated["updated_at"] = utcnow_iso()
                rows[index] = updated
                self.save(key, rows)
                return updated
        return None

    def _adjust(self, key: str, record_id: str | None, **deltas: int) -> Record | None:
        if not record_id:
            return None
        rows = self.load(key)
        for index, row in enumerate(rows):
            if row.get("id") == record_id:
                for field, delta in deltas.items():
                    row[field] = int(row.get(field) or 0) + delta
                rows[index] = row
                self.save(key, rows)
                return row
        return None

    def clear_all(self) -> None:
        """Remove every emulated table."""
        for key in TABLE_KEYS:
            self.storage.remove_item(key)

    # -- per-entity helpers ----------------------------------------------

    def get_users(self) -> list[Record]:
        return self.load(USERS_KEY)

    def save_user(self, user: Record) -> Record:
        rows = self.load(USERS_KEY)
        new_user = {"created_at": utcnow_iso(), **user, "id": self.generate_id()}
        rows.append(new_user)
        self.save(USERS_KEY, rows)
        return new_user

    def get_questions(self) -> list[Record]:
        return self.load(QUESTIONS_KEY)

    def save_question(self, question: Record) -> Record:
        return self._append(QUESTIONS_KEY, question)

    def get_answers(self) -> list[Record]:
        return self.load(ANSWERS_KEY)

    def save_answer(self, answer: Record) -> Record:
        return self._append(ANSWERS_KEY, answer)

    def get_votes(self) -> list[Record]:
        return self.load(VOTES_KEY)

    def save_vote(self, vote: Record) -> Record:
        return self._append(VOTES_KEY, vote, stamp_updated=False)

    # -- joins -----------------------------------------------------------

    def _with_authors(self, rows: list[Record]) -> list[Record]:
        users = {user.get("id"): user for user in self.get_users()}
        return [{**row, "author": users.get(row.get("author_id"))} for row in rows]

    # -- questions -------------------------------------------------------

    def list_questions(self) -> list[Record]:
        questions = sorted(self.get_questions(), key=_created_desc, reverse=True)
        return self._with_authors(questions)

    def get_question(self, question_id: str) -> Record | None:
        for question in self._with_authors(self.get_questions()):
            if question.get("id") == question_id:
                return question
        return None

    def insert_question(self, record: Record) -> Record:
        question = self.save_question(record)
        self._adjust(USERS_KEY, question.get("author_id"), questions_count=1)
        return self._with_authors([question])[0]

    def cast_vote(
        self,
        user_id: str,
        target_id: str,
        target_type: str,
        direction: str,
    ) -> int | None:
        """Record a vote and adjust the cached counter.

        Repeating the direction of the user's latest vote on the target is a
        no-op. Any other vote is appended and moves the counter by one step,
        so a counter always equals its starting value plus the sum of the
        recorded directions. Votes on targets this device does not hold are
        not recorded and return None.
        """
        key = _TARGET_KEYS.get(target_type)
        if key is None:
            raise OfflineUnavailableError(
                f"Voting on {target_type}s is not available in offline mode"
            )

        target = next((row for row in self.load(key) if row.get("id") == target_id), None)
        if target is None:
            return None

        previous = [
            vote
            for vote in self.get_votes()
            if vote.get("user_id") == user_id
            and vote.get("target_id") == target_id
            and vote.get("target_type") == target_type
        ]
        if previous and previous[-1].get("vote_type") == direction:
            logger.debug("Ignoring repeated %s vote by %s on %s", direction, user_id, target_id)
            return int(target.get("votes") or 0)

        self.save_vote(
            {
                "user_id": user_id,
                "target_id": target_id,
                "target_type": target_type,
                "vote_type": direction,
            }
        )
        target = self._adjust(key, target_id, votes=DIRECTION_DELTAS[direction])
        return None if target is None else int(target["votes"])

    # -- profiles --------------------------------------------------------

    def list_profiles(self) -> list[Record]:
        return sorted(
            self.get_users(),
            key=lambda user: (-int(user.get("reputation") or 0), str(user.get("username", ""))),
        )

    def get_profile(self, user_id: str) -> Record | None:
        return next((user for user in self.get_users() if user.get("id") == user_id), None)

    def get_profile_by_username(self, username: str) -> Record | None:
        wanted = username.lower()
        return next(
            (user for user in self.get_users() if str(user.get("username", "")).lower() == wanted),
            None,
        )

    def find_profile_by_email(self, email: str) -> Record | None:
        wanted = email.strip().lower()
        return next(
            (user for user in self.get_users() if str(user.get("email", "")).lower() == wanted),
            None,
        )

    def insert_profile(self, record: Record) -> Record:
        defaults: Record = {
            "avatar_url": None,
            "reputation": 0,
            "is_moderator": False,
            "bio": None,
            "location": None,
            "website": None,
            "questions_count": 0,
            "answers_count": 0,
            "accepted_answers_count": 0,
            "followers_count": 0,
            "following_count": 0,
            "notification_preferences": dict(DEFAULT_NOTIFICATION_PREFERENCES),
        }
        return self.save_user({**defaults, **record})

    def update_profile(self, user_id: str, changes: Record) -> Record | None:
        return self.update(USERS_KEY, user_id, changes)

    # -- answers ---------------------------------------------------------

    def list_answers(self, question_id: str) -> list[Record]:
        answers = [a for a in self.get_answers() if a.get("question_id") == question_id]
        return [{**answer, "comments": []} for answer in self._with_authors(answers)]

    def get_answer(self, answer_id: str) -> Record | None:
        for answer in self._with_authors(self.get_answers()):
            if answer.get("id") == answer_id:
                return {**answer, "comments": []}
        return None

    def insert_answer(self, record: Record) -> Record:
        answer = self.save_answer(record)
        self._adjust(QUESTIONS_KEY, answer.get("question_id"), answer_count=1)
        self._adjust(USERS_KEY, answer.get("author_id"), answers_count=1)
        return {**self._with_authors([answer])[0], "comments": []}

    def accept_answer(self, answer_id: str) -> Record | None:
        answers = self.get_answers()
        chosen = next((a for a in answers if a.get("id") == answer_id), None)
        if chosen is None:
            return None
        if chosen.get("is_accepted"):
            return self.get_answer(answer_id)

        for answer in answers:
            if answer.get("question_id") == chosen.get("question_id") and answer.get("is_accepted"):
                self.update(ANSWERS_KEY, answer["id"], {"is_accepted": False})
                self._adjust(
                    USERS_KEY,
                    answer.get("author_id"),
                    accepted_answers_count=-1,
                    reputation=-_ACCEPTED_ANSWER_REPUTATION,
                )
        self.update(ANSWERS_KEY, answer_id, {"is_accepted": True})
        self._adjust(
            USERS_KEY,
            chosen.get("author_id"),
            accepted_answers_count=1,
            reputation=_ACCEPTED_ANSWER_REPUTATION,
        )
        self.update(QUESTIONS_KEY, chosen["question_id"], {"is_answered": True})
        return self.get_answer(answer_id)

    def insert_comment(self, record: Record) -> Record:
        raise OfflineUnavailableError("Comments are not available in offline mode")

    # -- search ----------------------------------------------------------

    def search(self, term: str) -> dict[str, list[Record]]:
        needle = term.strip().lower()
        if not needle:
            return {"users": [], "questions": []}
        users = [
            user
            for user in self.get_users()
            if needle in str(user.get("username", "")).lower()
            or needle in str(user.get("email", "")).lower()
        ]
        questions = [q for q in self.list_questions() if matches_term(q, needle)]
        return {"users": users, "questions": questions}

    # -- online-only features --------------------------------------------

    def insert_share(self, record: Record) -> Record:
        raise OfflineUnavailableError("Shared questions are not available in offline mode")

    def get_share(self, share_code: str) -> Record | None:
        raise OfflineUnavailableError("Shared questions are not available in offline mode")

    def is_following(self, follower_id: str, following_id: str) -> bool:
        return False

    def follow(self, follower_id: str, following_id: str) -> None:
        raise OfflineUnavailableError("Following users is not available in offline mode")

    def unfollow(self, follower_id: str, following_id: str) -> None:
        raise OfflineUnavailableError("Following users is not available in offline mode")

    def list_tag_subscriptions(self, user_id: str) -> list[Record]:
        return []

    def subscribe_tag(self, user_id: str, tag: str) -> Record:
        raise OfflineUnavailableError("Tag subscriptions are not available in offline mode")

    def unsubscribe_tag(self, user_id: str, tag: str) -> None:
        raise OfflineUnavailableError("Tag subscriptions are not available in offline mode")

    def list_notifications(self, user_id: str, *, unread_only: bool = False) -> list[Record]:
        return []

    def mark_notifications_read(self, user_id: str, notification_id: str | None = None) -> int:
        return 0
