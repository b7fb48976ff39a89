# tests/storage/test_local_store.py
"""Tests for the key/value backed local store."""

import json
import re

import pytest

from ama_global.core.errors import OfflineUnavailableError
from ama_global.storage.kv import FileStorage, MemoryStorage
from ama_global.storage.local import (
    ANSWERS_KEY,
    QUESTIONS_KEY,
    USERS_KEY,
    VOTES_KEY,
    LocalStore,
)

OFFLINE_ID = re.compile(r"^offline_\d+_[0-9a-z]{9}$")


def _question(store: LocalStore, author_id: str | None = None, **fields: object) -> dict:
    record = {
        "title": "How do tides work?",
        "content": "Looking for a plain explanation of tides.",
        "author_id": author_id,
        "votes": 0,
        "answer_count": 0,
        "tags": ["science"],
        "is_answered": False,
    }
    record.update(fields)
    return store.insert_question(record)


def test_generated_ids_have_offline_shape() -> None:
    ids = {LocalStore.generate_id() for _ in range(50)}
    assert all(OFFLINE_ID.match(value) for value in ids)
    assert len(ids) == 50


def test_malformed_collection_reads_as_empty() -> None:
    storage = MemoryStorage({QUESTIONS_KEY: "{not json", USERS_KEY: json.dumps({"a": 1})})
    store = LocalStore(storage)
    assert store.load(QUESTIONS_KEY) == []
    assert store.load(USERS_KEY) == []


def test_update_merges_and_reports_missing(local_store: LocalStore) -> None:
    question = _question(local_store)
    updated = local_store.update(QUESTIONS_KEY, question["id"], {"is_featured": True})
    assert updated is not None and updated["is_featured"] is True
    assert updated["title"] == question["title"]
    assert local_store.update(QUESTIONS_KEY, "offline_0_missing00", {"x": 1}) is None


def test_clear_all_keeps_session_keys(kv_storage: MemoryStorage, local_store: LocalStore) -> None:
    kv_storage.set_item("ama_offline_mode", "true")
    local_store.insert_profile({"email": "a@example.com", "username": "ann"})
    _question(local_store)

    local_store.clear_all()

    assert local_store.get_users() == []
    assert local_store.get_questions() == []
    assert kv_storage.get_item("ama_offline_mode") == "true"


def test_questions_listed_newest_first_with_author(local_store: LocalStore) -> None:
    user = local_store.insert_profile({"email": "a@example.com", "username": "ann"})
    first = _question(local_store, user["id"])
    second = _question(local_store, None, asker_name="Guest")

    rows = local_store.get_questions()
    rows[0]["created_at"] = "2024-01-01T00:00:00+00:00"
    rows[1]["created_at"] = "2024-01-02T00:00:00+00:00"
    local_store.save(QUESTIONS_KEY, rows)

    listed = local_store.list_questions()
    assert [q["id"] for q in listed] == [second["id"], first["id"]]
    assert listed[1]["author"]["username"] == "ann"
    assert listed[0]["author"] is None


def test_insert_question_bumps_author_count(local_store: LocalStore) -> None:
    user = local_store.insert_profile({"email": "a@example.com", "username": "ann"})
    _question(local_store, user["id"])
    assert local_store.get_profile(user["id"])["questions_count"] == 1


def test_repeated_vote_is_a_noop(local_store: LocalStore) -> None:
    """Votes move the counter 3 -> 4 and a second up vote leaves it at 4."""
    question = _question(local_store, votes=3)

    assert local_store.cast_vote("u1", question["id"], "question", "up") == 4
    assert local_store.cast_vote("u1", question["id"], "question", "up") == 4
    assert len(local_store.get_votes()) == 1
    assert local_store.get_question(question["id"])["votes"] == 4


def test_switching_vote_moves_one_step(local_store: LocalStore) -> None:
    question = _question(local_store)
    local_store.cast_vote("u1", question["id"], "question", "up")
    assert local_store.cast_vote("u1", question["id"], "question", "down") == 0
    assert [v["vote_type"] for v in local_store.load(VOTES_KEY)] == ["up", "down"]


def test_vote_on_missing_target_returns_none(local_store: LocalStore) -> None:
    assert local_store.cast_vote("u1", "offline_1_aaaaaaaaa", "question", "up") is None
    assert local_store.get_votes() == []


def test_comment_votes_unavailable(local_store: LocalStore) -> None:
    with pytest.raises(OfflineUnavailableError):
        local_store.cast_vote("u1", "c1", "comment", "up")


def test_insert_answer_bumps_counters(local_store: LocalStore) -> None:
    user = local_store.insert_profile({"email": "b@example.com", "username": "ben"})
    question = _question(local_store)
    answer = local_store.insert_answer(
        {"question_id": question["id"], "content": "The moon.", "author_id": user["id"]}
    )
    assert answer["comments"] == []
    assert answer["author"]["username"] == "ben"
    assert local_store.get_question(question["id"])["answer_count"] == 1
    assert local_store.get_profile(user["id"])["answers_count"] == 1


def test_accept_answer_moves_acceptance(local_store: LocalStore) -> None:
    first_author = local_store.insert_profile({"email": "c@example.com", "username": "cat"})
    second_author = local_store.insert_profile({"email": "d@example.com", "username": "dan"})
    question = _question(local_store)
    first = local_store.insert_answer(
        {"question_id": question["id"], "content": "One", "author_id": first_author["id"]}
    )
    second = local_store.insert_answer(
        {"question_id": question["id"], "content": "Two", "author_id": second_author["id"]}
    )

    local_store.accept_answer(first["id"])
    local_store.accept_answer(second["id"])

    accepted = [a for a in local_store.load(ANSWERS_KEY) if a.get("is_accepted")]
    assert [a["id"] for a in accepted] == [second["id"]]
    assert local_store.get_profile(first_author["id"])["reputation"] == 0
    assert local_store.get_profile(second_author["id"])["reputation"] == 15
    assert local_store.get_profile(second_author["id"])["accepted_answers_count"] == 1
    assert local_store.get_question(question["id"])["is_answered"] is True


def test_profile_lookups_ignore_case(local_store: LocalStore) -> None:
    user = local_store.insert_profile({"email": "Eve@Example.com", "username": "Eve"})
    assert local_store.get_profile_by_username("eve")["id"] == user["id"]
    assert local_store.find_profile_by_email(" eve@example.com ")["id"] == user["id"]
    assert user["notification_preferences"]["new_answers"] is True


def test_search_matches_title_tag_and_author(local_store: LocalStore) -> None:
    user = local_store.insert_profile({"email": "f@example.com", "username": "fiona"})
    by_title = _question(local_store, None, title="Why is the sky blue?")
    by_tag = _question(local_store, None, title="Unrelated title here", tags=["Physics"])
    by_author = _question(local_store, user["id"], title="Something else entirely")

    assert [q["id"] for q in local_store.search("SKY")["questions"]] == [by_title["id"]]
    assert [q["id"] for q in local_store.search("physics")["questions"]] == [by_tag["id"]]
    found = local_store.search("fiona")
    assert [u["id"] for u in found["users"]] == [user["id"]]
    assert [q["id"] for q in found["questions"]] == [by_author["id"]]
    assert local_store.search("   ") == {"users": [], "questions": []}


def test_online_only_features(local_store: LocalStore) -> None:
    assert local_store.is_following("a", "b") is False
    assert local_store.list_notifications("a") == []
    assert local_store.list_tag_subscriptions("a") == []
    with pytest.raises(OfflineUnavailableError):
        local_store.follow("a", "b")
    with pytest.raises(OfflineUnavailableError):
        local_store.get_share("q_1_1")
    with pytest.raises(OfflineUnavailableError):
        local_store.insert_comment({"answer_id": "x", "content": "hi"})


def test_file_storage_survives_reopen(tmp_path) -> None:
    path = tmp_path / "store.json"
    store = LocalStore(FileStorage(path))
    question = _question(store)

    reopened = LocalStore(FileStorage(path))
    assert reopened.get_question(question["id"])["title"] == question["title"]

    path.write_text("garbage", encoding="utf-8")
    assert LocalStore(FileStorage(path)).list_questions() == []
