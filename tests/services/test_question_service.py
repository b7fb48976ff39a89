# tests/services/test_question_service.py
"""Tests for the question feed."""

import pytest

from ama_global.core.errors import AuthRequiredError, NotFoundError, ValidationFailedError
from ama_global.core.notices import Notifier
from ama_global.models import Profile
from ama_global.services.question_service import (
    QuestionFeed,
    normalize_tags,
    sort_questions,
)
from ama_global.storage.local import LocalStore
from ama_global.storage.remote import RemoteStore
from ama_global.storage.resilient import ResilientStore

TITLE = "What should I read next?"
CONTENT = "Looking for novels similar to the ones I loved."


def _offline_feed(local_store: LocalStore, notifier: Notifier, user: dict | None = None) -> QuestionFeed:
    return QuestionFeed(local_store, notifier, user)


def test_normalize_tags() -> None:
    tags = [" Python ", "python", "", "Web", "a", "b", "c", "d"]
    assert normalize_tags(tags) == ["python", "web", "a", "b", "c"]


def test_sort_questions_by_every_option() -> None:
    questions = [
        {"id": "1", "created_at": "2024-01-01", "votes": 5, "answer_count": 0, "author": {"username": "zed"}},
        {"id": "2", "created_at": "2024-01-03", "votes": 1, "answer_count": 4, "author": None},
        {"id": "3", "created_at": "2024-01-02", "votes": 3, "answer_count": 2, "author": {"username": "amy"}},
    ]
    ids = lambda rows: [q["id"] for q in rows]  # noqa: E731
    assert ids(sort_questions(questions, "newest")) == ["2", "3", "1"]
    assert ids(sort_questions(questions, "oldest")) == ["1", "3", "2"]
    assert ids(sort_questions(questions, "votes")) == ["1", "3", "2"]
    assert ids(sort_questions(questions, "answers")) == ["2", "3", "1"]
    assert ids(sort_questions(questions, "username-az")) == ["2", "3", "1"]
    assert ids(sort_questions(questions, "username-za")) == ["1", "3", "2"]
    with pytest.raises(ValidationFailedError):
        sort_questions(questions, "random")


@pytest.mark.parametrize(
    ("title", "content", "field"),
    [
        ("", CONTENT, "title"),
        ("Too short", CONTENT, "title"),
        ("x" * 201, CONTENT, "title"),
        (TITLE, "", "content"),
        (TITLE, "short content", "content"),
    ],
)
def test_validation_errors(
    local_store: LocalStore, notifier: Notifier, title: str, content: str, field: str
) -> None:
    feed = _offline_feed(local_store, notifier)
    with pytest.raises(ValidationFailedError) as exc_info:
        feed.create_question(title, content, is_anonymous=True)
    assert field in exc_info.value.errors


def test_guest_must_name_themselves_or_be_anonymous(local_store: LocalStore, notifier: Notifier) -> None:
    feed = _offline_feed(local_store, notifier)
    with pytest.raises(ValidationFailedError) as exc_info:
        feed.create_question(TITLE, CONTENT)
    assert "asker_name" in exc_info.value.errors


def test_guest_anonymous_question_has_no_attribution(local_store: LocalStore, notifier: Notifier) -> None:
    """An anonymous guest keeps neither an author nor the name they typed."""
    feed = _offline_feed(local_store, notifier)
    question = feed.create_question(TITLE, CONTENT, asker_name="Jo", is_anonymous=True)

    assert question["author_id"] is None
    assert question["asker_name"] is None
    assert question["is_anonymous"] is True
    assert feed.questions[0]["id"] == question["id"]


def test_named_guest_keeps_name(local_store: LocalStore, notifier: Notifier) -> None:
    feed = _offline_feed(local_store, notifier)
    question = feed.create_question(TITLE, CONTENT, asker_name="  Jo  ", tags=["Books"])
    assert question["asker_name"] == "Jo"
    assert question["author_id"] is None
    assert question["tags"] == ["books"]


def test_signed_in_user_is_author(local_store: LocalStore, notifier: Notifier) -> None:
    user = local_store.insert_profile({"email": "kim@example.com", "username": "kim"})
    feed = _offline_feed(local_store, notifier, user)
    question = feed.create_question(TITLE, CONTENT, asker_name="ignored")
    assert question["author_id"] == user["id"]
    assert question["asker_name"] is None
    assert question["author"]["username"] == "kim"


def test_signed_in_anonymous_drops_author(local_store: LocalStore, notifier: Notifier) -> None:
    user = local_store.insert_profile({"email": "kim@example.com", "username": "kim"})
    feed = _offline_feed(local_store, notifier, user)
    question = feed.create_question(TITLE, CONTENT, is_anonymous=True)
    assert question["author_id"] is None
    assert question["author"] is None


def test_targeted_question_gets_suffix(local_store: LocalStore, notifier: Notifier) -> None:
    target = local_store.insert_profile({"email": "lee@example.com", "username": "lee"})
    feed = _offline_feed(local_store, notifier)
    question = feed.create_question(TITLE, CONTENT, is_anonymous=True, target_username="@lee")

    assert question["title"] == f"{TITLE} (asked to @lee)"
    assert question["target_user_id"] == target["id"]
    feed.load_questions()
    assert [q["id"] for q in feed.questions_for_user("lee")] == [question["id"]]

    with pytest.raises(NotFoundError):
        feed.create_question(TITLE, CONTENT, is_anonymous=True, target_username="nobody")


def test_voting_requires_sign_in(local_store: LocalStore, notifier: Notifier) -> None:
    feed = _offline_feed(local_store, notifier)
    question = feed.create_question(TITLE, CONTENT, is_anonymous=True)
    with pytest.raises(AuthRequiredError):
        feed.vote_on_question(question["id"], "up")


def test_vote_updates_feed(local_store: LocalStore, notifier: Notifier) -> None:
    user = local_store.insert_profile({"email": "kim@example.com", "username": "kim"})
    feed = _offline_feed(local_store, notifier, user)
    question = feed.create_question(TITLE, CONTENT)

    assert feed.vote_on_question(question["id"], "up") == 1
    assert feed.questions[0]["votes"] == 1
    with pytest.raises(NotFoundError):
        feed.vote_on_question("offline_1_missingxx", "up")


def test_tag_views(local_store: LocalStore, notifier: Notifier) -> None:
    feed = _offline_feed(local_store, notifier)
    feed.create_question(TITLE, CONTENT, is_anonymous=True, tags=["books", "fiction"])
    feed.create_question("Another question title", CONTENT, is_anonymous=True, tags=["books"])
    feed.load_questions()

    assert feed.tag_counts() == [("books", 2), ("fiction", 1)]
    assert len(feed.questions_for_tag("FICTION")) == 1


def test_remote_failure_keeps_question_pending(
    remote_store: RemoteStore, local_store: LocalStore, notifier: Notifier, test_user: Profile, mocker
) -> None:
    """A question saved only locally is kept out of the confirmed list."""
    store = ResilientStore(remote_store, local_store, notifier)
    mocker.patch.object(remote_store, "insert_question", side_effect=RuntimeError("down"))
    user = remote_store.get_profile(test_user.id)
    feed = QuestionFeed(store, notifier, user)

    question = feed.create_question(TITLE, CONTENT)

    assert question["id"].startswith("offline_")
    assert feed.pending == [question]
    assert feed.questions == []
    assert feed.warning == "Question saved locally on this device."
    assert question["author"]["username"] == "alice"


def test_vote_during_outage_does_not_block(
    remote_store: RemoteStore, local_store: LocalStore, notifier: Notifier, test_user: Profile, mocker
) -> None:
    """A vote on a question only the server holds degrades to a warning."""
    store = ResilientStore(remote_store, local_store, notifier)
    question = remote_store.insert_question(
        {"title": TITLE, "content": CONTENT, "author_id": test_user.id, "votes": 2}
    )
    user = remote_store.get_profile(test_user.id)
    feed = QuestionFeed(store, notifier, user)
    feed.load_questions()
    mocker.patch.object(remote_store, "cast_vote", side_effect=RuntimeError("down"))

    assert feed.vote_on_question(question["id"], "up") == 2
    assert feed.warning == "Unable to reach the server. Your vote was not saved."
    assert local_store.get_votes() == []

    assert QuestionFeed(store, notifier, user).vote_on_question(question["id"], "down") == 0


def test_load_records_fallback_warning(
    remote_store: RemoteStore, local_store: LocalStore, notifier: Notifier, mocker
) -> None:
    store = ResilientStore(remote_store, local_store, notifier)
    mocker.patch.object(remote_store, "list_questions", side_effect=RuntimeError("down"))
    feed = QuestionFeed(store, notifier)

    assert feed.load_questions() == []
    assert feed.loading is False
    assert feed.warning == "Unable to connect to server. Loading offline data."
