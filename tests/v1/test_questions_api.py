# tests/v1/test_questions_api.py
"""Tests for question, answer and vote endpoints."""

from typing import Any

import pytest
from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from ama_global.models import Profile
from ama_global.storage.remote import RemoteStore

QUESTION = {
    "title": "How do you stay productive?",
    "content": "Share the habits that keep you focused during the week.",
    "tags": ["Productivity", "habits"],
}


def _ask(client: TestClient, headers: dict[str, str] | None = None, **fields: Any) -> dict:
    r = client.post("/api/v1/questions/", json={**QUESTION, **fields}, headers=headers or {})
    assert r.status_code == status.HTTP_201_CREATED, r.text
    return r.json()


@pytest.mark.usefixtures("online")
class TestOnlineQuestions:
    def test_signed_in_user_asks(self, client: TestClient, auth_token: dict[str, str]) -> None:
        body = _ask(client, auth_token)
        question = body["question"]
        assert body["confirmed"] is True
        assert question["author"]["username"] == "alice"
        assert question["tags"] == ["productivity", "habits"]
        assert body["notices"] == []

    def test_anonymous_guest_asks(self, client: TestClient) -> None:
        body = _ask(client, asker_name="Jo", is_anonymous=True)
        question = body["question"]
        assert question["author_id"] is None
        assert question["asker_name"] is None
        assert question["author"] is None

    def test_guest_without_name_is_rejected(self, client: TestClient) -> None:
        r = client.post("/api/v1/questions/", json=QUESTION)
        assert r.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        data = r.json()
        assert data["title"] == "Invalid Input"
        assert "asker_name" in data["errors"]

    def test_feed_lists_and_filters(self, client: TestClient, auth_token: dict[str, str]) -> None:
        first = _ask(client, auth_token)["question"]
        second = _ask(client, auth_token, title="Which keyboard do you use?", tags=["gear"])["question"]

        r = client.get("/api/v1/questions/")
        assert r.status_code == status.HTTP_200_OK
        data = r.json()
        assert data["offline"] is False
        assert {q["id"] for q in data["questions"]} == {first["id"], second["id"]}

        r = client.get("/api/v1/questions/", params={"tag": "gear"})
        assert [q["id"] for q in r.json()["questions"]] == [second["id"]]

        r = client.get("/api/v1/questions/", params={"username": "alice"})
        assert len(r.json()["questions"]) == 2

        r = client.get("/api/v1/questions/", params={"sort": "sideways"})
        assert r.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_voting(
        self,
        client: TestClient,
        auth_token: dict[str, str],
        other_auth_token: dict[str, str],
    ) -> None:
        question = _ask(client, auth_token)["question"]
        url = f"/api/v1/questions/{question['id']}/vote"

        assert client.post(url, json={"direction": "up"}, headers=auth_token).json()["votes"] == 1
        assert client.post(url, json={"direction": "up"}, headers=auth_token).json()["votes"] == 1
        assert client.post(url, json={"direction": "down"}, headers=other_auth_token).json()["votes"] == 0
        assert client.post(url, json={"direction": "down"}, headers=auth_token).json()["votes"] == -2

    def test_voting_requires_sign_in(self, client: TestClient, auth_token: dict[str, str]) -> None:
        question = _ask(client, auth_token)["question"]
        r = client.post(f"/api/v1/questions/{question['id']}/vote", json={"direction": "up"})
        assert r.status_code == status.HTTP_401_UNAUTHORIZED
        assert r.json()["title"] == "Authentication Required"

    def test_invalid_token(self, client: TestClient) -> None:
        r = client.get("/api/v1/questions/", headers={"Authorization": "Bearer nonsense"})
        assert r.status_code == status.HTTP_401_UNAUTHORIZED
        assert r.json()["detail"] == "Could not validate credentials"

    def test_vote_on_missing_question(self, client: TestClient, auth_token: dict[str, str]) -> None:
        r = client.post("/api/v1/questions/missing/vote", json={"direction": "up"}, headers=auth_token)
        assert r.status_code == status.HTTP_404_NOT_FOUND

    def test_answer_accept_and_comment(
        self,
        client: TestClient,
        auth_token: dict[str, str],
        other_auth_token: dict[str, str],
        other_user: Profile,
    ) -> None:
        question = _ask(client, auth_token)["question"]

        r = client.post(
            f"/api/v1/questions/{question['id']}/answers",
            json={"content": "Time blocking works for me."},
            headers=other_auth_token,
        )
        assert r.status_code == status.HTTP_201_CREATED
        answer = r.json()
        assert answer["author"]["username"] == "bob"

        r = client.post(f"/api/v1/answers/{answer['id']}/accept", headers=other_auth_token)
        assert r.status_code == status.HTTP_403_FORBIDDEN

        r = client.post(f"/api/v1/answers/{answer['id']}/accept", headers=auth_token)
        assert r.status_code == status.HTTP_200_OK
        assert r.json()["is_accepted"] is True

        r = client.post(
            f"/api/v1/answers/{answer['id']}/comments",
            json={"content": "Thanks!"},
            headers=auth_token,
        )
        assert r.status_code == status.HTTP_201_CREATED

        r = client.post(
            f"/api/v1/answers/{answer['id']}/vote",
            json={"direction": "up"},
            headers=auth_token,
        )
        assert r.json()["votes"] == 1

        detail = client.get(f"/api/v1/questions/{question['id']}").json()
        assert detail["question"]["answer_count"] == 1
        assert detail["question"]["is_answered"] is True
        assert [c["content"] for c in detail["answers"][0]["comments"]] == ["Thanks!"]

        profile = client.get("/api/v1/users/bob").json()
        assert profile["reputation"] == 15
        assert profile["answers_count"] == 1

    def test_database_outage_serves_local_data(self, client: TestClient, mocker) -> None:
        mocker.patch.object(
            RemoteStore,
            "list_questions",
            side_effect=OperationalError("SELECT", {}, Exception("down")),
        )
        r = client.get("/api/v1/questions/")
        assert r.status_code == status.HTTP_200_OK
        data = r.json()
        assert data["offline"] is True
        assert data["warning"] == "Unable to connect to server. Loading offline data."
        assert data["notices"][0]["title"] == "Connection Issues"

    def test_vote_during_outage_is_not_blocking(
        self, client: TestClient, auth_token: dict[str, str], mocker
    ) -> None:
        question = _ask(client, auth_token)["question"]
        mocker.patch.object(
            RemoteStore,
            "cast_vote",
            side_effect=OperationalError("UPDATE", {}, Exception("down")),
        )

        r = client.post(
            f"/api/v1/questions/{question['id']}/vote", json={"direction": "up"}, headers=auth_token
        )

        assert r.status_code == status.HTTP_200_OK
        data = r.json()
        assert data["votes"] == 0
        assert data["notices"][0]["message"] == "Unable to reach the server. Your vote was not saved."

    def test_question_saved_offline_during_outage(self, client: TestClient, mocker) -> None:
        mocker.patch.object(
            RemoteStore,
            "insert_question",
            side_effect=OperationalError("INSERT", {}, Exception("down")),
        )
        body = _ask(client, asker_name="Jo")
        assert body["confirmed"] is False
        assert body["question"]["id"].startswith("offline_")
        assert body["notices"][0]["title"] == "Saved Offline"


@pytest.mark.usefixtures("offline")
class TestOfflineQuestions:
    def test_guest_question_goes_to_local_store(self, client: TestClient) -> None:
        body = _ask(client, is_anonymous=True)
        assert body["confirmed"] is True
        assert body["question"]["id"].startswith("offline_")

        data = client.get("/api/v1/questions/").json()
        assert data["offline"] is True
        assert [q["id"] for q in data["questions"]] == [body["question"]["id"]]

    def test_offline_user_votes(self, client: TestClient) -> None:
        r = client.post(
            "/api/v1/auth/sign-up",
            json={"email": "ola@example.com", "password": "", "username": "ola"},
        )
        assert r.json()["status"] == "authenticated"

        question = _ask(client)["question"]
        assert question["author"]["username"] == "ola"

        r = client.post(f"/api/v1/questions/{question['id']}/vote", json={"direction": "up"})
        assert r.json()["votes"] == 1

    def test_comments_unavailable(self, client: TestClient) -> None:
        client.post(
            "/api/v1/auth/sign-up",
            json={"email": "ola@example.com", "password": "", "username": "ola"},
        )
        question = _ask(client)["question"]
        answer = client.post(
            f"/api/v1/questions/{question['id']}/answers", json={"content": "Local answer"}
        ).json()

        r = client.post(f"/api/v1/answers/{answer['id']}/comments", json={"content": "Hi"})
        assert r.status_code == status.HTTP_409_CONFLICT
        assert r.json()["title"] == "Unavailable Offline"
