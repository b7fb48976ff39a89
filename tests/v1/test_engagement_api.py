# tests/v1/test_engagement_api.py
"""Tests for profiles, follows, tags, notifications, search and shares."""

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from ama_global.models import Profile

pytestmark = pytest.mark.usefixtures("online")

QUESTION = {
    "title": "What is your favourite telescope?",
    "content": "Looking for recommendations for a first telescope.",
    "tags": ["astronomy", "gear"],
}


def _ask(client: TestClient, headers: dict[str, str], **fields) -> dict:
    r = client.post("/api/v1/questions/", json={**QUESTION, **fields}, headers=headers)
    assert r.status_code == status.HTTP_201_CREATED, r.text
    return r.json()["question"]


def test_list_users_and_profile(client: TestClient, make_profile, test_user: Profile) -> None:
    make_profile("stargazer", reputation=40)

    r = client.get("/api/v1/users/")
    assert r.status_code == status.HTTP_200_OK
    assert [u["username"] for u in r.json()] == ["stargazer", "alice"]

    r = client.get("/api/v1/users/ALICE")
    assert r.status_code == status.HTTP_200_OK
    assert r.json()["email"] == "alice@example.com"

    r = client.get("/api/v1/users/nobody")
    assert r.status_code == status.HTTP_404_NOT_FOUND


def test_follow_flow(
    client: TestClient,
    auth_token: dict[str, str],
    other_auth_token: dict[str, str],
) -> None:
    r = client.post("/api/v1/users/bob/follow", headers=auth_token)
    assert r.status_code == status.HTTP_200_OK
    assert r.json() == {"following": True, "followers_count": 1}

    r = client.get("/api/v1/users/bob/follow", headers=auth_token)
    assert r.json()["following"] is True

    r = client.get("/api/v1/notifications/", params={"unread_only": True}, headers=other_auth_token)
    notifications = r.json()
    assert [n["type"] for n in notifications] == ["follow"]

    r = client.post(f"/api/v1/notifications/{notifications[0]['id']}/read", headers=other_auth_token)
    assert r.json() == {"updated": 1}
    r = client.get("/api/v1/notifications/", params={"unread_only": True}, headers=other_auth_token)
    assert r.json() == []

    r = client.delete("/api/v1/users/bob/follow", headers=auth_token)
    assert r.json() == {"following": False, "followers_count": 0}


def test_follow_requires_sign_in(client: TestClient, other_user: Profile) -> None:
    r = client.post("/api/v1/users/bob/follow")
    assert r.status_code == status.HTTP_401_UNAUTHORIZED


def test_cannot_follow_self(client: TestClient, auth_token: dict[str, str]) -> None:
    r = client.post("/api/v1/users/alice/follow", headers=auth_token)
    assert r.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_tags_and_subscriptions(client: TestClient, auth_token: dict[str, str]) -> None:
    _ask(client, auth_token)
    _ask(client, auth_token, title="Best star charts for beginners?", tags=["astronomy"])

    r = client.get("/api/v1/tags/")
    assert r.json() == [{"tag": "astronomy", "count": 2}, {"tag": "gear", "count": 1}]

    r = client.post("/api/v1/tags/subscriptions/Astronomy", headers=auth_token)
    assert r.status_code == status.HTTP_201_CREATED
    assert r.json()["tag"] == "astronomy"

    r = client.get("/api/v1/tags/subscriptions", headers=auth_token)
    assert [s["tag"] for s in r.json()] == ["astronomy"]

    r = client.delete("/api/v1/tags/subscriptions/astronomy", headers=auth_token)
    assert r.status_code == status.HTTP_204_NO_CONTENT
    assert client.get("/api/v1/tags/subscriptions", headers=auth_token).json() == []


def test_search(client: TestClient, auth_token: dict[str, str]) -> None:
    question = _ask(client, auth_token)

    r = client.get("/api/v1/search/", params={"q": "telescope"})
    assert r.status_code == status.HTTP_200_OK
    data = r.json()
    assert [q["id"] for q in data["questions"]] == [question["id"]]

    data = client.get("/api/v1/search/", params={"q": "ali"}).json()
    assert [u["username"] for u in data["users"]] == ["alice"]

    data = client.get("/api/v1/search/", params={"q": "  "}).json()
    assert data == {"users": [], "questions": [], "notices": []}


def test_share_and_respond(client: TestClient, auth_token: dict[str, str]) -> None:
    question = _ask(client, auth_token)

    r = client.post(f"/api/v1/questions/{question['id']}/shares", json={}, headers=auth_token)
    assert r.status_code == status.HTTP_201_CREATED
    share = r.json()
    assert share["share_code"].startswith(f"q_{question['id']}_")

    r = client.get(f"/api/v1/shares/{share['share_code']}")
    assert r.status_code == status.HTTP_200_OK
    assert r.json()["question"]["id"] == question["id"]
    assert r.json()["allow_anonymous"] is True

    r = client.post(
        f"/api/v1/shares/{share['share_code']}/responses",
        json={"content": "A small refractor is a great start."},
    )
    assert r.status_code == status.HTTP_201_CREATED
    assert r.json()["answer"]["author_id"] is None


def test_share_requires_sign_in(client: TestClient, auth_token: dict[str, str]) -> None:
    question = _ask(client, auth_token)
    r = client.post(f"/api/v1/questions/{question['id']}/shares", json={})
    assert r.status_code == status.HTTP_401_UNAUTHORIZED


def test_unknown_share_code(client: TestClient) -> None:
    r = client.get("/api/v1/shares/q_missing_1")
    assert r.status_code == status.HTTP_404_NOT_FOUND
    assert r.json()["title"] == "Not Found"
