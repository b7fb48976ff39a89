"""Profiles, follows, tag subscriptions and notifications."""

from __future__ import annotations

import logging

from ama_global.core.errors import AuthRequiredError, NotFoundError, ValidationFailedError
from ama_global.storage.base import DataStore, Record

logger = logging.getLogger(__name__)


class EngagementService:
    """Social features around profiles."""

    def __init__(self, store: DataStore, user: Record | None = None) -> None:
        self.store = store
        self.user = user

    def _require_user(self, action: str) -> Record:
        if self.user is None:
            raise AuthRequiredError(f"Please sign in to {action}")
        return self.user

    def list_users(self) -> list[Record]:
        return self.store.list_profiles()

    def profile(self, username: str) -> Record:
        profile = self.store.get_profile_by_username(username)
        if profile is None:
            raise NotFoundError(f"The user @{username} doesn't exist")
        return profile

    # Follows

    def follow(self, username: str) -> Record:
        user = self._require_user("follow users")
        target = self.profile(username)
        if target["id"] == user["id"]:
            raise ValidationFailedError("You cannot follow yourself")
        self.store.follow(user["id"], target["id"])
        logger.info("%s followed %s", user["id"], target["id"])
        return self.profile(username)

    def unfollow(self, username: str) -> Record:
        user = self._require_user("unfollow users")
        target = self.profile(username)
        self.store.unfollow(user["id"], target["id"])
        return self.profile(username)

    def is_following(self, username: str) -> bool:
        if self.user is None:
            return False
        target = self.profile(username)
        return self.store.is_following(self.user["id"], target["id"])

    # Tag subscriptions

    def subscriptions(self) -> list[Record]:
        user = self._require_user("see your tags")
        return self.store.list_tag_subscriptions(user["id"])

    def subscribe(self, tag: str) -> Record:
        user = self._require_user("follow tags")
        cleaned = tag.strip().lower()
        if not cleaned:
            raise ValidationFailedError("Tag is required")
        return self.store.subscribe_tag(user["id"], cleaned)

    def unsubscribe(self, tag: str) -> None:
        user = self._require_user("unfollow tags")
        self.store.unsubscribe_tag(user["id"], tag.strip().lower())

    # Notifications

    def notifications(self, *, unread_only: bool = False) -> list[Record]:
        user = self._require_user("see notifications")
        return self.store.list_notifications(user["id"], unread_only=unread_only)

    def mark_read(self, notification_id: str | None = None) -> int:
        """Mark one notification, or all of them, as read."""
        user = self._require_user("update notifications")
        return self.store.mark_notifications_read(user["id"], notification_id)
