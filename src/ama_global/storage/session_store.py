"""Explicit owner of the session-scoped storage keys.

``init`` runs once on application start and ``clear`` on sign-out. No other
module reads or writes these keys directly.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from ama_global.storage.kv import KeyValueStorage

logger = logging.getLogger(__name__)

CURRENT_USER_KEY = "offline_current_user"
CACHED_USER_KEY = "ama_cached_user"
OFFLINE_MODE_KEY = "ama_offline_mode"
PROFILE_SETUP_PREFIX = "profile_setup_"

_USER_KEYS = (CURRENT_USER_KEY, CACHED_USER_KEY)


class SessionStore:
    """Lifecycle-managed access to the current and cached user."""

    def __init__(self, storage: KeyValueStorage) -> None:
        self.storage = storage

    def init(self) -> None:
        """Drop malformed values left behind by an earlier run."""
        if self.storage.get_item(CURRENT_USER_KEY) is not None and self.current_user() is None:
            logger.warning("Discarding malformed session value under %s", CURRENT_USER_KEY)
            self.storage.remove_item(CURRENT_USER_KEY)
        if self.storage.get_item(CACHED_USER_KEY) is not None and self._read_cached() is None:
            logger.warning("Discarding malformed session value under %s", CACHED_USER_KEY)
            self.storage.remove_item(CACHED_USER_KEY)

        preference = self.storage.get_item(OFFLINE_MODE_KEY)
        if preference is not None and preference not in ("true", "false"):
            logger.warning("Discarding unexpected offline preference %r", preference)
            self.storage.remove_item(OFFLINE_MODE_KEY)

    def clear(self) -> None:
        """Forget the signed-in user; the offline preference survives."""
        for key in _USER_KEYS:
            self.storage.remove_item(key)

    def _read_json(self, key: str) -> Any:
        raw = self.storage.get_item(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return None

    # Offline sign-in

    def current_user(self) -> dict[str, Any] | None:
        user = self._read_json(CURRENT_USER_KEY)
        if not isinstance(user, dict) or not user.get("id"):
            return None
        return user

    def set_current_user(self, user: dict[str, Any]) -> None:
        self.storage.set_item(CURRENT_USER_KEY, json.dumps(user))

    # Last profile seen online per user id, shown while a session is being verified

    def _read_cached(self) -> dict[str, dict[str, Any]] | None:
        cached = self._read_json(CACHED_USER_KEY)
        if not isinstance(cached, dict):
            return None
        for user_id, user in cached.items():
            if not isinstance(user, dict) or user.get("id") != user_id:
                return None
        return cached

    def cached_user(self, user_id: str) -> dict[str, Any] | None:
        """Return the profile last cached for ``user_id``."""
        return (self._read_cached() or {}).get(user_id)

    def cache_user(self, user: dict[str, Any]) -> None:
        cached = self._read_cached() or {}
        cached[user["id"]] = user
        self.storage.set_item(CACHED_USER_KEY, json.dumps(cached))

    # Offline preference

    def offline_preference(self) -> str | None:
        return self.storage.get_item(OFFLINE_MODE_KEY)

    def set_offline_preference(self, offline: bool | None) -> None:
        """Store the preference; ``None`` removes it so configuration decides."""
        if offline is None:
            self.storage.remove_item(OFFLINE_MODE_KEY)
        else:
            self.storage.set_item(OFFLINE_MODE_KEY, "true" if offline else "false")

    # Profile setup prompt

    def needs_profile_setup(self, user_id: str) -> bool:
        return self.storage.get_item(f"{PROFILE_SETUP_PREFIX}{user_id}") is None

    def mark_profile_setup(self, user_id: str) -> None:
        self.storage.set_item(f"{PROFILE_SETUP_PREFIX}{user_id}", "completed")
