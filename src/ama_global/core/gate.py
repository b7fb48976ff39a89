"""Decide whether requests are served by the remote backend or the local store."""

from __future__ import annotations

from ama_global.core.settings import (
    PLACEHOLDER_ANON_KEY,
    PLACEHOLDER_REMOTE_URL,
    Settings,
)
from ama_global.core.settings import settings as default_settings


def has_valid_credentials(remote_url: str | None, anon_key: str | None) -> bool:
    """Return True if the remote URL and anonymous key are usable.

    Both values must be present, neither may be the template placeholder, and
    the URL must use HTTPS.
    """
    if not remote_url or not anon_key:
        return False
    if remote_url == PLACEHOLDER_REMOTE_URL or anon_key == PLACEHOLDER_ANON_KEY:
        return False
    return remote_url.startswith("https://")


def is_offline_mode(preference: str | None = None, *, settings: Settings | None = None) -> bool:
    """Return True when all reads and writes should target the local store.

    Args:
        preference: Value of the user-set ``ama_offline_mode`` flag, if any.
            When present it wins over every other input.
        settings: Settings to consult; defaults to the process-wide instance.
    """
    if preference is not None:
        return preference.strip().lower() == "true"

    cfg = settings or default_settings
    if cfg.offline_mode:
        return True
    return not has_valid_credentials(cfg.remote_url, cfg.remote_anon_key)
