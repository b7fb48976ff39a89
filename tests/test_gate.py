# tests/test_gate.py
"""Tests for the availability gate and the connection settings it sits beside."""

import pytest

from ama_global.core.gate import has_valid_credentials, is_offline_mode
from ama_global.core.settings import (
    PLACEHOLDER_ANON_KEY,
    PLACEHOLDER_REMOTE_URL,
    Settings,
)

VALID_URL = "https://abc.supabase.co"
VALID_KEY = "anon-key"


def _settings(**overrides: object) -> Settings:
    base = {"SUPABASE_URL": VALID_URL, "SUPABASE_ANON_KEY": VALID_KEY, "OFFLINE_MODE": False}
    base.update(overrides)
    return Settings(_env_file=None, **base)


class TestHasValidCredentials:
    def test_accepts_https_url_and_key(self) -> None:
        assert has_valid_credentials(VALID_URL, VALID_KEY)

    @pytest.mark.parametrize(
        ("url", "key"),
        [
            (None, VALID_KEY),
            ("", VALID_KEY),
            (VALID_URL, None),
            (VALID_URL, ""),
            (PLACEHOLDER_REMOTE_URL, VALID_KEY),
            (VALID_URL, PLACEHOLDER_ANON_KEY),
            ("http://abc.supabase.co", VALID_KEY),
        ],
    )
    def test_rejects_unusable_credentials(self, url: str | None, key: str | None) -> None:
        assert not has_valid_credentials(url, key)


class TestIsOfflineMode:
    def test_online_with_valid_credentials(self) -> None:
        assert is_offline_mode(settings=_settings()) is False

    def test_env_flag_forces_offline(self) -> None:
        assert is_offline_mode(settings=_settings(OFFLINE_MODE=True)) is True

    def test_missing_credentials_means_offline(self) -> None:
        assert is_offline_mode(settings=_settings(SUPABASE_URL="")) is True

    def test_stored_preference_wins(self) -> None:
        """A stored preference overrides both the env flag and the credentials."""
        assert is_offline_mode("false", settings=_settings(OFFLINE_MODE=True)) is False
        assert is_offline_mode("true", settings=_settings()) is True

    def test_preference_other_than_true_means_online(self) -> None:
        assert is_offline_mode("yes", settings=_settings()) is False


@pytest.mark.parametrize(
    ("configured", "expected"),
    [
        ("postgres://u:p@db:5432/ama", "postgresql+psycopg://u:p@db:5432/ama"),
        ("postgresql://u:p@db/ama", "postgresql+psycopg://u:p@db/ama"),
        ("postgresql+psycopg://u:p@db/ama", "postgresql+psycopg://u:p@db/ama"),
        ("sqlite:///./ama_global.db", "sqlite:///./ama_global.db"),
    ],
)
def test_sqlalchemy_url_uses_psycopg(configured: str, expected: str) -> None:
    assert _settings(DATABASE_URL=configured).sqlalchemy_url == expected
