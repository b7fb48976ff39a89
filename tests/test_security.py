from jose import jwt

from ama_global.core.security import token_subject
from ama_global.core.settings import Settings

SECRET = "security-secret"


def _config(secret: str | None) -> Settings:
    return Settings(_env_file=None, SUPABASE_JWT_SECRET=secret)


def _token(claims: dict, secret: str = SECRET) -> str:
    return jwt.encode(claims, secret, algorithm="HS256")


def test_token_subject_reads_verified_sub() -> None:
    assert token_subject(_token({"sub": "user-1", "aud": "authenticated"}), _config(SECRET)) == "user-1"


def test_token_subject_rejects_unverifiable_tokens() -> None:
    """Bad signatures, wrong audiences, missing subjects and garbage all yield None."""
    config = _config(SECRET)
    assert token_subject(_token({"sub": "user-1", "aud": "authenticated"}, "other"), config) is None
    assert token_subject(_token({"sub": "user-1", "aud": "service"}), config) is None
    assert token_subject(_token({"aud": "authenticated"}), config) is None
    assert token_subject("garbage", config) is None


def test_token_subject_needs_a_secret() -> None:
    assert token_subject(_token({"sub": "user-1", "aud": "authenticated"}), _config(None)) is None
