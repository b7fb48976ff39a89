"""Access token verification with the shared signing secret."""
from __future__ import annotations

from jose import JWTError, jwt

from ama_global.core.settings import Settings


def token_subject(token: str, config: Settings) -> str | None:
    """Return the ``sub`` claim of a token signed with ``config.remote_jwt_secret``.

    Args:
        token: Bearer token as sent by the client.
        config: Settings carrying the signing secret and expected audience.

    Returns:
        The user id the token was issued for, or None when no secret is
        configured, the signature or audience does not verify, or the
        token has no subject.
    """
    if not config.remote_jwt_secret:
        return None
    try:
        payload = jwt.decode(
            token,
            config.remote_jwt_secret,
            algorithms=["HS256"],
            audience=config.remote_jwt_audience,
        )
    except JWTError:
        return None
    subject = payload.get("sub")
    return str(subject) if subject else None
