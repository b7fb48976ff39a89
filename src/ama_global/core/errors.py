"""Exception hierarchy for user-facing failures.

Only hard errors live here. Remote-call failures that degrade to the local
store are reported as notices and never raised.
"""

from __future__ import annotations

from fastapi import status


class AmaError(Exception):
    """Base class for errors surfaced to the user as blocking messages."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    title: str = "Request Failed"

    def __init__(self, message: str, *, title: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if title is not None:
            self.title = title


class AuthRequiredError(AmaError):
    """Raised when an operation needs a signed-in user."""

    status_code = status.HTTP_401_UNAUTHORIZED
    title = "Authentication Required"


class InvalidCredentialsError(AmaError):
    """Raised when sign-in credentials are rejected."""

    status_code = status.HTTP_401_UNAUTHORIZED
    title = "Sign In Failed"


class PermissionDeniedError(AmaError):
    """Raised when the signed-in user may not perform the action."""

    status_code = status.HTTP_403_FORBIDDEN
    title = "Not Allowed"


class NotFoundError(AmaError):
    """Raised when a requested record does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    title = "Not Found"


class ValidationFailedError(AmaError):
    """Raised when required fields are missing or malformed."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    title = "Invalid Input"

    def __init__(self, message: str, *, errors: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or {}


class ConflictError(AmaError):
    """Raised when a write collides with existing data."""

    status_code = status.HTTP_409_CONFLICT
    title = "Conflict"


class OfflineUnavailableError(AmaError):
    """Raised when a feature cannot run against the local store."""

    status_code = status.HTTP_409_CONFLICT
    title = "Unavailable Offline"


class IdentityProviderError(AmaError):
    """Raised when the identity provider cannot be reached or rejects a call."""

    status_code = status.HTTP_502_BAD_GATEWAY
    title = "Authentication Service Error"

    def __init__(self, message: str, *, upstream_status: int | None = None) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status
