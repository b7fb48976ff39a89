"""Authentication request and response schemas."""

from pydantic import BaseModel, Field

from ama_global.schemas.common import NoticeResponse
from ama_global.schemas.profile import ProfileResponse


class SignInRequest(BaseModel):
    """Email and password sign-in."""

    email: str
    password: str = ""


class SignUpRequest(BaseModel):
    """New account registration."""

    email: str
    password: str = ""
    username: str


class EmailRequest(BaseModel):
    """Request carrying only an email address."""

    email: str


class PasswordUpdateRequest(BaseModel):
    """New password for the signed-in user."""

    password: str = Field(..., min_length=6)


class AuthCallbackRequest(BaseModel):
    """Tokens handed back by the identity provider after a redirect."""

    access_token: str
    refresh_token: str | None = None


class SessionTokens(BaseModel):
    """Session issued by the identity provider."""

    access_token: str
    refresh_token: str | None = None
    expires_in: int | None = None
    token_type: str = "bearer"


class AuthStateResponse(BaseModel):
    """Authentication state after an auth operation."""

    status: str
    user: ProfileResponse | None = None
    error: str | None = None
    session: SessionTokens | None = None
    needs_profile_setup: bool = False
    notices: list[NoticeResponse] = Field(default_factory=list)


class OAuthRedirectResponse(BaseModel):
    """Where the client should navigate to continue an OAuth sign-in."""

    url: str
