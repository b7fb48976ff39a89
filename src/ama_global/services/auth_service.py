"""Authentication and session state.

``AuthService`` runs the sign-in state machine over ``loading``,
``authenticated``, ``anonymous`` and ``error``. Offline mode works against the
local store and never checks passwords; it is a demo convenience, not a
security boundary. Online operations delegate to the identity provider and
route every resulting session through :meth:`AuthService.handle_auth_change`
so there is one place where online state transitions happen.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ama_global.core.errors import (
    AmaError,
    AuthRequiredError,
    ConflictError,
    IdentityProviderError,
    InvalidCredentialsError,
    OfflineUnavailableError,
    ValidationFailedError,
)
from ama_global.core.notices import Notifier
from ama_global.core.security import token_subject
from ama_global.core.settings import Settings, settings
from ama_global.schemas.profile import USERNAME_PATTERN
from ama_global.services.identity import (
    OAUTH_PROVIDERS,
    IdentityProvider,
    IdentitySession,
    IdentityUser,
)
from ama_global.storage.base import DataStore, Record
from ama_global.storage.resilient import safe_async_operation
from ama_global.storage.session_store import SessionStore

logger = logging.getLogger(__name__)

CALLBACK_PATH = "/auth/callback"
RESET_PASSWORD_PATH = "/auth/reset-password"

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"

# Upstream statuses meaning the presented token is no longer valid.
_REJECTED_TOKEN_STATUSES = (401, 403)


class AuthStatus(str, Enum):
    """Phases of the authentication state machine."""

    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"
    ERROR = "error"


@dataclass
class AuthState:
    """Snapshot of who is signed in."""

    status: AuthStatus = AuthStatus.LOADING
    user: Record | None = None
    error: str | None = None
    session: IdentitySession | None = None

    @property
    def loading(self) -> bool:
        return self.status is AuthStatus.LOADING


def validate_username(username: str) -> str:
    username = username.strip()
    if not USERNAME_PATTERN.match(username):
        raise ValidationFailedError(
            "Username must be at least 3 characters of letters, numbers, _ or -",
            errors={"username": "invalid"},
        )
    return username


def username_from_identity(metadata: Mapping[str, Any], email: str | None) -> str:
    """Pick a base username for a profile created on first sign-in."""
    if metadata.get("username"):
        return str(metadata["username"])
    full_name = metadata.get("full_name")
    if full_name:
        compact = re.sub(r"\s+", "", str(full_name)).lower()
        if compact:
            return compact
    if metadata.get("user_name"):
        return str(metadata["user_name"])
    if email and email.split("@")[0]:
        return email.split("@")[0]
    return "user"


class AuthService:
    """Sign-in, sign-up and profile operations for one client."""

    def __init__(
        self,
        store: DataStore,
        session_store: SessionStore,
        identity: IdentityProvider | None,
        *,
        offline: bool,
        notifier: Notifier | None = None,
        config: Settings | None = None,
    ) -> None:
        self.store = store
        self.session_store = session_store
        self.identity = identity
        self.offline = offline
        self.notifier = notifier or Notifier()
        self.config = config or settings
        self.state = AuthState()

    # -- state helpers ---------------------------------------------------

    def _authenticated(self, user: Record, session: IdentitySession | None = None) -> AuthState:
        self.state = AuthState(AuthStatus.AUTHENTICATED, user=user, session=session)
        return self.state

    def _anonymous(self) -> AuthState:
        self.state = AuthState(AuthStatus.ANONYMOUS)
        return self.state

    def _failed(self, exc: Exception, fallback: str) -> None:
        message = exc.message if isinstance(exc, AmaError) else (str(exc) or fallback)
        logger.error("%s: %s", fallback, message)
        self.state = AuthState(AuthStatus.ERROR, user=self.state.user, error=message)

    def _begin(self) -> None:
        self.state = AuthState(AuthStatus.LOADING, user=self.state.user, session=self.state.session)

    def _identity(self) -> IdentityProvider:
        if self.identity is None:
            raise OfflineUnavailableError("The identity provider is not configured")
        return self.identity

    def needs_profile_setup(self) -> bool:
        user = self.state.user
        return bool(user) and self.session_store.needs_profile_setup(user["id"])

    # -- profile synthesis -----------------------------------------------

    def unique_username(self, base: str) -> str:
        """Return ``base`` or ``base_<n>`` for the first unused ``n``."""
        base = re.sub(r"[^A-Za-z0-9_-]", "", base) or "user"
        candidate = base
        counter = 0
        while self.store.get_profile_by_username(candidate) is not None:
            counter += 1
            candidate = f"{base}_{counter}"
        return candidate

    def ensure_profile(self, user: IdentityUser) -> Record:
        """Return the profile for ``user``, creating it on first sign-in."""
        profile = self.store.get_profile(user.id)
        if profile is not None:
            return profile

        metadata = user.user_metadata
        username = self.unique_username(username_from_identity(metadata, user.email))
        logger.info("Creating profile %s for identity %s", username, user.id)
        return self.store.insert_profile(
            {
                "id": user.id,
                "email": user.email or f"{user.id}@users.invalid",
                "username": username,
                "reputation": 0,
                "is_moderator": False,
                "avatar_url": metadata.get("avatar_url"),
            }
        )

    # -- state transitions -----------------------------------------------

    async def handle_auth_change(self, event: str, session: IdentitySession | None) -> AuthState:
        """Apply an identity-provider event to the current state."""
        if event == SIGNED_OUT or session is None:
            self.session_store.clear()
            return self._anonymous()

        user = session.user or await self._identity().get_user(session.access_token)
        profile = self.ensure_profile(user)
        self.session_store.cache_user(profile)
        logger.info("Auth event %s for %s", event, profile.get("username"))
        return self._authenticated(profile, session)

    async def bootstrap(self, access_token: str | None = None) -> AuthState:
        """Resolve the signed-in user when a client starts up."""
        self._begin()
        if self.offline:
            user = self.session_store.current_user()
            return self._authenticated(user) if user else self._anonymous()

        if not access_token:
            return self._anonymous()

        try:
            user = await self._identity().get_user(access_token)
        except IdentityProviderError as exc:
            if exc.upstream_status in _REJECTED_TOKEN_STATUSES:
                self.session_store.clear()
                return self._anonymous()
            # Only a token this server can verify may unlock the profile cached for its subject.
            subject = token_subject(access_token, self.config)
            cached = self.session_store.cached_user(subject) if subject else None
            if cached is None:
                self._failed(exc, "Authentication error")
                return self.state
            self.notifier.warning(
                "Connection Issues",
                "Unable to verify your session. Showing your cached profile.",
            )
            return self._authenticated(cached)

        session = IdentitySession(
            access_token=access_token,
            refresh_token=None,
            expires_in=None,
            token_type="bearer",
            user=user,
        )
        try:
            return await self.handle_auth_change(SIGNED_IN, session)
        except Exception as exc:
            self._failed(exc, "Authentication error")
            raise

    async def sign_in(self, email: str, password: str) -> AuthState:
        self._begin()
        try:
            if self.offline:
                user = self.store.find_profile_by_email(email)
                if user is None:
                    raise InvalidCredentialsError("Invalid credentials")
                self.session_store.set_current_user(user)
                return self._authenticated(user)

            session = await self._identity().sign_in_with_password(email, password)
            return await self.handle_auth_change(SIGNED_IN, session)
        except Exception as exc:
            self._failed(exc, "Sign in failed")
            raise

    async def sign_up(self, email: str, password: str, username: str) -> AuthState:
        self._begin()
        try:
            username = validate_username(username)
            if self.offline:
                if self.store.find_profile_by_email(email) is not None:
                    raise ConflictError("An account with this email already exists")
                if self.store.get_profile_by_username(username) is not None:
                    raise ConflictError("That username is already taken")
                user = self.store.insert_profile(
                    {"email": email.strip(), "username": username, "reputation": 0, "is_moderator": False}
                )
                self.session_store.set_current_user(user)
                return self._authenticated(user)

            result = await self._identity().sign_up(
                email,
                password,
                metadata={"username": username},
                redirect_to=self.config.redirect_url(CALLBACK_PATH),
            )
            if isinstance(result, IdentitySession):
                return await self.handle_auth_change(SIGNED_IN, result)
            self.notifier.info("Check Your Email", "Confirm your email address to finish signing up.")
            return self._anonymous()
        except Exception as exc:
            self._failed(exc, "Sign up failed")
            raise

    async def sign_in_with_magic_link(self, email: str) -> AuthState:
        """Email a one-time link; offline mode signs in immediately."""
        self._begin()
        prefix = email.split("@")[0]
        try:
            if self.offline:
                user = self.store.find_profile_by_email(email)
                if user is None:
                    user = self.store.insert_profile(
                        {
                            "email": email.strip(),
                            "username": self.unique_username(prefix),
                            "reputation": 0,
                            "is_moderator": False,
                        }
                    )
                self.session_store.set_current_user(user)
                return self._authenticated(user)

            await self._identity().send_magic_link(
                email,
                redirect_to=self.config.redirect_url(CALLBACK_PATH),
                metadata={"username": prefix},
            )
            self.notifier.info("Check Your Email", f"We sent a sign-in link to {email}.")
            return self._anonymous()
        except Exception as exc:
            self._failed(exc, "Magic link failed")
            raise

    def sign_in_with_oauth(self, provider: str) -> str:
        """Return the provider URL to redirect to.

        The state stays ``loading``: control does not come back here after
        the redirect, the callback route finishes the sign-in.
        """
        self._begin()
        try:
            if self.offline:
                raise OfflineUnavailableError(
                    "OAuth authentication is not available in offline mode"
                )
            if provider not in OAUTH_PROVIDERS:
                raise ValidationFailedError(f"Unsupported sign-in provider: {provider}")
            return self._identity().authorize_url(provider, self.config.redirect_url(CALLBACK_PATH))
        except Exception as exc:
            self._failed(exc, f"{provider} sign in failed")
            raise

    async def reset_password(self, email: str) -> AuthState:
        self._begin()
        try:
            if self.offline:
                raise OfflineUnavailableError("Password reset not available in offline mode")
            await self._identity().reset_password_for_email(
                email, redirect_to=self.config.redirect_url(RESET_PASSWORD_PATH)
            )
            self.notifier.info("Check Your Email", f"Password reset instructions were sent to {email}.")
            return self._anonymous() if self.state.user is None else self._authenticated(self.state.user)
        except Exception as exc:
            self._failed(exc, "Password reset failed")
            raise

    async def update_password(self, access_token: str, password: str) -> AuthState:
        self._begin()
        try:
            if self.offline:
                raise OfflineUnavailableError("Password changes are not available in offline mode")
            if len(password) < 6:
                raise ValidationFailedError("Password must be at least 6 characters")
            user = await self._identity().update_user(access_token, {"password": password})
            profile = self.ensure_profile(user)
            return self._authenticated(profile, self.state.session)
        except Exception as exc:
            self._failed(exc, "Password update failed")
            raise

    def update_profile(self, changes: Record) -> AuthState:
        """Apply profile edits for the signed-in user."""
        user = self.state.user
        if user is None:
            raise AuthRequiredError("Must be logged in to update profile")

        self._begin()
        try:
            if "username" in changes:
                changes = {**changes, "username": validate_username(changes["username"])}
                owner = self.store.get_profile_by_username(changes["username"])
                if owner is not None and owner["id"] != user["id"]:
                    raise ConflictError("That username is already taken")

            updated = self.store.update_profile(user["id"], changes) or {**user, **changes}
            if self.offline:
                self.session_store.set_current_user(updated)
            else:
                self.session_store.cache_user(updated)
            if "username" in changes:
                self.session_store.mark_profile_setup(user["id"])
            return self._authenticated(updated, self.state.session)
        except Exception as exc:
            self._failed(exc, "Profile update failed")
            raise

    async def sign_out(self, access_token: str | None = None) -> AuthState:
        """Leave the signed-in state; always succeeds locally."""
        self._begin()
        if not self.offline and access_token and self.identity is not None:
            identity = self.identity
            await safe_async_operation(
                lambda: identity.sign_out(access_token),
                None,
                description="sign out",
            )
        self.session_store.clear()
        return self._anonymous()
