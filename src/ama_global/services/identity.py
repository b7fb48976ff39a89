"""HTTP client for the hosted identity provider.

The provider speaks the GoTrue ``/auth/v1`` API: password and magic-link
sign-in, sign-up, OAuth redirects, password recovery and user lookup.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlencode

import httpx

from ama_global.core.errors import IdentityProviderError, InvalidCredentialsError
from ama_global.core.settings import Settings, settings

logger = logging.getLogger(__name__)

CLIENT_INFO = "ama-global-app"
OAUTH_PROVIDERS = ("google", "github")

HTTP_BAD_REQUEST = 400
HTTP_UNAUTHORIZED = 401


@dataclass(frozen=True)
class IdentityUser:
    """User record held by the identity provider."""

    id: str
    email: str | None
    user_metadata: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> IdentityUser:
        return cls(
            id=str(payload["id"]),
            email=payload.get("email"),
            user_metadata=dict(payload.get("user_metadata") or {}),
        )


@dataclass(frozen=True)
class IdentitySession:
    """Tokens for a signed-in user."""

    access_token: str
    refresh_token: str | None
    expires_in: int | None
    token_type: str
    user: IdentityUser | None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> IdentitySession:
        user = payload.get("user")
        return cls(
            access_token=str(payload["access_token"]),
            refresh_token=payload.get("refresh_token"),
            expires_in=payload.get("expires_in"),
            token_type=str(payload.get("token_type") or "bearer"),
            user=IdentityUser.from_payload(user) if user else None,
        )


class IdentityProvider:
    """Async wrapper around the identity provider's REST API."""

    def __init__(
        self,
        config: Settings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or settings
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    @property
    def base_url(self) -> str:
        return f"{self.config.remote_url.rstrip('/')}/auth/v1"

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    base_url=self.base_url,
                    timeout=httpx.Timeout(self.config.remote_timeout_seconds),
                    headers={
                        "apikey": self.config.remote_anon_key,
                        "X-Client-Info": CLIENT_INFO,
                    },
                    transport=self._transport,
                )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @dataclass
    class RequestParams:
        """Parameters for HTTP requests."""
        method: str
        path: str
        json_data: Any | None = None
        params: Mapping[str, Any] | None = None
        access_token: str | None = None

    async def _request(self, params: RequestParams) -> httpx.Response:
        client = await self._ensure_client()
        headers: dict[str, str] = {}
        if params.access_token:
            headers["Authorization"] = f"Bearer {params.access_token}"

        try:
            response = await client.request(
                params.method,
                params.path,
                json=params.json_data,
                params=params.params,
                headers=headers,
            )
        except httpx.HTTPError as exc:
            logger.error("Identity provider request %s %s failed", params.method, params.path, exc_info=True)
            raise IdentityProviderError(f"Identity provider request failed: {exc}") from exc

        if response.is_error:
            message = _error_message(response)
            logger.warning(
                "Identity provider %s %s responded with %s: %s",
                params.method,
                params.path,
                response.status_code,
                message,
            )
            raise IdentityProviderError(message, upstream_status=response.status_code)
        return response

    async def sign_in_with_password(self, email: str, password: str) -> IdentitySession:
        try:
            response = await self._request(
                self.RequestParams(
                    method="POST",
                    path="/token",
                    params={"grant_type": "password"},
                    json_data={"email": email, "password": password},
                )
            )
        except IdentityProviderError as exc:
            if exc.upstream_status in (HTTP_BAD_REQUEST, HTTP_UNAUTHORIZED):
                raise InvalidCredentialsError("Invalid credentials") from exc
            raise
        return IdentitySession.from_payload(response.json())

    async def sign_up(
        self,
        email: str,
        password: str,
        *,
        metadata: Mapping[str, Any] | None = None,
        redirect_to: str | None = None,
    ) -> IdentitySession | IdentityUser:
        """Register a user; returns a session when confirmation is not required."""
        response = await self._request(
            self.RequestParams(
                method="POST",
                path="/signup",
                params={"redirect_to": redirect_to} if redirect_to else None,
                json_data={"email": email, "password": password, "data": dict(metadata or {})},
            )
        )
        payload = response.json()
        if payload.get("access_token"):
            return IdentitySession.from_payload(payload)
        return IdentityUser.from_payload(payload.get("user") or payload)

    async def send_magic_link(
        self,
        email: str,
        *,
        redirect_to: str,
        metadata: Mapping[str, Any] | None = None,
    ) -> None:
        await self._request(
            self.RequestParams(
                method="POST",
                path="/otp",
                params={"redirect_to": redirect_to},
                json_data={"email": email, "create_user": True, "data": dict(metadata or {})},
            )
        )

    def authorize_url(self, provider: str, redirect_to: str) -> str:
        """Return the URL that starts an OAuth sign-in with ``provider``."""
        query = urlencode({"provider": provider, "redirect_to": redirect_to})
        return f"{self.base_url}/authorize?{query}"

    async def reset_password_for_email(self, email: str, *, redirect_to: str) -> None:
        await self._request(
            self.RequestParams(
                method="POST",
                path="/recover",
                params={"redirect_to": redirect_to},
                json_data={"email": email},
            )
        )

    async def get_user(self, access_token: str) -> IdentityUser:
        response = await self._request(
            self.RequestParams(method="GET", path="/user", access_token=access_token)
        )
        return IdentityUser.from_payload(response.json())

    async def update_user(self, access_token: str, attributes: Mapping[str, Any]) -> IdentityUser:
        response = await self._request(
            self.RequestParams(
                method="PUT",
                path="/user",
                json_data=dict(attributes),
                access_token=access_token,
            )
        )
        return IdentityUser.from_payload(response.json())

    async def sign_out(self, access_token: str) -> None:
        await self._request(
            self.RequestParams(method="POST", path="/logout", access_token=access_token)
        )


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return f"Identity provider responded with {response.status_code}"
    if isinstance(payload, dict):
        for key in ("error_description", "msg", "message", "error"):
            if payload.get(key):
                return str(payload[key])
    return f"Identity provider responded with {response.status_code}"


class _IdentityProviderSingleton:
    _instance: IdentityProvider | None = None

    @classmethod
    def get_instance(cls) -> IdentityProvider:
        if cls._instance is None:
            cls._instance = IdentityProvider()
        return cls._instance


def get_identity_provider() -> IdentityProvider:
    """Return the shared identity provider client."""
    return _IdentityProviderSingleton.get_instance()
