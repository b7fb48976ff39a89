# src/ama_global/api/v1/endpoints/auth.py
"""Authentication endpoints: sign-in flows, session bootstrap and profile edits."""

from fastapi import APIRouter

from ama_global.api.v1.dependencies import (
    AccessTokenDep,
    AuthServiceDep,
    CurrentUserDep,
    NotifierDep,
    notices_of,
)
from ama_global.core.errors import AuthRequiredError
from ama_global.core.notices import Notifier
from ama_global.schemas.auth import (
    AuthCallbackRequest,
    AuthStateResponse,
    EmailRequest,
    OAuthRedirectResponse,
    PasswordUpdateRequest,
    SessionTokens,
    SignInRequest,
    SignUpRequest,
)
from ama_global.schemas.profile import ProfileResponse, ProfileUpdate
from ama_global.services.auth_service import SIGNED_IN, AuthService, AuthState, AuthStatus
from ama_global.services.identity import IdentitySession

router = APIRouter(prefix="/auth", tags=["auth"])


def _state_response(auth: AuthService, state: AuthState, notifier: Notifier) -> AuthStateResponse:
    session = None
    if state.session is not None:
        session = SessionTokens(
            access_token=state.session.access_token,
            refresh_token=state.session.refresh_token,
            expires_in=state.session.expires_in,
            token_type=state.session.token_type,
        )
    return AuthStateResponse(
        status=state.status.value,
        user=ProfileResponse.model_validate(state.user) if state.user else None,
        error=state.error,
        session=session,
        needs_profile_setup=auth.needs_profile_setup(),
        notices=notices_of(notifier),
    )


@router.get("/session", response_model=AuthStateResponse)
async def get_session(
    auth: AuthServiceDep,
    notifier: NotifierDep,
    token: AccessTokenDep,
) -> AuthStateResponse:
    """Resolve who is signed in for the presented token, if any."""
    state = await auth.bootstrap(token)
    return _state_response(auth, state, notifier)


@router.post("/sign-in", response_model=AuthStateResponse)
async def sign_in(
    payload: SignInRequest,
    auth: AuthServiceDep,
    notifier: NotifierDep,
) -> AuthStateResponse:
    state = await auth.sign_in(payload.email, payload.password)
    return _state_response(auth, state, notifier)


@router.post("/sign-up", response_model=AuthStateResponse)
async def sign_up(
    payload: SignUpRequest,
    auth: AuthServiceDep,
    notifier: NotifierDep,
) -> AuthStateResponse:
    state = await auth.sign_up(payload.email, payload.password, payload.username)
    return _state_response(auth, state, notifier)


@router.post("/magic-link", response_model=AuthStateResponse)
async def magic_link(
    payload: EmailRequest,
    auth: AuthServiceDep,
    notifier: NotifierDep,
) -> AuthStateResponse:
    """Email a one-time sign-in link; offline mode signs in right away."""
    state = await auth.sign_in_with_magic_link(payload.email)
    return _state_response(auth, state, notifier)


@router.get("/oauth/{provider}", response_model=OAuthRedirectResponse)
async def oauth_redirect(provider: str, auth: AuthServiceDep) -> OAuthRedirectResponse:
    return OAuthRedirectResponse(url=auth.sign_in_with_oauth(provider))


@router.post("/callback", response_model=AuthStateResponse)
async def auth_callback(
    payload: AuthCallbackRequest,
    auth: AuthServiceDep,
    notifier: NotifierDep,
) -> AuthStateResponse:
    """Finish a magic-link or OAuth sign-in with the tokens from the redirect."""
    session = IdentitySession(
        access_token=payload.access_token,
        refresh_token=payload.refresh_token,
        expires_in=None,
        token_type="bearer",
        user=None,
    )
    state = await auth.handle_auth_change(SIGNED_IN, session)
    return _state_response(auth, state, notifier)


@router.post("/reset-password", response_model=AuthStateResponse)
async def reset_password(
    payload: EmailRequest,
    auth: AuthServiceDep,
    notifier: NotifierDep,
) -> AuthStateResponse:
    state = await auth.reset_password(payload.email)
    return _state_response(auth, state, notifier)


@router.post("/password", response_model=AuthStateResponse)
async def update_password(
    payload: PasswordUpdateRequest,
    auth: AuthServiceDep,
    notifier: NotifierDep,
    token: AccessTokenDep,
) -> AuthStateResponse:
    if not token:
        raise AuthRequiredError("Please sign in to change your password")
    state = await auth.update_password(token, payload.password)
    return _state_response(auth, state, notifier)


@router.patch("/profile", response_model=AuthStateResponse)
async def update_profile(
    payload: ProfileUpdate,
    auth: AuthServiceDep,
    notifier: NotifierDep,
    current_user: CurrentUserDep,
) -> AuthStateResponse:
    """Edit the signed-in user's own profile."""
    auth.state = AuthState(AuthStatus.AUTHENTICATED, user=current_user)
    state = auth.update_profile(payload.changes())
    return _state_response(auth, state, notifier)


@router.post("/sign-out", response_model=AuthStateResponse)
async def sign_out(
    auth: AuthServiceDep,
    notifier: NotifierDep,
    token: AccessTokenDep,
) -> AuthStateResponse:
    state = await auth.sign_out(token)
    return _state_response(auth, state, notifier)
