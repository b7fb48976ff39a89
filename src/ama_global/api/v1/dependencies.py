"""Shared API dependencies: store composition, current user and services."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ama_global.core.errors import AuthRequiredError, IdentityProviderError, PermissionDeniedError
from ama_global.core.gate import is_offline_mode
from ama_global.core.notices import Notifier
from ama_global.core.security import token_subject
from ama_global.core.settings import settings
from ama_global.db.session import get_db
from ama_global.schemas.common import NoticeResponse
from ama_global.services.auth_service import AuthService
from ama_global.services.engagement_service import EngagementService
from ama_global.services.identity import IdentityProvider, get_identity_provider
from ama_global.services.question_service import QuestionFeed
from ama_global.services.search_service import SearchService
from ama_global.services.share_service import ShareService
from ama_global.services.thread_service import QuestionThread
from ama_global.storage.base import DataStore, Record
from ama_global.storage.factory import build_data_store
from ama_global.storage.kv import FileStorage, KeyValueStorage
from ama_global.storage.remote import RemoteStore
from ama_global.storage.resilient import safe_operation
from ama_global.storage.session_store import SessionStore

logger = logging.getLogger(__name__)

# Tokens are optional: guests may read and ask questions.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]
CredentialsDep = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)]

_REJECTED_TOKEN_STATUSES = (401, 403)


@lru_cache
def get_key_value_storage() -> KeyValueStorage:
    """Return the process-wide key/value storage behind the local store."""
    return FileStorage(settings.local_store_path)


StorageDep = Annotated[KeyValueStorage, Depends(get_key_value_storage)]


def get_session_store(storage: StorageDep) -> SessionStore:
    return SessionStore(storage)


SessionStoreDep = Annotated[SessionStore, Depends(get_session_store)]


def get_offline_mode(session_store: SessionStoreDep) -> bool:
    """Consult the availability gate once per request."""
    return is_offline_mode(session_store.offline_preference())


OfflineDep = Annotated[bool, Depends(get_offline_mode)]


def get_notifier() -> Notifier:
    return Notifier()


NotifierDep = Annotated[Notifier, Depends(get_notifier)]


def get_data_store(
    db: SessionDep,
    storage: StorageDep,
    notifier: NotifierDep,
    offline: OfflineDep,
) -> DataStore:
    return build_data_store(offline=offline, storage=storage, session=db, notifier=notifier)


StoreDep = Annotated[DataStore, Depends(get_data_store)]


def get_identity() -> IdentityProvider | None:
    """Return the identity provider client, or None when it is not configured."""
    if not settings.has_valid_remote_credentials:
        return None
    return get_identity_provider()


IdentityDep = Annotated[IdentityProvider | None, Depends(get_identity)]


def get_access_token(credentials: CredentialsDep) -> str | None:
    return credentials.credentials if credentials else None


AccessTokenDep = Annotated[str | None, Depends(get_access_token)]


async def _resolve_subject(token: str, identity: IdentityProvider | None) -> str:
    """Return the user id a bearer token was issued for.

    Tokens are verified locally when the signing secret is configured and
    through the identity provider otherwise.
    """
    if settings.remote_jwt_secret:
        subject = token_subject(token, settings)
        if subject is None:
            raise AuthRequiredError("Could not validate credentials")
        return subject

    if identity is None:
        raise AuthRequiredError("Could not validate credentials")
    try:
        user = await identity.get_user(token)
    except IdentityProviderError as err:
        if err.upstream_status in _REJECTED_TOKEN_STATUSES:
            raise AuthRequiredError("Could not validate credentials") from err
        raise
    return user.id


async def get_optional_user(
    token: AccessTokenDep,
    store: StoreDep,
    session_store: SessionStoreDep,
    offline: OfflineDep,
    identity: IdentityDep,
) -> Record | None:
    """Return the signed-in user's profile, or None for guests."""
    if offline:
        return session_store.current_user()
    if token is None:
        return None

    user_id = await _resolve_subject(token, identity)
    profile = store.get_profile(user_id)
    if profile is None:
        raise AuthRequiredError("User not found")
    return profile


OptionalUserDep = Annotated[Record | None, Depends(get_optional_user)]


def get_current_user(user: OptionalUserDep) -> Record:
    """Require a signed-in user."""
    if user is None:
        raise AuthRequiredError("Please sign in to continue")
    return user


CurrentUserDep = Annotated[Record, Depends(get_current_user)]


async def get_moderator(token: AccessTokenDep, db: SessionDep, identity: IdentityDep) -> Record:
    """Require a moderator token, checked against the relational store.

    The check ignores the offline preference so a moderator can always turn it
    back off; offline accounts are never moderators.
    """
    if token is None:
        raise AuthRequiredError("Please sign in to continue")
    user_id = await _resolve_subject(token, identity)
    profile = safe_operation(
        lambda: RemoteStore(db).get_profile(user_id),
        None,
        description="load moderator profile",
    )
    if profile is None or not profile.get("is_moderator"):
        raise PermissionDeniedError("Only moderators can change the offline mode")
    return profile


ModeratorDep = Annotated[Record, Depends(get_moderator)]


def get_question_feed(store: StoreDep, notifier: NotifierDep, user: OptionalUserDep) -> QuestionFeed:
    return QuestionFeed(store, notifier, user)


def get_question_thread(store: StoreDep, user: OptionalUserDep) -> QuestionThread:
    return QuestionThread(store, user)


def get_search_service(store: StoreDep) -> SearchService:
    return SearchService(store)


def get_share_service(store: StoreDep, user: OptionalUserDep) -> ShareService:
    return ShareService(store, user)


def get_engagement_service(store: StoreDep, user: OptionalUserDep) -> EngagementService:
    return EngagementService(store, user)


def get_auth_service(
    store: StoreDep,
    session_store: SessionStoreDep,
    identity: IdentityDep,
    offline: OfflineDep,
    notifier: NotifierDep,
) -> AuthService:
    return AuthService(store, session_store, identity, offline=offline, notifier=notifier)


QuestionFeedDep = Annotated[QuestionFeed, Depends(get_question_feed)]
QuestionThreadDep = Annotated[QuestionThread, Depends(get_question_thread)]
SearchServiceDep = Annotated[SearchService, Depends(get_search_service)]
ShareServiceDep = Annotated[ShareService, Depends(get_share_service)]
EngagementServiceDep = Annotated[EngagementService, Depends(get_engagement_service)]
AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]


def notices_of(notifier: Notifier) -> list[NoticeResponse]:
    """Drain collected notices into response objects."""
    return [NoticeResponse.from_notice(notice) for notice in notifier.drain()]
