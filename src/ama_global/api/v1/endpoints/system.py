# src/ama_global/api/v1/endpoints/system.py
"""System endpoints: backend status and the offline-mode preference."""

import logging

from fastapi import APIRouter

from ama_global.api.v1.dependencies import ModeratorDep, SessionStoreDep
from ama_global.core.gate import is_offline_mode
from ama_global.core.settings import settings
from ama_global.schemas.system import OfflineModeRequest, SystemStatusResponse
from ama_global.storage.session_store import SessionStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/system", tags=["system"])


def _status(session_store: SessionStore) -> SystemStatusResponse:
    preference = session_store.offline_preference()
    return SystemStatusResponse(
        offline=is_offline_mode(preference),
        preference=preference,
        remote_configured=settings.has_valid_remote_credentials,
        app_name=settings.app_name,
        version=settings.app_version,
    )


@router.get("/status", response_model=SystemStatusResponse)
async def get_status(session_store: SessionStoreDep) -> SystemStatusResponse:
    """Report which store serves requests."""
    return _status(session_store)


@router.put("/offline-mode", response_model=SystemStatusResponse)
async def set_offline_mode(
    payload: OfflineModeRequest,
    session_store: SessionStoreDep,
    moderator: ModeratorDep,
) -> SystemStatusResponse:
    """Force offline mode on or off for every client; ``null`` returns to automatic detection.

    The preference is process-wide, so only moderators may change it.
    """
    logger.info("Offline preference set to %s by %s", payload.offline, moderator.get("username"))
    session_store.set_offline_preference(payload.offline)
    return _status(session_store)
