"""Compose the data store for one request."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from ama_global.core.notices import Notifier
from ama_global.storage.base import DataStore
from ama_global.storage.kv import KeyValueStorage
from ama_global.storage.local import LocalStore
from ama_global.storage.remote import RemoteStore
from ama_global.storage.resilient import ResilientStore

logger = logging.getLogger(__name__)


def build_data_store(
    *,
    offline: bool,
    storage: KeyValueStorage,
    session: Session | None,
    notifier: Notifier,
) -> DataStore:
    """Return the local store when offline, otherwise a resilient remote store.

    The choice is made once here; services never branch on the mode.
    """
    local = LocalStore(storage)
    if offline or session is None:
        logger.debug("Serving request from the local store")
        return local
    return ResilientStore(RemoteStore(session), local, notifier)
