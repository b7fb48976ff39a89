"""Storage backends behind a single data-access port."""

from .base import DataStore, Record
from .factory import build_data_store
from .kv import FileStorage, KeyValueStorage, MemoryStorage
from .local import LocalStore
from .remote import RemoteStore
from .resilient import ResilientStore, safe_async_operation, safe_operation
from .session_store import SessionStore

__all__ = [
    "DataStore", "Record",
    "build_data_store",
    "FileStorage", "KeyValueStorage", "MemoryStorage",
    "LocalStore", "RemoteStore", "ResilientStore",
    "safe_async_operation", "safe_operation",
    "SessionStore",
]
