"""Key/value backends emulating browser storage.

Values are opaque strings; callers serialize JSON themselves and always read
and write whole values.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class KeyValueStorage(Protocol):
    """Minimal string key/value interface."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...

    def keys(self) -> list[str]: ...


class MemoryStorage:
    """Process-local storage, mostly useful in tests."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)


class FileStorage:
    """Storage persisted as a single JSON object on disk.

    Every write rewrites the whole document through a temporary file so a
    crash never leaves a half-written store behind.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            document = json.loads(raw) if raw.strip() else {}
        except json.JSONDecodeError:
            logger.warning("Local store at %s is not valid JSON; starting empty", self.path)
            return {}
        if not isinstance(document, dict):
            logger.warning("Local store at %s has an unexpected shape; starting empty", self.path)
            return {}
        return {str(key): str(value) for key, value in document.items()}

    def _write(self, document: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(document, handle)
            os.replace(tmp_name, self.path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get_item(self, key: str) -> str | None:
        with self._lock:
            return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            document = self._read()
            document[key] = value
            self._write(document)

    def remove_item(self, key: str) -> None:
        with self._lock:
            document = self._read()
            if key in document:
                del document[key]
                self._write(document)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._read())
