"""Non-blocking user notices raised when an operation degrades."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

logger = logging.getLogger(__name__)


class NoticeLevel(str, Enum):
    """Severity of a notice shown to the user."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    """A single informational message for the client to display."""

    level: NoticeLevel
    title: str
    message: str


@dataclass
class Notifier:
    """Collects notices for the current request and mirrors them to the log."""

    notices: list[Notice] = field(default_factory=list)

    def info(self, title: str, message: str) -> None:
        logger.info("%s: %s", title, message)
        self.notices.append(Notice(NoticeLevel.INFO, title, message))

    def warning(self, title: str, message: str) -> None:
        logger.warning("%s: %s", title, message)
        self.notices.append(Notice(NoticeLevel.WARNING, title, message))

    def error(self, title: str, message: str) -> None:
        logger.error("%s: %s", title, message)
        self.notices.append(Notice(NoticeLevel.ERROR, title, message))

    @property
    def last_warning(self) -> Notice | None:
        """Return the most recent warning, if any."""
        for notice in reversed(self.notices):
            if notice.level is NoticeLevel.WARNING:
                return notice
        return None

    def drain(self) -> list[Notice]:
        """Return and forget all collected notices."""
        drained, self.notices = self.notices, []
        return drained
