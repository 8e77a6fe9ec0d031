"""User-visible notices (toasts) raised by screen operations."""
import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Deque, List

from soundcave_admin.core.errors import SoundCaveError

logger = logging.getLogger(__name__)

MAX_PENDING = 50


@dataclass
class Notice:
    level: str  # "success" | "warning" | "error"
    title: str
    message: str
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> dict:
        return {
            "level": self.level,
            "title": self.title,
            "message": self.message,
            "created_at": self.created_at,
        }


class Notifier:
    """Collects notices for one screen until the UI drains them.

    Oldest notices are dropped once MAX_PENDING are waiting.
    """

    def __init__(self, max_pending: int = MAX_PENDING) -> None:
        self._pending: Deque[Notice] = deque(maxlen=max_pending)

    def _push(self, level: str, title: str, message: str) -> Notice:
        notice = Notice(level=level, title=title, message=message)
        self._pending.append(notice)
        return notice

    def success(self, title: str, message: str = "") -> Notice:
        logger.info("%s: %s", title, message)
        return self._push("success", title, message)

    def warning(self, title: str, message: str = "") -> Notice:
        logger.warning("%s: %s", title, message)
        return self._push("warning", title, message)

    def error(self, title: str, message: str = "") -> Notice:
        logger.warning("%s: %s", title, message)
        return self._push("error", title, message)

    def error_from(self, exc: SoundCaveError) -> Notice:
        return self.error(exc.title, exc.message)

    def peek(self) -> List[Notice]:
        return list(self._pending)

    def drain(self) -> List[Notice]:
        """Return pending notices, oldest first, and forget them."""
        notices = list(self._pending)
        self._pending.clear()
        return notices
