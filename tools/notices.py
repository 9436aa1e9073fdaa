"""Non-fatal, user-visible notices raised by storage and migration."""
from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List

STORAGE_READ_FAILURE = "storage_read_failure"
STORAGE_WRITE_FAILURE = "storage_write_failure"
DATA_UPGRADED = "data_upgraded"


@dataclass
class Notice:
    """One message for the user; nothing here is fatal."""

    kind: str
    title: str
    message: str
    created_at: float = field(default_factory=lambda: time.time())

    def to_payload(self) -> Dict[str, Any]:
        return asdict(self)


class NoticeBoard:
    """Collects notices until the UI drains them."""

    def __init__(self, limit: int = 50) -> None:
        self.limit = limit
        self._notices: List[Notice] = []

    def post(self, kind: str, title: str, message: str) -> Notice:
        notice = Notice(kind=kind, title=title, message=message)
        self._notices.append(notice)
        del self._notices[: -self.limit]
        return notice

    def pending(self) -> List[Notice]:
        return list(self._notices)

    def drain(self) -> List[Notice]:
        notices, self._notices = self._notices, []
        return notices

    def __len__(self) -> int:
        return len(self._notices)


__all__ = [
    "Notice",
    "NoticeBoard",
    "STORAGE_READ_FAILURE",
    "STORAGE_WRITE_FAILURE",
    "DATA_UPGRADED",
]
