"""Fire-and-forget persistence of whole store snapshots."""
from __future__ import annotations

import asyncio
import logging
from typing import Optional, Set

from closet_app.logging_config import get_logger, log_event
from tools.kv_store import KeyValueStore, StorageReadFailure, dumps
from tools.notices import STORAGE_READ_FAILURE, STORAGE_WRITE_FAILURE, NoticeBoard

LOGGER = get_logger(__name__)


class StorePersister:
    """Reads and writes store snapshots through a :class:`KeyValueStore`.

    Writes never block the caller. Inside a running event loop they are
    scheduled as tasks; without one they run to completion immediately.
    Each write carries the full snapshot, so when writes overlap the last to
    complete wins and the next mutation corrects any stale value.
    """

    def __init__(self, kv_store: KeyValueStore, notices: Optional[NoticeBoard] = None) -> None:
        self.kv_store = kv_store
        self.notices = notices or NoticeBoard()
        self._pending: Set[asyncio.Task] = set()
        self.failed_writes = 0

    async def read(self, key: str) -> Optional[str]:
        try:
            return await self.kv_store.get(key)
        except StorageReadFailure:
            raise
        except Exception as exc:  # noqa: BLE001
            raise StorageReadFailure(f"Could not read '{key}': {exc}") from exc

    def read_failed(self, key: str, exc: Exception, title: str, message: str) -> None:
        log_event(LOGGER, logging.WARNING, "storage_read_failed", key=key, error=str(exc))
        self.notices.post(STORAGE_READ_FAILURE, title, message)

    def schedule_write(self, key: str, payload: object, title: str = "Storage Error") -> None:
        serialised = dumps(payload)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        if loop is None:
            asyncio.run(self._write(key, serialised, title))
            return
        task = loop.create_task(self._write(key, serialised, title))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write(self, key: str, serialised: str, title: str) -> bool:
        try:
            await self.kv_store.set(key, serialised)
        except Exception as exc:  # noqa: BLE001
            self.failed_writes += 1
            log_event(LOGGER, logging.ERROR, "storage_write_failed", key=key, error=str(exc))
            self.notices.post(STORAGE_WRITE_FAILURE, title, f"Could not save your changes: {exc}")
            return False
        log_event(LOGGER, logging.DEBUG, "storage_write_completed", key=key, size=len(serialised))
        return True

    @property
    def pending_writes(self) -> int:
        return len(self._pending)

    async def flush(self) -> None:
        """Wait for every write scheduled so far."""

        while self._pending:
            await asyncio.gather(*list(self._pending))


__all__ = ["StorePersister"]
