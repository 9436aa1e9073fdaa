"""Shared fixtures for catalog engine tests."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Set

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from closet_app.app import ClosetApp
from closet_app.config import ClosetConfig
from tools.kv_store import KeyValueStore, MemoryKeyValueStore, StorageReadFailure, StorageWriteFailure
from tools.notices import NoticeBoard
from tools.persistence import StorePersister


class FlakyKeyValueStore(MemoryKeyValueStore):
    """Memory store whose reads or writes can be switched to fail, globally or per key."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        super().__init__(initial)
        self.fail_reads = False
        self.fail_writes = False
        self.unreadable_keys: Set[str] = set()

    async def get(self, key: str) -> Optional[str]:
        if self.fail_reads or key in self.unreadable_keys:
            raise StorageReadFailure(f"disk unreadable for {key}")
        return await super().get(key)

    async def set(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise StorageWriteFailure(f"disk full for {key}")
        await super().set(key, value)


@pytest.fixture()
def kv_store() -> FlakyKeyValueStore:
    return FlakyKeyValueStore()


@pytest.fixture()
def persister(kv_store: FlakyKeyValueStore) -> StorePersister:
    return StorePersister(kv_store, NoticeBoard())


@pytest.fixture()
def load() -> Callable[..., Any]:
    """Run a store's async ``load`` to completion, including any writes it scheduled."""

    def _run(store: Any, *args: Any) -> Any:
        async def _inner() -> Any:
            result = await store.load(*args)
            await store.persister.flush()
            return result

        return asyncio.run(_inner())

    return _run


@pytest.fixture()
def stored() -> Callable[[KeyValueStore, str], Any]:
    """Decode the JSON value a store wrote under ``key``."""

    def _read(store: KeyValueStore, key: str) -> Any:
        raw = asyncio.run(store.get(key))
        return json.loads(raw) if raw is not None else None

    return _read


@pytest.fixture()
def closet(kv_store: FlakyKeyValueStore) -> ClosetApp:
    app = ClosetApp(ClosetConfig(storage_backend="memory", random_seed=7), kv_store=kv_store)
    asyncio.run(app.load())
    return app
