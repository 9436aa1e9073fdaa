"""Async key-value string store abstractions and local implementations."""
from __future__ import annotations

import asyncio
import json
import re
import sqlite3
from pathlib import Path
from typing import Dict, Optional


class StorageReadFailure(Exception):
    """The persistence substrate could not be read."""


class StorageWriteFailure(Exception):
    """The persistence substrate rejected a write."""


class KeyValueStore:
    """Persistence interface: opaque string values under opaque keys."""

    async def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    async def set(self, key: str, value: str) -> None:
        raise NotImplementedError


class MemoryKeyValueStore(KeyValueStore):
    """Process-local store, used for tests and throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self.values: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    async def set(self, key: str, value: str) -> None:
        self.values[key] = value


class JSONFileKeyValueStore(KeyValueStore):
    """One file per key under ``base_dir``; file IO runs in a worker thread."""

    _UNSAFE = re.compile(r"[^A-Za-z0-9_.-]")

    def __init__(self, base_dir: str | Path = "data/closet") -> None:
        self.base_dir = Path(base_dir)

    def _path(self, key: str) -> Path:
        return self.base_dir / f"{self._UNSAFE.sub('_', key)}.json"

    def _read(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def _write(self, key: str, value: str) -> None:
        self.base_dir.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp_path = path.with_suffix(".tmp")
        tmp_path.write_text(value, encoding="utf-8")
        tmp_path.replace(path)

    async def get(self, key: str) -> Optional[str]:
        try:
            return await asyncio.to_thread(self._read, key)
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageReadFailure(f"Could not read '{key}': {exc}") from exc

    async def set(self, key: str, value: str) -> None:
        try:
            await asyncio.to_thread(self._write, key, value)
        except OSError as exc:
            raise StorageWriteFailure(f"Could not write '{key}': {exc}") from exc


class SQLiteKeyValueStore(KeyValueStore):
    """SQLite-backed store for lightweight durability."""

    def __init__(self, db_path: str | Path = "data/closet.db") -> None:
        self.db_path = Path(db_path)
        if self.db_path.parent and not self.db_path.parent.exists():
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_tables()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_tables(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );
                """
            )

    def _read(self, key: str) -> Optional[str]:
        with self._connect() as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return row["value"] if row else None

    def _write(self, key: str, value: str) -> None:
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO kv(key, value) VALUES (?, ?)\n"
                "ON CONFLICT(key) DO UPDATE SET value=excluded.value",
                (key, value),
            )

    async def get(self, key: str) -> Optional[str]:
        try:
            return await asyncio.to_thread(self._read, key)
        except sqlite3.Error as exc:
            raise StorageReadFailure(f"Could not read '{key}': {exc}") from exc

    async def set(self, key: str, value: str) -> None:
        try:
            await asyncio.to_thread(self._write, key, value)
        except sqlite3.Error as exc:
            raise StorageWriteFailure(f"Could not write '{key}': {exc}") from exc


def build_kv_store(backend: str, path: Optional[str] = None) -> KeyValueStore:
    """Pick a store implementation by configured backend name."""

    backend = (backend or "json").strip().lower()
    if backend == "memory":
        return MemoryKeyValueStore()
    if backend == "sqlite":
        return SQLiteKeyValueStore(path or "data/closet.db")
    if backend == "json":
        return JSONFileKeyValueStore(path or "data/closet")
    raise ValueError(f"Unsupported storage backend '{backend}'. Allowed: ['json', 'memory', 'sqlite']")


def dumps(payload: object) -> str:
    """Serialise a whole store snapshot."""

    return json.dumps(payload, ensure_ascii=False)


__all__ = [
    "KeyValueStore",
    "MemoryKeyValueStore",
    "JSONFileKeyValueStore",
    "SQLiteKeyValueStore",
    "StorageReadFailure",
    "StorageWriteFailure",
    "build_kv_store",
    "dumps",
]
