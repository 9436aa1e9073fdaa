"""Date-keyed log of which outfit was worn."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional

from closet_app.logging_config import get_logger, log_event
from logic.migration import migrate_outfit_log_with_report
from memory.outfit_collection import OutfitCollection
from models.outfit import Outfit, OutfitLogEntry, normalise_log_date
from tools.kv_store import StorageReadFailure
from tools.persistence import StorePersister

LOGGER = get_logger(__name__)

DEFAULT_OUTFIT_LOG_KEY = "MyOutfitLog"


@dataclass(frozen=True)
class ResolvedLogEntry:
    entry: OutfitLogEntry
    outfit: Optional[Outfit]

    @property
    def dangling(self) -> bool:
        return self.outfit is None


class OutfitLog:
    """One entry per calendar date; logging a date again replaces its entry.

    Entries are not checked against the outfit collection, so an entry may
    point at an outfit that was deleted later. :meth:`resolve` reports that.
    """

    def __init__(self, persister: StorePersister, key: str = DEFAULT_OUTFIT_LOG_KEY) -> None:
        self.persister = persister
        self.key = key
        self._entries: Dict[str, OutfitLogEntry] = {}

    async def load(self) -> List[OutfitLogEntry]:
        try:
            raw = await self.persister.read(self.key)
        except StorageReadFailure as exc:
            self.persister.read_failed(self.key, exc, "Error", "Could not load the outfit log.")
            self._entries = {}
            return []

        report = migrate_outfit_log_with_report(raw)
        self._entries = {entry.date: entry for entry in report.records}
        if report.corrupt:
            self.persister.read_failed(
                self.key, ValueError("unreadable outfit log"), "Error", "The outfit log could not be read."
            )
        return self.entries()

    def log_outfit(self, outfit_id: str, outfit_name: Optional[str], on: "str | date") -> OutfitLogEntry:
        entry = OutfitLogEntry(date=normalise_log_date(on), outfit_id=outfit_id, outfit_name=outfit_name or None)
        replaced = self._entries.pop(entry.date, None)
        self._entries[entry.date] = entry
        log_event(
            LOGGER,
            logging.INFO,
            "outfit_logged",
            date=entry.date,
            outfit_id=outfit_id,
            replaced=replaced.outfit_id if replaced else None,
        )
        self._persist()
        return entry

    def entry_for(self, on: "str | date") -> Optional[OutfitLogEntry]:
        return self._entries.get(normalise_log_date(on))

    def entries(self) -> List[OutfitLogEntry]:
        return [self._entries[key] for key in sorted(self._entries)]

    def logged_dates(self) -> List[str]:
        return sorted(self._entries)

    def resolve(self, on: "str | date", collection: OutfitCollection) -> Optional[ResolvedLogEntry]:
        entry = self.entry_for(on)
        if entry is None:
            return None
        return ResolvedLogEntry(entry=entry, outfit=collection.get(entry.outfit_id))

    def _persist(self) -> None:
        self.persister.schedule_write(
            self.key, [entry.to_payload() for entry in self._entries.values()], title="Error"
        )


__all__ = ["OutfitLog", "ResolvedLogEntry", "DEFAULT_OUTFIT_LOG_KEY"]
