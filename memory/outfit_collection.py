"""Saved outfits with name validation and cascading cleanup."""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, List, Optional, Union
from uuid import uuid4

from closet_app.logging_config import get_logger, log_event
from logic.migration import migrate_outfits_with_report
from logic.validation import ValidationResult, validation_failure
from models.catalog_item import Catalog
from models.outfit import Outfit, OutfitSelection, sort_outfits
from models.taxonomy import Category, validate_category
from tools.kv_store import StorageReadFailure
from tools.persistence import StorePersister

LOGGER = get_logger(__name__)

DEFAULT_OUTFITS_KEY = "MySavedOutfits"


class OutfitCollection:
    """Persisted, named outfits. Outfits reference catalog items by id only."""

    def __init__(
        self,
        persister: StorePersister,
        key: str = DEFAULT_OUTFITS_KEY,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.persister = persister
        self.key = key
        self.clock = clock
        self._outfits: List[Outfit] = []
        # Raw legacy records kept verbatim until a readable catalog can resolve them.
        self._held: List[Any] = []

    async def load(self, catalog: Optional[Catalog] = None, catalog_available: bool = True) -> List[Outfit]:
        """Load and upgrade stored outfits.

        Legacy records reference items by image, so they are resolved against
        ``catalog``. When the catalog could not be read, records that fail to
        resolve are held as stored and written back untouched.
        """

        try:
            raw = await self.persister.read(self.key)
        except StorageReadFailure as exc:
            self.persister.read_failed(self.key, exc, "Error", "Could not load saved outfits.")
            self._outfits = []
            self._held = []
            return self.outfits()

        report = migrate_outfits_with_report(raw, catalog)
        self._outfits = list(report.records)
        self._held = [] if catalog_available else list(report.unresolved)
        if report.corrupt:
            self.persister.read_failed(
                self.key, ValueError("unreadable outfits payload"), "Error", "Saved outfits could not be read."
            )
        elif self._held:
            log_event(LOGGER, logging.WARNING, "outfits_migration_deferred", held=len(self._held))
        elif report.upgraded:
            log_event(LOGGER, logging.INFO, "outfits_migrated", outfits=len(self._outfits), dropped=report.dropped)
            self._persist()
        return self.outfits()

    def outfits(self) -> List[Outfit]:
        """Most recent first; migrated records without a timestamp last."""

        return sort_outfits(self._outfits)

    def get(self, outfit_id: str) -> Optional[Outfit]:
        for outfit in self._outfits:
            if outfit.id == outfit_id:
                return outfit
        return None

    def outfits_with_item(self, item_id: str) -> List[Outfit]:
        return [outfit for outfit in self.outfits() if outfit.references(item_id)]

    def validate(self, name: str, selection: OutfitSelection) -> Optional[ValidationResult]:
        """Return the reason a save would be rejected, or ``None``."""

        if selection.is_empty():
            return validation_failure("empty_selection", "Please select at least one item for the outfit.")
        trimmed = (name or "").strip()
        if not trimmed:
            return validation_failure("empty_name", "Outfit name cannot be empty.")
        folded = trimmed.casefold()
        for outfit in self._outfits:
            if outfit.name.casefold() == folded:
                return validation_failure(
                    "duplicate_name",
                    f'An outfit named "{outfit.name}" already exists.',
                    outfit_id=outfit.id,
                )
        for record in self._held:
            if record["name"].strip().casefold() == folded:
                return validation_failure(
                    "duplicate_name", f'An outfit named "{record["name"].strip()}" already exists.'
                )
        return None

    def save(
        self, name: str, selection: OutfitSelection, notes: Optional[str] = None
    ) -> Union[Outfit, ValidationResult]:
        failure = self.validate(name, selection)
        if failure:
            log_event(LOGGER, logging.INFO, "outfit_save_rejected", code=failure.code)
            return failure

        outfit = Outfit(
            id=uuid4().hex,
            name=name.strip(),
            selection=selection.copy(),
            created_at=self.clock(),
            notes=(notes or "").strip() or None,
        )
        self._outfits.insert(0, outfit)
        log_event(LOGGER, logging.INFO, "outfit_saved", outfit_id=outfit.id, outfit_name=outfit.name)
        self._persist()
        return outfit

    def delete(self, outfit_id: str) -> bool:
        remaining = [outfit for outfit in self._outfits if outfit.id != outfit_id]
        if len(remaining) == len(self._outfits):
            return False
        self._outfits = remaining
        log_event(LOGGER, logging.INFO, "outfit_deleted", outfit_id=outfit_id)
        self._persist()
        return True

    def on_item_deleted(self, category: "str | Category", item_id: str) -> List[str]:
        """Strip a deleted item from every outfit; drop outfits left empty.

        Returns the ids of outfits removed as a result.
        """

        category = validate_category(category)
        touched = False
        removed: List[str] = []
        kept: List[Outfit] = []
        for outfit in self._outfits:
            if outfit.selection.discard(category, item_id):
                touched = True
                if outfit.selection.is_empty():
                    removed.append(outfit.id)
                    continue
            kept.append(outfit)
        if not touched:
            return []

        self._outfits = kept
        log_event(
            LOGGER,
            logging.INFO,
            "outfits_pruned",
            item_id=item_id,
            category=category.value,
            removed_outfits=removed,
        )
        self._persist()
        return removed

    def _persist(self) -> None:
        self.persister.schedule_write(
            self.key, [outfit.to_payload() for outfit in self._outfits] + self._held, title="Error"
        )


__all__ = ["OutfitCollection", "DEFAULT_OUTFITS_KEY"]
