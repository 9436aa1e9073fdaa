"""Closet catalog bootstrap: wires the independent stores together."""

from __future__ import annotations

import logging
import random
from datetime import date
from typing import Dict, List, Mapping, Optional, Union

from closet_app.config import ClosetConfig
from closet_app.logging_config import configure_logging, get_logger, log_event
from logic.composition import CompositionMode, OutfitComposer
from logic.validation import ValidationResult, validation_failure
from memory.outfit_collection import OutfitCollection
from memory.outfit_log import OutfitLog, ResolvedLogEntry
from memory.subcategory_registry import SubcategoryRegistry
from models.catalog_item import CatalogItem
from models.outfit import Outfit, OutfitLogEntry, OutfitSelection
from models.taxonomy import Category, validate_category
from tools.catalog_store import CatalogStore
from tools.kv_store import KeyValueStore, build_kv_store
from tools.notices import Notice, NoticeBoard
from tools.observability import instrument_operation
from tools.persistence import StorePersister

LOGGER = get_logger(__name__)


class ClosetApp:
    """Thin coordinator over the catalog, outfits, outfit log and subcategories.

    Each store owns its own slice of state. Cross-store behaviour, such as
    purging outfits when an item is deleted, is registered here explicitly.
    """

    def __init__(self, config: ClosetConfig | None = None, kv_store: KeyValueStore | None = None) -> None:
        self.config = config or ClosetConfig.from_env()
        configure_logging(self.config.log_level)

        self.notices = NoticeBoard()
        self.kv_store = kv_store or build_kv_store(self.config.storage_backend, self.config.storage_path)
        self.persister = StorePersister(self.kv_store, self.notices)

        self.catalog_store = CatalogStore(self.persister, key=self.config.catalog_key)
        self.outfits = OutfitCollection(self.persister, key=self.config.outfits_key)
        self.outfit_log = OutfitLog(self.persister, key=self.config.outfit_log_key)
        self.subcategories = SubcategoryRegistry(self.persister, key=self.config.subcategories_key)
        self.composer = OutfitComposer(
            self.catalog_store,
            self.outfits,
            rng=random.Random(self.config.random_seed),
        )

        self.catalog_store.subscribe_deletions(self.outfits.on_item_deleted)
        self.catalog_store.subscribe_deletions(self.composer.on_item_deleted)
        self.loaded = False

    async def load(self) -> None:
        """Load every store; the catalog first so legacy outfits can resolve items."""

        catalog = await self.catalog_store.load()
        await self.outfits.load(catalog, catalog_available=self.catalog_store.available)
        await self.subcategories.load()
        await self.outfit_log.load()
        await self.persister.flush()
        self.loaded = True
        log_event(
            LOGGER,
            logging.INFO,
            "closet_loaded",
            items=catalog.count(),
            outfits=len(self.outfits.outfits()),
            log_entries=len(self.outfit_log.entries()),
        )

    async def flush(self) -> None:
        await self.persister.flush()

    # --- catalog -----------------------------------------------------------------------

    @instrument_operation("add_item")
    def add_item(
        self,
        category: "str | Category",
        image_ref: str,
        name: Optional[str] = None,
        subcategory: Optional[str] = None,
    ) -> CatalogItem:
        return self.catalog_store.add_item(category, image_ref, name=name, subcategory=subcategory)

    @instrument_operation("delete_item")
    def delete_item(self, category: "str | Category", item_id: str) -> Optional[CatalogItem]:
        return self.catalog_store.delete_item(category, item_id)

    @instrument_operation("update_item")
    def update_item(
        self, category: "str | Category", item_id: str, patch: Mapping[str, Optional[str]]
    ) -> Optional[CatalogItem]:
        return self.catalog_store.update_item(category, item_id, patch)

    def catalog_payload(self) -> Dict[str, List[Dict[str, str]]]:
        return self.catalog_store.catalog.to_payload()

    # --- staged images -----------------------------------------------------------------

    @instrument_operation("stage_image")
    def stage_image(self, image_ref: str) -> Union[str, ValidationResult]:
        return self.composer.stage_image(image_ref)

    @instrument_operation("categorize_pending")
    def categorize_pending(
        self,
        category: "str | Category",
        name: Optional[str] = None,
        subcategory: Optional[str] = None,
    ) -> Union[CatalogItem, ValidationResult]:
        category = validate_category(category)
        image_ref = self.composer.take_pending()
        if not image_ref:
            return validation_failure("no_pending_image", "There is no image waiting to be categorised.")
        return self.catalog_store.add_item(category, image_ref, name=name, subcategory=subcategory)

    # --- composition -------------------------------------------------------------------

    def composition_state(self) -> Dict[str, object]:
        return {
            "mode": self.composer.mode.value,
            "selection": self.composer.selection.to_payload(),
            "pending_image": self.composer.pending_image is not None,
        }

    @instrument_operation("start_composing")
    def start_composing(self) -> OutfitSelection:
        return self.composer.start()

    @instrument_operation("cancel_composing")
    def cancel_composing(self) -> None:
        self.composer.cancel()

    @instrument_operation("toggle_item")
    def toggle_item(self, category: "str | Category", item_id: str) -> Union[OutfitSelection, ValidationResult]:
        return self.composer.toggle_item(category, item_id)

    @instrument_operation("suggest_random")
    def suggest_random(self) -> Union[OutfitSelection, ValidationResult]:
        return self.composer.suggest_random()

    @instrument_operation("save_outfit")
    def save_outfit(self, name: str, notes: Optional[str] = None) -> Union[Outfit, ValidationResult]:
        return self.composer.save(name, notes=notes)

    @instrument_operation("toggle_global_edit")
    def toggle_global_edit(self) -> CompositionMode:
        return self.composer.toggle_global_edit()

    # --- outfits -----------------------------------------------------------------------

    @instrument_operation("delete_outfit")
    def delete_outfit(self, outfit_id: str) -> bool:
        return self.outfits.delete(outfit_id)

    def outfits_with_item(self, item_id: str) -> List[Outfit]:
        return self.outfits.outfits_with_item(item_id)

    # --- outfit log --------------------------------------------------------------------

    @instrument_operation("log_outfit")
    def log_outfit(self, outfit_id: str, outfit_name: Optional[str], on: "str | date") -> OutfitLogEntry:
        if outfit_name is None:
            outfit = self.outfits.get(outfit_id)
            outfit_name = outfit.name if outfit else None
        return self.outfit_log.log_outfit(outfit_id, outfit_name, on)

    def resolve_log(self, on: "str | date") -> Optional[ResolvedLogEntry]:
        return self.outfit_log.resolve(on, self.outfits)

    # --- subcategories -----------------------------------------------------------------

    @instrument_operation("add_subcategory")
    def add_subcategory(self, category: "str | Category", label: str) -> bool:
        return self.subcategories.add_subcategory(category, label)

    def drain_notices(self) -> List[Notice]:
        return self.notices.drain()


__all__ = ["ClosetApp"]
