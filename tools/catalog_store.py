"""In-memory catalog store with asynchronous durability."""
from __future__ import annotations

import logging
from typing import Callable, Dict, List, Mapping, Optional

from closet_app.logging_config import get_logger, log_event
from logic.migration import migrate_with_report
from models.catalog_item import Catalog, CatalogItem, new_item_id
from models.taxonomy import Category, validate_category
from tools.kv_store import StorageReadFailure
from tools.notices import DATA_UPGRADED
from tools.persistence import StorePersister

LOGGER = get_logger(__name__)

DEFAULT_CATALOG_KEY = "MyWardrobeItems"
PATCHABLE_FIELDS = ("name", "subcategory")

DeletionListener = Callable[[Category, str], None]


class CatalogStore:
    """Owns every catalog item; other stores only keep item ids."""

    def __init__(self, persister: StorePersister, key: str = DEFAULT_CATALOG_KEY) -> None:
        self.persister = persister
        self.key = key
        self._catalog = Catalog.empty()
        self._deletion_listeners: List[DeletionListener] = []
        # False when the last load fell back to an empty catalog instead of stored data.
        self.available = True

    async def load(self) -> Catalog:
        try:
            raw = await self.persister.read(self.key)
        except StorageReadFailure as exc:
            self.persister.read_failed(
                self.key,
                exc,
                "Storage Error",
                "Could not load saved wardrobe items. Returning to a default state.",
            )
            self.available = False
            self._catalog = Catalog.empty()
            return self._catalog

        report = migrate_with_report(raw)
        self._catalog = report.catalog
        self.available = not report.corrupt
        if report.corrupt:
            self.persister.read_failed(
                self.key,
                ValueError("unreadable catalog payload"),
                "Storage Error",
                "Saved wardrobe items could not be read. Returning to a default state.",
            )
        elif report.upgraded:
            log_event(
                LOGGER,
                logging.INFO,
                "catalog_migrated",
                items=self._catalog.count(),
                synthesized_ids=report.synthesized_ids,
                dropped_entries=report.dropped_entries,
                retired_keys=list(report.retired_keys),
            )
            self.persister.notices.post(
                DATA_UPGRADED,
                "Data Update",
                "Your wardrobe data has been updated to support new categories and subcategories.",
            )
            self._persist()
        return self._catalog

    def subscribe_deletions(self, listener: DeletionListener) -> None:
        self._deletion_listeners.append(listener)

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    def items(self, category: "str | Category") -> List[CatalogItem]:
        return list(self._catalog.category_items(category))

    def get_item(self, category: "str | Category", item_id: str) -> Optional[CatalogItem]:
        return self._catalog.get(category, item_id)

    def find_item(self, item_id: str):
        return self._catalog.find(item_id)

    def is_empty(self) -> bool:
        return self._catalog.is_empty()

    def add_item(
        self,
        category: "str | Category",
        image_ref: str,
        name: Optional[str] = None,
        subcategory: Optional[str] = None,
    ) -> CatalogItem:
        category = validate_category(category)
        item = CatalogItem(id=new_item_id(), image_ref=image_ref, name=name, subcategory=subcategory)
        self._catalog.items[category].insert(0, item)
        log_event(LOGGER, logging.INFO, "catalog_item_added", category=category.value, item_id=item.id)
        self._persist()
        return item

    def delete_item(self, category: "str | Category", item_id: str) -> Optional[CatalogItem]:
        category = validate_category(category)
        items = self._catalog.items[category]
        for index, item in enumerate(items):
            if item.id == item_id:
                removed = items.pop(index)
                break
        else:
            log_event(LOGGER, logging.INFO, "catalog_item_missing", category=category.value, item_id=item_id)
            return None

        for listener in self._deletion_listeners:
            listener(category, item_id)
        log_event(LOGGER, logging.INFO, "catalog_item_deleted", category=category.value, item_id=item_id)
        self._persist()
        return removed

    def update_item(
        self, category: "str | Category", item_id: str, patch: Mapping[str, Optional[str]]
    ) -> Optional[CatalogItem]:
        category = validate_category(category)
        current = self._catalog.get(category, item_id)
        if not current:
            return None

        changes: Dict[str, Optional[str]] = {}
        for key, value in patch.items():
            if key not in PATCHABLE_FIELDS:
                continue
            changes[key] = value
        updated = CatalogItem(
            id=current.id,
            image_ref=current.image_ref,
            name=changes.get("name", current.name),
            subcategory=changes.get("subcategory", current.subcategory),
        )
        current.name = updated.name
        current.subcategory = updated.subcategory
        log_event(
            LOGGER,
            logging.INFO,
            "catalog_item_updated",
            category=category.value,
            item_id=item_id,
            fields=sorted(changes),
        )
        self._persist()
        return current

    def _persist(self) -> None:
        self.persister.schedule_write(self.key, self._catalog.to_payload(), title="Storage Error")


__all__ = ["CatalogStore", "DEFAULT_CATALOG_KEY"]
