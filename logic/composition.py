"""Outfit composition state machine.

Three mutually exclusive modes: ``IDLE``, ``COMPOSING`` and ``GLOBAL_EDIT``.
The in-progress selection only holds items while composing; every transition
out of ``COMPOSING`` resets it. A staged image (handed over by the image
source and not yet categorised) may only exist while idle.
"""
from __future__ import annotations

import logging
import random
from enum import Enum
from typing import Optional, Union

from logic.validation import ValidationResult, validation_failure
from memory.outfit_collection import OutfitCollection
from models.outfit import Outfit, OutfitSelection
from models.taxonomy import CATEGORIES, Category, validate_category
from tools.catalog_store import CatalogStore

logger = logging.getLogger(__name__)


class CompositionMode(str, Enum):
    IDLE = "idle"
    COMPOSING = "composing"
    GLOBAL_EDIT = "global_edit"


class OutfitComposer:
    """Drives outfit composition against a catalog store and outfit collection."""

    def __init__(
        self,
        catalog_store: CatalogStore,
        outfits: OutfitCollection,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.catalog_store = catalog_store
        self.outfits = outfits
        self.rng = rng or random.Random()
        self.mode = CompositionMode.IDLE
        self._selection = OutfitSelection()
        self._pending_image: Optional[str] = None

    @property
    def selection(self) -> OutfitSelection:
        return self._selection.copy()

    @property
    def is_composing(self) -> bool:
        return self.mode is CompositionMode.COMPOSING

    @property
    def is_editing(self) -> bool:
        return self.mode is CompositionMode.GLOBAL_EDIT

    @property
    def pending_image(self) -> Optional[str]:
        return self._pending_image

    def _reset(self, mode: CompositionMode) -> None:
        self.mode = mode
        self._selection = OutfitSelection()

    def start(self) -> OutfitSelection:
        if self.is_editing:
            logger.info("Leaving edit mode to compose an outfit")
        self._reset(CompositionMode.COMPOSING)
        return self.selection

    def cancel(self) -> None:
        if self.is_composing:
            logger.info("Outfit composition cancelled")
            self._reset(CompositionMode.IDLE)

    def toggle_composing(self) -> CompositionMode:
        if self.is_composing:
            self.cancel()
        else:
            self.start()
        return self.mode

    def toggle_item(self, category: "str | Category", item_id: str) -> Union[OutfitSelection, ValidationResult]:
        category = validate_category(category)
        if not self.is_composing:
            return validation_failure("not_composing", "Start a new outfit before selecting items.")
        if self.catalog_store.get_item(category, item_id) is None:
            return validation_failure(
                "unknown_item", f"No {category.value} item with id {item_id}.", item_id=item_id
            )
        self._selection.toggle(category, item_id)
        return self.selection

    def suggest_random(self) -> Union[OutfitSelection, ValidationResult]:
        """Pick one random item from every populated category."""

        catalog = self.catalog_store.catalog
        if catalog.is_empty():
            return validation_failure(
                "empty_catalog", "Your wardrobe is empty. Add some items to get outfit suggestions."
            )
        suggestion = OutfitSelection()
        for category in CATEGORIES:
            items = catalog.category_items(category)
            if items:
                suggestion.set_only(category, self.rng.choice(items).id)

        self.mode = CompositionMode.COMPOSING
        self._selection = suggestion
        self._pending_image = None
        logger.info("Suggested outfit with %s items", sum(len(ids) for ids in suggestion.items.values()))
        return self.selection

    def save(self, name: str, notes: Optional[str] = None) -> Union[Outfit, ValidationResult]:
        if not self.is_composing:
            return validation_failure("not_composing", "There is no outfit being composed.")
        result = self.outfits.save(name, self._selection, notes=notes)
        if isinstance(result, Outfit):
            self._reset(CompositionMode.IDLE)
        return result

    def toggle_global_edit(self) -> CompositionMode:
        if self.is_editing:
            self.mode = CompositionMode.IDLE
            return self.mode
        self._reset(CompositionMode.GLOBAL_EDIT)
        self._pending_image = None
        return self.mode

    def on_item_deleted(self, category: Category, item_id: str) -> None:
        self._selection.discard(category, item_id)

    def stage_image(self, image_ref: str) -> Union[str, ValidationResult]:
        if self.mode is not CompositionMode.IDLE:
            return validation_failure("busy", "Please exit outfit creation or edit mode to add an item.")
        if not image_ref:
            return validation_failure("no_pending_image", "Could not find an image to add.")
        self._pending_image = image_ref
        return image_ref

    def take_pending(self) -> Optional[str]:
        image_ref, self._pending_image = self._pending_image, None
        return image_ref

    def discard_pending(self) -> None:
        self._pending_image = None


__all__ = ["CompositionMode", "OutfitComposer"]
