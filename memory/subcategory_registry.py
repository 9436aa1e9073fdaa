"""User-extensible subcategory labels per category."""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from closet_app.logging_config import get_logger, log_event
from logic.validation import ValidationResult, validation_failure
from models.taxonomy import CATEGORIES, Category, default_subcategories, validate_category
from tools.kv_store import StorageReadFailure
from tools.persistence import StorePersister

LOGGER = get_logger(__name__)

DEFAULT_SUBCATEGORIES_KEY = "UserSubcategories"


def _merge_stored(raw: Optional[str]) -> Optional[Dict[Category, List[str]]]:
    """Overlay stored labels on the defaults; ``None`` when nothing usable is stored."""

    if raw is None:
        return None
    try:
        parsed: Any = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(parsed, dict):
        return None

    merged = default_subcategories()
    for key, labels in parsed.items():
        try:
            category = validate_category(key)
        except ValueError:
            continue
        cleaned: List[str] = []
        seen = set()
        for label in labels if isinstance(labels, list) else []:
            if not isinstance(label, str) or not label.strip():
                continue
            folded = label.strip().casefold()
            if folded not in seen:
                seen.add(folded)
                cleaned.append(label.strip())
        merged[category] = cleaned
    return merged


class SubcategoryRegistry:
    """Seeded with defaults, extended by the user, de-duplicated case-insensitively."""

    def __init__(self, persister: StorePersister, key: str = DEFAULT_SUBCATEGORIES_KEY) -> None:
        self.persister = persister
        self.key = key
        self._labels: Dict[Category, List[str]] = default_subcategories()

    async def load(self) -> Dict[Category, List[str]]:
        try:
            raw = await self.persister.read(self.key)
        except StorageReadFailure as exc:
            self.persister.read_failed(
                self.key, exc, "Subcategory Error", "Could not load custom subcategories. Using defaults."
            )
            self._labels = default_subcategories()
            return self.as_dict()

        if raw is None:
            self._labels = default_subcategories()
            self._persist()
            return self.as_dict()

        merged = _merge_stored(raw)
        if merged is None:
            self.persister.read_failed(
                self.key,
                ValueError("unreadable subcategories payload"),
                "Subcategory Error",
                "Custom subcategories could not be read. Using defaults.",
            )
            self._labels = default_subcategories()
        else:
            self._labels = merged
        return self.as_dict()

    def labels(self, category: "str | Category") -> List[str]:
        return list(self._labels[validate_category(category)])

    def as_dict(self) -> Dict[Category, List[str]]:
        return {category: list(self._labels[category]) for category in CATEGORIES}

    def validate(self, category: "str | Category", label: str) -> Optional[ValidationResult]:
        category = validate_category(category)
        trimmed = (label or "").strip()
        if not trimmed:
            return validation_failure("empty_subcategory", "Subcategory name cannot be empty.")
        folded = trimmed.casefold()
        if any(existing.casefold() == folded for existing in self._labels[category]):
            return validation_failure(
                "duplicate_subcategory",
                f'Subcategory "{trimmed}" already exists for {category.value}.',
            )
        return None

    def add_subcategory(self, category: "str | Category", label: str) -> bool:
        category = validate_category(category)
        failure = self.validate(category, label)
        if failure:
            log_event(LOGGER, logging.INFO, "subcategory_rejected", category=category.value, code=failure.code)
            return False
        trimmed = label.strip()
        self._labels[category] = sorted(self._labels[category] + [trimmed])
        log_event(LOGGER, logging.INFO, "subcategory_added", category=category.value, label=trimmed)
        self._persist()
        return True

    def _persist(self) -> None:
        payload = {category.value: list(self._labels[category]) for category in CATEGORIES}
        self.persister.schedule_write(self.key, payload, title="Subcategory Error")


__all__ = ["SubcategoryRegistry", "DEFAULT_SUBCATEGORIES_KEY"]
