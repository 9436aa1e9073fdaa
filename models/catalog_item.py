"""Catalog item data model and helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple
from uuid import uuid4

from models.taxonomy import CATEGORIES, Category, validate_category


def new_item_id() -> str:
    """Return a fresh, never reused item identifier."""

    return uuid4().hex


def _clean_label(value: Any) -> Optional[str]:
    """Blank strings are stored as missing values."""

    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass
class CatalogItem:
    """A single clothing item; the id is the only handle other records keep."""

    id: str
    image_ref: str
    name: Optional[str] = None
    subcategory: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("CatalogItem requires an id")
        if not self.image_ref:
            raise ValueError("CatalogItem requires an image reference")
        self.name = _clean_label(self.name)
        self.subcategory = _clean_label(self.subcategory)

    def to_payload(self) -> Dict[str, str]:
        payload = {"id": self.id, "imageRef": self.image_ref}
        if self.name is not None:
            payload["name"] = self.name
        if self.subcategory is not None:
            payload["subcategory"] = self.subcategory
        return payload


@dataclass
class Catalog:
    """All items grouped by category, newest first within a category."""

    items: Dict[Category, List[CatalogItem]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        normalised: Dict[Category, List[CatalogItem]] = {category: [] for category in CATEGORIES}
        for key, values in self.items.items():
            normalised[validate_category(key)] = list(values)
        self.items = normalised

    @classmethod
    def empty(cls) -> "Catalog":
        return cls()

    def category_items(self, category: "str | Category") -> List[CatalogItem]:
        return self.items[validate_category(category)]

    def get(self, category: "str | Category", item_id: str) -> Optional[CatalogItem]:
        for item in self.category_items(category):
            if item.id == item_id:
                return item
        return None

    def find(self, item_id: str) -> Optional[Tuple[Category, CatalogItem]]:
        for category, item in self:
            if item.id == item_id:
                return category, item
        return None

    def is_empty(self) -> bool:
        return not any(self.items.values())

    def count(self) -> int:
        return sum(len(values) for values in self.items.values())

    def copy(self) -> "Catalog":
        return Catalog(
            {
                category: [CatalogItem(i.id, i.image_ref, i.name, i.subcategory) for i in values]
                for category, values in self.items.items()
            }
        )

    def to_payload(self) -> Dict[str, List[Dict[str, str]]]:
        return {category.value: [item.to_payload() for item in self.items[category]] for category in CATEGORIES}

    def __iter__(self) -> Iterator[Tuple[Category, CatalogItem]]:
        for category in CATEGORIES:
            for item in self.items[category]:
                yield category, item


__all__ = ["CatalogItem", "Catalog", "new_item_id"]
