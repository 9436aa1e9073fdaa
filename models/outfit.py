"""Outfit, selection and outfit log schemas."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from models.taxonomy import CATEGORIES, Category, is_multi, validate_category


def _empty_selection() -> Dict[Category, List[str]]:
    return {category: [] for category in CATEGORIES}


@dataclass
class OutfitSelection:
    """Item ids chosen per category; single categories hold at most one id."""

    items: Dict[Category, List[str]] = field(default_factory=_empty_selection)

    def __post_init__(self) -> None:
        normalised = _empty_selection()
        for key, ids in self.items.items():
            category = validate_category(key)
            unique: List[str] = []
            for item_id in ids or []:
                if item_id and item_id not in unique:
                    unique.append(str(item_id))
            normalised[category] = unique if is_multi(category) else unique[:1]
        self.items = normalised

    def ids(self, category: "str | Category") -> List[str]:
        return list(self.items[validate_category(category)])

    def contains(self, category: "str | Category", item_id: str) -> bool:
        return item_id in self.items[validate_category(category)]

    def is_empty(self) -> bool:
        return not any(self.items.values())

    def toggle(self, category: "str | Category", item_id: str) -> None:
        category = validate_category(category)
        current = self.items[category]
        if is_multi(category):
            if item_id in current:
                current.remove(item_id)
            else:
                current.append(item_id)
        elif current == [item_id]:
            self.items[category] = []
        else:
            self.items[category] = [item_id]

    def set_only(self, category: "str | Category", item_id: str) -> None:
        self.items[validate_category(category)] = [item_id]

    def discard(self, category: "str | Category", item_id: str) -> bool:
        current = self.items[validate_category(category)]
        if item_id in current:
            current.remove(item_id)
            return True
        return False

    def copy(self) -> "OutfitSelection":
        return OutfitSelection({category: list(ids) for category, ids in self.items.items()})

    def to_payload(self) -> Dict[str, List[str]]:
        return {category.value: list(self.items[category]) for category in CATEGORIES}


@dataclass
class Outfit:
    """A named, saved selection. ``created_at`` is epoch seconds."""

    id: str
    name: str
    selection: OutfitSelection = field(default_factory=OutfitSelection)
    created_at: Optional[float] = None
    notes: Optional[str] = None

    def references(self, item_id: str) -> bool:
        return any(item_id in ids for ids in self.selection.items.values())

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "createdAt": self.created_at,
            "selection": self.selection.to_payload(),
        }
        if self.notes:
            payload["notes"] = self.notes
        return payload


def normalise_log_date(value: "str | date") -> str:
    """Return an ISO ``YYYY-MM-DD`` string, raising ``ValueError`` otherwise."""

    if isinstance(value, date):
        return value.isoformat()
    return date.fromisoformat(str(value).strip()).isoformat()


@dataclass
class OutfitLogEntry:
    date: str
    outfit_id: str
    outfit_name: Optional[str] = None

    def __post_init__(self) -> None:
        self.date = normalise_log_date(self.date)

    def to_payload(self) -> Dict[str, Any]:
        return {"date": self.date, "outfitId": self.outfit_id, "outfitName": self.outfit_name}


def sort_outfits(outfits: Iterable[Outfit]) -> List[Outfit]:
    """Most recent first; untimestamped records last in their original order."""

    return sorted(
        outfits,
        key=lambda outfit: (outfit.created_at is None, -(outfit.created_at or 0.0)),
    )


__all__ = [
    "OutfitSelection",
    "Outfit",
    "OutfitLogEntry",
    "normalise_log_date",
    "sort_outfits",
]
