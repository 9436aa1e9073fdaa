"""Canonical category registry for catalog items.

This module centralises the closed set of clothing categories, the selection
cardinality of each one, the retirement table used to fold legacy category
keys into current ones and the default subcategory seeds. Helper functions
keep validation logic consistent across stores, the composer and the API.
"""

from enum import Enum
from typing import Dict, List, Optional, Tuple


class Category(str, Enum):
    """Current clothing categories, in display order."""

    TOP = "top"
    BOTTOM = "bottom"
    OUTERWEAR = "outerwear"
    SHOES = "shoes"
    ACCESSORIES = "accessories"


class Cardinality(str, Enum):
    SINGLE = "single"
    MULTI = "multi"


CATEGORIES: Tuple[Category, ...] = tuple(Category)

CARDINALITY: Dict[Category, Cardinality] = {
    Category.TOP: Cardinality.SINGLE,
    Category.BOTTOM: Cardinality.SINGLE,
    Category.OUTERWEAR: Cardinality.SINGLE,
    Category.SHOES: Cardinality.SINGLE,
    Category.ACCESSORIES: Cardinality.MULTI,
}

# legacy key -> (current category, default subcategory)
RETIRED_CATEGORIES: Dict[str, Tuple[Category, str]] = {
    "shirt": (Category.TOP, "Shirt"),
    "pants": (Category.BOTTOM, "Pants"),
    "skirt": (Category.BOTTOM, "Skirt"),
    "jacket": (Category.OUTERWEAR, "Jacket"),
    "hat": (Category.ACCESSORIES, "Hat"),
}

# Legacy keys with no current counterpart; their items are not carried over.
DISCARDED_CATEGORIES: Tuple[str, ...] = ("bodywear", "underwear")

DEFAULT_SUBCATEGORIES: Dict[Category, List[str]] = {
    Category.TOP: ["T-Shirt", "Blouse", "Sweater", "Tank Top", "Dress Shirt"],
    Category.BOTTOM: ["Jeans", "Pants", "Shorts", "Skirt", "Leggings"],
    Category.OUTERWEAR: ["Jacket", "Coat", "Hoodie", "Blazer", "Vest"],
    Category.SHOES: ["Sneakers", "Boots", "Sandals", "Heels", "Flats", "Dress Shoes"],
    Category.ACCESSORIES: ["Hat", "Scarf", "Belt", "Jewelry", "Bag", "Tie", "Sunglasses"],
}


def _normalize_key(value: str) -> str:
    """Normalise a free-form string into a registry key."""

    return value.strip().lower().replace(" ", "_")


def validate_category(value: "str | Category") -> Category:
    """Validate and normalise a category value.

    Raises a :class:`ValueError` if the category is not part of the current
    registry. Retired keys are rejected here; only the migration engine maps
    them.
    """

    if isinstance(value, Category):
        return value
    key = _normalize_key(str(value))
    try:
        return Category(key)
    except ValueError:
        allowed = [category.value for category in CATEGORIES]
        raise ValueError(f"Unsupported category '{value}'. Allowed: {allowed}") from None


def cardinality(category: "str | Category") -> Cardinality:
    return CARDINALITY[validate_category(category)]


def is_multi(category: "str | Category") -> bool:
    return cardinality(category) is Cardinality.MULTI


def retired_destination(key: str) -> Optional[Tuple[Category, str]]:
    """Return the current category and default subcategory for a legacy key."""

    return RETIRED_CATEGORIES.get(_normalize_key(key))


def default_subcategories() -> Dict[Category, List[str]]:
    """Fresh copy of the seed subcategory labels."""

    return {category: list(DEFAULT_SUBCATEGORIES[category]) for category in CATEGORIES}


__all__ = [
    "Category",
    "Cardinality",
    "CATEGORIES",
    "CARDINALITY",
    "RETIRED_CATEGORIES",
    "DISCARDED_CATEGORIES",
    "DEFAULT_SUBCATEGORIES",
    "validate_category",
    "cardinality",
    "is_multi",
    "retired_destination",
    "default_subcategories",
]
