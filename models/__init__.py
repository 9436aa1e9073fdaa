"""Model package exports."""

from models.taxonomy import *  # noqa: F401,F403
from models.catalog_item import Catalog, CatalogItem, new_item_id
from models.outfit import Outfit, OutfitLogEntry, OutfitSelection

__all__ = ["Catalog", "CatalogItem", "new_item_id", "Outfit", "OutfitLogEntry", "OutfitSelection"]
