"""Schema migration for persisted catalog, outfit and outfit log payloads.

Stored payloads have changed shape several times:

* flat category lists of bare image URIs (``{"shirt": ["file://a.png"]}``);
* objects with an identity (``{"id": "...", "uri": "..."}``);
* objects with names and subcategories under a reshuffled category set;
* the current shape, ``{"top": [{"id", "imageRef", "name", "subcategory"}]}``.

Reading is an explicit tagged union. A strict parse into the current schema is
attempted first; when it fails the payload falls through to the tolerant
legacy reader, which runs every entry through an ordered list of entry parsers
and keeps the first one that accepts it. All functions here are pure and
total: malformed input degrades to an empty result instead of raising.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, model_validator

from models.catalog_item import Catalog, CatalogItem, new_item_id
from models.outfit import Outfit, OutfitLogEntry, OutfitSelection
from models.taxonomy import (
    CATEGORIES,
    DISCARDED_CATEGORIES,
    RETIRED_CATEGORIES,
    Category,
    is_multi,
    retired_destination,
)

logger = logging.getLogger(__name__)

SCHEMA_CURRENT = "current"
SCHEMA_LEGACY = "legacy"
SCHEMA_EMPTY = "empty"
SCHEMA_CORRUPT = "corrupt"

_OUTFIT_META_KEYS = {"id", "name", "notes", "createdAt", "created_at", "selection"}


class StoredItem(BaseModel):
    """Current on-disk shape of one catalog item."""

    model_config = ConfigDict(extra="forbid", strict=True)

    id: str = Field(min_length=1)
    imageRef: str = Field(min_length=1)
    name: Optional[str] = None
    subcategory: Optional[str] = None


class CurrentCatalogDocument(BaseModel):
    model_config = ConfigDict(extra="forbid")

    top: List[StoredItem] = []
    bottom: List[StoredItem] = []
    outerwear: List[StoredItem] = []
    shoes: List[StoredItem] = []
    accessories: List[StoredItem] = []

    @model_validator(mode="after")
    def _ids_unique(self) -> "CurrentCatalogDocument":
        ids = [entry.id for category in CATEGORIES for entry in getattr(self, category.value)]
        if len(ids) != len(set(ids)):
            raise ValueError("duplicate item ids in catalog")
        return self


class LegacyItem(BaseModel):
    """Object entries from older revisions: ``uri`` instead of ``imageRef``, id optional."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    image_ref: str = Field(min_length=1, validation_alias=AliasChoices("imageRef", "uri"))
    id: Optional[str] = None
    name: Optional[str] = None
    subcategory: Optional[str] = None


class StoredOutfit(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    createdAt: Optional[float] = None
    selection: Dict[Category, List[str]]
    notes: Optional[str] = None


class LegacyLogEntry(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    date: str
    outfit_id: str = Field(min_length=1, validation_alias=AliasChoices("outfitId", "outfit_id"))
    outfit_name: Optional[str] = Field(None, validation_alias=AliasChoices("outfitName", "outfit_name"))


@dataclass(frozen=True)
class ParsedEntry:
    image_ref: str
    id: Optional[str]
    name: Optional[str]
    subcategory: Optional[str]
    kind: str


@dataclass(frozen=True)
class MigrationReport:
    """Migrated catalog plus what the reader had to do to produce it."""

    catalog: Catalog
    schema: str
    synthesized_ids: int = 0
    dropped_entries: int = 0
    retired_keys: Tuple[str, ...] = ()

    @property
    def upgraded(self) -> bool:
        return self.schema == SCHEMA_LEGACY

    @property
    def corrupt(self) -> bool:
        return self.schema == SCHEMA_CORRUPT


@dataclass(frozen=True)
class RecordsReport:
    """Migrated records. ``unresolved`` holds named legacy records whose references matched nothing."""

    records: List[Any] = field(default_factory=list)
    schema: str = SCHEMA_EMPTY
    dropped: int = 0
    unresolved: List[Any] = field(default_factory=list)

    @property
    def upgraded(self) -> bool:
        return self.schema == SCHEMA_LEGACY

    @property
    def corrupt(self) -> bool:
        return self.schema == SCHEMA_CORRUPT


_UNSET = object()


def _decode(raw: Any) -> Tuple[Any, bool]:
    """Decode JSON text; returns ``(value, corrupt)``."""

    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            return _UNSET, True
    if isinstance(raw, str):
        if not raw.strip():
            return None, False
        try:
            return json.loads(raw), False
        except ValueError:
            logger.warning("Stored payload is not valid JSON; falling back to defaults")
            return _UNSET, True
    return raw, False


# --- catalog entry parsers, tried in order -------------------------------------------------


def _parse_current_entry(entry: Any) -> Optional[ParsedEntry]:
    try:
        item = StoredItem.model_validate(entry)
    except ValidationError:
        return None
    return ParsedEntry(item.imageRef, item.id, item.name, item.subcategory, "current")


def _parse_object_entry(entry: Any) -> Optional[ParsedEntry]:
    if not isinstance(entry, dict):
        return None
    try:
        item = LegacyItem.model_validate(entry)
    except ValidationError:
        return None
    return ParsedEntry(item.image_ref, item.id or None, item.name, item.subcategory, "object")


def _parse_bare_entry(entry: Any) -> Optional[ParsedEntry]:
    if isinstance(entry, str) and entry.strip():
        return ParsedEntry(entry, None, None, None, "bare")
    return None


ENTRY_PARSERS: Sequence[Callable[[Any], Optional[ParsedEntry]]] = (
    _parse_current_entry,
    _parse_object_entry,
    _parse_bare_entry,
)


def parse_entry(entry: Any) -> Optional[ParsedEntry]:
    """Return the first successful parse of a stored entry, or ``None`` for corrupt ones."""

    for parser in ENTRY_PARSERS:
        parsed = parser(entry)
        if parsed is not None:
            return parsed
    return None


# --- catalog schema readers, tried in order ------------------------------------------------


def _read_current(document: Dict[str, Any]) -> Optional[MigrationReport]:
    try:
        parsed = CurrentCatalogDocument.model_validate(document)
    except ValidationError:
        return None
    catalog = Catalog(
        {
            category: [
                CatalogItem(entry.id, entry.imageRef, entry.name, entry.subcategory)
                for entry in getattr(parsed, category.value)
            ]
            for category in CATEGORIES
        }
    )
    return MigrationReport(catalog=catalog, schema=SCHEMA_EMPTY if catalog.is_empty() else SCHEMA_CURRENT)


def _read_legacy(document: Dict[str, Any]) -> MigrationReport:
    buckets: Dict[Category, List[CatalogItem]] = {category: [] for category in CATEGORIES}
    seen: Set[str] = set()
    counters = {"synthesized": 0, "dropped": 0}

    def place(category: Category, entries: Any, default_subcategory: Optional[str] = None) -> None:
        if entries is None:
            return
        if not isinstance(entries, list):
            counters["dropped"] += 1
            return
        for entry in entries:
            parsed = parse_entry(entry)
            if parsed is None:
                counters["dropped"] += 1
                continue
            item_id = parsed.id
            if not item_id or item_id in seen:
                item_id = new_item_id()
                counters["synthesized"] += 1
            seen.add(item_id)
            buckets[category].append(
                CatalogItem(
                    id=item_id,
                    image_ref=parsed.image_ref,
                    name=parsed.name,
                    subcategory=parsed.subcategory or default_subcategory,
                )
            )

    for category in CATEGORIES:
        place(category, document.get(category.value))

    retired_keys: List[str] = []
    for key, (category, default_subcategory) in RETIRED_CATEGORIES.items():
        if key in document:
            retired_keys.append(key)
            place(category, document[key], default_subcategory)

    for key in DISCARDED_CATEGORIES:
        values = document.get(key)
        if isinstance(values, list) and values:
            logger.info("Discarding %s items from retired category '%s'", len(values), key)
            counters["dropped"] += len(values)

    catalog = Catalog(buckets)
    logger.info(
        "Migrated legacy catalog: %s items, %s ids synthesized, %s entries dropped, retired keys %s",
        catalog.count(),
        counters["synthesized"],
        counters["dropped"],
        retired_keys,
    )
    return MigrationReport(
        catalog=catalog,
        schema=SCHEMA_LEGACY,
        synthesized_ids=counters["synthesized"],
        dropped_entries=counters["dropped"],
        retired_keys=tuple(retired_keys),
    )


def migrate_with_report(raw: Any) -> MigrationReport:
    """Upgrade any stored catalog representation to the current :class:`Catalog`."""

    if isinstance(raw, Catalog):
        return MigrationReport(catalog=raw.copy(), schema=SCHEMA_EMPTY if raw.is_empty() else SCHEMA_CURRENT)

    document, corrupt = _decode(raw)
    if corrupt:
        return MigrationReport(catalog=Catalog.empty(), schema=SCHEMA_CORRUPT)
    if document is None:
        return MigrationReport(catalog=Catalog.empty(), schema=SCHEMA_EMPTY)
    if not isinstance(document, dict):
        logger.warning("Stored catalog has unexpected type %s", type(document).__name__)
        return MigrationReport(catalog=Catalog.empty(), schema=SCHEMA_CORRUPT)

    try:
        return _read_current(document) or _read_legacy(document)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Catalog migration failed, using an empty catalog: %s", exc)
        return MigrationReport(catalog=Catalog.empty(), schema=SCHEMA_CORRUPT)


def migrate(raw: Any) -> Catalog:
    """Total, idempotent upgrade of a stored catalog."""

    return migrate_with_report(raw).catalog


# --- outfits -------------------------------------------------------------------------------


def _category_for_key(key: str) -> Optional[Category]:
    try:
        return Category(key)
    except ValueError:
        destination = retired_destination(key)
        return destination[0] if destination else None


def _resolve_reference(catalog: Catalog, category: Category, reference: Any) -> Optional[Tuple[Category, str]]:
    """Map a stored id or image reference onto a catalog item id."""

    if not isinstance(reference, str) or not reference:
        return None
    for item in catalog.category_items(category):
        if reference in (item.id, item.image_ref):
            return category, item.id
    for other_category, item in catalog:
        if reference in (item.id, item.image_ref):
            return other_category, item.id
    return None


def _add_reference(selection: OutfitSelection, category: Category, item_id: str) -> None:
    current = selection.items[category]
    if item_id in current:
        return
    if is_multi(category) or not current:
        current.append(item_id)


def _legacy_name(record: Any) -> Optional[str]:
    if not isinstance(record, dict):
        return None
    name = record.get("name")
    if not isinstance(name, str) or not name.strip():
        return None
    return name.strip()


def _read_legacy_outfit(record: Any, catalog: Catalog) -> Optional[Outfit]:
    name = _legacy_name(record)
    if name is None:
        return None

    source = record.get("selection") if isinstance(record.get("selection"), dict) else record
    selection = OutfitSelection()
    for key, value in source.items():
        if key in _OUTFIT_META_KEYS:
            continue
        category = _category_for_key(str(key))
        if category is None:
            continue
        references = value if isinstance(value, list) else [value]
        for reference in references:
            resolved = _resolve_reference(catalog, category, reference)
            if resolved:
                _add_reference(selection, *resolved)
    if selection.is_empty():
        return None

    created_at = record.get("createdAt")
    notes = record.get("notes")
    return Outfit(
        id=str(record.get("id") or new_item_id()),
        name=name,
        selection=selection,
        created_at=float(created_at) if isinstance(created_at, (int, float)) else None,
        notes=notes if isinstance(notes, str) and notes.strip() else None,
    )


def migrate_outfits_with_report(raw: Any, catalog: Optional[Catalog] = None) -> RecordsReport:
    """Read stored outfits; legacy records are resolved against ``catalog``."""

    catalog = catalog or Catalog.empty()
    document, corrupt = _decode(raw)
    if corrupt:
        return RecordsReport(schema=SCHEMA_CORRUPT)
    if document is None:
        return RecordsReport(schema=SCHEMA_EMPTY)
    if not isinstance(document, list):
        logger.warning("Stored outfits have unexpected type %s", type(document).__name__)
        return RecordsReport(schema=SCHEMA_CORRUPT)

    outfits: List[Outfit] = []
    unresolved: List[Any] = []
    seen_ids: Set[str] = set()
    dropped = 0
    legacy = False
    for record in document:
        try:
            stored = StoredOutfit.model_validate(record)
            outfit: Optional[Outfit] = Outfit(
                id=stored.id,
                name=stored.name.strip(),
                selection=OutfitSelection(dict(stored.selection)),
                created_at=stored.createdAt,
                notes=stored.notes,
            )
        except (ValidationError, ValueError):
            legacy = True
            outfit = _read_legacy_outfit(record, catalog)
            if outfit is None and _legacy_name(record):
                unresolved.append(record)
        else:
            if not outfit.name or outfit.selection.is_empty():
                legacy = True
                outfit = None
        if outfit is None or outfit.id in seen_ids:
            dropped += 1
            continue
        seen_ids.add(outfit.id)
        outfits.append(outfit)

    if dropped:
        logger.info("Dropped %s unreadable or empty outfit records", dropped)
    if not outfits and not dropped:
        schema = SCHEMA_EMPTY
    else:
        schema = SCHEMA_LEGACY if legacy else SCHEMA_CURRENT
    return RecordsReport(records=outfits, schema=schema, dropped=dropped, unresolved=unresolved)


def migrate_outfits(raw: Any, catalog: Optional[Catalog] = None) -> List[Outfit]:
    return migrate_outfits_with_report(raw, catalog).records


# --- outfit log ----------------------------------------------------------------------------


def migrate_outfit_log_with_report(raw: Any) -> RecordsReport:
    """Read stored log entries; for repeated dates the later entry wins."""

    document, corrupt = _decode(raw)
    if corrupt:
        return RecordsReport(schema=SCHEMA_CORRUPT)
    if document is None:
        return RecordsReport(schema=SCHEMA_EMPTY)
    if not isinstance(document, list):
        return RecordsReport(schema=SCHEMA_CORRUPT)

    by_date: Dict[str, OutfitLogEntry] = {}
    dropped = 0
    for record in document:
        try:
            parsed = LegacyLogEntry.model_validate(record)
            entry = OutfitLogEntry(parsed.date, parsed.outfit_id, parsed.outfit_name)
        except (ValidationError, ValueError):
            dropped += 1
            continue
        if entry.date in by_date:
            dropped += 1
            del by_date[entry.date]
        by_date[entry.date] = entry

    schema = SCHEMA_CURRENT if by_date else SCHEMA_EMPTY
    return RecordsReport(records=list(by_date.values()), schema=schema, dropped=dropped)


def migrate_outfit_log(raw: Any) -> List[OutfitLogEntry]:
    return migrate_outfit_log_with_report(raw).records


__all__ = [
    "SCHEMA_CURRENT",
    "SCHEMA_LEGACY",
    "SCHEMA_EMPTY",
    "SCHEMA_CORRUPT",
    "MigrationReport",
    "RecordsReport",
    "ENTRY_PARSERS",
    "parse_entry",
    "migrate",
    "migrate_with_report",
    "migrate_outfits",
    "migrate_outfits_with_report",
    "migrate_outfit_log",
    "migrate_outfit_log_with_report",
]
