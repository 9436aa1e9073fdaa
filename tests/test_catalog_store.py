"""Catalog store tests: loading, mutations and persistence side effects."""

from __future__ import annotations

import json
from typing import List, Tuple

import pytest

from models.taxonomy import Category
from tools.catalog_store import DEFAULT_CATALOG_KEY, CatalogStore
from tools.notices import DATA_UPGRADED, STORAGE_READ_FAILURE, STORAGE_WRITE_FAILURE


@pytest.fixture()
def store(persister) -> CatalogStore:
    return CatalogStore(persister)


def test_load_empty_storage_gives_default_catalog(store: CatalogStore, load) -> None:
    catalog = load(store)
    assert catalog.is_empty()
    assert set(catalog.items) == set(Category)
    assert len(store.persister.notices) == 0


def test_load_read_failure_falls_back_with_notice(store: CatalogStore, kv_store, load) -> None:
    kv_store.fail_reads = True
    catalog = load(store)
    assert catalog.is_empty()
    (notice,) = store.persister.notices.drain()
    assert notice.kind == STORAGE_READ_FAILURE
    assert store.available is False


def test_load_corrupt_payload_posts_notice(store: CatalogStore, kv_store, load) -> None:
    kv_store.values[DEFAULT_CATALOG_KEY] = "{broken"
    assert load(store).is_empty()
    assert [n.kind for n in store.persister.notices.drain()] == [STORAGE_READ_FAILURE]
    assert store.available is False


def test_load_legacy_payload_migrates_and_persists(store: CatalogStore, kv_store, load, stored) -> None:
    kv_store.values[DEFAULT_CATALOG_KEY] = json.dumps({"shirt": ["file://a.png"], "hat": ["file://b.png"]})
    catalog = load(store)

    assert catalog.category_items("top")[0].image_ref == "file://a.png"
    assert store.available is True
    assert [n.kind for n in store.persister.notices.drain()] == [DATA_UPGRADED]
    persisted = stored(kv_store, DEFAULT_CATALOG_KEY)
    assert set(persisted) == {c.value for c in Category}
    assert persisted["accessories"][0]["imageRef"] == "file://b.png"
    assert persisted["accessories"][0]["subcategory"] == "Hat"


def test_add_item_inserts_at_head_and_persists(store: CatalogStore, kv_store, stored) -> None:
    first = store.add_item("top", "img-1")
    second = store.add_item(Category.TOP, "img-2", name="Linen", subcategory="Blouse")

    assert first.id and second.id and first.id != second.id
    assert [i.id for i in store.items("top")] == [second.id, first.id]
    persisted = stored(kv_store, DEFAULT_CATALOG_KEY)
    assert [entry["id"] for entry in persisted["top"]] == [second.id, first.id]
    assert persisted["top"][0]["name"] == "Linen"


def test_add_item_rejects_unknown_category(store: CatalogStore) -> None:
    with pytest.raises(ValueError):
        store.add_item("jacket", "img")


def test_update_item_preserves_position(store: CatalogStore) -> None:
    a = store.add_item("shoes", "a")
    b = store.add_item("shoes", "b")

    updated = store.update_item("shoes", a.id, {"name": "Runners", "subcategory": "Sneakers", "id": "hijack"})
    assert updated is not None
    assert updated.id == a.id
    assert [i.id for i in store.items("shoes")] == [b.id, a.id]
    assert store.get_item("shoes", a.id).name == "Runners"

    cleared = store.update_item("shoes", a.id, {"name": ""})
    assert cleared.name is None
    assert cleared.subcategory == "Sneakers"
    assert store.update_item("shoes", "missing", {"name": "x"}) is None


def test_delete_item_notifies_subscribers(store: CatalogStore) -> None:
    seen: List[Tuple[Category, str]] = []
    store.subscribe_deletions(lambda category, item_id: seen.append((category, item_id)))
    item = store.add_item("bottom", "jeans")

    removed = store.delete_item("bottom", item.id)
    assert removed == item
    assert store.items("bottom") == []
    assert seen == [(Category.BOTTOM, item.id)]

    assert store.delete_item("bottom", item.id) is None
    assert seen == [(Category.BOTTOM, item.id)]


def test_write_failure_keeps_memory_state_and_posts_notice(store: CatalogStore, kv_store) -> None:
    kv_store.fail_writes = True
    item = store.add_item("top", "img")

    assert store.get_item("top", item.id) == item
    assert store.persister.failed_writes == 1
    assert [n.kind for n in store.persister.notices.drain()] == [STORAGE_WRITE_FAILURE]

    kv_store.fail_writes = False
    store.add_item("top", "img-2")
    assert len(json.loads(kv_store.values[DEFAULT_CATALOG_KEY])["top"]) == 2
