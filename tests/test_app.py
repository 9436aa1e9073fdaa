"""End-to-end behaviour of the wired closet app."""

from __future__ import annotations

import asyncio
import json

from closet_app.app import ClosetApp
from closet_app.config import ClosetConfig
from logic.composition import CompositionMode
from logic.validation import ValidationResult
from models.catalog_item import CatalogItem
from models.outfit import Outfit
from tools.notices import DATA_UPGRADED, STORAGE_READ_FAILURE


def test_compose_and_save_first_outfit(closet: ClosetApp, kv_store) -> None:
    item = closet.add_item("top", "img1")
    closet.start_composing()
    closet.toggle_item("top", item.id)

    outfit = closet.save_outfit("Look 1")
    assert isinstance(outfit, Outfit)
    assert outfit.selection.to_payload() == {
        "top": [item.id],
        "bottom": [],
        "outerwear": [],
        "shoes": [],
        "accessories": [],
    }
    assert closet.composer.mode is CompositionMode.IDLE
    assert json.loads(kv_store.values["MySavedOutfits"])[0]["name"] == "Look 1"


def test_deleting_an_item_cascades_to_outfits(closet: ClosetApp) -> None:
    shirt = closet.add_item("top", "shirt")
    ring = closet.add_item("accessories", "ring")
    closet.start_composing()
    closet.toggle_item("top", shirt.id)
    lonely = closet.save_outfit("Just a shirt")
    closet.start_composing()
    closet.toggle_item("top", shirt.id)
    closet.toggle_item("accessories", ring.id)
    paired = closet.save_outfit("Shirt and ring")

    closet.delete_item("top", shirt.id)

    assert closet.outfits.get(lonely.id) is None
    assert closet.outfits.get(paired.id).selection.ids("top") == []
    assert closet.outfits_with_item(ring.id) == [closet.outfits.get(paired.id)]


def test_staged_image_becomes_an_item(closet: ClosetApp) -> None:
    assert closet.stage_image("file://photo.png") == "file://photo.png"
    assert closet.composition_state()["pending_image"] is True

    item = closet.categorize_pending("shoes", name="Boots", subcategory="Boots")
    assert isinstance(item, CatalogItem)
    assert closet.catalog_store.items("shoes") == [item]
    assert closet.composition_state()["pending_image"] is False

    result = closet.categorize_pending("shoes")
    assert isinstance(result, ValidationResult) and result.code == "no_pending_image"


def test_log_outfit_fills_in_the_outfit_name(closet: ClosetApp) -> None:
    item = closet.add_item("bottom", "jeans")
    closet.start_composing()
    closet.toggle_item("bottom", item.id)
    outfit = closet.save_outfit("Denim day")

    entry = closet.log_outfit(outfit.id, None, "2024-06-01")
    assert entry.outfit_name == "Denim day"

    closet.delete_outfit(outfit.id)
    resolved = closet.resolve_log("2024-06-01")
    assert resolved.dangling and resolved.entry.outfit_name == "Denim day"


def test_suggestion_is_reproducible_with_a_seed(kv_store) -> None:
    kv_store.values["MyWardrobeItems"] = json.dumps(
        {"top": [{"id": f"t{i}", "imageRef": f"img-{i}"} for i in range(5)]}
    )

    def pick() -> list:
        app = ClosetApp(ClosetConfig(storage_backend="memory", random_seed=99), kv_store=kv_store)
        asyncio.run(app.load())
        return app.suggest_random().ids("top")

    assert pick() == pick()


def test_legacy_storage_is_upgraded_on_load(kv_store) -> None:
    kv_store.values["MyWardrobeItems"] = json.dumps({"shirt": ["file://s.png"], "underwear": ["file://u.png"]})
    kv_store.values["MySavedOutfits"] = json.dumps(
        [{"id": "1", "name": "Old", "shirt": "file://s.png", "accessories": []}]
    )
    app = ClosetApp(ClosetConfig(storage_backend="memory"), kv_store=kv_store)
    asyncio.run(app.load())

    (top,) = app.catalog_store.items("top")
    (outfit,) = app.outfits.outfits()
    assert outfit.selection.ids("top") == [top.id]
    assert [n.kind for n in app.drain_notices()] == [DATA_UPGRADED]
    assert json.loads(kv_store.values["MyWardrobeItems"])["top"][0]["id"] == top.id
    assert "UserSubcategories" in kv_store.values


def test_unreadable_catalog_leaves_legacy_outfits_in_storage(kv_store) -> None:
    legacy_outfits = [{"id": "1", "name": "Old", "shirt": "file://s.png", "accessories": []}]
    kv_store.values["MyWardrobeItems"] = json.dumps({"shirt": ["file://s.png"]})
    kv_store.values["MySavedOutfits"] = json.dumps(legacy_outfits)
    kv_store.unreadable_keys.add("MyWardrobeItems")

    app = ClosetApp(ClosetConfig(storage_backend="memory"), kv_store=kv_store)
    asyncio.run(app.load())

    assert app.outfits.outfits() == []
    assert [n.kind for n in app.drain_notices()] == [STORAGE_READ_FAILURE]
    assert json.loads(kv_store.values["MySavedOutfits"]) == legacy_outfits

    kv_store.unreadable_keys.clear()
    recovered = ClosetApp(ClosetConfig(storage_backend="memory"), kv_store=kv_store)
    asyncio.run(recovered.load())

    (top,) = recovered.catalog_store.items("top")
    (outfit,) = recovered.outfits.outfits()
    assert outfit.name == "Old"
    assert outfit.selection.ids("top") == [top.id]
