"""Outfit log tests."""

from datetime import date

import pytest

from memory.outfit_collection import OutfitCollection
from memory.outfit_log import DEFAULT_OUTFIT_LOG_KEY, OutfitLog
from models.outfit import OutfitSelection


@pytest.fixture()
def log(persister) -> OutfitLog:
    return OutfitLog(persister)


def test_log_upsert_keeps_one_entry_per_date(log: OutfitLog, kv_store, stored) -> None:
    log.log_outfit("A", "A", "2024-01-01")
    log.log_outfit("B", "B", "2024-01-01")

    entries = log.entries()
    assert len(entries) == 1
    assert log.entry_for("2024-01-01").outfit_id == "B"
    assert stored(kv_store, DEFAULT_OUTFIT_LOG_KEY) == [
        {"date": "2024-01-01", "outfitId": "B", "outfitName": "B"}
    ]


def test_dates_accept_date_objects(log: OutfitLog) -> None:
    log.log_outfit("A", None, date(2024, 3, 5))
    assert log.entry_for("2024-03-05").outfit_name is None
    assert log.entry_for(date(2024, 3, 5)).outfit_id == "A"
    assert log.entry_for("2024-03-06") is None


def test_invalid_dates_raise(log: OutfitLog) -> None:
    with pytest.raises(ValueError):
        log.log_outfit("A", "A", "03/05/2024")


def test_entries_and_logged_dates_sorted(log: OutfitLog) -> None:
    log.log_outfit("B", "B", "2024-02-01")
    log.log_outfit("A", "A", "2024-01-01")
    assert log.logged_dates() == ["2024-01-01", "2024-02-01"]
    assert [e.outfit_id for e in log.entries()] == ["A", "B"]


def test_resolve_detects_dangling_reference(log: OutfitLog, persister) -> None:
    outfits = OutfitCollection(persister)
    outfit = outfits.save("Look", OutfitSelection({"top": ["t1"]}))
    log.log_outfit(outfit.id, outfit.name, "2024-01-01")

    resolved = log.resolve("2024-01-01", outfits)
    assert resolved.outfit == outfit
    assert not resolved.dangling

    outfits.delete(outfit.id)
    resolved = log.resolve("2024-01-01", outfits)
    assert resolved.dangling
    assert resolved.entry.outfit_name == "Look"
    assert log.resolve("2024-01-02", outfits) is None


def test_load_reads_stored_entries(log: OutfitLog, kv_store, load) -> None:
    kv_store.values[DEFAULT_OUTFIT_LOG_KEY] = '[{"date": "2024-05-01", "outfitId": "x", "outfitName": "X"}]'
    (entry,) = load(log)
    assert entry.outfit_name == "X"
    assert log.entry_for("2024-05-01") == entry
