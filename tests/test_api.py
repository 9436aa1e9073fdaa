"""HTTP surface tests using FastAPI's TestClient."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from closet_app.app import ClosetApp
from server.api import create_app


@pytest.fixture()
def client(closet: ClosetApp):
    with TestClient(create_app(closet)) as test_client:
        yield test_client


def _add(client: TestClient, category: str, image_ref: str, **fields) -> dict:
    response = client.post(f"/catalog/{category}/items", json={"image_ref": image_ref, **fields})
    assert response.status_code == 201
    return response.json()


def test_healthcheck(client: TestClient) -> None:
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["loaded"] is True


def test_catalog_crud(client: TestClient) -> None:
    item = _add(client, "top", "file://tee.png", name="Tee")
    assert item["imageRef"] == "file://tee.png"

    catalog = client.get("/catalog").json()
    assert [entry["id"] for entry in catalog["top"]] == [item["id"]]
    assert catalog["accessories"] == []

    patched = client.patch(f"/catalog/top/items/{item['id']}", json={"subcategory": "T-Shirt"}).json()
    assert patched == {"id": item["id"], "imageRef": "file://tee.png", "name": "Tee", "subcategory": "T-Shirt"}

    assert client.delete(f"/catalog/top/items/{item['id']}").json() == {"deleted": item["id"]}
    assert client.delete(f"/catalog/top/items/{item['id']}").status_code == 404


def test_retired_categories_are_not_routable(client: TestClient) -> None:
    response = client.post("/catalog/jacket/items", json={"image_ref": "file://j.png"})
    assert response.status_code == 422


def test_compose_save_and_log(client: TestClient) -> None:
    top = _add(client, "top", "file://img1.png")
    client.post("/composition/start")
    state = client.post("/composition/toggle", json={"category": "top", "item_id": top["id"]}).json()
    assert state["mode"] == "composing"
    assert state["selection"]["top"] == [top["id"]]

    saved = client.post("/composition/save", json={"name": "Look 1"})
    assert saved.status_code == 201
    outfit = saved.json()
    assert client.get("/composition").json()["mode"] == "idle"

    client.post("/composition/start")
    client.post("/composition/toggle", json={"category": "top", "item_id": top["id"]})
    duplicate = client.post("/composition/save", json={"name": "look 1"})
    assert duplicate.status_code == 400
    assert duplicate.json()["code"] == "duplicate_name"

    logged = client.put("/log/2024-01-01", json={"outfit_id": outfit["id"]}).json()
    assert logged == {"date": "2024-01-01", "outfitId": outfit["id"], "outfitName": "Look 1"}
    assert client.get("/log/2024-01-01").json()["dangling"] is False
    assert client.get("/log/2024-01-02").status_code == 404
    assert client.get("/log/January").status_code == 422


def test_toggle_outside_composition_is_rejected(client: TestClient) -> None:
    top = _add(client, "top", "file://img1.png")
    response = client.post("/composition/toggle", json={"category": "top", "item_id": top["id"]})
    assert response.status_code == 400
    assert response.json()["code"] == "not_composing"


def test_suggest_on_empty_catalog(client: TestClient) -> None:
    response = client.post("/composition/suggest")
    assert response.status_code == 400
    assert response.json()["code"] == "empty_catalog"


def test_stage_and_categorize(client: TestClient) -> None:
    assert client.post("/composition/stage", json={"image_ref": "file://new.png"}).json()["pending_image"] is True
    created = client.post("/composition/categorize", json={"category": "shoes", "subcategory": "Boots"})
    assert created.status_code == 201
    assert created.json()["subcategory"] == "Boots"
    again = client.post("/composition/categorize", json={"category": "shoes"})
    assert again.json()["code"] == "no_pending_image"


def test_subcategories(client: TestClient) -> None:
    labels = client.post("/subcategories/top", json={"label": "Casual"}).json()
    assert "Casual" in labels
    rejected = client.post("/subcategories/top", json={"label": "casual"})
    assert rejected.status_code == 400
    assert rejected.json()["code"] == "duplicate_subcategory"
    assert client.get("/subcategories/top").json() == labels


def test_notices_are_drained(client: TestClient, kv_store) -> None:
    kv_store.fail_writes = True
    _add(client, "top", "file://img.png")

    notices = client.get("/notices").json()
    kv_store.fail_writes = False
    assert [n["kind"] for n in notices] == ["storage_write_failure"]
    assert client.get("/notices").json() == []
