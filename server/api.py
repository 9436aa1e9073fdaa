"""FastAPI server exposing the closet catalog engine."""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse

from closet_app.app import ClosetApp
from logic.validation import (
    AddItemRequest,
    CategorizeRequest,
    LogOutfitRequest,
    SaveOutfitRequest,
    StageImageRequest,
    SubcategoryRequest,
    ToggleItemRequest,
    UpdateItemRequest,
    ValidationResult,
)
from models.outfit import normalise_log_date
from models.taxonomy import Category


def _rejected(result: ValidationResult) -> JSONResponse:
    return JSONResponse(status_code=400, content=result.model_dump())


def _log_date(value: str) -> str:
    try:
        return normalise_log_date(value)
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Invalid date '{value}', expected YYYY-MM-DD") from None


def create_app(closet: ClosetApp | None = None) -> FastAPI:
    """Build the ASGI app around a (possibly injected) :class:`ClosetApp`."""

    closet = closet or ClosetApp()

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        if not closet.loaded:
            await closet.load()
        yield
        await closet.flush()

    app = FastAPI(title="Closet Catalog", version="0.1.0", lifespan=lifespan)
    app.state.closet = closet

    @app.get("/healthz")
    async def healthcheck() -> dict:
        """Lightweight readiness check."""

        return {
            "status": "ok",
            "service": "closet-catalog",
            "environment": closet.config.environment or "local",
            "loaded": closet.loaded,
            "pending_writes": closet.persister.pending_writes,
        }

    @app.get("/catalog")
    async def get_catalog() -> dict:
        return closet.catalog_payload()

    @app.post("/catalog/{category}/items", status_code=201)
    async def add_item(category: Category, request: AddItemRequest) -> dict:
        item = closet.add_item(category, request.image_ref, name=request.name, subcategory=request.subcategory)
        return item.to_payload()

    @app.patch("/catalog/{category}/items/{item_id}")
    async def update_item(category: Category, item_id: str, request: UpdateItemRequest) -> dict:
        item = closet.update_item(category, item_id, request.model_dump(exclude_unset=True))
        if item is None:
            raise HTTPException(status_code=404, detail="item not found")
        return item.to_payload()

    @app.delete("/catalog/{category}/items/{item_id}")
    async def delete_item(category: Category, item_id: str) -> dict:
        removed = closet.delete_item(category, item_id)
        if removed is None:
            raise HTTPException(status_code=404, detail="item not found")
        return {"deleted": removed.id}

    @app.get("/items/{item_id}/outfits")
    async def outfits_with_item(item_id: str) -> list:
        return [outfit.to_payload() for outfit in closet.outfits_with_item(item_id)]

    @app.get("/outfits")
    async def list_outfits() -> list:
        return [outfit.to_payload() for outfit in closet.outfits.outfits()]

    @app.get("/outfits/{outfit_id}")
    async def get_outfit(outfit_id: str) -> dict:
        outfit = closet.outfits.get(outfit_id)
        if outfit is None:
            raise HTTPException(status_code=404, detail="outfit not found")
        return outfit.to_payload()

    @app.delete("/outfits/{outfit_id}")
    async def delete_outfit(outfit_id: str) -> dict:
        if not closet.delete_outfit(outfit_id):
            raise HTTPException(status_code=404, detail="outfit not found")
        return {"deleted": outfit_id}

    @app.get("/composition")
    async def composition() -> dict:
        return closet.composition_state()

    @app.post("/composition/start")
    async def start_composing() -> dict:
        closet.start_composing()
        return closet.composition_state()

    @app.post("/composition/cancel")
    async def cancel_composing() -> dict:
        closet.cancel_composing()
        return closet.composition_state()

    @app.post("/composition/toggle")
    async def toggle_item(request: ToggleItemRequest):
        result = closet.toggle_item(request.category, request.item_id)
        if isinstance(result, ValidationResult):
            return _rejected(result)
        return closet.composition_state()

    @app.post("/composition/suggest")
    async def suggest() -> dict:
        result = closet.suggest_random()
        if isinstance(result, ValidationResult):
            return _rejected(result)
        return closet.composition_state()

    @app.post("/composition/save", status_code=201)
    async def save_outfit(request: SaveOutfitRequest):
        result = closet.save_outfit(request.name, notes=request.notes)
        if isinstance(result, ValidationResult):
            return _rejected(result)
        return result.to_payload()

    @app.post("/composition/edit-mode")
    async def toggle_edit_mode() -> dict:
        closet.toggle_global_edit()
        return closet.composition_state()

    @app.post("/composition/stage")
    async def stage_image(request: StageImageRequest):
        result = closet.stage_image(request.image_ref)
        if isinstance(result, ValidationResult):
            return _rejected(result)
        return closet.composition_state()

    @app.post("/composition/categorize", status_code=201)
    async def categorize(request: CategorizeRequest):
        result = closet.categorize_pending(request.category, name=request.name, subcategory=request.subcategory)
        if isinstance(result, ValidationResult):
            return _rejected(result)
        return result.to_payload()

    @app.get("/subcategories/{category}")
    async def list_subcategories(category: Category) -> list:
        return closet.subcategories.labels(category)

    @app.post("/subcategories/{category}", status_code=201)
    async def add_subcategory(category: Category, request: SubcategoryRequest):
        failure = closet.subcategories.validate(category, request.label)
        if failure is not None:
            return _rejected(failure)
        closet.add_subcategory(category, request.label)
        return closet.subcategories.labels(category)

    @app.get("/log")
    async def list_log() -> list:
        return [entry.to_payload() for entry in closet.outfit_log.entries()]

    @app.get("/log/{day}")
    async def get_log_entry(day: str) -> dict:
        resolved = closet.resolve_log(_log_date(day))
        if resolved is None:
            raise HTTPException(status_code=404, detail="no outfit logged for this day")
        return {
            **resolved.entry.to_payload(),
            "dangling": resolved.dangling,
            "outfit": resolved.outfit.to_payload() if resolved.outfit else None,
        }

    @app.put("/log/{day}")
    async def log_outfit(day: str, request: LogOutfitRequest) -> dict:
        entry = closet.log_outfit(request.outfit_id, request.outfit_name, _log_date(day))
        return entry.to_payload()

    @app.get("/notices")
    async def notices() -> list:
        return [notice.to_payload() for notice in closet.drain_notices()]

    return app


def get_app() -> FastAPI:
    """Expose a FastAPI instance configured from the environment for ASGI servers."""

    from closet_app.logging_config import configure_logging

    configure_logging()
    return create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server.api:get_app", factory=True, host="0.0.0.0", port=int("8080"), reload=False)
