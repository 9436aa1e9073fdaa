"""Pydantic schemas for validation results and API payloads."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from models.taxonomy import Category


class ValidationResult(BaseModel):
    """Returned to callers when a user-level request is rejected.

    These are values, not exceptions: stores hand them back synchronously and
    never persist them.
    """

    status: Literal["invalid"] = "invalid"
    code: str
    message: str
    details: List[Dict[str, Any]] = []


def validation_failure(code: str, message: str, **details: Any) -> ValidationResult:
    """Build a consistent rejection payload."""

    return ValidationResult(code=code, message=message, details=[details] if details else [])


def is_failure(result: object) -> bool:
    return isinstance(result, ValidationResult)


class AddItemRequest(BaseModel):
    image_ref: str = Field(min_length=1)
    name: Optional[str] = None
    subcategory: Optional[str] = None


class UpdateItemRequest(BaseModel):
    """Only fields present in the request body are applied."""

    name: Optional[str] = None
    subcategory: Optional[str] = None


class ToggleItemRequest(BaseModel):
    category: Category
    item_id: str = Field(min_length=1)


class SaveOutfitRequest(BaseModel):
    name: str
    notes: Optional[str] = None


class StageImageRequest(BaseModel):
    image_ref: str = Field(min_length=1)


class CategorizeRequest(BaseModel):
    category: Category
    name: Optional[str] = None
    subcategory: Optional[str] = None


class SubcategoryRequest(BaseModel):
    label: str


class LogOutfitRequest(BaseModel):
    outfit_id: str = Field(min_length=1)
    outfit_name: Optional[str] = None

    @field_validator("outfit_name")
    @classmethod
    def _strip_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None


__all__ = [
    "ValidationResult",
    "validation_failure",
    "is_failure",
    "AddItemRequest",
    "UpdateItemRequest",
    "ToggleItemRequest",
    "SaveOutfitRequest",
    "StageImageRequest",
    "CategorizeRequest",
    "SubcategoryRequest",
    "LogOutfitRequest",
]
