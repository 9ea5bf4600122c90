"""Pydantic schemas for saved node template endpoints."""
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from schemas.quota import QuotaResponse


class SavedNodeCreate(BaseModel):
    """Schema for saving a node layout as a reusable template."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    layout: dict[str, Any] = Field(
        ...,
        description="Opaque node layout (nodes and edges relative to the template origin).",
    )


class SavedNodeUpdate(BaseModel):
    """Schema for updating a saved node. Only fields present in the body are changed."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    layout: dict[str, Any] | None = None

    @model_validator(mode="after")
    def reject_null_required_fields(self) -> "SavedNodeUpdate":
        """name and layout may be omitted but not set to null."""
        for field in ("name", "layout"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class SavedNodeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None
    layout: dict[str, Any]
    created_at: datetime
    updated_at: datetime


class SavedNodeListResponse(BaseModel):
    """Saved node list with the caller's live quota."""

    items: list[SavedNodeResponse]
    quota: QuotaResponse
