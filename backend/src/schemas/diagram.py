"""Pydantic schemas for diagram endpoints."""
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class DiagramCreate(BaseModel):
    """Schema for creating a diagram. Both fields default when omitted."""

    title: str | None = Field(default=None, max_length=255)
    data: dict[str, Any] | None = Field(
        default=None,
        description="Opaque editor payload (nodes, edges, groups).",
    )


class DiagramUpdate(BaseModel):
    """Schema for updating a diagram. Omitted fields are left unchanged."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    data: dict[str, Any] | None = None


class DiagramResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    data: dict[str, Any]
    created_at: datetime
    updated_at: datetime
    expires_at: datetime | None


class DiagramSummary(BaseModel):
    """Diagram list item without the payload."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    created_at: datetime
    updated_at: datetime
    expires_at: datetime | None


class DiagramListResponse(BaseModel):
    items: list[DiagramSummary]
    total: int
    offset: int
    limit: int
    has_more: bool
