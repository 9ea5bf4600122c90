"""Pydantic schemas for share links and publicly shared diagrams."""
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class ShareLinkCreateResponse(BaseModel):
    """Returned once when a share link is created."""

    model_config = ConfigDict(from_attributes=True)

    token: str
    expires_at: datetime


class ShareLinkResponse(BaseModel):
    """A share link in the owner's list, with the shared diagram's title."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    token: str
    diagram_id: UUID
    diagram_title: str
    expires_at: datetime
    created_at: datetime


class SharedDiagramResponse(BaseModel):
    """
    Public view of a shared diagram.

    Carries no owner or link metadata.
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    data: dict[str, Any]
    updated_at: datetime
