"""Schema for the user data export document."""
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from schemas.email_preference import EmailPreferencesResponse
from schemas.profile import LinkedAccountResponse


class ExportedProfile(BaseModel):
    id: UUID
    email: str
    name: str | None
    image: str | None
    email_verified: bool
    plan: str
    max_graphs: int
    retention_days: int


class ExportedDiagram(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    data: dict[str, Any]
    created_at: datetime
    updated_at: datetime
    expires_at: datetime | None


class ExportedShareLink(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    token: str
    diagram_id: UUID
    created_at: datetime
    expires_at: datetime


class DataExportResponse(BaseModel):
    """Everything stored for a user. Token and password material is never included."""

    exported_at: datetime
    profile: ExportedProfile
    email_preferences: EmailPreferencesResponse
    linked_accounts: list[LinkedAccountResponse]
    diagrams: list[ExportedDiagram]
    share_links: list[ExportedShareLink]
