"""Pydantic schemas for profile endpoints."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class LinkedAccountResponse(BaseModel):
    """A linked sign-in method. Never carries tokens or password hashes."""

    model_config = ConfigDict(from_attributes=True)

    provider: str
    linked_at: datetime | None


class ProfileResponse(BaseModel):
    id: UUID
    email: str
    name: str | None
    image: str | None
    email_verified: bool
    plan: str
    max_graphs: int
    retention_days: int
    linked_accounts: list[LinkedAccountResponse]


class ProfileUpdate(BaseModel):
    """Schema for updating the profile. At least one field is required."""

    name: str | None = Field(default=None, max_length=255)
    image: str | None = Field(
        default=None,
        max_length=2048,
        description="Absolute http(s) URL of the avatar image.",
    )


class ProfileUpdateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: str | None
    image: str | None


class UnlinkAccountRequest(BaseModel):
    provider: str = Field(..., min_length=1, max_length=50)


class MessageResponse(BaseModel):
    """Generic acknowledgement body."""

    success: bool = True
    message: str
