"""Pydantic schemas for the session (devices) endpoints."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class SessionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    created_at: datetime
    updated_at: datetime
    expires_at: datetime
    ip_address: str | None
    location: str | None
    user_agent: str | None
    is_current: bool


class SessionListResponse(BaseModel):
    sessions: list[SessionResponse]


class RevokeSessionsResponse(BaseModel):
    success: bool = True
    revoked_count: int
