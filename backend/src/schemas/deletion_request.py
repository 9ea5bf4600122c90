"""Pydantic schemas for the account deletion workflow."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from models.deletion_request import DeletionStatus


class DeletionRequestCreate(BaseModel):
    reason: str | None = Field(default=None, max_length=1000)
    additional_feedback: str | None = Field(default=None, max_length=5000)
    totp_code: str | None = Field(
        default=None,
        max_length=10,
        description="Current authenticator code. Required when 2FA is enabled.",
    )


class DeletionRequestSummary(BaseModel):
    """A user's own view of their deletion request."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    status: DeletionStatus
    created_at: datetime


class DeletionRequestStatusResponse(BaseModel):
    has_pending_request: bool
    request: DeletionRequestSummary | None = None


class DeletionRequestSubmitResponse(BaseModel):
    success: bool = True
    message: str
    request_id: UUID


class DeletionRequestAdminResponse(BaseModel):
    """Full audit record, for the admin API."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID | None
    email: str
    reason: str | None
    status: DeletionStatus
    created_at: datetime
    processed_at: datetime | None


class DeletionRequestListResponse(BaseModel):
    requests: list[DeletionRequestAdminResponse]
    total: int


class ProcessDeletionResponse(BaseModel):
    success: bool = True
    message: str
    email: str
