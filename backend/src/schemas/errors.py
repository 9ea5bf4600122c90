"""
Error response schemas for API endpoints.

Routers raise HTTPException with one of these models dumped into `detail`, so
400 responses always carry a machine-readable `error` code next to the
human-readable `message`.
"""
from typing import Literal

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Generic structured 400 error."""

    error: str = Field(description="Error type identifier")
    message: str = Field(description="Human-readable error message")


class TwoFactorRequiredDetail(BaseModel):
    """Returned when a destructive action needs a 2FA code and none was sent."""

    error: Literal["two_factor_required"] = "two_factor_required"
    message: str = "2FA code required"
    requires_2fa: Literal[True] = Field(
        default=True,
        description="Tells the client to prompt for an authenticator code and retry",
    )


class InvalidStateDetail(BaseModel):
    """Returned when a deletion request is no longer pending."""

    error: Literal["invalid_state"] = "invalid_state"
    message: str
    status: str = Field(description="Current status of the request")


def error_detail(error: str, exc: Exception) -> dict:
    """Build a structured `detail` payload from a service exception."""
    return ErrorDetail(error=error, message=str(exc)).model_dump()
