"""Schema for live quota snapshots."""
from pydantic import BaseModel, ConfigDict


class QuotaResponse(BaseModel):
    """Usage against a plan ceiling, rendered by clients as "X of Y used"."""

    model_config = ConfigDict(from_attributes=True)

    used: int
    max: int
    plan: str


class QuotaExceededResponse(BaseModel):
    """Body of a 403 returned when a create would exceed the ceiling."""

    detail: str
    quota: QuotaResponse
