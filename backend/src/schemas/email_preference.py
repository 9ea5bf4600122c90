"""Pydantic schemas for email subscription preferences and unsubscribe links."""
from pydantic import BaseModel, ConfigDict

from services.email_preference_service import EmailCategory


class EmailPreferencesResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    marketing_emails: bool = True
    product_updates: bool = True


class EmailPreferencesUpdate(BaseModel):
    """Omitted fields keep their stored value."""

    marketing_emails: bool | None = None
    product_updates: bool | None = None


class UnsubscribePreviewResponse(BaseModel):
    """What an unsubscribe link will do, shown before the user confirms."""

    email: str
    category: str
    message: str


class UnsubscribeRequest(BaseModel):
    """Form body for unsubscribe/resubscribe. Query parameters take precedence."""

    token: str | None = None
    category: EmailCategory | None = None


class UnsubscribeResponse(BaseModel):
    success: bool = True
    message: str
