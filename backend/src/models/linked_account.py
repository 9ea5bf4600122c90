"""Linked sign-in method model (identity provider owned)."""
from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin, UUIDv7Mixin

# providerId used for email/password sign-in
CREDENTIAL_PROVIDER = "credential"


class LinkedAccount(Base, UUIDv7Mixin, TimestampMixin):
    """
    A sign-in method linked to a user (password credential or OAuth provider).

    Token and password columns are stored by the identity provider and are never
    returned by this service - only the provider id and link timestamp.
    """

    __tablename__ = "accounts"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    provider_id: Mapped[str] = mapped_column(
        String(50),
        comment="e.g. 'credential', 'google', 'github'",
    )
    account_id: Mapped[str] = mapped_column(String(255))
    access_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    refresh_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    id_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    access_token_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    password: Mapped[str | None] = mapped_column(Text, nullable=True)
