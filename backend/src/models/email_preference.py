"""EmailPreference model - per-category opt-outs."""
from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin, UUIDv7Mixin


class EmailPreference(Base, UUIDv7Mixin, TimestampMixin):
    """
    Opt-in flags for non-transactional mail, one row per user.

    Absent row means subscribed to everything. The row is created on the first
    preference write or unsubscribe.
    """

    __tablename__ = "email_preferences"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        index=True,
    )
    email: Mapped[str] = mapped_column(String(255))
    marketing_emails: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default="true",
    )
    product_updates: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default="true",
    )
    unsubscribed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="First unsubscribe via email link; never moved forward",
    )
