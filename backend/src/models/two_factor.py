"""TOTP enrollment model (identity provider owned)."""
from uuid import UUID

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, UUIDv7Mixin


class TwoFactor(Base, UUIDv7Mixin):
    """TOTP secret for a user. Only read here, to re-verify destructive actions."""

    __tablename__ = "two_factors"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    secret: Mapped[str] = mapped_column(String(255), comment="Base32 TOTP secret")
    backup_codes: Mapped[str] = mapped_column(Text, default="")
