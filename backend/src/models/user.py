"""User model - the principal record owned by the identity provider."""
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin, UUIDv7Mixin

if TYPE_CHECKING:
    from models.auth_session import AuthSession


class User(Base, UUIDv7Mixin, TimestampMixin):
    """
    Principal record.

    Owned by the identity provider and read-only here, except for profile edits
    (name, image) and the administrative account deletion. Every table that
    belongs to a user references users.id with ON DELETE CASCADE (deletion
    requests use SET NULL), so deleting this row removes the account's data.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    image: Mapped[str | None] = mapped_column(Text, nullable=True)
    email_verified: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    two_factor_enabled: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default="false",
        comment="Set by the identity provider when TOTP is enrolled",
    )

    sessions: Mapped[list["AuthSession"]] = relationship(
        back_populates="user",
        passive_deletes=True,
    )
