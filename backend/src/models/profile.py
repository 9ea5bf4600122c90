"""Profile model - plan and quota settings per user."""
from uuid import UUID

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin


class Profile(Base, TimestampMixin):
    """
    One-to-one with User, created lazily on first profile read.

    Plan changes are written by billing (outside this service). max_graphs is the
    authoritative diagram ceiling; the saved node ceiling comes from the plan table.
    """

    __tablename__ = "profiles"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    plan: Mapped[str | None] = mapped_column(String(50), default="free", server_default="free")
    max_graphs: Mapped[int | None] = mapped_column(Integer, default=20, server_default="20")
    retention_days: Mapped[int | None] = mapped_column(
        Integer, default=365, server_default="365",
    )
