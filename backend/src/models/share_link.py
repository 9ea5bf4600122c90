"""ShareLink model - time-limited public access to a diagram."""
from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, UUIDv7Mixin

if TYPE_CHECKING:
    from models.diagram import Diagram


class ShareLink(Base, UUIDv7Mixin):
    """
    Public share token for one diagram.

    Valid while expires_at is in the future. Removed with its diagram (and so,
    transitively, with the diagram's owner) or when revoked by its creator.
    """

    __tablename__ = "share_links"

    token: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        index=True,
        comment="Unguessable URL-safe token",
    )
    diagram_id: Mapped[UUID] = mapped_column(
        ForeignKey("diagrams.id", ondelete="CASCADE"),
        index=True,
    )
    created_by: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.clock_timestamp(),
        nullable=False,
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)

    diagram: Mapped["Diagram"] = relationship()
