"""Diagram model - a saved graph with an opaque JSON payload."""
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin, UUIDv7Mixin

DEFAULT_DIAGRAM_TITLE = "Untitled Graph"


def empty_diagram_data() -> dict[str, Any]:
    """Payload for a diagram created without data."""
    return {"nodes": [], "edges": [], "groups": []}


class Diagram(Base, UUIDv7Mixin, TimestampMixin):
    """Diagram owned by exactly one user. Counts against the diagram quota."""

    __tablename__ = "diagrams"

    owner_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), default=DEFAULT_DIAGRAM_TITLE)
    data: Mapped[dict[str, Any]] = mapped_column(JSONB, default=empty_diagram_data)
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
