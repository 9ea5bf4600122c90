"""Declarative base and the column mixins shared by every table."""
from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from uuid6 import uuid7


class Base(DeclarativeBase):
    pass


class UUIDv7Mixin:
    """
    Mixin that adds a UUIDv7 primary key.

    UUIDv7 values are time-ordered, so inserts stay index-friendly and ids sort
    roughly by creation time.
    """

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid7)


class TimestampMixin:
    """
    Mixin that adds database-stamped created_at and updated_at columns.

    Both are TIMESTAMP WITH TIME ZONE filled from clock_timestamp(), so two
    writes in one request transaction still get distinct, ordered stamps
    ("most recently updated first" listings rely on this). There is no ORM
    onupdate; services call touch() on the rows they modify.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.clock_timestamp(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.clock_timestamp(),
        nullable=False,
        index=True,
    )

    def touch(self) -> None:
        """Set updated_at to the database clock at the next flush."""
        self.updated_at = func.clock_timestamp()
