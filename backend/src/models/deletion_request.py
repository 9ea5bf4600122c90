"""Account deletion request model - audit trail for account removal."""
from datetime import datetime
from enum import StrEnum
from uuid import UUID

from sqlalchemy import DateTime, Enum, ForeignKey, Index, String, Text, func, text
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, UUIDv7Mixin
from services.exceptions import InvalidStateError


class DeletionStatus(StrEnum):
    """Lifecycle of a deletion request. processed and cancelled are terminal."""

    PENDING = "pending"
    PROCESSED = "processed"
    CANCELLED = "cancelled"


_ALLOWED_TRANSITIONS: dict[DeletionStatus, frozenset[DeletionStatus]] = {
    DeletionStatus.PENDING: frozenset({DeletionStatus.PROCESSED, DeletionStatus.CANCELLED}),
    DeletionStatus.PROCESSED: frozenset(),
    DeletionStatus.CANCELLED: frozenset(),
}


class DeletionRequest(Base, UUIDv7Mixin):
    """
    A user's request to delete their account.

    Requests are always created as pending and only move forward through
    transition_to(). user_id is nulled (not cascaded) when the user row is
    deleted so the audit record survives the account.

    A partial unique index guarantees at most one pending request per user,
    even when two submissions race.
    """

    __tablename__ = "account_deletion_requests"
    __table_args__ = (
        Index(
            "uq_deletion_requests_user_pending",
            "user_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
        ),
    )

    user_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        comment="Email at submission time, kept after the user is removed",
    )
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[DeletionStatus] = mapped_column(
        Enum(
            DeletionStatus,
            name="deletion_status",
            native_enum=False,
            length=20,
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        default=DeletionStatus.PENDING,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.clock_timestamp(),
        nullable=False,
    )
    processed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __init__(self, **kwargs: object) -> None:
        status = kwargs.pop("status", DeletionStatus.PENDING)
        if status != DeletionStatus.PENDING:
            raise InvalidStateError("Deletion requests can only be created as pending")
        super().__init__(status=DeletionStatus.PENDING, **kwargs)

    def transition_to(self, new_status: DeletionStatus) -> None:
        """
        Move the request to a new status.

        Raises:
            InvalidStateError: If the transition is not allowed from the current status.
        """
        current = DeletionStatus(self.status)
        if new_status not in _ALLOWED_TRANSITIONS[current]:
            raise InvalidStateError(f"Request already {current.value}", status=current.value)
        self.status = new_status
