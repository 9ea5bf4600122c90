"""Service layer for listing and revoking a user's signed-in sessions."""
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.auth_session import AuthSession
from services.exceptions import InvalidOperationError, NotFoundError
from services.geolocation import GeoLocator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionDetails:
    """A live session as shown on the "devices" page."""

    id: UUID
    created_at: datetime
    updated_at: datetime
    expires_at: datetime
    ip_address: str | None
    location: str | None
    user_agent: str | None
    is_current: bool


async def get_active_sessions(
    db: AsyncSession,
    user_id: UUID,
    now: datetime | None = None,
) -> list[AuthSession]:
    """Get the user's unexpired sessions, oldest first."""
    if now is None:
        now = datetime.now(UTC)
    result = await db.execute(
        select(AuthSession)
        .where(AuthSession.user_id == user_id, AuthSession.expires_at > now)
        .order_by(AuthSession.created_at),
    )
    return list(result.scalars().all())


async def list_sessions(
    db: AsyncSession,
    user_id: UUID,
    current_session_id: UUID,
    locator: GeoLocator,
) -> list[SessionDetails]:
    """
    List the user's live sessions with best-effort locations.

    Each distinct IP is resolved once. A failed lookup leaves that session's
    location as None; it never fails the listing.
    """
    sessions = await get_active_sessions(db, user_id)
    locations = await locator.locate_many(s.ip_address for s in sessions)

    return [
        SessionDetails(
            id=s.id,
            created_at=s.created_at,
            updated_at=s.updated_at,
            expires_at=s.expires_at,
            ip_address=s.ip_address,
            location=locations.get(s.ip_address) if s.ip_address else None,
            user_agent=s.user_agent,
            is_current=s.id == current_session_id,
        )
        for s in sessions
    ]


async def revoke_session(
    db: AsyncSession,
    user_id: UUID,
    session_id: UUID,
    current_session_id: UUID,
) -> None:
    """
    Revoke one of the user's other sessions.

    Raises:
        InvalidOperationError: If session_id is the caller's current session.
            Checked before ownership - the current session must be ended by
            signing out.
        NotFoundError: If the session does not exist or belongs to another user.
    """
    if session_id == current_session_id:
        raise InvalidOperationError("Cannot revoke current session. Use sign out instead.")

    result = await db.execute(
        delete(AuthSession)
        .where(AuthSession.id == session_id, AuthSession.user_id == user_id)
        .returning(AuthSession.id),
    )
    if result.scalar_one_or_none() is None:
        raise NotFoundError("Session")
    logger.info("Session %s revoked by user %s", session_id, user_id)


async def revoke_other_sessions(
    db: AsyncSession,
    user_id: UUID,
    current_session_id: UUID,
) -> int:
    """
    Revoke every session of the user except the current one.

    Returns:
        Number of sessions revoked (0 is not an error).
    """
    result = await db.execute(
        delete(AuthSession)
        .where(AuthSession.user_id == user_id, AuthSession.id != current_session_id)
        .returning(AuthSession.id),
    )
    revoked = len(result.all())
    logger.info("Revoked %d other session(s) for user %s", revoked, user_id)
    return revoked
