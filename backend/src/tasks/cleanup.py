"""
Scheduled cleanup task.

Removes share links and sessions that expired long ago. Expired rows are
already inert (share links stop resolving and sessions stop authenticating
the moment they expire), so this only keeps the tables small. Designed to
run as a cron job (e.g., daily at 3 AM).

Usage:
    python -m tasks.cleanup
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from db.session import async_session_factory
from models.auth_session import AuthSession
from models.share_link import ShareLink

logger = logging.getLogger(__name__)

# Days an expired row is kept before it is purged
EXPIRED_GRACE_DAYS = 30


@dataclass
class CleanupStats:
    """Statistics from a cleanup run."""

    share_links_deleted: int = 0
    sessions_deleted: int = 0

    def to_dict(self) -> dict[str, int]:
        """Convert to simple dict for logging/return."""
        return {
            "share_links_deleted": self.share_links_deleted,
            "sessions_deleted": self.sessions_deleted,
        }


def _cutoff(now: datetime | None, grace_days: int) -> datetime:
    if now is None:
        now = datetime.now(UTC)
    return now - timedelta(days=grace_days)


async def cleanup_expired_share_links(
    db: AsyncSession,
    now: datetime | None = None,
    grace_days: int = EXPIRED_GRACE_DAYS,
) -> int:
    """
    Delete share links that expired more than grace_days ago.

    Returns:
        Number of share links deleted.
    """
    result = await db.execute(
        delete(ShareLink)
        .where(ShareLink.expires_at < _cutoff(now, grace_days))
        .returning(ShareLink.id),
    )
    deleted = len(result.all())
    if deleted > 0:
        logger.info("Deleted %d expired share links", deleted)
    return deleted


async def cleanup_expired_sessions(
    db: AsyncSession,
    now: datetime | None = None,
    grace_days: int = EXPIRED_GRACE_DAYS,
) -> int:
    """
    Delete sessions that expired more than grace_days ago.

    Returns:
        Number of sessions deleted.
    """
    result = await db.execute(
        delete(AuthSession)
        .where(AuthSession.expires_at < _cutoff(now, grace_days))
        .returning(AuthSession.id),
    )
    deleted = len(result.all())
    if deleted > 0:
        logger.info("Deleted %d expired sessions", deleted)
    return deleted


async def run_cleanup(
    db: AsyncSession | None = None,
    now: datetime | None = None,
    grace_days: int = EXPIRED_GRACE_DAYS,
) -> CleanupStats:
    """
    Run all cleanup tasks in one transaction.

    Args:
        db: Database session. If None, creates one from async_session_factory.
        now: Current time for cutoff calculation. Defaults to datetime.now(UTC).
        grace_days: Days an expired row is kept before deletion.

    Returns:
        Combined CleanupStats.
    """
    logger.info("Starting cleanup task")

    async def _run(session: AsyncSession) -> CleanupStats:
        stats = CleanupStats(
            share_links_deleted=await cleanup_expired_share_links(session, now, grace_days),
            sessions_deleted=await cleanup_expired_sessions(session, now, grace_days),
        )
        await session.commit()
        return stats

    if db is not None:
        stats = await _run(db)
    else:
        async with async_session_factory() as session:
            stats = await _run(session)

    logger.info("Cleanup complete: %s", stats.to_dict())
    return stats


def main() -> None:
    """Entry point for running cleanup as a script."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_cleanup())


if __name__ == "__main__":
    main()
