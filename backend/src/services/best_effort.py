"""Optional sub-fetches for aggregated read models (profile, data export)."""
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def best_effort(label: str, fetch: Callable[[], Awaitable[T]], default: T) -> T:
    """
    Run an optional sub-fetch, degrading to a default on failure.

    Used for sections of aggregated responses where one failing query should
    leave that section empty rather than fail the whole response. The failure
    is logged with its traceback.

    Args:
        label: Name of the section, for the log line.
        fetch: Zero-argument coroutine function performing the fetch.
        default: Value returned when the fetch raises.
    """
    try:
        return await fetch()
    except Exception:
        logger.exception("Failed to fetch %s, using default", label)
        return default


async def in_savepoint(db: AsyncSession, fetch: Callable[[AsyncSession], Awaitable[T]]) -> T:
    """
    Run a fetch inside a SAVEPOINT on the given session.

    A failed statement aborts the whole PostgreSQL transaction unless it ran
    inside a savepoint. Wrapping best-effort fetches this way keeps the
    request session usable after one of them fails.
    """
    async with db.begin_nested():
        return await fetch(db)
