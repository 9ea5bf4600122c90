"""Liveness and database reachability probe."""
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_settings
from core.config import Settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    service: str
    status: str
    database: str


async def _database_status(db: AsyncSession) -> str:
    try:
        await db.scalar(text("SELECT 1"))
    except Exception:
        logger.exception("Database health check failed")
        return "unhealthy"
    return "healthy"


@router.get("/health", response_model=HealthResponse)
async def health_check(
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
) -> HealthResponse:
    """
    Report whether the API can reach its database. Unauthenticated.

    A database failure degrades the status but still answers 200, so load
    balancers can tell a degraded instance from a dead one.
    """
    database = await _database_status(db)
    return HealthResponse(
        service=settings.app_name,
        status="healthy" if database == "healthy" else "degraded",
        database=database,
    )
