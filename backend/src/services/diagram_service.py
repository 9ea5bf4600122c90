"""Service layer for diagram CRUD operations."""
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.plan_limits import ResourceKind
from models.diagram import DEFAULT_DIAGRAM_TITLE, Diagram, empty_diagram_data
from services.quota_service import QuotaService, quota_service


async def list_diagrams(
    db: AsyncSession,
    owner_id: UUID,
    limit: int = 20,
    offset: int = 0,
) -> tuple[list[Diagram], int]:
    """
    Get a page of the user's diagrams, most recently updated first.

    Returns:
        Tuple of (diagrams, total count).
    """
    result = await db.execute(
        select(Diagram)
        .where(Diagram.owner_id == owner_id)
        .order_by(Diagram.updated_at.desc())
        .limit(limit)
        .offset(offset),
    )
    total = await db.scalar(
        select(func.count()).select_from(Diagram).where(Diagram.owner_id == owner_id),
    )
    return list(result.scalars().all()), total or 0


async def get_diagram(db: AsyncSession, owner_id: UUID, diagram_id: UUID) -> Diagram | None:
    """Get a diagram by ID, scoped to its owner."""
    result = await db.execute(
        select(Diagram).where(Diagram.id == diagram_id, Diagram.owner_id == owner_id),
    )
    return result.scalar_one_or_none()


async def create_diagram(
    db: AsyncSession,
    owner_id: UUID,
    title: str | None,
    data: dict[str, Any] | None,
    quotas: QuotaService = quota_service,
) -> Diagram:
    """
    Create a diagram after checking the owner's diagram quota.

    Raises:
        QuotaExceededError: If the owner is at their diagram ceiling.

    Note:
        Does not commit. The quota row lock is held until the request commits.
    """
    await quotas.check_quota(db, owner_id, ResourceKind.DIAGRAM)

    diagram = Diagram(
        owner_id=owner_id,
        title=title or DEFAULT_DIAGRAM_TITLE,
        data=data if data is not None else empty_diagram_data(),
    )
    db.add(diagram)
    await db.flush()
    await db.refresh(diagram)
    return diagram


async def update_diagram(
    db: AsyncSession,
    owner_id: UUID,
    diagram_id: UUID,
    title: str | None,
    data: dict[str, Any] | None,
) -> Diagram | None:
    """Replace a diagram's title and payload. Returns None if not found."""
    diagram = await get_diagram(db, owner_id, diagram_id)
    if diagram is None:
        return None

    if title is not None:
        diagram.title = title
    if data is not None:
        diagram.data = data
    diagram.touch()
    await db.flush()
    await db.refresh(diagram)
    return diagram


async def delete_diagram(db: AsyncSession, owner_id: UUID, diagram_id: UUID) -> bool:
    """
    Delete a diagram. Its share links are removed by the database cascade.

    Returns:
        True if deleted, False if not found.
    """
    result = await db.execute(
        delete(Diagram)
        .where(Diagram.id == diagram_id, Diagram.owner_id == owner_id)
        .returning(Diagram.id),
    )
    return result.scalar_one_or_none() is not None


async def delete_all_diagrams(db: AsyncSession, owner_id: UUID) -> int:
    """Delete every diagram owned by a user. Returns the number deleted."""
    result = await db.execute(
        delete(Diagram).where(Diagram.owner_id == owner_id).returning(Diagram.id),
    )
    return len(result.all())
