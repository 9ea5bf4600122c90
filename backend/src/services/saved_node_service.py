"""Service layer for saved node template CRUD operations."""
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.plan_limits import ResourceKind
from models.saved_node import SavedNode
from schemas.saved_node import SavedNodeCreate, SavedNodeUpdate
from services.quota_service import QuotaService, quota_service


async def list_saved_nodes(
    db: AsyncSession,
    user_id: UUID,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[SavedNode], int]:
    """
    Get a page of the user's saved nodes, most recently updated first.

    Returns:
        Tuple of (saved nodes, total count).
    """
    result = await db.execute(
        select(SavedNode)
        .where(SavedNode.user_id == user_id)
        .order_by(SavedNode.updated_at.desc())
        .limit(limit)
        .offset(offset),
    )
    total = await db.scalar(
        select(func.count()).select_from(SavedNode).where(SavedNode.user_id == user_id),
    )
    return list(result.scalars().all()), total or 0


async def get_saved_node(db: AsyncSession, user_id: UUID, node_id: UUID) -> SavedNode | None:
    """Get a saved node by ID, scoped to its owner."""
    result = await db.execute(
        select(SavedNode).where(SavedNode.id == node_id, SavedNode.user_id == user_id),
    )
    return result.scalar_one_or_none()


async def create_saved_node(
    db: AsyncSession,
    user_id: UUID,
    data: SavedNodeCreate,
    quotas: QuotaService = quota_service,
) -> SavedNode:
    """
    Create a saved node after checking the plan's saved node quota.

    Raises:
        QuotaExceededError: If the user is at their saved node ceiling.
    """
    await quotas.check_quota(db, user_id, ResourceKind.SAVED_NODE)

    node = SavedNode(
        user_id=user_id,
        name=data.name,
        description=data.description or None,
        layout=data.layout,
    )
    db.add(node)
    await db.flush()
    await db.refresh(node)
    return node


async def update_saved_node(
    db: AsyncSession,
    user_id: UUID,
    node_id: UUID,
    data: SavedNodeUpdate,
) -> SavedNode | None:
    """Apply a partial update. Only fields present in the request are changed."""
    node = await get_saved_node(db, user_id, node_id)
    if node is None:
        return None

    updates: dict[str, Any] = data.model_dump(exclude_unset=True)
    for field, value in updates.items():
        setattr(node, field, value)
    node.touch()
    await db.flush()
    await db.refresh(node)
    return node


async def delete_saved_node(db: AsyncSession, user_id: UUID, node_id: UUID) -> bool:
    """Delete a saved node. Returns True if deleted, False if not found."""
    result = await db.execute(
        delete(SavedNode)
        .where(SavedNode.id == node_id, SavedNode.user_id == user_id)
        .returning(SavedNode.id),
    )
    return result.scalar_one_or_none() is not None
