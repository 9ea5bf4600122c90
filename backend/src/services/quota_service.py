"""Quota checks for plan-limited resources (diagrams and saved node templates)."""
import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.plan_limits import (
    DEFAULT_MAX_DIAGRAMS,
    PLAN_LIMITS,
    Plan,
    PlanLimits,
    ResourceKind,
    get_plan_limits,
    get_plan_safely,
)
from models.diagram import Diagram
from models.profile import Profile
from models.saved_node import SavedNode
from models.user import User
from services.exceptions import QuotaExceededError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuotaSnapshot:
    """Live usage for one resource kind, as shown to clients ("X of Y used")."""

    used: int
    max: int
    plan: str


_RESOURCE_TABLES = {
    ResourceKind.DIAGRAM: (Diagram, Diagram.owner_id),
    ResourceKind.SAVED_NODE: (SavedNode, SavedNode.user_id),
}

_RESOURCE_LABELS = {
    ResourceKind.DIAGRAM: "Graph",
    ResourceKind.SAVED_NODE: "Saved node",
}


class QuotaService:
    """
    Computes usage and enforces plan ceilings per resource kind.

    The plan table is injected so new plans or resource kinds only need a new
    table entry.
    """

    def __init__(self, plan_limits: dict[Plan, PlanLimits] = PLAN_LIMITS) -> None:
        self.plan_limits = plan_limits

    async def get_quota(
        self,
        db: AsyncSession,
        user_id: UUID,
        kind: ResourceKind,
    ) -> QuotaSnapshot:
        """
        Get current usage and ceiling for a resource kind.

        Count and profile are read in one statement as two independent scalar
        subqueries, so neither waits on the other.

        Args:
            db: Database session.
            user_id: Owner to count for.
            kind: Resource kind.

        Returns:
            QuotaSnapshot with used, max and plan name.
        """
        model, owner_column = _RESOURCE_TABLES[kind]
        count_subquery = (
            select(func.count())
            .select_from(model)
            .where(owner_column == user_id)
            .scalar_subquery()
        )
        plan_subquery = (
            select(Profile.plan).where(Profile.user_id == user_id).scalar_subquery()
        )
        max_graphs_subquery = (
            select(Profile.max_graphs).where(Profile.user_id == user_id).scalar_subquery()
        )
        result = await db.execute(
            select(count_subquery, plan_subquery, max_graphs_subquery),
        )
        used, plan_value, max_graphs = result.one()

        plan = get_plan_safely(plan_value)
        if kind == ResourceKind.DIAGRAM:
            maximum = max_graphs if max_graphs is not None else DEFAULT_MAX_DIAGRAMS
        else:
            maximum = get_plan_limits(plan, self.plan_limits).max_saved_nodes

        return QuotaSnapshot(used=used, max=maximum, plan=plan_value or Plan.FREE.value)

    async def check_quota(
        self,
        db: AsyncSession,
        user_id: UUID,
        kind: ResourceKind,
    ) -> QuotaSnapshot:
        """
        Check that the user can create one more resource of this kind.

        Locks the user's row first, so concurrent creates for the same user
        queue behind each other until the request transaction commits. The
        count they read therefore includes every insert that passed the check
        before them and the ceiling cannot be overshot.

        Args:
            db: Database session. Must be the session the insert will use.
            user_id: Owner creating the resource.
            kind: Resource kind being created.

        Returns:
            The quota snapshot read under the lock.

        Raises:
            QuotaExceededError: If the user is at or over the ceiling.
        """
        await db.execute(
            select(User.id).where(User.id == user_id).with_for_update(),
        )
        snapshot = await self.get_quota(db, user_id, kind)
        if snapshot.used >= snapshot.max:
            logger.info(
                "Quota exceeded for user %s: %s %d/%d (plan=%s)",
                user_id, kind.value, snapshot.used, snapshot.max, snapshot.plan,
            )
            raise QuotaExceededError(
                _RESOURCE_LABELS[kind], snapshot.used, snapshot.max, snapshot.plan,
            )
        return snapshot


quota_service = QuotaService()
