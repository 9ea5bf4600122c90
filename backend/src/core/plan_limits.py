"""Plan-based resource ceilings for diagrams and saved node templates."""
import logging
from dataclasses import dataclass
from enum import StrEnum

logger = logging.getLogger(__name__)


class Plan(StrEnum):
    """User subscription plans."""

    FREE = "free"
    PLUS = "plus"


class ResourceKind(StrEnum):
    """Resource kinds that count against a plan's quota."""

    DIAGRAM = "diagram"
    SAVED_NODE = "saved_node"


# Used when a principal has no profile row or a null max_graphs
DEFAULT_MAX_DIAGRAMS = 20


@dataclass(frozen=True)
class PlanLimits:
    """Resource ceilings for a subscription plan."""

    # Fallback only - the profile's max_graphs column is authoritative for diagrams
    max_diagrams: int
    max_saved_nodes: int


PLAN_LIMITS: dict[Plan, PlanLimits] = {
    Plan.FREE: PlanLimits(
        max_diagrams=DEFAULT_MAX_DIAGRAMS,
        max_saved_nodes=20,
    ),
    Plan.PLUS: PlanLimits(
        max_diagrams=DEFAULT_MAX_DIAGRAMS,
        max_saved_nodes=50,
    ),
}


def get_plan_safely(plan_value: str | None) -> Plan:
    """
    Safely convert a string to a Plan enum, defaulting to FREE on unknown values.

    This prevents 500 errors from bad data or future plan values that don't
    exist yet in this version of the code.

    Args:
        plan_value: The plan string from the profiles table (may be None).

    Returns:
        The corresponding Plan enum, or Plan.FREE if missing or unknown.
    """
    if plan_value is None:
        return Plan.FREE
    try:
        return Plan(plan_value)
    except ValueError:
        logger.warning(
            "Unknown plan value '%s', defaulting to FREE plan",
            plan_value,
        )
        return Plan.FREE


def get_plan_limits(
    plan: Plan,
    plan_limits: dict[Plan, PlanLimits] = PLAN_LIMITS,
) -> PlanLimits:
    """
    Get limits for a plan.

    Args:
        plan: The user's subscription plan.
        plan_limits: Plan table to read from. Defaults to PLAN_LIMITS.

    Returns:
        PlanLimits for the specified plan, falling back to the FREE entry.
    """
    return plan_limits.get(plan, plan_limits[Plan.FREE])
