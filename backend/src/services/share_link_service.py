"""Service layer for public diagram share links."""
import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.diagram import Diagram
from models.share_link import ShareLink
from services.diagram_service import get_diagram
from services.exceptions import NotFoundError

logger = logging.getLogger(__name__)

DEFAULT_SHARE_LINK_TTL = timedelta(days=7)


@dataclass(frozen=True)
class SharedDiagram:
    """Public projection of a shared diagram. No owner or link metadata."""

    id: UUID
    title: str
    data: dict[str, Any]
    updated_at: datetime


@dataclass(frozen=True)
class ShareLinkListItem:
    """A share link joined with its diagram's title."""

    id: UUID
    token: str
    diagram_id: UUID
    diagram_title: str
    expires_at: datetime
    created_at: datetime


def generate_share_token() -> str:
    """Generate an unguessable URL-safe share token."""
    return secrets.token_urlsafe(32)


async def create_share_link(
    db: AsyncSession,
    owner_id: UUID,
    diagram_id: UUID,
    ttl: timedelta = DEFAULT_SHARE_LINK_TTL,
) -> ShareLink:
    """
    Create a share link for a diagram the caller owns.

    Args:
        db: Database session.
        owner_id: ID of the calling user.
        diagram_id: Diagram to share.
        ttl: Lifetime of the link.

    Returns:
        The created ShareLink (token and expires_at are what the caller needs).

    Raises:
        NotFoundError: If the diagram does not exist or is not owned by the caller.
    """
    diagram = await get_diagram(db, owner_id, diagram_id)
    if diagram is None:
        raise NotFoundError("Graph")

    link = ShareLink(
        token=generate_share_token(),
        diagram_id=diagram.id,
        created_by=owner_id,
        expires_at=datetime.now(UTC) + ttl,
    )
    db.add(link)
    await db.flush()
    await db.refresh(link)
    return link


async def resolve_share_token(
    db: AsyncSession,
    token: str,
    now: datetime | None = None,
) -> SharedDiagram | None:
    """
    Resolve a public share token to its diagram.

    Expired and unknown tokens both return None so callers cannot tell whether
    a token ever existed.
    """
    if now is None:
        now = datetime.now(UTC)
    result = await db.execute(
        select(Diagram.id, Diagram.title, Diagram.data, Diagram.updated_at)
        .join(ShareLink, ShareLink.diagram_id == Diagram.id)
        .where(ShareLink.token == token, ShareLink.expires_at > now),
    )
    row = result.first()
    if row is None:
        return None
    return SharedDiagram(id=row.id, title=row.title, data=row.data, updated_at=row.updated_at)


async def list_share_links(db: AsyncSession, owner_id: UUID) -> list[ShareLinkListItem]:
    """List all share links created by the user, oldest first."""
    result = await db.execute(
        select(
            ShareLink.id,
            ShareLink.token,
            ShareLink.diagram_id,
            Diagram.title,
            ShareLink.expires_at,
            ShareLink.created_at,
        )
        .join(Diagram, Diagram.id == ShareLink.diagram_id)
        .where(ShareLink.created_by == owner_id)
        .order_by(ShareLink.created_at),
    )
    return [
        ShareLinkListItem(
            id=row.id,
            token=row.token,
            diagram_id=row.diagram_id,
            diagram_title=row.title,
            expires_at=row.expires_at,
            created_at=row.created_at,
        )
        for row in result.all()
    ]


async def revoke_share_link(db: AsyncSession, owner_id: UUID, link_id: UUID) -> None:
    """
    Delete a share link created by the user.

    Raises:
        NotFoundError: If the link does not exist or was created by someone else.
    """
    result = await db.execute(
        delete(ShareLink)
        .where(ShareLink.id == link_id, ShareLink.created_by == owner_id)
        .returning(ShareLink.id),
    )
    if result.scalar_one_or_none() is None:
        raise NotFoundError("Share link")
    logger.info("Share link %s revoked by user %s", link_id, owner_id)
