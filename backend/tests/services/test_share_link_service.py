"""Tests for the share link service."""
from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.diagram import Diagram
from models.share_link import ShareLink
from models.user import User
from services.diagram_service import create_diagram, delete_diagram
from services.exceptions import NotFoundError
from services.share_link_service import (
    DEFAULT_SHARE_LINK_TTL,
    create_share_link,
    generate_share_token,
    list_share_links,
    resolve_share_token,
    revoke_share_link,
)


@pytest.fixture
async def diagram(db_session: AsyncSession, test_user: User) -> Diagram:
    return await create_diagram(
        db_session, test_user.id, "Architecture", {"nodes": [{"id": "a"}], "edges": []},
    )


# =============================================================================
# generate_share_token Tests
# =============================================================================


def test__generate_share_token__is_url_safe_and_unique() -> None:
    tokens = {generate_share_token() for _ in range(20)}
    assert len(tokens) == 20
    for token in tokens:
        assert len(token) >= 40
        assert all(c.isalnum() or c in "-_" for c in token)


# =============================================================================
# create_share_link Tests
# =============================================================================


async def test__create_share_link__expires_in_seven_days(
    db_session: AsyncSession, test_user: User, diagram: Diagram,
) -> None:
    before = datetime.now(UTC)
    link = await create_share_link(db_session, test_user.id, diagram.id)

    assert link.diagram_id == diagram.id
    assert link.created_by == test_user.id
    assert before + DEFAULT_SHARE_LINK_TTL <= link.expires_at
    assert link.expires_at <= datetime.now(UTC) + DEFAULT_SHARE_LINK_TTL


async def test__create_share_link__custom_ttl(
    db_session: AsyncSession, test_user: User, diagram: Diagram,
) -> None:
    link = await create_share_link(db_session, test_user.id, diagram.id, ttl=timedelta(hours=1))
    assert link.expires_at < datetime.now(UTC) + timedelta(hours=2)


async def test__create_share_link__other_users_diagram_not_found(
    db_session: AsyncSession, other_user: User, diagram: Diagram,
) -> None:
    with pytest.raises(NotFoundError, match="Graph not found"):
        await create_share_link(db_session, other_user.id, diagram.id)


async def test__create_share_link__unknown_diagram_not_found(
    db_session: AsyncSession, test_user: User,
) -> None:
    with pytest.raises(NotFoundError):
        await create_share_link(db_session, test_user.id, uuid4())


# =============================================================================
# resolve_share_token Tests
# =============================================================================


async def test__resolve_share_token__fresh_link_resolves(
    db_session: AsyncSession, test_user: User, diagram: Diagram,
) -> None:
    link = await create_share_link(db_session, test_user.id, diagram.id)

    shared = await resolve_share_token(db_session, link.token)

    assert shared is not None
    assert shared.id == diagram.id
    assert shared.title == "Architecture"
    assert shared.data == {"nodes": [{"id": "a"}], "edges": []}


async def test__resolve_share_token__expired_link_returns_none(
    db_session: AsyncSession, test_user: User, diagram: Diagram,
) -> None:
    link = await create_share_link(db_session, test_user.id, diagram.id)
    link.expires_at = datetime.now(UTC) - timedelta(seconds=1)
    await db_session.flush()

    assert await resolve_share_token(db_session, link.token) is None


async def test__resolve_share_token__boundary_is_exclusive(
    db_session: AsyncSession, test_user: User, diagram: Diagram,
) -> None:
    """A link is valid strictly before expires_at."""
    link = await create_share_link(db_session, test_user.id, diagram.id)

    just_before = link.expires_at - timedelta(microseconds=1)
    assert await resolve_share_token(db_session, link.token, now=just_before) is not None
    assert await resolve_share_token(db_session, link.token, now=link.expires_at) is None


async def test__resolve_share_token__unknown_token_returns_none(
    db_session: AsyncSession,
) -> None:
    assert await resolve_share_token(db_session, "does-not-exist") is None


# =============================================================================
# list_share_links / revoke_share_link Tests
# =============================================================================


async def test__list_share_links__includes_diagram_title_in_creation_order(
    db_session: AsyncSession, test_user: User, diagram: Diagram,
) -> None:
    first = await create_share_link(db_session, test_user.id, diagram.id)
    second = await create_share_link(db_session, test_user.id, diagram.id)

    links = await list_share_links(db_session, test_user.id)

    assert [link.id for link in links] == [first.id, second.id]
    assert all(link.diagram_title == "Architecture" for link in links)


async def test__list_share_links__excludes_other_users_links(
    db_session: AsyncSession, test_user: User, other_user: User, diagram: Diagram,
) -> None:
    await create_share_link(db_session, test_user.id, diagram.id)

    assert await list_share_links(db_session, other_user.id) == []


async def test__revoke_share_link__deletes_own_link(
    db_session: AsyncSession, test_user: User, diagram: Diagram,
) -> None:
    link = await create_share_link(db_session, test_user.id, diagram.id)

    await revoke_share_link(db_session, test_user.id, link.id)

    assert await resolve_share_token(db_session, link.token) is None


async def test__revoke_share_link__other_users_link_not_found(
    db_session: AsyncSession, test_user: User, other_user: User, diagram: Diagram,
) -> None:
    link = await create_share_link(db_session, test_user.id, diagram.id)

    with pytest.raises(NotFoundError, match="Share link not found"):
        await revoke_share_link(db_session, other_user.id, link.id)

    assert await resolve_share_token(db_session, link.token) is not None


async def test__delete_diagram__cascades_to_share_links(
    db_session: AsyncSession, test_user: User, diagram: Diagram,
) -> None:
    link = await create_share_link(db_session, test_user.id, diagram.id)
    link_id = link.id
    db_session.expunge(link)

    assert await delete_diagram(db_session, test_user.id, diagram.id) is True

    count = await db_session.scalar(
        select(func.count()).select_from(ShareLink).where(ShareLink.id == link_id),
    )
    assert count == 0
