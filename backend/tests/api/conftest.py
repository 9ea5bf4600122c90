"""Shared fixtures for API tests."""
from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from models.auth_session import AuthSession
from models.user import User
from tests.conftest import ADMIN_API_KEY, create_auth_session

# Constant for non-existent entity ID
FAKE_UUID = "00000000-0000-0000-0000-000000000000"


@pytest.fixture
async def current_session(db_session: AsyncSession, test_user: User) -> AuthSession:
    """The session the authenticated client signs requests with."""
    return await create_auth_session(db_session, test_user, token="current-session-token")


@pytest.fixture
async def auth_client(
    client: AsyncClient,  # noqa: ARG001 - installs the dependency overrides
    current_session: AuthSession,
) -> AsyncGenerator[AsyncClient]:
    """Client authenticated as test_user via a Bearer session token."""
    from api.main import app

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"Authorization": f"Bearer {current_session.token}"},
    ) as authed:
        yield authed


@pytest.fixture
async def other_client(
    db_session: AsyncSession,
    client: AsyncClient,  # noqa: ARG001 - installs the dependency overrides
    other_user: User,
) -> AsyncGenerator[AsyncClient]:
    """Client authenticated as other_user, for ownership isolation tests."""
    from api.main import app

    session = await create_auth_session(db_session, other_user, token="other-session-token")
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"Authorization": f"Bearer {session.token}"},
    ) as authed:
        yield authed


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"X-Admin-Key": ADMIN_API_KEY}
