"""Tests for the user data export and best-effort section fetching."""
from datetime import date
from unittest.mock import patch

import pytest
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from models.linked_account import LinkedAccount
from models.profile import Profile
from models.user import User
from services.best_effort import best_effort
from services.diagram_service import create_diagram, update_diagram
from services.email_preference_service import EmailCategory, unsubscribe
from services.export_service import (
    ExportedPreferences,
    build_data_export,
    export_filename,
)
from services.profile_service import ProfileSettings
from services.share_link_service import create_share_link


# =============================================================================
# best_effort Tests
# =============================================================================


async def test__best_effort__returns_fetch_result() -> None:
    async def fetch() -> int:
        return 42

    assert await best_effort("answer", fetch, 0) == 42


async def test__best_effort__failure_returns_default_and_logs(
    caplog: pytest.LogCaptureFixture,
) -> None:
    async def fetch() -> int:
        raise RuntimeError("boom")

    result = await best_effort("answer", fetch, 7)

    assert result == 7
    assert "Failed to fetch answer, using default" in caplog.text
    assert "RuntimeError: boom" in caplog.text


# =============================================================================
# export_filename Tests
# =============================================================================


@pytest.mark.parametrize(("app_name", "expected"), [
    ("Thalamus", "thalamus-data-export-2024-05-01.json"),
    ("Graph Studio!", "graph-studio-data-export-2024-05-01.json"),
    ("***", "data-data-export-2024-05-01.json"),
])
def test__export_filename(app_name: str, expected: str) -> None:
    assert export_filename(app_name, date(2024, 5, 1)) == expected


# =============================================================================
# build_data_export Tests (sequential, on the test transaction)
# =============================================================================


async def test__build_data_export__empty_user_gets_defaults(
    db_session: AsyncSession, test_user: User,
) -> None:
    export = await build_data_export(db_session, test_user, concurrent=False)

    assert export.user.id == test_user.id
    assert export.settings == ProfileSettings()
    assert export.email_preferences == ExportedPreferences()
    assert export.linked_accounts == []
    assert export.diagrams == []
    assert export.share_links == []
    assert export.exported_at.tzinfo is not None


async def test__build_data_export__includes_all_sections(
    db_session: AsyncSession, test_user: User, other_user: User,
) -> None:
    db_session.add(Profile(user_id=test_user.id, plan="plus", max_graphs=50))
    db_session.add(LinkedAccount(user_id=test_user.id, provider_id="google", account_id="g"))
    older = await create_diagram(db_session, test_user.id, "Older", None)
    newer = await create_diagram(db_session, test_user.id, "Newer", {"nodes": [1]})
    await create_diagram(db_session, other_user.id, "Not mine", None)
    first_link = await create_share_link(db_session, test_user.id, older.id)
    second_link = await create_share_link(db_session, test_user.id, newer.id)
    await unsubscribe(db_session, test_user.email, EmailCategory.PRODUCT_UPDATES)

    export = await build_data_export(db_session, test_user, concurrent=False)

    assert export.settings.plan == "plus"
    assert export.settings.max_graphs == 50
    assert export.email_preferences == ExportedPreferences(
        marketing_emails=True, product_updates=False,
    )
    assert [a.provider for a in export.linked_accounts] == ["google"]
    assert [d.id for d in export.diagrams] == [newer.id, older.id]
    assert [s.id for s in export.share_links] == [second_link.id, first_link.id]


async def test__build_data_export__diagrams_most_recently_updated_first(
    db_session: AsyncSession, test_user: User,
) -> None:
    first = await create_diagram(db_session, test_user.id, "First", None)
    second = await create_diagram(db_session, test_user.id, "Second", None)
    await update_diagram(db_session, test_user.id, first.id, "First (edited)", None)

    export = await build_data_export(db_session, test_user, concurrent=False)

    assert [d.id for d in export.diagrams] == [first.id, second.id]


async def test__build_data_export__failed_section_degrades(
    db_session: AsyncSession, test_user: User, caplog: pytest.LogCaptureFixture,
) -> None:
    await create_diagram(db_session, test_user.id, "Survives", None)

    with patch(
        "services.export_service._fetch_share_links",
        side_effect=RuntimeError("share links unavailable"),
    ):
        export = await build_data_export(db_session, test_user, concurrent=False)

    assert export.share_links == []
    assert [d.title for d in export.diagrams] == ["Survives"]
    assert "Failed to fetch share links" in caplog.text


# =============================================================================
# build_data_export Tests (concurrent, one session per section)
# =============================================================================


@pytest.fixture
async def independent_session_factory(
    async_engine: AsyncEngine,
) -> async_sessionmaker[AsyncSession]:
    """Session factory whose sessions see only committed data."""
    return async_sessionmaker(
        bind=async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def test__build_data_export__concurrent_sections_match_sequential(
    independent_session_factory: async_sessionmaker[AsyncSession],
) -> None:
    async with independent_session_factory() as session:
        user = User(email="export-concurrent@example.com")
        session.add(user)
        await session.flush()
        session.add(LinkedAccount(user_id=user.id, provider_id="github", account_id="gh"))
        diagram = await create_diagram(session, user.id, "Concurrent", None)
        await create_share_link(session, user.id, diagram.id)
        await session.commit()
        user_id = user.id

    try:
        async with independent_session_factory() as session:
            user = await session.get(User, user_id)
            concurrent = await build_data_export(
                session, user, session_factory=independent_session_factory,
            )
            sequential = await build_data_export(session, user, concurrent=False)

        assert [d.id for d in concurrent.diagrams] == [d.id for d in sequential.diagrams]
        assert [s.id for s in concurrent.share_links] == [s.id for s in sequential.share_links]
        assert concurrent.linked_accounts == sequential.linked_accounts
        assert concurrent.settings == sequential.settings
        assert [d.title for d in concurrent.diagrams] == ["Concurrent"]
    finally:
        async with independent_session_factory() as session:
            await session.execute(delete(User).where(User.id == user_id))
            await session.commit()
