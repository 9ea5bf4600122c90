"""GDPR-style export of everything stored for a user."""
import asyncio
import logging
import re
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from models.diagram import Diagram
from models.email_preference import EmailPreference
from models.share_link import ShareLink
from models.user import User
from services.best_effort import best_effort, in_savepoint
from services.profile_service import (
    LinkedAccountSummary,
    ProfileSettings,
    get_linked_accounts,
    get_profile,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExportedPreferences:
    marketing_emails: bool = True
    product_updates: bool = True


@dataclass
class DataExport:
    """Everything exported for one user. Sections that failed to load are left at defaults."""

    exported_at: datetime
    user: User
    settings: ProfileSettings = field(default_factory=ProfileSettings)
    email_preferences: ExportedPreferences = field(default_factory=ExportedPreferences)
    linked_accounts: list[LinkedAccountSummary] = field(default_factory=list)
    diagrams: list[Diagram] = field(default_factory=list)
    share_links: list[ShareLink] = field(default_factory=list)


def export_filename(app_name: str, on: date) -> str:
    """Build the attachment filename, e.g. 'thalamus-data-export-2024-05-01.json'."""
    slug = re.sub(r"[^a-z0-9]+", "-", app_name.lower()).strip("-") or "data"
    return f"{slug}-data-export-{on.isoformat()}.json"


async def _fetch_settings(db: AsyncSession, user_id: UUID) -> ProfileSettings:
    return ProfileSettings.from_profile(await get_profile(db, user_id))


async def _fetch_preferences(db: AsyncSession, user_id: UUID) -> ExportedPreferences:
    result = await db.execute(
        select(EmailPreference.marketing_emails, EmailPreference.product_updates)
        .where(EmailPreference.user_id == user_id),
    )
    row = result.first()
    if row is None:
        return ExportedPreferences()
    return ExportedPreferences(
        marketing_emails=row.marketing_emails,
        product_updates=row.product_updates,
    )


async def _fetch_diagrams(db: AsyncSession, user_id: UUID) -> list[Diagram]:
    result = await db.execute(
        select(Diagram)
        .where(Diagram.owner_id == user_id)
        .order_by(Diagram.updated_at.desc()),
    )
    return list(result.scalars().all())


async def _fetch_share_links(db: AsyncSession, user_id: UUID) -> list[ShareLink]:
    result = await db.execute(
        select(ShareLink)
        .where(ShareLink.created_by == user_id)
        .order_by(ShareLink.created_at.desc()),
    )
    return list(result.scalars().all())


async def build_data_export(
    db: AsyncSession,
    user: User,
    session_factory: async_sessionmaker | None = None,
    concurrent: bool = True,
) -> DataExport:
    """
    Assemble the user's data export.

    Each section is an independent best-effort fetch. When concurrent is set
    and a session factory is given, sections run in parallel, each on its own
    session. Otherwise they run one after another on the request session,
    each inside a savepoint.

    Args:
        db: Request database session.
        user: The user being exported.
        session_factory: Factory for per-section sessions.
        concurrent: Whether to run sections in parallel.
    """
    defaults = DataExport(exported_at=datetime.now(UTC), user=user)
    sections: list[tuple[str, Callable[[AsyncSession, UUID], Coroutine], Any]] = [
        ("profile", _fetch_settings, defaults.settings),
        ("email preferences", _fetch_preferences, defaults.email_preferences),
        ("linked accounts", get_linked_accounts, defaults.linked_accounts),
        ("diagrams", _fetch_diagrams, defaults.diagrams),
        ("share links", _fetch_share_links, defaults.share_links),
    ]

    async def _query(fn: Callable[[AsyncSession, UUID], Coroutine]) -> Any:
        if concurrent and session_factory is not None:
            async with session_factory() as session:
                return await fn(session, user.id)
        return await in_savepoint(db, lambda s: fn(s, user.id))

    if concurrent and session_factory is not None:
        results = await asyncio.gather(
            *(best_effort(label, lambda fn=fn: _query(fn), default)
              for label, fn, default in sections),
        )
    else:
        results = [
            await best_effort(label, lambda fn=fn: _query(fn), default)
            for label, fn, default in sections
        ]

    settings, preferences, linked_accounts, diagrams, share_links = results
    logger.info(
        "Built data export for user %s (%d diagrams, %d share links)",
        user.id, len(diagrams), len(share_links),
    )
    return DataExport(
        exported_at=defaults.exported_at,
        user=user,
        settings=settings,
        email_preferences=preferences,
        linked_accounts=linked_accounts,
        diagrams=diagrams,
        share_links=share_links,
    )
