"""Service layer for the user profile: identity fields, plan settings, linked accounts."""
import logging
from dataclasses import dataclass
from datetime import datetime
from urllib.parse import urlparse
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from core.plan_limits import DEFAULT_MAX_DIAGRAMS, Plan
from models.linked_account import CREDENTIAL_PROVIDER, LinkedAccount
from models.profile import Profile
from models.user import User
from services.best_effort import best_effort, in_savepoint
from services.exceptions import InvalidInputError, InvalidOperationError, NotFoundError

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_DAYS = 365


@dataclass(frozen=True)
class ProfileSettings:
    """Plan settings with defaults applied for a missing or partial profile row."""

    plan: str = Plan.FREE.value
    max_graphs: int = DEFAULT_MAX_DIAGRAMS
    retention_days: int = DEFAULT_RETENTION_DAYS

    @classmethod
    def from_profile(cls, profile: Profile | None) -> "ProfileSettings":
        if profile is None:
            return cls()
        return cls(
            plan=profile.plan or Plan.FREE.value,
            max_graphs=profile.max_graphs or DEFAULT_MAX_DIAGRAMS,
            retention_days=profile.retention_days or DEFAULT_RETENTION_DAYS,
        )


@dataclass(frozen=True)
class LinkedAccountSummary:
    """A linked sign-in method without any token or password material."""

    provider: str
    linked_at: datetime | None


@dataclass(frozen=True)
class ProfileOverview:
    user: User
    settings: ProfileSettings
    linked_accounts: list[LinkedAccountSummary]


async def get_profile(db: AsyncSession, user_id: UUID) -> Profile | None:
    """Get the user's profile row without creating it."""
    result = await db.execute(select(Profile).where(Profile.user_id == user_id))
    return result.scalar_one_or_none()


async def get_or_create_profile(db: AsyncSession, user_id: UUID) -> Profile:
    """
    Get the user's profile, creating it with defaults on first read.

    Uses INSERT ... ON CONFLICT DO NOTHING so concurrent first reads cannot
    fail on the primary key.
    """
    await db.execute(
        insert(Profile).values(user_id=user_id).on_conflict_do_nothing(
            index_elements=[Profile.user_id],
        ),
    )
    profile = await get_profile(db, user_id)
    if profile is None:
        raise NotFoundError("Profile")
    return profile


async def get_linked_accounts(db: AsyncSession, user_id: UUID) -> list[LinkedAccountSummary]:
    """List the user's linked sign-in providers and when each was linked."""
    result = await db.execute(
        select(LinkedAccount.provider_id, LinkedAccount.created_at)
        .where(LinkedAccount.user_id == user_id)
        .order_by(LinkedAccount.created_at),
    )
    return [
        LinkedAccountSummary(provider=row.provider_id, linked_at=row.created_at)
        for row in result.all()
    ]


async def get_profile_overview(db: AsyncSession, user: User) -> ProfileOverview:
    """
    Assemble the profile page.

    Profile settings and linked accounts are optional sections: if either
    fetch fails the page still renders with defaults.
    """
    profile = await best_effort(
        "profile",
        lambda: in_savepoint(db, lambda s: get_or_create_profile(s, user.id)),
        None,
    )
    linked_accounts = await best_effort(
        "linked accounts",
        lambda: in_savepoint(db, lambda s: get_linked_accounts(s, user.id)),
        [],
    )
    return ProfileOverview(
        user=user,
        settings=ProfileSettings.from_profile(profile),
        linked_accounts=linked_accounts,
    )


def validate_image_url(image: str) -> str:
    """
    Check that an image URL is an absolute http(s) URL.

    Raises:
        InvalidInputError: If the URL is relative, has no host, or uses another scheme.
    """
    parsed = urlparse(image)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidInputError("Invalid image URL")
    return image


async def update_profile(
    db: AsyncSession,
    user: User,
    name: str | None = None,
    image: str | None = None,
) -> User:
    """
    Update the user's display name and/or avatar URL.

    Raises:
        InvalidInputError: If neither field is supplied, or the image URL is invalid.
    """
    if name is None and image is None:
        raise InvalidInputError("No valid updates provided")

    if image is not None:
        user.image = validate_image_url(image)
    if name is not None:
        user.name = name.strip()
    user.touch()
    await db.flush()
    await db.refresh(user)
    return user


async def unlink_account(db: AsyncSession, user_id: UUID, provider: str) -> None:
    """
    Remove a linked OAuth sign-in method.

    Raises:
        InvalidOperationError: If the provider is the password credential, or
            it is the user's only sign-in method.
        NotFoundError: If no account for that provider is linked.
    """
    if provider == CREDENTIAL_PROVIDER:
        raise InvalidOperationError("Cannot unlink password authentication")

    result = await db.execute(
        select(LinkedAccount.id, LinkedAccount.provider_id)
        .where(LinkedAccount.user_id == user_id),
    )
    accounts = result.all()
    if len(accounts) <= 1:
        raise InvalidOperationError("Cannot unlink your only authentication method")

    account_id = next((a.id for a in accounts if a.provider_id == provider), None)
    if account_id is None:
        raise NotFoundError("Account")

    await db.execute(
        delete(LinkedAccount).where(
            LinkedAccount.id == account_id,
            LinkedAccount.user_id == user_id,
        ),
    )
    logger.info("Unlinked %s account for user %s", provider, user_id)
