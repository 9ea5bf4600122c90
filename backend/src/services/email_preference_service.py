"""Service layer for per-category email subscription preferences."""
import logging
from datetime import UTC, datetime
from enum import StrEnum
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from models.email_preference import EmailPreference
from models.user import User
from services.exceptions import InvalidInputError, NotFoundError

logger = logging.getLogger(__name__)


class EmailCategory(StrEnum):
    """Kinds of outbound mail. Transactional mail cannot be opted out of."""

    TRANSACTIONAL = "transactional"
    MARKETING = "marketing"
    PRODUCT_UPDATES = "product_updates"


_CATEGORY_COLUMNS = {
    EmailCategory.MARKETING: "marketing_emails",
    EmailCategory.PRODUCT_UPDATES: "product_updates",
}


def _column_for(category: EmailCategory) -> str:
    try:
        return _CATEGORY_COLUMNS[category]
    except KeyError:
        raise InvalidInputError(f"Cannot change subscription for {category} emails") from None


async def get_preferences(db: AsyncSession, user_id: UUID) -> EmailPreference | None:
    """Get stored preferences, or None when the user never changed them."""
    result = await db.execute(
        select(EmailPreference).where(EmailPreference.user_id == user_id),
    )
    return result.scalar_one_or_none()


async def _get_user_by_email(db: AsyncSession, email: str) -> User:
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User")
    return user


async def _upsert(
    db: AsyncSession,
    user_id: UUID,
    email: str,
    values: dict[str, object],
    stamp_unsubscribed: bool = False,
) -> EmailPreference:
    """
    Insert or update the user's preference row in one statement.

    When stamp_unsubscribed is set, unsubscribed_at is written only if it is
    still null, so repeated unsubscribes keep the first timestamp.
    """
    insert_values: dict[str, object] = {"user_id": user_id, "email": email, **values}
    update_values: dict[str, object] = {**values, "updated_at": func.clock_timestamp()}

    stmt = insert(EmailPreference)
    if stamp_unsubscribed:
        insert_values["unsubscribed_at"] = datetime.now(UTC)
        update_values["unsubscribed_at"] = func.coalesce(
            EmailPreference.unsubscribed_at, stmt.excluded.unsubscribed_at,
        )

    stmt = (
        stmt.values(**insert_values)
        .on_conflict_do_update(index_elements=[EmailPreference.user_id], set_=update_values)
        .returning(EmailPreference)
    )
    result = await db.scalars(stmt, execution_options={"populate_existing": True})
    return result.one()


async def unsubscribe(db: AsyncSession, email: str, category: EmailCategory) -> EmailPreference:
    """
    Opt the address out of a mail category.

    Raises:
        NotFoundError: If no user has this email.
        InvalidInputError: If the category cannot be opted out of.
    """
    column = _column_for(category)
    user = await _get_user_by_email(db, email)
    prefs = await _upsert(db, user.id, email, {column: False}, stamp_unsubscribed=True)
    logger.info("User %s unsubscribed from %s emails", user.id, category.value)
    return prefs


async def resubscribe(db: AsyncSession, email: str, category: EmailCategory) -> EmailPreference:
    """
    Opt the address back in to a mail category. unsubscribed_at is left as is.

    Raises:
        NotFoundError: If no user has this email.
        InvalidInputError: If the category cannot be changed.
    """
    column = _column_for(category)
    user = await _get_user_by_email(db, email)
    prefs = await _upsert(db, user.id, email, {column: True})
    logger.info("User %s resubscribed to %s emails", user.id, category.value)
    return prefs


async def update_preferences(
    db: AsyncSession,
    user: User,
    marketing_emails: bool | None = None,
    product_updates: bool | None = None,
) -> EmailPreference:
    """
    Update preferences from the settings page.

    Fields not supplied keep their stored value (or the default, True), so an
    update never resets a field the caller did not touch.

    Raises:
        InvalidInputError: If neither field is supplied.
    """
    if marketing_emails is None and product_updates is None:
        raise InvalidInputError("No valid updates provided")

    existing = await get_preferences(db, user.id)
    values = {
        "marketing_emails": _first_set(
            marketing_emails, existing.marketing_emails if existing else None,
        ),
        "product_updates": _first_set(
            product_updates, existing.product_updates if existing else None,
        ),
    }
    return await _upsert(db, user.id, user.email, values)


def _first_set(supplied: bool | None, stored: bool | None) -> bool:
    if supplied is not None:
        return supplied
    if stored is not None:
        return stored
    return True


async def is_subscribed(db: AsyncSession, user_id: UUID, category: EmailCategory) -> bool:
    """
    Check whether mail of this category may be sent to the user.

    Consulted by the mail sender before sending non-transactional mail.
    """
    if category == EmailCategory.TRANSACTIONAL:
        return True
    prefs = await get_preferences(db, user_id)
    if prefs is None:
        return True
    return bool(getattr(prefs, _CATEGORY_COLUMNS[category]))


async def delete_preferences(db: AsyncSession, user_id: UUID) -> None:
    """Delete the user's preference row, if any."""
    prefs = await get_preferences(db, user_id)
    if prefs is not None:
        await db.delete(prefs)
        await db.flush()
