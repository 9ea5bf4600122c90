"""
Two-phase account deletion workflow.

Submitting a request purges the user's content (diagrams and their share
links) and email preferences immediately, and records a pending request. The
identity itself (user row, sessions, linked accounts, 2FA secret, profile) is
only removed when an administrator processes the request.
"""
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from models.deletion_request import DeletionRequest, DeletionStatus
from models.user import User
from services.diagram_service import delete_all_diagrams
from services.email_preference_service import delete_preferences
from services.exceptions import (
    ConflictError,
    InvalidTwoFactorCodeError,
    NotFoundError,
    TwoFactorNotConfiguredError,
    TwoFactorRequiredError,
)
from services.second_factor import SecondFactorVerifier, TotpVerifier, get_two_factor_secret

logger = logging.getLogger(__name__)

PENDING_REQUEST_EXISTS_MESSAGE = "You already have a pending deletion request"

default_verifier = TotpVerifier()


@dataclass(frozen=True)
class ProcessResult:
    """Outcome of an administrative processing step."""

    request: DeletionRequest
    user_deleted: bool


def build_reason(reason: str | None, additional_feedback: str | None) -> str | None:
    """Join reason and feedback into one audit string, or None if both are blank."""
    parts = [part.strip() for part in (reason, additional_feedback) if part and part.strip()]
    return " - ".join(parts) or None


async def get_pending_request(db: AsyncSession, user_id: UUID) -> DeletionRequest | None:
    """Get the user's pending deletion request, if any."""
    result = await db.execute(
        select(DeletionRequest)
        .where(
            DeletionRequest.user_id == user_id,
            DeletionRequest.status == DeletionStatus.PENDING,
        )
        .order_by(DeletionRequest.created_at.desc())
        .limit(1),
    )
    return result.scalar_one_or_none()


async def _verify_second_factor(
    db: AsyncSession,
    user: User,
    totp_code: str | None,
    verifier: SecondFactorVerifier,
) -> None:
    if not totp_code:
        raise TwoFactorRequiredError()

    secret = await get_two_factor_secret(db, user.id)
    if secret is None:
        logger.warning("User %s has 2FA enabled but no secret on file", user.id)
        raise TwoFactorNotConfiguredError()

    if not verifier.verify(secret, totp_code):
        logger.info("Invalid 2FA code on deletion request for user %s", user.id)
        raise InvalidTwoFactorCodeError()


async def submit_deletion_request(
    db: AsyncSession,
    user: User,
    reason: str | None = None,
    additional_feedback: str | None = None,
    totp_code: str | None = None,
    verifier: SecondFactorVerifier = default_verifier,
) -> DeletionRequest:
    """
    Submit a deletion request and purge the user's content.

    Args:
        db: Database session (request unit of work).
        user: The authenticated user.
        reason: Optional reason for leaving.
        additional_feedback: Optional free-text feedback, appended to the reason.
        totp_code: One-time code, required when the user has 2FA enabled.
        verifier: Second-factor verifier.

    Returns:
        The new pending DeletionRequest.

    Raises:
        TwoFactorRequiredError: 2FA enabled and no code supplied.
        TwoFactorNotConfiguredError: 2FA enabled but no secret on file.
        InvalidTwoFactorCodeError: The code did not verify.
        ConflictError: A pending request already exists (including one
            inserted concurrently by another request).
    """
    if user.two_factor_enabled:
        await _verify_second_factor(db, user, totp_code, verifier)

    if await get_pending_request(db, user.id) is not None:
        raise ConflictError(PENDING_REQUEST_EXISTS_MESSAGE)

    request = DeletionRequest(
        user_id=user.id,
        email=user.email,
        reason=build_reason(reason, additional_feedback),
    )
    try:
        async with db.begin_nested():
            db.add(request)
            await db.flush()
    except IntegrityError as e:
        # Lost the race against a concurrent submit; the partial unique index held.
        logger.info("Concurrent deletion request for user %s rejected: %s", user.id, e)
        raise ConflictError(PENDING_REQUEST_EXISTS_MESSAGE) from e

    diagrams_deleted = await delete_all_diagrams(db, user.id)
    await delete_preferences(db, user.id)
    await db.refresh(request)

    logger.info(
        "Deletion request %s submitted by user %s (%d diagrams purged)",
        request.id, user.id, diagrams_deleted,
    )
    return request


async def cancel_deletion_request(db: AsyncSession, user_id: UUID) -> bool:
    """
    Cancel the user's pending deletion request.

    Returns:
        True if a request was cancelled, False if there was none (not an error).
    """
    request = await get_pending_request(db, user_id)
    if request is None:
        return False

    request.transition_to(DeletionStatus.CANCELLED)
    await db.flush()
    logger.info("Deletion request %s cancelled by user %s", request.id, user_id)
    return True


async def list_deletion_requests(db: AsyncSession) -> list[DeletionRequest]:
    """List all deletion requests, oldest first."""
    result = await db.execute(
        select(DeletionRequest).order_by(DeletionRequest.created_at),
    )
    return list(result.scalars().all())


async def process_deletion_request(db: AsyncSession, request_id: UUID) -> ProcessResult:
    """
    Complete a pending deletion request. Administrative only.

    Deletes the user row when it still exists; the database cascades remove
    sessions, linked accounts, 2FA secrets, saved nodes, profile and anything
    else the user owned, and null the request's user_id.

    Raises:
        NotFoundError: If the request does not exist.
        InvalidStateError: If the request is not pending. The message names
            the current status.
    """
    request = await db.get(DeletionRequest, request_id)
    if request is None:
        raise NotFoundError("Deletion request")

    request.transition_to(DeletionStatus.PROCESSED)
    request.processed_at = datetime.now(UTC)

    user_deleted = False
    if request.user_id is not None:
        user_id = request.user_id
        result = await db.execute(
            delete(User).where(User.id == user_id).returning(User.id),
        )
        user_deleted = result.scalar_one_or_none() is not None
        # Mirror the ON DELETE SET NULL the database just applied.
        request.user_id = None
        logger.info("Deleted user %s for deletion request %s", user_id, request.id)

    await db.flush()
    await db.refresh(request)
    logger.info("Deletion request %s processed (user_deleted=%s)", request.id, user_deleted)
    return ProcessResult(request=request, user_deleted=user_deleted)
