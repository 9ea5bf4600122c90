"""Profile, email preference, account deletion and data export endpoints."""
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from api.dependencies import (
    get_async_session,
    get_concurrent_queries,
    get_current_user,
    get_session_factory,
    get_settings,
)
from core.config import Settings
from models.user import User
from schemas.deletion_request import (
    DeletionRequestCreate,
    DeletionRequestStatusResponse,
    DeletionRequestSubmitResponse,
    DeletionRequestSummary,
)
from schemas.email_preference import EmailPreferencesResponse, EmailPreferencesUpdate
from schemas.errors import TwoFactorRequiredDetail, error_detail
from schemas.export import (
    DataExportResponse,
    ExportedDiagram,
    ExportedProfile,
    ExportedShareLink,
)
from schemas.profile import (
    LinkedAccountResponse,
    MessageResponse,
    ProfileResponse,
    ProfileUpdate,
    ProfileUpdateResponse,
    UnlinkAccountRequest,
)
from services import (
    deletion_service,
    email_preference_service,
    export_service,
    profile_service,
)
from services.exceptions import (
    ConflictError,
    InvalidInputError,
    InvalidOperationError,
    InvalidTwoFactorCodeError,
    NotFoundError,
    TwoFactorNotConfiguredError,
    TwoFactorRequiredError,
)

router = APIRouter(prefix="/profile", tags=["profile"])

DELETION_SUBMITTED_MESSAGE = (
    "Your content has been deleted. "
    "Your account will be fully removed within 30 days."
)


@router.get("", response_model=ProfileResponse, include_in_schema=False)
@router.get("/", response_model=ProfileResponse)
async def get_profile(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> ProfileResponse:
    """
    Get the caller's profile.

    The profile row is created with defaults on first read. If the plan
    settings or linked accounts cannot be loaded, defaults are returned.
    """
    overview = await profile_service.get_profile_overview(db, current_user)
    return ProfileResponse(
        id=current_user.id,
        email=current_user.email,
        name=current_user.name,
        image=current_user.image,
        email_verified=current_user.email_verified,
        plan=overview.settings.plan,
        max_graphs=overview.settings.max_graphs,
        retention_days=overview.settings.retention_days,
        linked_accounts=[
            LinkedAccountResponse.model_validate(a) for a in overview.linked_accounts
        ],
    )


@router.patch("", response_model=ProfileUpdateResponse, include_in_schema=False)
@router.patch("/", response_model=ProfileUpdateResponse)
async def update_profile(
    data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> ProfileUpdateResponse:
    """Update the caller's display name and/or avatar URL."""
    try:
        user = await profile_service.update_profile(
            db, current_user, name=data.name, image=data.image,
        )
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=error_detail("invalid_input", e))
    return ProfileUpdateResponse.model_validate(user)


@router.get("/email-preferences", response_model=EmailPreferencesResponse)
async def get_email_preferences(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> EmailPreferencesResponse:
    """Get the caller's email preferences. Defaults to subscribed to everything."""
    preferences = await email_preference_service.get_preferences(db, current_user.id)
    if preferences is None:
        return EmailPreferencesResponse()
    return EmailPreferencesResponse.model_validate(preferences)


@router.patch("/email-preferences", response_model=EmailPreferencesResponse)
async def update_email_preferences(
    data: EmailPreferencesUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> EmailPreferencesResponse:
    """Update email preferences. Fields not in the body keep their stored value."""
    try:
        preferences = await email_preference_service.update_preferences(
            db,
            current_user,
            marketing_emails=data.marketing_emails,
            product_updates=data.product_updates,
        )
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=error_detail("invalid_input", e))
    return EmailPreferencesResponse.model_validate(preferences)


@router.post("/unlink-account", response_model=MessageResponse)
async def unlink_account(
    data: UnlinkAccountRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> MessageResponse:
    """
    Unlink an OAuth sign-in method.

    The password credential and the last remaining sign-in method cannot be unlinked.
    """
    try:
        await profile_service.unlink_account(db, current_user.id, data.provider)
    except InvalidOperationError as e:
        raise HTTPException(status_code=400, detail=error_detail("invalid_operation", e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return MessageResponse(message="Account unlinked")


@router.get("/deletion-request", response_model=DeletionRequestStatusResponse)
async def get_deletion_request(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> DeletionRequestStatusResponse:
    """Whether the caller has a pending deletion request."""
    request = await deletion_service.get_pending_request(db, current_user.id)
    if request is None:
        return DeletionRequestStatusResponse(has_pending_request=False)
    return DeletionRequestStatusResponse(
        has_pending_request=True,
        request=DeletionRequestSummary.model_validate(request),
    )


@router.post("/deletion-request", response_model=DeletionRequestSubmitResponse)
async def submit_deletion_request(
    data: DeletionRequestCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> DeletionRequestSubmitResponse:
    """
    Request deletion of the caller's account.

    Diagrams, share links and email preferences are deleted immediately. The
    account itself is removed when an administrator processes the request.

    When 2FA is enabled, `totp_code` is required. Without it the response is
    400 with `requires_2fa: true` so the client can prompt for a code.
    """
    try:
        request = await deletion_service.submit_deletion_request(
            db,
            current_user,
            reason=data.reason,
            additional_feedback=data.additional_feedback,
            totp_code=data.totp_code,
        )
    except TwoFactorRequiredError:
        raise HTTPException(status_code=400, detail=TwoFactorRequiredDetail().model_dump())
    except TwoFactorNotConfiguredError as e:
        raise HTTPException(status_code=400, detail=error_detail("two_factor_not_configured", e))
    except InvalidTwoFactorCodeError as e:
        raise HTTPException(status_code=400, detail=error_detail("invalid_two_factor_code", e))
    except ConflictError as e:
        raise HTTPException(status_code=400, detail=error_detail("conflict", e))

    return DeletionRequestSubmitResponse(
        message=DELETION_SUBMITTED_MESSAGE,
        request_id=request.id,
    )


@router.delete("/deletion-request", response_model=MessageResponse)
async def cancel_deletion_request(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> MessageResponse:
    """Cancel the caller's pending deletion request. Succeeds if there is none."""
    await deletion_service.cancel_deletion_request(db, current_user.id)
    return MessageResponse(message="Deletion request cancelled")


@router.get("/data-export", response_model=DataExportResponse)
async def export_data(
    response: Response,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
    session_factory: async_sessionmaker = Depends(get_session_factory),
    concurrent: bool = Depends(get_concurrent_queries),
    settings: Settings = Depends(get_settings),
) -> DataExportResponse:
    """
    Download everything stored for the caller as a JSON attachment.

    Linked accounts list providers only; tokens and password hashes are never
    exported.
    """
    export = await export_service.build_data_export(
        db, current_user, session_factory=session_factory, concurrent=concurrent,
    )
    filename = export_service.export_filename(settings.app_name, datetime.now(UTC).date())
    response.headers["Content-Disposition"] = f'attachment; filename="{filename}"'

    return DataExportResponse(
        exported_at=export.exported_at,
        profile=ExportedProfile(
            id=current_user.id,
            email=current_user.email,
            name=current_user.name,
            image=current_user.image,
            email_verified=current_user.email_verified,
            plan=export.settings.plan,
            max_graphs=export.settings.max_graphs,
            retention_days=export.settings.retention_days,
        ),
        email_preferences=EmailPreferencesResponse.model_validate(export.email_preferences),
        linked_accounts=[LinkedAccountResponse.model_validate(a) for a in export.linked_accounts],
        diagrams=[ExportedDiagram.model_validate(d) for d in export.diagrams],
        share_links=[ExportedShareLink.model_validate(link) for link in export.share_links],
    )
