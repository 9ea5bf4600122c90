"""Administrative endpoints for processing account deletion requests."""
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, require_admin_key
from schemas.deletion_request import (
    DeletionRequestAdminResponse,
    DeletionRequestListResponse,
    ProcessDeletionResponse,
)
from schemas.errors import InvalidStateDetail
from services import deletion_service
from services.exceptions import InvalidStateError, NotFoundError

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin_key)],
)


@router.get("/deletion-requests", response_model=DeletionRequestListResponse)
async def list_deletion_requests(
    db: AsyncSession = Depends(get_async_session),
) -> DeletionRequestListResponse:
    """List every deletion request, oldest first. Requires the X-Admin-Key header."""
    requests = await deletion_service.list_deletion_requests(db)
    return DeletionRequestListResponse(
        requests=[DeletionRequestAdminResponse.model_validate(r) for r in requests],
        total=len(requests),
    )


@router.post(
    "/deletion-requests/{request_id}/process",
    response_model=ProcessDeletionResponse,
)
async def process_deletion_request(
    request_id: UUID,
    db: AsyncSession = Depends(get_async_session),
) -> ProcessDeletionResponse:
    """
    Complete a pending deletion request by deleting the user's account.

    Requires the X-Admin-Key header. A request whose user is already gone is
    only marked processed.
    """
    try:
        result = await deletion_service.process_deletion_request(db, request_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidStateError as e:
        raise HTTPException(
            status_code=400,
            detail=InvalidStateDetail(message=str(e), status=e.status or "unknown").model_dump(),
        )

    if result.user_deleted:
        message = "User account deleted and request processed"
    else:
        message = "Request marked as processed (user already deleted)"
    return ProcessDeletionResponse(message=message, email=result.request.email)
