"""Signed-in device (session) endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import AuthContext, get_async_session, get_auth_context, get_geo_locator
from schemas.errors import error_detail
from schemas.profile import MessageResponse
from schemas.session import RevokeSessionsResponse, SessionListResponse, SessionResponse
from services import session_service
from services.exceptions import InvalidOperationError, NotFoundError
from services.geolocation import GeoLocator

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.get("", response_model=SessionListResponse, include_in_schema=False)
@router.get("/", response_model=SessionListResponse)
async def list_sessions(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_async_session),
    locator: GeoLocator = Depends(get_geo_locator),
) -> SessionListResponse:
    """
    List the caller's active sessions.

    Each session carries a best-effort location resolved from its IP address
    (null when the lookup fails) and whether it is the session making this call.
    """
    sessions = await session_service.list_sessions(
        db, auth.user.id, auth.session.id, locator,
    )
    return SessionListResponse(
        sessions=[SessionResponse.model_validate(s) for s in sessions],
    )


@router.delete("/{session_id}", response_model=MessageResponse)
async def revoke_session(
    session_id: UUID,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_async_session),
) -> MessageResponse:
    """Sign out one other device. The current session must use sign out instead."""
    try:
        await session_service.revoke_session(db, auth.user.id, session_id, auth.session.id)
    except InvalidOperationError as e:
        raise HTTPException(status_code=400, detail=error_detail("invalid_operation", e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return MessageResponse(message="Session revoked")


@router.delete("", response_model=RevokeSessionsResponse, include_in_schema=False)
@router.delete("/", response_model=RevokeSessionsResponse)
async def revoke_other_sessions(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_async_session),
) -> RevokeSessionsResponse:
    """Sign out every device except the current one."""
    revoked = await session_service.revoke_other_sessions(db, auth.user.id, auth.session.id)
    return RevokeSessionsResponse(revoked_count=revoked)
