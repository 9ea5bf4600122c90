"""Management of the caller's share links."""
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_user
from models.user import User
from schemas.profile import MessageResponse
from schemas.share_link import ShareLinkResponse
from services import share_link_service
from services.exceptions import NotFoundError

router = APIRouter(prefix="/share-links", tags=["share-links"])


@router.get("", response_model=list[ShareLinkResponse], include_in_schema=False)
@router.get("/", response_model=list[ShareLinkResponse])
async def list_share_links(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> list[ShareLinkResponse]:
    """List every share link the caller has created, expired ones included."""
    links = await share_link_service.list_share_links(db, current_user.id)
    return [ShareLinkResponse.model_validate(link) for link in links]


@router.delete("/{link_id}", response_model=MessageResponse)
async def revoke_share_link(
    link_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> MessageResponse:
    """Revoke a share link."""
    try:
        await share_link_service.revoke_share_link(db, current_user.id, link_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return MessageResponse(message="Share link revoked")
