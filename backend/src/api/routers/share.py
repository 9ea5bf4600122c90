"""Public, unauthenticated resolution of share links."""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session
from schemas.share_link import SharedDiagramResponse
from services import share_link_service

router = APIRouter(prefix="/share", tags=["share"])


@router.get("/{token}", response_model=SharedDiagramResponse)
async def get_shared_diagram(
    token: str,
    db: AsyncSession = Depends(get_async_session),
) -> SharedDiagramResponse:
    """
    Get the diagram behind a share token.

    Unknown and expired tokens both return 404.
    """
    shared = await share_link_service.resolve_share_token(db, token)
    if shared is None:
        raise HTTPException(status_code=404, detail="Shared graph not found or link expired")
    return SharedDiagramResponse.model_validate(shared)
