"""Diagram CRUD endpoints and share link creation."""
from datetime import timedelta
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_user, get_settings
from core.config import Settings
from models.user import User
from schemas.diagram import (
    DiagramCreate,
    DiagramListResponse,
    DiagramResponse,
    DiagramSummary,
    DiagramUpdate,
)
from schemas.profile import MessageResponse
from schemas.share_link import ShareLinkCreateResponse
from services import diagram_service, share_link_service
from services.exceptions import NotFoundError

router = APIRouter(prefix="/graphs", tags=["graphs"])


@router.get("", response_model=DiagramListResponse, include_in_schema=False)
@router.get("/", response_model=DiagramListResponse)
async def list_diagrams(
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> DiagramListResponse:
    """List the caller's diagrams, most recently updated first."""
    diagrams, total = await diagram_service.list_diagrams(db, current_user.id, limit, offset)
    return DiagramListResponse(
        items=[DiagramSummary.model_validate(d) for d in diagrams],
        total=total,
        offset=offset,
        limit=limit,
        has_more=offset + len(diagrams) < total,
    )


@router.post("", response_model=DiagramResponse, status_code=201, include_in_schema=False)
@router.post("/", response_model=DiagramResponse, status_code=201)
async def create_diagram(
    data: DiagramCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> DiagramResponse:
    """
    Create a diagram.

    Returns 403 with the live quota when the caller is at their diagram limit.
    """
    diagram = await diagram_service.create_diagram(db, current_user.id, data.title, data.data)
    return DiagramResponse.model_validate(diagram)


@router.get("/{diagram_id}", response_model=DiagramResponse)
async def get_diagram(
    diagram_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> DiagramResponse:
    """Get a diagram with its payload."""
    diagram = await diagram_service.get_diagram(db, current_user.id, diagram_id)
    if diagram is None:
        raise HTTPException(status_code=404, detail="Graph not found")
    return DiagramResponse.model_validate(diagram)


@router.put("/{diagram_id}", response_model=DiagramResponse)
async def update_diagram(
    diagram_id: UUID,
    data: DiagramUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> DiagramResponse:
    """Update a diagram's title and/or payload."""
    diagram = await diagram_service.update_diagram(
        db, current_user.id, diagram_id, data.title, data.data,
    )
    if diagram is None:
        raise HTTPException(status_code=404, detail="Graph not found")
    return DiagramResponse.model_validate(diagram)


@router.delete("/{diagram_id}", response_model=MessageResponse)
async def delete_diagram(
    diagram_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> MessageResponse:
    """Delete a diagram and every share link pointing at it."""
    deleted = await diagram_service.delete_diagram(db, current_user.id, diagram_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Graph not found")
    return MessageResponse(message="Graph deleted")


@router.post("/{diagram_id}/share", response_model=ShareLinkCreateResponse, status_code=201)
async def create_share_link(
    diagram_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
) -> ShareLinkCreateResponse:
    """Create a time-limited public link to a diagram the caller owns."""
    try:
        link = await share_link_service.create_share_link(
            db,
            current_user.id,
            diagram_id,
            ttl=timedelta(days=settings.share_link_ttl_days),
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return ShareLinkCreateResponse.model_validate(link)
