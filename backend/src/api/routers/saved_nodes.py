"""Saved node template endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_user
from core.plan_limits import ResourceKind
from models.user import User
from schemas.profile import MessageResponse
from schemas.quota import QuotaResponse
from schemas.saved_node import (
    SavedNodeCreate,
    SavedNodeListResponse,
    SavedNodeResponse,
    SavedNodeUpdate,
)
from services import saved_node_service
from services.quota_service import quota_service

router = APIRouter(prefix="/saved-nodes", tags=["saved-nodes"])


@router.get("", response_model=SavedNodeListResponse, include_in_schema=False)
@router.get("/", response_model=SavedNodeListResponse)
async def list_saved_nodes(
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> SavedNodeListResponse:
    """List the caller's saved nodes together with their saved node quota."""
    nodes, _ = await saved_node_service.list_saved_nodes(db, current_user.id, limit, offset)
    quota = await quota_service.get_quota(db, current_user.id, ResourceKind.SAVED_NODE)
    return SavedNodeListResponse(
        items=[SavedNodeResponse.model_validate(n) for n in nodes],
        quota=QuotaResponse.model_validate(quota),
    )


@router.post("", response_model=SavedNodeResponse, status_code=201, include_in_schema=False)
@router.post("/", response_model=SavedNodeResponse, status_code=201)
async def create_saved_node(
    data: SavedNodeCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> SavedNodeResponse:
    """Save a node layout. Returns 403 with the live quota at the plan limit."""
    node = await saved_node_service.create_saved_node(db, current_user.id, data)
    return SavedNodeResponse.model_validate(node)


@router.get("/{node_id}", response_model=SavedNodeResponse)
async def get_saved_node(
    node_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> SavedNodeResponse:
    node = await saved_node_service.get_saved_node(db, current_user.id, node_id)
    if node is None:
        raise HTTPException(status_code=404, detail="Saved node not found")
    return SavedNodeResponse.model_validate(node)


@router.patch("/{node_id}", response_model=SavedNodeResponse)
async def update_saved_node(
    node_id: UUID,
    data: SavedNodeUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> SavedNodeResponse:
    node = await saved_node_service.update_saved_node(db, current_user.id, node_id, data)
    if node is None:
        raise HTTPException(status_code=404, detail="Saved node not found")
    return SavedNodeResponse.model_validate(node)


@router.delete("/{node_id}", response_model=MessageResponse)
async def delete_saved_node(
    node_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> MessageResponse:
    deleted = await saved_node_service.delete_saved_node(db, current_user.id, node_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Saved node not found")
    return MessageResponse(message="Saved node deleted")
