"""Public unsubscribe and resubscribe endpoints, reached from links in emails."""
import json

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session
from schemas.email_preference import (
    UnsubscribePreviewResponse,
    UnsubscribeRequest,
    UnsubscribeResponse,
)
from schemas.errors import ErrorDetail, error_detail
from services import email_preference_service
from services.email_preference_service import EmailCategory
from services.exceptions import (
    InvalidInputError,
    InvalidUnsubscribeTokenError,
    NotFoundError,
)
from services.unsubscribe_token import decode_unsubscribe_token, mask_email

router = APIRouter(prefix="/unsubscribe", tags=["unsubscribe"])


def _resolve_email(token: str | None) -> str:
    if not token:
        raise HTTPException(
            status_code=400,
            detail=ErrorDetail(error="missing_token", message="Missing token").model_dump(),
        )
    try:
        return decode_unsubscribe_token(token)
    except InvalidUnsubscribeTokenError as e:
        raise HTTPException(status_code=400, detail=error_detail("invalid_token", e))


async def _read_json_body(request: Request) -> UnsubscribeRequest:
    """
    Read an optional JSON form body.

    One-click unsubscribe from a mail client (RFC 8058) posts
    `List-Unsubscribe=One-Click` as form data with the token in the query
    string, so anything that is not a JSON body is ignored.
    """
    if "application/json" not in request.headers.get("content-type", ""):
        return UnsubscribeRequest()
    body = await request.body()
    try:
        payload = json.loads(body)
    except ValueError:
        return UnsubscribeRequest()
    try:
        return UnsubscribeRequest.model_validate(payload)
    except ValidationError as e:
        raise RequestValidationError(e.errors()) from e


@router.get("", response_model=UnsubscribePreviewResponse, include_in_schema=False)
@router.get("/", response_model=UnsubscribePreviewResponse)
async def preview_unsubscribe(
    token: str | None = Query(default=None),
    category: EmailCategory | None = Query(default=None),
) -> UnsubscribePreviewResponse:
    """Show which address and category an unsubscribe link applies to, masked."""
    email = _resolve_email(token)
    return UnsubscribePreviewResponse(
        email=mask_email(email),
        category=category.value if category else "all",
        message="Click confirm to unsubscribe from these emails",
    )


@router.post("", response_model=UnsubscribeResponse, include_in_schema=False)
@router.post("/", response_model=UnsubscribeResponse)
async def unsubscribe(
    request: Request,
    token: str | None = Query(default=None),
    category: EmailCategory | None = Query(default=None),
    db: AsyncSession = Depends(get_async_session),
) -> UnsubscribeResponse:
    """
    Unsubscribe an address from a category of email.

    Supports one-click unsubscribe (token and category in the query string,
    empty or form-encoded body) and form submission (JSON body). Query
    parameters win over the body. The category defaults to marketing.
    """
    data = await _read_json_body(request)
    email = _resolve_email(token or data.token)
    final_category = category or data.category or EmailCategory.MARKETING
    try:
        await email_preference_service.unsubscribe(db, email, final_category)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=error_detail("invalid_input", e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return UnsubscribeResponse(
        message=f"Successfully unsubscribed from {final_category.value} emails",
    )


@router.post("/resubscribe", response_model=UnsubscribeResponse)
async def resubscribe(
    data: UnsubscribeRequest,
    db: AsyncSession = Depends(get_async_session),
) -> UnsubscribeResponse:
    """Undo an unsubscribe. The category defaults to marketing."""
    email = _resolve_email(data.token)
    category = data.category or EmailCategory.MARKETING
    try:
        await email_preference_service.resubscribe(db, email, category)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=error_detail("invalid_input", e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return UnsubscribeResponse(message=f"Successfully resubscribed to {category.value} emails")
