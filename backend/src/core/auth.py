"""Authentication via identity-provider sessions, plus the admin API key check."""
import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from core.config import Settings, get_settings
from db.session import get_async_session
from models.auth_session import AuthSession
from models.user import User

logger = logging.getLogger(__name__)


# HTTP Bearer token scheme
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthContext:
    """The authenticated user and the session the request was made with."""

    user: User
    session: AuthSession


async def resolve_session_token(
    db: AsyncSession,
    token: str,
    now: datetime | None = None,
) -> AuthSession | None:
    """
    Look up an unexpired session by its token, with its user loaded.

    Returns:
        The session, or None if the token is unknown or expired.
    """
    if now is None:
        now = datetime.now(UTC)
    result = await db.execute(
        select(AuthSession)
        .options(joinedload(AuthSession.user))
        .where(AuthSession.token == token, AuthSession.expires_at > now),
    )
    return result.scalar_one_or_none()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_auth_context(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
) -> AuthContext:
    """
    Dependency that authenticates the request from its session token.

    The token is read from the Authorization header (Bearer) and, failing
    that, from the session cookie set by the identity provider.
    """
    token = credentials.credentials if credentials else None
    if not token:
        token = request.cookies.get(settings.session_cookie_name)
    if not token:
        raise _unauthorized("Not authenticated")

    session = await resolve_session_token(db, token)
    if session is None:
        raise _unauthorized("Invalid or expired session")
    if session.user is None:
        raise _unauthorized("User not found")

    return AuthContext(user=session.user, session=session)


async def get_current_user(auth: AuthContext = Depends(get_auth_context)) -> User:
    """Dependency that returns the authenticated user."""
    return auth.user


async def require_admin_key(
    x_admin_key: str | None = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> None:
    """
    Dependency guarding the admin API with a shared secret header.

    Raises:
        HTTPException: 503 if no admin key is configured, 401 if the header
            is missing or does not match.
    """
    if not settings.admin_api_key:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin API not configured",
        )
    if x_admin_key is None or not secrets.compare_digest(
        x_admin_key.encode(), settings.admin_api_key.encode(),
    ):
        logger.warning("Rejected admin API request with invalid key")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
