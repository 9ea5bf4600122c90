"""FastAPI dependencies for injection."""
from fastapi import Request

from core.auth import AuthContext, get_auth_context, get_current_user, require_admin_key
from core.config import get_settings
from db.session import get_async_session, get_session_factory
from services.geolocation import GeoLocator


def get_geo_locator(request: Request) -> GeoLocator:
    """Return the application-wide geolocation client and its cache."""
    return request.app.state.geo_locator


def get_concurrent_queries() -> bool:
    """Whether aggregations run their sub-queries concurrently. Overridden in tests."""
    return True


__all__ = [
    "AuthContext",
    "get_async_session",
    "get_auth_context",
    "get_concurrent_queries",
    "get_current_user",
    "get_geo_locator",
    "get_session_factory",
    "get_settings",
    "require_admin_key",
]
