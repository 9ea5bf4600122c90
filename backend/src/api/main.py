"""FastAPI application entry point."""
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from api.routers import (
    admin,
    diagrams,
    health,
    profile,
    saved_nodes,
    sessions,
    share,
    share_links,
    unsubscribe,
)
from core.config import get_settings
from schemas.quota import QuotaExceededResponse, QuotaResponse
from services.exceptions import QuotaExceededError
from services.geolocation import GeoCache, GeoLocator


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifespan - startup and shutdown."""
    app_settings = get_settings()

    # Startup: one HTTP client and one location cache shared by all requests
    http_client = httpx.AsyncClient(timeout=app_settings.geolocation_timeout_seconds)
    app.state.geo_locator = GeoLocator(
        client=http_client,
        cache=GeoCache(ttl_seconds=app_settings.geolocation_cache_ttl_seconds),
        base_url=app_settings.geolocation_url,
        timeout=app_settings.geolocation_timeout_seconds,
    )

    yield

    # Shutdown: close the HTTP client
    await http_client.aclose()


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        """Process request and add security headers to response."""
        response = await call_next(request)
        # HSTS: enforce HTTPS for 1 year, including subdomains
        response.headers["Strict-Transport-Security"] = (
            "max-age=31536000; includeSubDomains"
        )
        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"
        # Prevent clickjacking - API shouldn't be framed
        response.headers["X-Frame-Options"] = "DENY"
        return response


app_settings = get_settings()

app = FastAPI(
    title="Thalamus Accounts API",
    description="Account lifecycle, quotas, sharing and sessions for the Thalamus diagram editor.",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(QuotaExceededError)
async def quota_exceeded_exception_handler(
    _request: Request, exc: QuotaExceededError,
) -> JSONResponse:
    """Reject a create over the plan ceiling, with the live quota for the client to render."""
    body = QuotaExceededResponse(
        detail=str(exc),
        quota=QuotaResponse(used=exc.used, max=exc.max_allowed, plan=exc.plan),
    )
    return JSONResponse(status_code=403, content=body.model_dump())


# Security headers middleware (runs after CORS, adds headers to responses)
app.add_middleware(SecurityHeadersMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(diagrams.router)
app.include_router(saved_nodes.router)
app.include_router(share.router)
app.include_router(share_links.router)
app.include_router(sessions.router)
app.include_router(profile.router)
app.include_router(unsubscribe.router)
app.include_router(admin.router)
