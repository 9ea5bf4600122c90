"""
Tests for the account deletion flow.

Covers the user-facing submit/status/cancel endpoints and the admin API that
processes requests.
"""
import pyotp
import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.auth_session import AuthSession
from models.two_factor import TwoFactor
from models.user import User
from tests.api.conftest import FAKE_UUID

SUBMITTED_MESSAGE = (
    "Your content has been deleted. Your account will be fully removed within 30 days."
)


@pytest.fixture
async def totp_secret(db_session: AsyncSession, test_user: User) -> str:
    """Enable 2FA for test_user and return the TOTP secret."""
    secret = pyotp.random_base32()
    test_user.two_factor_enabled = True
    db_session.add(TwoFactor(user_id=test_user.id, secret=secret))
    await db_session.flush()
    return secret


async def test_deletion_status_without_request(auth_client: AsyncClient) -> None:
    """Test the status endpoint before anything was submitted."""
    response = await auth_client.get("/profile/deletion-request")
    assert response.status_code == 200
    assert response.json() == {"has_pending_request": False, "request": None}


async def test_submit_deletion_request_purges_content(auth_client: AsyncClient) -> None:
    """Test that submitting deletes diagrams and share links immediately."""
    created = await auth_client.post("/graphs/", json={"title": "Doomed"})
    await auth_client.post(f"/graphs/{created.json()['id']}/share")
    await auth_client.patch("/profile/email-preferences", json={"marketing_emails": False})

    response = await auth_client.post(
        "/profile/deletion-request",
        json={"reason": "Switching tools", "additional_feedback": "Nice app"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["message"] == SUBMITTED_MESSAGE

    assert (await auth_client.get("/graphs/")).json()["total"] == 0
    assert (await auth_client.get("/share-links/")).json() == []
    assert (await auth_client.get("/profile/email-preferences")).json() == {
        "marketing_emails": True, "product_updates": True,
    }

    status = (await auth_client.get("/profile/deletion-request")).json()
    assert status["has_pending_request"] is True
    assert status["request"]["id"] == data["request_id"]
    assert status["request"]["status"] == "pending"


async def test_submit_twice_conflicts(auth_client: AsyncClient) -> None:
    """Test that a second pending request is rejected."""
    await auth_client.post("/profile/deletion-request", json={})

    response = await auth_client.post("/profile/deletion-request", json={})
    assert response.status_code == 400
    assert response.json()["detail"] == {
        "error": "conflict",
        "message": "You already have a pending deletion request",
    }


async def test_cancel_then_resubmit(auth_client: AsyncClient) -> None:
    """Test that cancelling allows a new request, and cancelling nothing is fine."""
    await auth_client.post("/profile/deletion-request", json={})

    cancelled = await auth_client.delete("/profile/deletion-request")
    assert cancelled.status_code == 200
    assert (await auth_client.get("/profile/deletion-request")).json()["has_pending_request"] is False

    assert (await auth_client.delete("/profile/deletion-request")).status_code == 200
    assert (await auth_client.post("/profile/deletion-request", json={})).status_code == 200


# =============================================================================
# Two-factor re-verification
# =============================================================================


async def test_submit_with_2fa_requires_code(
    auth_client: AsyncClient, totp_secret: str,  # noqa: ARG001
) -> None:
    """Test the structured prompt for a missing authenticator code."""
    await auth_client.post("/graphs/", json={"title": "Keep"})

    response = await auth_client.post("/profile/deletion-request", json={})
    assert response.status_code == 400
    assert response.json()["detail"] == {
        "error": "two_factor_required",
        "message": "2FA code required",
        "requires_2fa": True,
    }
    assert (await auth_client.get("/graphs/")).json()["total"] == 1


async def test_submit_with_wrong_code_deletes_nothing(
    auth_client: AsyncClient, totp_secret: str,
) -> None:
    """Test that an invalid code leaves all content in place."""
    await auth_client.post("/graphs/", json={"title": "Keep"})
    valid = pyotp.TOTP(totp_secret).now()
    wrong = f"{(int(valid) + 500_000) % 1_000_000:06d}"

    response = await auth_client.post("/profile/deletion-request", json={"totp_code": wrong})
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "invalid_two_factor_code"
    assert (await auth_client.get("/graphs/")).json()["total"] == 1
    assert (await auth_client.get("/profile/deletion-request")).json()["has_pending_request"] is False


async def test_submit_with_valid_code(auth_client: AsyncClient, totp_secret: str) -> None:
    """Test that a current authenticator code lets the request through."""
    await auth_client.post("/graphs/", json={"title": "Gone"})

    response = await auth_client.post(
        "/profile/deletion-request", json={"totp_code": pyotp.TOTP(totp_secret).now()},
    )
    assert response.status_code == 200
    assert (await auth_client.get("/graphs/")).json()["total"] == 0


# =============================================================================
# Admin API
# =============================================================================


async def test_admin_list_and_process(
    auth_client: AsyncClient,
    client: AsyncClient,
    admin_headers: dict[str, str],
    db_session: AsyncSession,
    test_user: User,
) -> None:
    """Test the full flow: submit, list as admin, process, user is gone."""
    user_id = test_user.id
    submitted = await auth_client.post(
        "/profile/deletion-request", json={"reason": "Done", "additional_feedback": "Thanks"},
    )
    request_id = submitted.json()["request_id"]

    listing = await client.get("/admin/deletion-requests", headers=admin_headers)
    assert listing.status_code == 200
    assert listing.json()["total"] == 1
    record = listing.json()["requests"][0]
    assert record["id"] == request_id
    assert record["email"] == "owner@example.com"
    assert record["reason"] == "Done - Thanks"
    assert record["status"] == "pending"

    processed = await client.post(
        f"/admin/deletion-requests/{request_id}/process", headers=admin_headers,
    )
    assert processed.status_code == 200
    assert processed.json() == {
        "success": True,
        "message": "User account deleted and request processed",
        "email": "owner@example.com",
    }

    assert await db_session.scalar(
        select(func.count()).select_from(User).where(User.id == user_id),
    ) == 0
    assert await db_session.scalar(
        select(func.count()).select_from(AuthSession).where(AuthSession.user_id == user_id),
    ) == 0

    record = (await client.get("/admin/deletion-requests", headers=admin_headers)).json()
    assert record["requests"][0]["status"] == "processed"
    assert record["requests"][0]["user_id"] is None
    assert record["requests"][0]["processed_at"] is not None


async def test_admin_process_twice_returns_invalid_state(
    auth_client: AsyncClient, client: AsyncClient, admin_headers: dict[str, str],
) -> None:
    """Test that a processed request cannot be processed again."""
    submitted = await auth_client.post("/profile/deletion-request", json={})
    request_id = submitted.json()["request_id"]
    await client.post(f"/admin/deletion-requests/{request_id}/process", headers=admin_headers)

    response = await client.post(
        f"/admin/deletion-requests/{request_id}/process", headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["detail"] == {
        "error": "invalid_state",
        "message": "Request already processed",
        "status": "processed",
    }


async def test_admin_process_unknown_request(
    client: AsyncClient, admin_headers: dict[str, str],
) -> None:
    """Test 404 for a request id that does not exist."""
    response = await client.post(
        f"/admin/deletion-requests/{FAKE_UUID}/process", headers=admin_headers,
    )
    assert response.status_code == 404


async def test_admin_requires_key(client: AsyncClient) -> None:
    """Test that missing or wrong admin keys are rejected."""
    assert (await client.get("/admin/deletion-requests")).status_code == 401

    wrong = await client.get("/admin/deletion-requests", headers={"X-Admin-Key": "nope"})
    assert wrong.status_code == 401
    assert wrong.json()["detail"] == "Unauthorized"


async def test_admin_disabled_without_configured_key(
    client: AsyncClient, database_url: str, admin_headers: dict[str, str],
) -> None:
    """Test 503 when the deployment has no admin key configured."""
    from api.main import app
    from core.config import Settings, get_settings

    app.dependency_overrides[get_settings] = lambda: Settings(
        database_url=database_url, admin_api_key=None,
    )

    response = await client.get("/admin/deletion-requests", headers=admin_headers)
    assert response.status_code == 503
    assert response.json()["detail"] == "Admin API not configured"
