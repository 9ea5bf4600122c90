"""Tests for saved node template endpoints."""
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from models.profile import Profile
from models.saved_node import SavedNode
from models.user import User
from tests.api.conftest import FAKE_UUID

LAYOUT = {"nodes": [{"id": "n1", "type": "router"}], "edges": []}


async def test_create_and_list_saved_nodes_with_quota(auth_client: AsyncClient) -> None:
    """Test that the list carries the saved node quota."""
    response = await auth_client.post(
        "/saved-nodes/", json={"name": "Router", "description": "Edge", "layout": LAYOUT},
    )
    assert response.status_code == 201
    assert response.json()["layout"] == LAYOUT

    listing = await auth_client.get("/saved-nodes/")
    assert listing.status_code == 200
    data = listing.json()
    assert [item["name"] for item in data["items"]] == ["Router"]
    assert data["quota"] == {"used": 1, "max": 20, "plan": "free"}


async def test_saved_node_quota_follows_plan(
    auth_client: AsyncClient, db_session: AsyncSession, test_user: User,
) -> None:
    """Test that the saved node ceiling comes from the plan table."""
    db_session.add(Profile(user_id=test_user.id, plan="plus"))
    await db_session.flush()

    response = await auth_client.get("/saved-nodes/")
    assert response.json()["quota"] == {"used": 0, "max": 50, "plan": "plus"}


async def test_create_saved_node_over_quota(
    auth_client: AsyncClient, db_session: AsyncSession, test_user: User,
) -> None:
    """Test 403 with the live quota at the free plan ceiling."""
    db_session.add_all(
        SavedNode(user_id=test_user.id, name=f"N{i}", layout={}) for i in range(20)
    )
    await db_session.flush()

    response = await auth_client.post("/saved-nodes/", json={"name": "Extra", "layout": LAYOUT})
    assert response.status_code == 403
    assert response.json()["quota"] == {"used": 20, "max": 20, "plan": "free"}


async def test_create_saved_node_validation(auth_client: AsyncClient) -> None:
    """Test that name and layout are required."""
    assert (await auth_client.post("/saved-nodes/", json={"layout": LAYOUT})).status_code == 422
    assert (await auth_client.post("/saved-nodes/", json={"name": "x"})).status_code == 422
    assert (
        await auth_client.post("/saved-nodes/", json={"name": "", "layout": LAYOUT})
    ).status_code == 422


async def test_patch_saved_node(auth_client: AsyncClient) -> None:
    """Test a partial update and rejection of null required fields."""
    created = await auth_client.post(
        "/saved-nodes/", json={"name": "Router", "description": "Edge", "layout": LAYOUT},
    )
    node_id = created.json()["id"]

    response = await auth_client.patch(f"/saved-nodes/{node_id}", json={"name": "Core router"})
    assert response.status_code == 200
    assert response.json()["name"] == "Core router"
    assert response.json()["description"] == "Edge"

    rejected = await auth_client.patch(f"/saved-nodes/{node_id}", json={"layout": None})
    assert rejected.status_code == 422


async def test_saved_node_isolation_and_not_found(
    auth_client: AsyncClient, other_client: AsyncClient,
) -> None:
    """Test that other users cannot read, change or delete a saved node."""
    created = await auth_client.post("/saved-nodes/", json={"name": "Mine", "layout": LAYOUT})
    node_id = created.json()["id"]

    assert (await other_client.get(f"/saved-nodes/{node_id}")).status_code == 404
    assert (
        await other_client.patch(f"/saved-nodes/{node_id}", json={"name": "x"})
    ).status_code == 404
    assert (await other_client.delete(f"/saved-nodes/{node_id}")).status_code == 404
    assert (await auth_client.get(f"/saved-nodes/{FAKE_UUID}")).status_code == 404

    assert (await auth_client.delete(f"/saved-nodes/{node_id}")).status_code == 200
    assert (await auth_client.get(f"/saved-nodes/{node_id}")).status_code == 404
