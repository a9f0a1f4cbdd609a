"""
Test API product, plan policy and user endpoints.
"""
import pytest
from httpx import AsyncClient

from devportal.core.config import get_settings
from devportal.core.errors import ErrorCode

settings = get_settings()

PREFIX = f"{settings.API_V1_PREFIX}/apiproducts"


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.mark.asyncio
async def test_list_products_by_role(client: AsyncClient):
    consumer = await client.get(PREFIX, headers=auth("alice-token"))
    owner = await client.get(PREFIX, headers=auth("bob-token"))

    assert [p["name"] for p in consumer.json()] == ["payments", "weather"]
    assert [p["name"] for p in owner.json()] == ["ledger-beta", "payments", "weather"]


@pytest.mark.asyncio
async def test_create_product(client: AsyncClient):
    payload = {
        "namespace": "default",
        "name": "orders",
        "display_name": "Orders",
        "plans": [{"tier": "free"}],
    }

    created = await client.post(PREFIX, json=payload, headers=auth("carol-token"))
    duplicate = await client.post(PREFIX, json=payload, headers=auth("carol-token"))
    forbidden = await client.post(PREFIX, json={**payload, "name": "other"}, headers=auth("alice-token"))

    assert created.status_code == 201
    assert created.json()["owner"] == "user:default/carol"
    assert duplicate.status_code == 409
    assert duplicate.json()["error"]["code"] == ErrorCode.BUS_RESOURCE_ALREADY_EXISTS.value
    assert forbidden.status_code == 403


@pytest.mark.asyncio
async def test_get_draft_of_other_owner_is_not_found(client: AsyncClient):
    response = await client.get(f"{PREFIX}/default/ledger-beta", headers=auth("carol-token"))
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_ignores_owner_field(client: AsyncClient):
    response = await client.patch(
        f"{PREFIX}/default/payments",
        json={"display_name": "Payments v2", "owner": "user:default/carol"},
        headers=auth("bob-token"),
    )
    assert response.status_code == 200
    assert response.json()["display_name"] == "Payments v2"
    assert response.json()["owner"] == "user:default/bob"


@pytest.mark.asyncio
async def test_transfer_and_delete(client: AsyncClient):
    transfer = await client.put(
        f"{PREFIX}/default/payments/owner", json={"owner": "carol"}, headers=auth("bob-token")
    )
    assert transfer.status_code == 200
    assert transfer.json()["owner"] == "user:default/carol"

    refused = await client.delete(f"{PREFIX}/default/payments", headers=auth("bob-token"))
    assert refused.status_code == 403

    deleted = await client.delete(f"{PREFIX}/default/payments", headers=auth("carol-token"))
    assert deleted.status_code == 204


@pytest.mark.asyncio
async def test_plan_policies(client: AsyncClient):
    consumer = await client.get(f"{settings.API_V1_PREFIX}/planpolicies", headers=auth("alice-token"))
    owner = await client.get(f"{settings.API_V1_PREFIX}/planpolicies", headers=auth("bob-token"))

    assert consumer.json() == []
    assert [p["name"] for p in owner.json()] == ["payments-plans"]


@pytest.mark.asyncio
async def test_me(client: AsyncClient):
    response = await client.get(f"{settings.API_V1_PREFIX}/me", headers=auth("bob-token"))
    assert response.status_code == 200

    data = response.json()
    assert data["role"] == "api-owner"
    assert data["is_api_owner"] is True
    assert data["is_platform_engineer"] is False


@pytest.mark.asyncio
async def test_me_requires_authentication(client: AsyncClient):
    response = await client.get(f"{settings.API_V1_PREFIX}/me")
    assert response.status_code == 401
    assert response.json()["error"]["code"] == ErrorCode.AUTH_NOT_AUTHENTICATED.value


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    basic = await client.get(f"{settings.API_V1_PREFIX}/health")
    ready = await client.get(f"{settings.API_V1_PREFIX}/health/ready")

    assert basic.json()["status"] == "healthy"
    assert ready.json()["status"] == "ready"


@pytest.mark.asyncio
async def test_get_plan_policy(client: AsyncClient):
    """Test a single plan policy is readable by owners only."""
    url = f"{settings.API_V1_PREFIX}/planpolicies/default/payments-plans"

    owner = await client.get(url, headers=auth("bob-token"))
    consumer = await client.get(url, headers=auth("alice-token"))
    missing = await client.get(f"{settings.API_V1_PREFIX}/planpolicies/default/ghost", headers=auth("dana-token"))

    assert owner.status_code == 200
    assert owner.json()["name"] == "payments-plans"
    assert consumer.status_code == 403
    assert consumer.json()["error"]["code"] == ErrorCode.AUTH_INSUFFICIENT_PERMISSIONS.value
    assert missing.status_code == 404
