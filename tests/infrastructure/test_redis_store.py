"""
Tests for the Redis-backed resource store with a mocked client.
"""
import json
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from devportal.core.errors import ErrorCode
from devportal.core.exceptions import ConflictError, NotFoundError, StoreError
from devportal.domain.interfaces.store import ResourceKind
from devportal.domain.schemas import RequestStatus
from devportal.infrastructure.store.redis import (
    CREATE_SCRIPT,
    DELETE_SCRIPT,
    UPDATE_SCRIPT,
    RedisResourceStore,
)
from tests.fixtures.access import AccessTestData, make_product, make_request

data = AccessTestData


@pytest.fixture
def redis_client():
    client = AsyncMock()
    client.hget = AsyncMock(return_value=None)
    client.hgetall = AsyncMock(return_value={})
    client.eval = AsyncMock(return_value=1)
    return client


@pytest.fixture
def redis_store(redis_client):
    return RedisResourceStore(redis_client, prefix="test")


def stored_payload(obj, version=1) -> str:
    payload = obj.model_dump(mode="json")
    payload["resource_version"] = version
    return json.dumps(payload)


class TestRedisReads:
    """Test reads from the object hash."""

    @pytest.mark.asyncio
    async def test_get_missing(self, redis_store, redis_client):
        assert await redis_store.get(ResourceKind.API_PRODUCT, "default", "payments") is None
        redis_client.hget.assert_awaited_once_with("test:apiproducts", "default/payments")

    @pytest.mark.asyncio
    async def test_get_decodes_payload(self, redis_store, redis_client):
        product = make_product(data.PAYMENTS, data.BOB.id)
        redis_client.hget.return_value = stored_payload(product, version=3)

        loaded = await redis_store.get(ResourceKind.API_PRODUCT, "default", "payments")

        assert loaded.owner == data.BOB.id
        assert loaded.resource_version == 3

    @pytest.mark.asyncio
    async def test_list_sorts_and_filters(self, redis_store, redis_client):
        redis_client.hgetall.return_value = {
            "default/r-2": stored_payload(make_request("r-2", data.PAYMENTS, data.CAROL)),
            "default/r-1": stored_payload(make_request("r-1", data.PAYMENTS, data.ALICE)),
        }

        everything = await redis_store.list(ResourceKind.ACCESS_REQUEST)
        mine = await redis_store.list(ResourceKind.ACCESS_REQUEST, {"requested_by.user_id": data.ALICE.id})

        assert [r.name for r in everything] == ["r-1", "r-2"]
        assert [r.name for r in mine] == ["r-1"]
        redis_client.hgetall.assert_awaited_with("test:apikeyrequests")

    @pytest.mark.asyncio
    async def test_redis_failure_becomes_store_error(self, redis_store, redis_client):
        redis_client.hget.side_effect = RedisConnectionError("connection refused")

        with pytest.raises(StoreError) as exc_info:
            await redis_store.get(ResourceKind.API_PRODUCT, "default", "payments")

        assert exc_info.value.code == ErrorCode.SYS_STORE_ERROR
        assert "refused" not in exc_info.value.message


class TestRedisWrites:
    """Test the compare-and-swap scripts' outcomes."""

    @pytest.mark.asyncio
    async def test_create(self, redis_store, redis_client):
        product = make_product(data.PAYMENTS, data.BOB.id)

        created = await redis_store.create(ResourceKind.API_PRODUCT, product)

        assert created.resource_version == 1
        args = redis_client.eval.await_args.args
        assert args[:5] == (CREATE_SCRIPT, 2, "test:apiproducts", "test:apiproducts:versions", "default/payments")
        assert json.loads(args[5])["owner"] == data.BOB.id

    @pytest.mark.asyncio
    async def test_create_existing_conflicts(self, redis_store, redis_client):
        redis_client.eval.return_value = 0

        with pytest.raises(ConflictError):
            await redis_store.create(ResourceKind.API_PRODUCT, make_product(data.PAYMENTS, data.BOB.id))

    @pytest.mark.asyncio
    async def test_update_passes_expected_version(self, redis_store, redis_client):
        request = make_request("r-1", data.PAYMENTS, data.ALICE).model_copy(update={"status": RequestStatus.APPROVED})

        updated = await redis_store.update(ResourceKind.ACCESS_REQUEST, request, expected_version=4)

        assert updated.resource_version == 5
        args = redis_client.eval.await_args.args
        assert args[0] == UPDATE_SCRIPT
        assert args[-1] == 4

    @pytest.mark.asyncio
    async def test_update_version_mismatch(self, redis_store, redis_client):
        redis_client.eval.return_value = 0

        with pytest.raises(ConflictError):
            await redis_store.update(
                ResourceKind.ACCESS_REQUEST, make_request("r-1", data.PAYMENTS, data.ALICE), expected_version=1
            )

    @pytest.mark.asyncio
    async def test_update_missing(self, redis_store, redis_client):
        redis_client.eval.return_value = -1

        with pytest.raises(NotFoundError):
            await redis_store.update(
                ResourceKind.ACCESS_REQUEST, make_request("r-1", data.PAYMENTS, data.ALICE), expected_version=1
            )

    @pytest.mark.asyncio
    async def test_delete(self, redis_store, redis_client):
        assert await redis_store.delete(ResourceKind.ACCESS_REQUEST, "default", "r-1") is True
        assert redis_client.eval.await_args.args[0] == DELETE_SCRIPT

        redis_client.eval.return_value = 0
        assert await redis_store.delete(ResourceKind.ACCESS_REQUEST, "default", "r-1") is False

    @pytest.mark.asyncio
    async def test_close(self, redis_store, redis_client):
        await redis_store.close()

        redis_client.aclose.assert_awaited_once()
