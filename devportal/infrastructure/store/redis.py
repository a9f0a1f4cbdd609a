"""
Redis-backed resource store.

Each kind is kept in two hashes keyed by ``namespace/name``: one with the JSON
payload and one with the integer resource version. Writes run as Lua scripts
so the version check and the write are atomic on the server.
"""
import json
from typing import Any, Dict, List, Optional

import redis.asyncio as redis
import structlog
from redis.exceptions import RedisError

from devportal.core.errors import ErrorCode, ErrorMessages
from devportal.core.exceptions import ConflictError, NotFoundError, StoreError
from devportal.domain.interfaces.store import IResourceStore, ResourceKind, matches_filters
from devportal.domain.schemas import PortalResource

logger = structlog.get_logger(__name__)

CREATE_SCRIPT = """
if redis.call('HEXISTS', KEYS[1], ARGV[1]) == 1 then
    return 0
end
redis.call('HSET', KEYS[1], ARGV[1], ARGV[2])
redis.call('HSET', KEYS[2], ARGV[1], 1)
return 1
"""

UPDATE_SCRIPT = """
local current = redis.call('HGET', KEYS[2], ARGV[1])
if not current then
    return -1
end
if tonumber(current) ~= tonumber(ARGV[3]) then
    return 0
end
redis.call('HSET', KEYS[1], ARGV[1], ARGV[2])
redis.call('HSET', KEYS[2], ARGV[1], tonumber(ARGV[3]) + 1)
return 1
"""

DELETE_SCRIPT = """
local removed = redis.call('HDEL', KEYS[1], ARGV[1])
redis.call('HDEL', KEYS[2], ARGV[1])
return removed
"""


def create_redis_client(url: str, max_connections: int = 50) -> redis.Redis:
    """
    Create a Redis client backed by its own connection pool.

    Args:
        url: Redis connection URL
        max_connections: Pool size

    Returns:
        Redis client
    """
    pool = redis.ConnectionPool.from_url(
        url,
        decode_responses=True,
        max_connections=max_connections,
    )
    return redis.Redis(connection_pool=pool)


class RedisResourceStore(IResourceStore):
    """Resource store with server-side compare-and-swap."""

    def __init__(self, client: redis.Redis, prefix: str = "devportal"):
        self.client = client
        self.prefix = prefix

    def _objects_key(self, kind: ResourceKind) -> str:
        return f"{self.prefix}:{kind.value}"

    def _versions_key(self, kind: ResourceKind) -> str:
        return f"{self.prefix}:{kind.value}:versions"

    @staticmethod
    def _field(namespace: str, name: str) -> str:
        return f"{namespace}/{name}"

    async def get(self, kind: ResourceKind, namespace: str, name: str) -> Optional[PortalResource]:
        try:
            raw = await self.client.hget(self._objects_key(kind), self._field(namespace, name))
        except RedisError as e:
            logger.error("redis_get_failed", kind=kind.value, error=str(e))
            raise StoreError("get") from e

        if raw is None:
            return None
        return kind.model.model_validate_json(raw)

    async def list(
        self,
        kind: ResourceKind,
        filters: Optional[Dict[str, Any]] = None,
    ) -> List[PortalResource]:
        try:
            payloads = await self.client.hgetall(self._objects_key(kind))
        except RedisError as e:
            logger.error("redis_list_failed", kind=kind.value, error=str(e))
            raise StoreError("list") from e

        items = []
        for field in sorted(payloads):
            obj = kind.model.model_validate_json(payloads[field])
            if matches_filters(obj, filters):
                items.append(obj)
        return items

    async def create(self, kind: ResourceKind, obj: PortalResource) -> PortalResource:
        payload = obj.model_dump(mode="json")
        payload["resource_version"] = 1
        field = self._field(obj.namespace, obj.name)

        try:
            created = await self.client.eval(
                CREATE_SCRIPT,
                2,
                self._objects_key(kind),
                self._versions_key(kind),
                field,
                json.dumps(payload),
            )
        except RedisError as e:
            logger.error("redis_create_failed", kind=kind.value, ref=field, error=str(e))
            raise StoreError("create") from e

        if int(created) == 0:
            raise ConflictError(
                ErrorMessages.get(ErrorCode.BUS_RESOURCE_ALREADY_EXISTS),
                code=ErrorCode.BUS_RESOURCE_ALREADY_EXISTS,
            )
        return kind.model.model_validate(payload)

    async def update(
        self,
        kind: ResourceKind,
        obj: PortalResource,
        expected_version: int,
    ) -> PortalResource:
        payload = obj.model_dump(mode="json")
        payload["resource_version"] = expected_version + 1
        field = self._field(obj.namespace, obj.name)

        try:
            result = await self.client.eval(
                UPDATE_SCRIPT,
                2,
                self._objects_key(kind),
                self._versions_key(kind),
                field,
                json.dumps(payload),
                expected_version,
            )
        except RedisError as e:
            logger.error("redis_update_failed", kind=kind.value, ref=field, error=str(e))
            raise StoreError("update") from e

        result = int(result)
        if result == -1:
            raise NotFoundError(kind.value, field)
        if result == 0:
            logger.info("resource_version_conflict", kind=kind.value, ref=field, expected=expected_version)
            raise ConflictError()
        return kind.model.model_validate(payload)

    async def delete(self, kind: ResourceKind, namespace: str, name: str) -> bool:
        field = self._field(namespace, name)
        try:
            removed = await self.client.eval(
                DELETE_SCRIPT,
                2,
                self._objects_key(kind),
                self._versions_key(kind),
                field,
            )
        except RedisError as e:
            logger.error("redis_delete_failed", kind=kind.value, ref=field, error=str(e))
            raise StoreError("delete") from e

        return int(removed) > 0

    async def close(self) -> None:
        """Release the connection pool."""
        await self.client.aclose()
