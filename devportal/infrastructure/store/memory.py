"""
In-process resource store.

Keeps JSON-mode snapshots so callers never share object instances with the
store; all writes go through one asyncio lock, which makes the version check
and the write a single atomic step.
"""
import asyncio
from typing import Any, Dict, List, Optional, Tuple

import structlog

from devportal.core.errors import ErrorCode, ErrorMessages
from devportal.core.exceptions import ConflictError, NotFoundError
from devportal.domain.interfaces.store import IResourceStore, ResourceKind, matches_filters
from devportal.domain.schemas import PortalResource

logger = structlog.get_logger(__name__)

StoreKey = Tuple[ResourceKind, str, str]


class InMemoryResourceStore(IResourceStore):
    """Versioned dictionary store for development and tests."""

    def __init__(self):
        self._objects: Dict[StoreKey, Dict[str, Any]] = {}
        self._lock = asyncio.Lock()

    async def get(self, kind: ResourceKind, namespace: str, name: str) -> Optional[PortalResource]:
        payload = self._objects.get((kind, namespace, name))
        if payload is None:
            return None
        return kind.model.model_validate(payload)

    async def list(
        self,
        kind: ResourceKind,
        filters: Optional[Dict[str, Any]] = None,
    ) -> List[PortalResource]:
        items = []
        for key in sorted(k for k in self._objects if k[0] == kind):
            obj = kind.model.model_validate(self._objects[key])
            if matches_filters(obj, filters):
                items.append(obj)
        return items

    async def create(self, kind: ResourceKind, obj: PortalResource) -> PortalResource:
        key = (kind, obj.namespace, obj.name)
        async with self._lock:
            if key in self._objects:
                raise ConflictError(
                    ErrorMessages.get(ErrorCode.BUS_RESOURCE_ALREADY_EXISTS),
                    code=ErrorCode.BUS_RESOURCE_ALREADY_EXISTS,
                )
            payload = obj.model_dump(mode="json")
            payload["resource_version"] = 1
            self._objects[key] = payload

        logger.debug("resource_created", kind=kind.value, ref=f"{obj.namespace}/{obj.name}")
        return kind.model.model_validate(payload)

    async def update(
        self,
        kind: ResourceKind,
        obj: PortalResource,
        expected_version: int,
    ) -> PortalResource:
        key = (kind, obj.namespace, obj.name)
        async with self._lock:
            current = self._objects.get(key)
            if current is None:
                raise NotFoundError(kind.value, f"{obj.namespace}/{obj.name}")
            if current["resource_version"] != expected_version:
                logger.info(
                    "resource_version_conflict",
                    kind=kind.value,
                    ref=f"{obj.namespace}/{obj.name}",
                    expected=expected_version,
                    actual=current["resource_version"],
                )
                raise ConflictError()
            payload = obj.model_dump(mode="json")
            payload["resource_version"] = expected_version + 1
            self._objects[key] = payload

        return kind.model.model_validate(payload)

    async def delete(self, kind: ResourceKind, namespace: str, name: str) -> bool:
        async with self._lock:
            removed = self._objects.pop((kind, namespace, name), None)
        return removed is not None

    def clear(self) -> None:
        """Drop every stored resource."""
        self._objects.clear()
