"""
Store gateway.

Every store call the services make goes through here: the caller's timeout is
applied and collaborator failures are classified into the portal's error
taxonomy so nothing unclassified escapes.
"""
import asyncio
from typing import Any, Awaitable, Dict, List, Optional, TypeVar

import structlog

from devportal.core.exceptions import DevPortalException, StoreError, StoreTimeoutError
from devportal.domain.interfaces.store import IResourceStore, ResourceKind
from devportal.domain.schemas import AccessRequest, APIProduct, PortalResource, ResourceRef

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class StoreGateway:
    """Timeout-bounded, error-classified access to an ``IResourceStore``."""

    def __init__(self, store: IResourceStore, default_timeout: float = 5.0):
        self.store = store
        self.default_timeout = default_timeout

    async def _call(self, operation: str, awaitable: Awaitable[T], timeout: Optional[float]) -> T:
        timeout = timeout if timeout is not None else self.default_timeout
        try:
            return await asyncio.wait_for(awaitable, timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("store_timeout", operation=operation, timeout=timeout)
            raise StoreTimeoutError(operation, timeout=timeout)
        except DevPortalException:
            raise
        except Exception as e:
            logger.error("store_call_failed", operation=operation, error=str(e), error_type=type(e).__name__)
            raise StoreError(operation) from e

    async def get(
        self,
        kind: ResourceKind,
        ref: ResourceRef,
        timeout: Optional[float] = None,
    ) -> Optional[PortalResource]:
        return await self._call(f"get_{kind.value}", self.store.get(kind, ref.namespace, ref.name), timeout)

    async def list(
        self,
        kind: ResourceKind,
        filters: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> List[PortalResource]:
        return await self._call(f"list_{kind.value}", self.store.list(kind, filters), timeout)

    async def create(
        self,
        kind: ResourceKind,
        obj: PortalResource,
        timeout: Optional[float] = None,
    ) -> PortalResource:
        return await self._call(f"create_{kind.value}", self.store.create(kind, obj), timeout)

    async def update(
        self,
        kind: ResourceKind,
        obj: PortalResource,
        expected_version: int,
        timeout: Optional[float] = None,
    ) -> PortalResource:
        return await self._call(
            f"update_{kind.value}",
            self.store.update(kind, obj, expected_version),
            timeout,
        )

    async def delete(self, kind: ResourceKind, ref: ResourceRef, timeout: Optional[float] = None) -> bool:
        return await self._call(f"delete_{kind.value}", self.store.delete(kind, ref.namespace, ref.name), timeout)

    async def get_product(self, ref: ResourceRef, timeout: Optional[float] = None) -> Optional[APIProduct]:
        return await self.get(ResourceKind.API_PRODUCT, ref, timeout)

    async def get_request(self, ref: ResourceRef, timeout: Optional[float] = None) -> Optional[AccessRequest]:
        return await self.get(ResourceKind.ACCESS_REQUEST, ref, timeout)
