"""
Resource store interface.

The store is the single seam between the access core and the authoritative
state. Implementations assign ``resource_version`` (1 on create, +1 on every
successful update) and use it for optimistic concurrency.
"""
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Type

from devportal.domain.schemas import AccessRequest, APIProduct, PlanPolicy, PortalResource


class ResourceKind(str, Enum):
    """Kinds of resources kept in the store."""
    API_PRODUCT = "apiproducts"
    ACCESS_REQUEST = "apikeyrequests"
    PLAN_POLICY = "planpolicies"

    @property
    def model(self) -> Type[PortalResource]:
        """Schema class stored under this kind."""
        return RESOURCE_MODELS[self]


RESOURCE_MODELS: Dict[ResourceKind, Type[PortalResource]] = {
    ResourceKind.API_PRODUCT: APIProduct,
    ResourceKind.ACCESS_REQUEST: AccessRequest,
    ResourceKind.PLAN_POLICY: PlanPolicy,
}


def resolve_attribute(obj: Any, path: str) -> Any:
    """Follow a dotted attribute path, returning None when any hop is missing."""
    value = obj
    for part in path.split("."):
        if value is None:
            return None
        if isinstance(value, Mapping):
            value = value.get(part)
        else:
            value = getattr(value, part, None)
    return value


def matches_filters(obj: PortalResource, filters: Optional[Dict[str, Any]]) -> bool:
    """
    Check an object against equality filters.

    Keys are dotted attribute paths (``requested_by.user_id``); enum values
    compare equal to their plain values.
    """
    if not filters:
        return True

    for path, expected in filters.items():
        actual = resolve_attribute(obj, path)
        if isinstance(actual, Enum):
            actual = actual.value
        if isinstance(expected, Enum):
            expected = expected.value
        if actual != expected:
            return False

    return True


class IResourceStore(ABC):
    """Interface for the authoritative resource store."""

    @abstractmethod
    async def get(self, kind: ResourceKind, namespace: str, name: str) -> Optional[PortalResource]:
        """Get a resource by id, or None when absent."""
        pass

    @abstractmethod
    async def list(
        self,
        kind: ResourceKind,
        filters: Optional[Dict[str, Any]] = None,
    ) -> List[PortalResource]:
        """List resources of a kind matching equality filters."""
        pass

    @abstractmethod
    async def create(self, kind: ResourceKind, obj: PortalResource) -> PortalResource:
        """Create a resource. Raises ConflictError when the id exists."""
        pass

    @abstractmethod
    async def update(
        self,
        kind: ResourceKind,
        obj: PortalResource,
        expected_version: int,
    ) -> PortalResource:
        """
        Replace a resource if its stored version equals ``expected_version``.

        Raises ConflictError on a version mismatch and NotFoundError when the
        resource no longer exists.
        """
        pass

    @abstractmethod
    async def delete(self, kind: ResourceKind, namespace: str, name: str) -> bool:
        """Delete a resource. Returns False when it was already absent."""
        pass
