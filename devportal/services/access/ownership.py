"""
Ownership index.

Answers "who owns product P" and "which products does user U own". The index
is always built from a fresh product read; ownership is never cached across
operations so a transfer takes effect immediately.
"""
from typing import Dict, Iterable, List, Optional

import structlog

from devportal.domain.interfaces.store import ResourceKind
from devportal.domain.schemas import AccessRequest, APIProduct, ResourceRef

from .gateway import StoreGateway
from .permissions import ResourceContext

logger = structlog.get_logger(__name__)


class OwnershipIndex:
    """Snapshot of product ownership taken from one product listing."""

    def __init__(self, products: Iterable[APIProduct]):
        self._owners: Dict[ResourceRef, str] = {product.ref: product.owner for product in products}

    def __len__(self) -> int:
        return len(self._owners)

    def owner_of(self, product_ref: ResourceRef) -> Optional[str]:
        """Owner of a product, or None when the product is unknown."""
        return self._owners.get(product_ref)

    def is_owner(self, product_ref: ResourceRef, user_id: str) -> bool:
        return self.owner_of(product_ref) == user_id

    def products_owned_by(self, user_id: str) -> List[ResourceRef]:
        """Products owned by ``user_id`` (exact entity reference match)."""
        return sorted(
            (ref for ref, owner in self._owners.items() if owner == user_id),
            key=lambda ref: (ref.namespace, ref.name),
        )

    def context_for_request(self, request: AccessRequest) -> ResourceContext:
        return ResourceContext.for_request(request, self.owner_of(request.api_product_ref))


class OwnershipResolver:
    """Reads current ownership from the store."""

    def __init__(self, gateway: StoreGateway):
        self.gateway = gateway

    async def index(self, timeout: Optional[float] = None) -> OwnershipIndex:
        """Build an index from a fresh product listing."""
        products = await self.gateway.list(ResourceKind.API_PRODUCT, timeout=timeout)
        index = OwnershipIndex(products)
        logger.debug("ownership_index_built", products=len(index))
        return index

    async def current_owner(self, product_ref: ResourceRef, timeout: Optional[float] = None) -> Optional[str]:
        """Owner of the product as stored now; None when the product is gone."""
        product = await self.gateway.get_product(product_ref, timeout)
        return product.owner if product else None

    async def context_for_request(
        self,
        request: AccessRequest,
        timeout: Optional[float] = None,
    ) -> ResourceContext:
        owner = await self.current_owner(request.api_product_ref, timeout)
        return ResourceContext.for_request(request, owner)
