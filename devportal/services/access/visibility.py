"""
Visibility filter.

Decides which requests, products and plan policies a caller may see. A
denied listing is an empty result, never an exception; single reads raise.
"""
from typing import Any, Dict, List, Optional, Union

import structlog

from devportal.core.exceptions import AuthorizationError, NotFoundError, StoreError
from devportal.domain.interfaces.store import ResourceKind
from devportal.domain.schemas import (
    AccessRequest,
    APIProduct,
    Identity,
    ListingScope,
    PlanPolicy,
    RequestListing,
    RequestStatus,
    ResourceRef,
    Role,
)

from .authorization import AuthorizationEngine
from .gateway import StoreGateway
from .ownership import OwnershipResolver
from .permissions import Action, ResourceContext

logger = structlog.get_logger(__name__)


class VisibilityFilter:
    """Role- and ownership-scoped listings."""

    def __init__(self, gateway: StoreGateway, engine: AuthorizationEngine, ownership: OwnershipResolver):
        self.gateway = gateway
        self.engine = engine
        self.ownership = ownership

    async def list_requests(
        self,
        identity: Optional[Identity],
        role: Role,
        scope: Union[ListingScope, str],
        status: Optional[RequestStatus] = None,
        namespace: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> List[AccessRequest]:
        """
        List access requests visible to the caller.

        ``mine`` returns the caller's own requests in every status, newest
        first. ``approval-queue`` returns Pending requests the caller may
        review, oldest first: all of them for Admin, those on products the
        caller currently owns for Owner, nothing for anyone else. ``status``
        replaces the queue's Pending default to browse reviewed requests.
        """
        try:
            scope = ListingScope(scope)
        except ValueError:
            logger.warning("unknown_listing_scope", scope=str(scope))
            return []

        if identity is None:
            return []

        if scope == ListingScope.MINE:
            return await self._list_mine(identity, role, status, namespace, timeout)
        return await self._list_queue(identity, role, status, namespace, timeout)

    async def safe_list_requests(
        self,
        identity: Optional[Identity],
        role: Role,
        scope: Union[ListingScope, str],
        status: Optional[RequestStatus] = None,
        namespace: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> RequestListing:
        """``list_requests`` that degrades to an empty, flagged listing on store failure."""
        try:
            items = await self.list_requests(identity, role, scope, status, namespace, timeout)
        except StoreError as e:
            logger.warning(
                "request_listing_degraded",
                scope=str(getattr(scope, "value", scope)),
                user_id=identity.id if identity else None,
                error_code=e.code.value,
            )
            return RequestListing(items=[], degraded=True)
        return RequestListing(items=items)

    async def list_products(
        self,
        identity: Optional[Identity],
        role: Role,
        timeout: Optional[float] = None,
    ) -> List[APIProduct]:
        """Published products, plus Drafts the caller could edit."""
        if identity is None or not self.engine.has_grant(role, Action.APIPRODUCT_LIST):
            return []

        products = await self.gateway.list(ResourceKind.API_PRODUCT, timeout=timeout)
        visible = []
        for product in products:
            context = ResourceContext.for_product(product)
            if not self.engine.can_perform(identity, role, Action.APIPRODUCT_LIST, context):
                continue
            if product.is_published or self.engine.can_perform(identity, role, Action.APIPRODUCT_UPDATE, context):
                visible.append(product)

        return sorted(visible, key=lambda p: (p.namespace, p.name))

    async def list_plan_policies(
        self,
        identity: Optional[Identity],
        role: Role,
        timeout: Optional[float] = None,
    ) -> List[PlanPolicy]:
        if identity is None or not self.engine.has_grant(role, Action.PLANPOLICY_LIST):
            return []

        policies = await self.gateway.list(ResourceKind.PLAN_POLICY, timeout=timeout)
        return [
            policy for policy in policies
            if self.engine.can_perform(
                identity, role, Action.PLANPOLICY_LIST, ResourceContext.for_plan_policy(policy)
            )
        ]

    async def get_plan_policy(
        self,
        identity: Optional[Identity],
        role: Role,
        ref: ResourceRef,
        timeout: Optional[float] = None,
    ) -> PlanPolicy:
        """
        Read one plan policy.

        Raises:
            AuthorizationError: the caller may not read plan policies
            NotFoundError: no policy with this id
        """
        if identity is None or not self.engine.has_grant(role, Action.PLANPOLICY_READ):
            raise AuthorizationError(action=Action.PLANPOLICY_READ.value)

        policy = await self.gateway.get(ResourceKind.PLAN_POLICY, ref, timeout)
        if policy is None:
            raise NotFoundError("Plan policy", ref)

        context = ResourceContext.for_plan_policy(policy)
        if not self.engine.can_perform(identity, role, Action.PLANPOLICY_READ, context):
            raise AuthorizationError(action=Action.PLANPOLICY_READ.value)
        return policy

    async def _list_mine(
        self,
        identity: Identity,
        role: Role,
        status: Optional[RequestStatus],
        namespace: Optional[str],
        timeout: Optional[float],
    ) -> List[AccessRequest]:
        if not self.engine.has_grant(role, Action.ACCESSREQUEST_READ_OWN):
            return []

        filters = self._filters(namespace, status, **{"requested_by.user_id": identity.id})
        requests = await self.gateway.list(ResourceKind.ACCESS_REQUEST, filters, timeout)
        visible = [
            request for request in requests
            if self.engine.can_perform(
                identity, role, Action.ACCESSREQUEST_READ_OWN, ResourceContext.for_request(request)
            )
        ]
        return sorted(visible, key=lambda r: r.requested_at, reverse=True)

    async def _list_queue(
        self,
        identity: Identity,
        role: Role,
        status: Optional[RequestStatus],
        namespace: Optional[str],
        timeout: Optional[float],
    ) -> List[AccessRequest]:
        if not self.engine.has_grant(role, Action.ACCESSREQUEST_READ_ALL):
            return []

        filters = self._filters(namespace, status or RequestStatus.PENDING)
        requests = await self.gateway.list(ResourceKind.ACCESS_REQUEST, filters, timeout)
        if not requests:
            return []

        index = await self.ownership.index(timeout)
        visible = [
            request for request in requests
            if self.engine.can_perform(
                identity, role, Action.ACCESSREQUEST_READ_ALL, index.context_for_request(request)
            )
        ]
        return sorted(visible, key=lambda r: r.requested_at)

    @staticmethod
    def _filters(
        namespace: Optional[str],
        status: Optional[RequestStatus],
        **extra: Any,
    ) -> Dict[str, Any]:
        filters: Dict[str, Any] = dict(extra)
        if namespace:
            filters["namespace"] = namespace
        if status is not None:
            filters["status"] = RequestStatus(status).value
        return filters
