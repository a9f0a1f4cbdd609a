"""
Permission system for the access portal.

Defines the actions callers can take, the scopes a grant is held under, the
resource context a decision is made against, and the registry of grants per
role (with inheritance through ``RoleHierarchy``).
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional, Set

import structlog
from pydantic import BaseModel, ConfigDict

from devportal.domain.schemas import AccessRequest, APIProduct, PlanPolicy, ResourceRef, Role

from .roles import RoleHierarchy, default_hierarchy

logger = structlog.get_logger(__name__)


class ResourceType(str, Enum):
    """Resource types an action applies to."""
    API_PRODUCT = "apiproduct"
    ACCESS_REQUEST = "accessrequest"
    PLAN_POLICY = "planpolicy"


class Action(str, Enum):
    """Every action the authorization engine knows about."""
    APIPRODUCT_CREATE = "apiproduct.create"
    APIPRODUCT_READ = "apiproduct.read"
    APIPRODUCT_LIST = "apiproduct.list"
    APIPRODUCT_UPDATE = "apiproduct.update"
    APIPRODUCT_DELETE = "apiproduct.delete"
    APIPRODUCT_TRANSFER = "apiproduct.transfer"

    ACCESSREQUEST_CREATE = "accessrequest.create"
    ACCESSREQUEST_APPROVE = "accessrequest.approve"
    ACCESSREQUEST_REJECT = "accessrequest.reject"
    ACCESSREQUEST_READ_OWN = "accessrequest.read.own"
    ACCESSREQUEST_READ_ALL = "accessrequest.read.all"
    ACCESSREQUEST_UPDATE_OWN = "accessrequest.update.own"
    ACCESSREQUEST_DELETE = "accessrequest.delete"

    PLANPOLICY_LIST = "planpolicy.list"
    PLANPOLICY_READ = "planpolicy.read"

    @property
    def resource_type(self) -> ResourceType:
        return ResourceType(self.value.split(".", 1)[0])


class GrantScope(str, Enum):
    """Condition under which a grant applies."""
    ANY = "any"
    OWNED_PRODUCT = "owned_product"
    SELF = "self"


# Evaluation order: the broadest scope that matches is reported.
SCOPE_PRECEDENCE: List[GrantScope] = [GrantScope.ANY, GrantScope.OWNED_PRODUCT, GrantScope.SELF]


class ResourceContext(BaseModel):
    """
    What the engine needs to know about the target of an action.

    Built fresh from the store for every decision; ``product_owner`` is the
    owner of the product as read now, never a value cached on a request.
    """
    model_config = ConfigDict(frozen=True)

    resource_type: ResourceType
    ref: Optional[ResourceRef] = None
    product_owner: Optional[str] = None
    requester_id: Optional[str] = None

    @classmethod
    def collection(cls, resource_type: ResourceType) -> ResourceContext:
        """Context for actions without a specific instance (create, list)."""
        return cls(resource_type=resource_type)

    @classmethod
    def for_product(cls, product: APIProduct) -> ResourceContext:
        return cls(
            resource_type=ResourceType.API_PRODUCT,
            ref=product.ref,
            product_owner=product.owner,
        )

    @classmethod
    def for_request(cls, request: AccessRequest, product_owner: Optional[str] = None) -> ResourceContext:
        return cls(
            resource_type=ResourceType.ACCESS_REQUEST,
            ref=request.ref,
            product_owner=product_owner,
            requester_id=request.requested_by.user_id,
        )

    @classmethod
    def for_plan_policy(cls, policy: PlanPolicy) -> ResourceContext:
        return cls(resource_type=ResourceType.PLAN_POLICY, ref=policy.ref)


class Grant(BaseModel):
    """One action held by a role under one scope."""
    model_config = ConfigDict(frozen=True)

    action: Action
    scope: GrantScope

    @property
    def key(self) -> str:
        return f"{self.action.value}:{self.scope.value}"

    def __str__(self) -> str:
        return self.key


class PermissionRegistry:
    """Registry of grants per role."""

    def __init__(self, hierarchy: Optional[RoleHierarchy] = None):
        self.hierarchy = hierarchy or default_hierarchy()
        self._grants: Dict[Role, Set[Grant]] = {}
        self._initialize_default_grants()

    def _initialize_default_grants(self) -> None:
        """Initialize the portal's default grants. Inherited grants are not repeated."""
        self.register_grants(Role.CONSUMER, [
            Grant(action=Action.APIPRODUCT_READ, scope=GrantScope.ANY),
            Grant(action=Action.APIPRODUCT_LIST, scope=GrantScope.ANY),
            Grant(action=Action.ACCESSREQUEST_CREATE, scope=GrantScope.ANY),
            Grant(action=Action.ACCESSREQUEST_READ_OWN, scope=GrantScope.SELF),
            Grant(action=Action.ACCESSREQUEST_UPDATE_OWN, scope=GrantScope.SELF),
            Grant(action=Action.ACCESSREQUEST_DELETE, scope=GrantScope.SELF),
        ])

        self.register_grants(Role.OWNER, [
            Grant(action=Action.APIPRODUCT_CREATE, scope=GrantScope.ANY),
            Grant(action=Action.APIPRODUCT_UPDATE, scope=GrantScope.OWNED_PRODUCT),
            Grant(action=Action.APIPRODUCT_DELETE, scope=GrantScope.OWNED_PRODUCT),
            Grant(action=Action.APIPRODUCT_TRANSFER, scope=GrantScope.OWNED_PRODUCT),
            Grant(action=Action.ACCESSREQUEST_APPROVE, scope=GrantScope.OWNED_PRODUCT),
            Grant(action=Action.ACCESSREQUEST_REJECT, scope=GrantScope.OWNED_PRODUCT),
            Grant(action=Action.ACCESSREQUEST_READ_ALL, scope=GrantScope.OWNED_PRODUCT),
            Grant(action=Action.PLANPOLICY_LIST, scope=GrantScope.ANY),
            Grant(action=Action.PLANPOLICY_READ, scope=GrantScope.ANY),
        ])

        self.register_grants(Role.ADMIN, [
            Grant(action=action, scope=GrantScope.ANY) for action in Action
        ])

    def register_grant(self, role: Role, grant: Grant) -> None:
        """Register a single grant for a role."""
        if role == Role.UNKNOWN:
            raise ValueError("The unknown role cannot hold grants")

        self._grants.setdefault(role, set()).add(grant)
        logger.debug("grant_registered", role=role.value, grant=grant.key)

    def register_grants(self, role: Role, grants: List[Grant]) -> None:
        """Register multiple grants for a role."""
        for grant in grants:
            self.register_grant(role, grant)

    def get_direct_grants(self, role: Role) -> Set[Grant]:
        """Grants declared on the role itself."""
        return self._grants.get(role, set()).copy()

    def get_effective_grants(self, role: Role) -> Set[Grant]:
        """Grants declared on the role plus everything inherited."""
        grants = self.get_direct_grants(role)
        for parent in self.hierarchy.get_all_parent_roles(role):
            grants.update(self._grants.get(parent, set()))
        return grants

    def get_scopes(self, role: Role, action: Action) -> Set[GrantScope]:
        """Scopes under which ``role`` holds ``action``."""
        return {grant.scope for grant in self.get_effective_grants(role) if grant.action == action}

    def get_actions(self, role: Role) -> Set[Action]:
        """Every action the role holds under any scope."""
        return {grant.action for grant in self.get_effective_grants(role)}


# Global permission registry instance
permission_registry = PermissionRegistry()
