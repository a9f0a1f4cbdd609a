"""
Access-request authorization and lifecycle for API products.

Role classification, grant-based authorization scoped by product ownership,
the request lifecycle (Pending -> Approved | Rejected) and role-scoped
listings.
"""

from .authorization import AuthorizationDecision, AuthorizationEngine
from .gateway import StoreGateway
from .identity import Caller, IdentityResolver, entity_short_name, normalize_entity_ref
from .lifecycle import LifecycleManager, generate_request_name
from .ownership import OwnershipIndex, OwnershipResolver
from .permissions import (
    Action,
    Grant,
    GrantScope,
    PermissionRegistry,
    ResourceContext,
    ResourceType,
    permission_registry,
)
from .portal import AccessPortal, build_portal
from .products import APIProductService, validate_resource_name
from .roles import RoleClassifier, RoleHierarchy, default_hierarchy
from .visibility import VisibilityFilter

__all__ = [
    # Core services
    "AuthorizationEngine",
    "LifecycleManager",
    "VisibilityFilter",
    "APIProductService",
    "IdentityResolver",
    "RoleClassifier",
    "OwnershipResolver",
    "StoreGateway",
    "AccessPortal",
    "build_portal",

    # Models
    "Action",
    "Grant",
    "GrantScope",
    "ResourceType",
    "ResourceContext",
    "AuthorizationDecision",
    "Caller",
    "OwnershipIndex",
    "PermissionRegistry",
    "RoleHierarchy",

    # Helpers
    "permission_registry",
    "default_hierarchy",
    "entity_short_name",
    "normalize_entity_ref",
    "generate_request_name",
    "validate_resource_name",
]
