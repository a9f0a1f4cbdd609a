"""
Domain schemas.
"""
from .access_request import (
    AccessRequest,
    AccessRequestCreate,
    AccessRequestUpdate,
    BulkReviewItem,
    BulkReviewRequest,
    ListingScope,
    Requester,
    RequestListing,
    RequestStatus,
    ReviewComment,
    ReviewDecision,
)
from .api_product import (
    APIProduct,
    APIProductCreate,
    APIProductUpdate,
    ApprovalMode,
    OwnershipTransfer,
    Plan,
    PublishStatus,
)
from .common import PortalResource, ResourceRef
from .identity import Identity, Role, RoleCapabilities
from .plan_policy import PlanPolicy, TargetRef

__all__ = [
    "AccessRequest",
    "AccessRequestCreate",
    "AccessRequestUpdate",
    "BulkReviewItem",
    "BulkReviewRequest",
    "ListingScope",
    "Requester",
    "RequestListing",
    "RequestStatus",
    "ReviewComment",
    "ReviewDecision",
    "APIProduct",
    "APIProductCreate",
    "APIProductUpdate",
    "ApprovalMode",
    "OwnershipTransfer",
    "Plan",
    "PublishStatus",
    "PortalResource",
    "ResourceRef",
    "Identity",
    "Role",
    "RoleCapabilities",
    "PlanPolicy",
    "TargetRef",
]
