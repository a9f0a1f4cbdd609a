"""
Access request schemas.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from .common import PortalResource, ResourceRef


class RequestStatus(str, Enum):
    """Access request lifecycle states. Approved and Rejected are terminal."""
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class ReviewDecision(str, Enum):
    """Outcome chosen by a reviewer."""
    APPROVED = "Approved"
    REJECTED = "Rejected"

    @property
    def status(self) -> RequestStatus:
        return RequestStatus(self.value)


class ListingScope(str, Enum):
    """Which listing a caller asks for."""
    MINE = "mine"
    APPROVAL_QUEUE = "approval-queue"


class Requester(BaseModel):
    """Who asked for access."""
    user_id: str = Field(..., min_length=1)
    email: Optional[str] = None


class AccessRequest(PortalResource):
    """A consumer's request for an API key on a product and plan tier."""
    api_product_ref: ResourceRef
    requested_by: Requester
    plan_tier: str = Field(..., min_length=1)
    use_case: Optional[str] = None
    status: RequestStatus = RequestStatus.PENDING
    requested_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    reviewed_by: Optional[str] = None
    review_comment: Optional[str] = None
    reviewed_at: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING


class AccessRequestCreate(BaseModel):
    """Submission payload. The requester is taken from the caller's identity."""
    api_product_name: str = Field(..., min_length=1)
    namespace: str = Field(..., min_length=1)
    plan_tier: str = Field(..., min_length=1)
    use_case: Optional[str] = None
    user_email: Optional[str] = None

    @property
    def product_ref(self) -> ResourceRef:
        return ResourceRef(namespace=self.namespace, name=self.api_product_name)


class AccessRequestUpdate(BaseModel):
    """Fields a requester may change while the request is pending."""
    plan_tier: Optional[str] = Field(default=None, min_length=1)
    use_case: Optional[str] = None


class ReviewComment(BaseModel):
    """Optional reviewer comment."""
    comment: Optional[str] = None


class BulkReviewRequest(BaseModel):
    """Several requests reviewed with one decision."""
    requests: List[ResourceRef] = Field(..., min_length=1)
    comment: Optional[str] = None


class BulkReviewItem(BaseModel):
    """Per-request outcome of a bulk review."""
    namespace: str
    name: str
    success: bool
    status: Optional[RequestStatus] = None
    error_code: Optional[str] = None
    error: Optional[str] = None


class RequestListing(BaseModel):
    """Listing result. ``degraded`` is set when the store could not be read."""
    items: List[AccessRequest] = Field(default_factory=list)
    degraded: bool = False
