"""
API product schemas.
"""
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .common import PortalResource


class PublishStatus(str, Enum):
    """Catalog visibility of an API product."""
    DRAFT = "Draft"
    PUBLISHED = "Published"


class ApprovalMode(str, Enum):
    """How access requests against a product are reviewed."""
    AUTOMATIC = "automatic"
    MANUAL = "manual"


class Plan(BaseModel):
    """A named rate-limit bundle offered by a product."""
    tier: str = Field(..., min_length=1)
    description: Optional[str] = None
    limits: Dict[str, int] = Field(default_factory=dict)


class APIProduct(PortalResource):
    """Published, owned unit of API access."""
    display_name: str
    description: Optional[str] = None
    owner: str = Field(..., min_length=1)
    plans: List[Plan] = Field(default_factory=list)
    publish_status: PublishStatus = PublishStatus.DRAFT
    approval_mode: ApprovalMode = ApprovalMode.MANUAL
    tags: List[str] = Field(default_factory=list)

    @property
    def is_published(self) -> bool:
        return self.publish_status == PublishStatus.PUBLISHED

    @property
    def plan_tiers(self) -> List[str]:
        """Tiers in declaration order."""
        return [plan.tier for plan in self.plans]

    def offers_tier(self, tier: str) -> bool:
        return tier in self.plan_tiers


class APIProductCreate(BaseModel):
    """API product creation schema. The owner is always the caller."""
    namespace: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=253)
    display_name: str = Field(..., min_length=1)
    description: Optional[str] = None
    plans: List[Plan] = Field(default_factory=list)
    publish_status: PublishStatus = PublishStatus.DRAFT
    approval_mode: ApprovalMode = ApprovalMode.MANUAL
    tags: List[str] = Field(default_factory=list)


class APIProductUpdate(BaseModel):
    """Whitelisted API product fields. Ownership is not patchable."""
    display_name: Optional[str] = None
    description: Optional[str] = None
    plans: Optional[List[Plan]] = None
    publish_status: Optional[PublishStatus] = None
    approval_mode: Optional[ApprovalMode] = None
    tags: Optional[List[str]] = None


class OwnershipTransfer(BaseModel):
    """New owner for an API product."""
    owner: str = Field(..., min_length=1)
