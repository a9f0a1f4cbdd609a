"""
Plan policy schemas.
"""
from typing import List, Optional

from pydantic import BaseModel, Field

from .api_product import Plan
from .common import PortalResource


class TargetRef(BaseModel):
    """Route or gateway a plan policy attaches to."""
    kind: str
    name: str
    namespace: Optional[str] = None


class PlanPolicy(PortalResource):
    """Rate-limit tiers defined for a route."""
    target_ref: Optional[TargetRef] = None
    plans: List[Plan] = Field(default_factory=list)
