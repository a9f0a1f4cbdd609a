"""
Plan policy endpoints.
"""
from typing import List

from fastapi import APIRouter, Depends

from devportal.core.dependencies import get_caller, get_portal
from devportal.domain.schemas import PlanPolicy, ResourceRef
from devportal.services.access import AccessPortal, Caller

router = APIRouter()


@router.get("", response_model=List[PlanPolicy])
async def list_plan_policies(
    caller: Caller = Depends(get_caller),
    portal: AccessPortal = Depends(get_portal),
) -> List[PlanPolicy]:
    """Rate-limit tiers; empty for callers who may not see them."""
    return await portal.visibility.list_plan_policies(caller.identity, caller.role)


@router.get("/{namespace}/{name}", response_model=PlanPolicy)
async def get_plan_policy(
    namespace: str,
    name: str,
    caller: Caller = Depends(get_caller),
    portal: AccessPortal = Depends(get_portal),
) -> PlanPolicy:
    return await portal.visibility.get_plan_policy(
        caller.identity, caller.role, ResourceRef(namespace=namespace, name=name)
    )
