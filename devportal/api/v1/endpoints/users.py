"""
Current user endpoints.
"""
from typing import Any, Dict

from fastapi import APIRouter, Depends

from devportal.core.dependencies import get_authenticated_caller, get_portal
from devportal.services.access import AccessPortal, Caller

router = APIRouter()


@router.get("/me")
async def get_me(
    caller: Caller = Depends(get_authenticated_caller),
    portal: AccessPortal = Depends(get_portal),
) -> Dict[str, Any]:
    """
    The caller's identity, role and capability flags.

    Returns:
        Identity and capabilities used for UI gating
    """
    capabilities = portal.classifier.capabilities(caller.role)
    return {
        "id": caller.identity.id,
        "email": caller.identity.email,
        "groups": sorted(caller.identity.groups),
        **capabilities.model_dump(mode="json"),
    }
