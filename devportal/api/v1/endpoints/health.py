"""
Health check endpoints.
"""
from typing import Any, Dict

from fastapi import APIRouter, Depends

from devportal.core.config import settings
from devportal.core.dependencies import get_portal
from devportal.core.exceptions import StoreError
from devportal.domain.interfaces.store import ResourceKind
from devportal.services.access import AccessPortal

router = APIRouter()

READINESS_TIMEOUT_SECONDS = 1.0


@router.get("/health")
async def health_check() -> Dict[str, Any]:
    """
    Basic health check endpoint.

    Returns:
        Health status
    """
    return {
        "status": "healthy",
        "service": "devportal-access",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
    }


@router.get("/health/ready")
async def readiness_check(portal: AccessPortal = Depends(get_portal)) -> Dict[str, Any]:
    """
    Readiness check including the resource store.

    Returns:
        Readiness status with component health
    """
    components = {
        "api": "healthy",
        "store": "unknown",
    }

    try:
        await portal.gateway.list(ResourceKind.PLAN_POLICY, timeout=READINESS_TIMEOUT_SECONDS)
        components["store"] = "healthy"
    except StoreError:
        components["store"] = "unhealthy"

    all_healthy = all(state == "healthy" for state in components.values())

    return {
        "status": "ready" if all_healthy else "not ready",
        "components": components,
    }
