"""
API v1 router configuration.
"""
from fastapi import APIRouter

from devportal.api.v1.endpoints import (
    apikeys,
    health,
    plan_policies,
    products,
    requests,
    users,
)

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(health.router, tags=["health"])
api_router.include_router(users.router, tags=["users"])
api_router.include_router(requests.router, prefix="/requests", tags=["access-requests"])
api_router.include_router(apikeys.router, prefix="/apikeys", tags=["access-requests"])
api_router.include_router(products.router, prefix="/apiproducts", tags=["api-products"])
api_router.include_router(plan_policies.router, prefix="/planpolicies", tags=["plan-policies"])
