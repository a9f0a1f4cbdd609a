"""
API product endpoints.
"""
from typing import List

from fastapi import APIRouter, Depends, Response, status

from devportal.core.dependencies import get_caller, get_portal
from devportal.domain.schemas import (
    APIProduct,
    APIProductCreate,
    APIProductUpdate,
    OwnershipTransfer,
    ResourceRef,
)
from devportal.services.access import AccessPortal, Caller

router = APIRouter()


@router.get("", response_model=List[APIProduct])
async def list_products(
    caller: Caller = Depends(get_caller),
    portal: AccessPortal = Depends(get_portal),
) -> List[APIProduct]:
    """Published products, plus drafts the caller owns (all drafts for admins)."""
    return await portal.visibility.list_products(caller.identity, caller.role)


@router.post("", response_model=APIProduct, status_code=status.HTTP_201_CREATED)
async def create_product(
    payload: APIProductCreate,
    caller: Caller = Depends(get_caller),
    portal: AccessPortal = Depends(get_portal),
) -> APIProduct:
    """Create a product owned by the caller."""
    return await portal.products.create(caller.identity, caller.role, payload)


@router.get("/{namespace}/{name}", response_model=APIProduct)
async def get_product(
    namespace: str,
    name: str,
    caller: Caller = Depends(get_caller),
    portal: AccessPortal = Depends(get_portal),
) -> APIProduct:
    return await portal.products.get(caller.identity, caller.role, ResourceRef(namespace=namespace, name=name))


@router.patch("/{namespace}/{name}", response_model=APIProduct)
async def update_product(
    namespace: str,
    name: str,
    payload: APIProductUpdate,
    caller: Caller = Depends(get_caller),
    portal: AccessPortal = Depends(get_portal),
) -> APIProduct:
    """Update whitelisted fields. Ownership changes go through ``PUT .../owner``."""
    return await portal.products.update(
        caller.identity, caller.role, ResourceRef(namespace=namespace, name=name), payload
    )


@router.put("/{namespace}/{name}/owner", response_model=APIProduct)
async def transfer_product_ownership(
    namespace: str,
    name: str,
    payload: OwnershipTransfer,
    caller: Caller = Depends(get_caller),
    portal: AccessPortal = Depends(get_portal),
) -> APIProduct:
    return await portal.products.transfer_ownership(
        caller.identity, caller.role, ResourceRef(namespace=namespace, name=name), payload.owner
    )


@router.delete("/{namespace}/{name}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    namespace: str,
    name: str,
    caller: Caller = Depends(get_caller),
    portal: AccessPortal = Depends(get_portal),
) -> Response:
    """Delete a product and its access requests."""
    await portal.products.delete(caller.identity, caller.role, ResourceRef(namespace=namespace, name=name))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
