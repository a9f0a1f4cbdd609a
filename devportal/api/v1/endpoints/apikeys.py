"""
API key listing.

An API key is an access request viewed from the consumer's side; the listing
is the caller's own requests.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from devportal.core.dependencies import get_caller, get_portal
from devportal.domain.schemas import ListingScope, RequestListing, RequestStatus
from devportal.services.access import AccessPortal, Caller

router = APIRouter()


@router.get("", response_model=RequestListing)
async def list_api_keys(
    status_filter: Optional[RequestStatus] = Query(None, alias="status"),
    namespace: Optional[str] = Query(None),
    caller: Caller = Depends(get_caller),
    portal: AccessPortal = Depends(get_portal),
) -> RequestListing:
    return await portal.visibility.safe_list_requests(
        caller.identity,
        caller.role,
        ListingScope.MINE,
        status=status_filter,
        namespace=namespace,
    )
