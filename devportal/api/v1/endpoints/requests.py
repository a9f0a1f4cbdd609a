"""
Access request endpoints.

Submission, review (single and bulk), edits, withdrawal and the two
role-scoped listings: the caller's own requests and the approval queue.
"""
from typing import List, Optional

import structlog
from fastapi import APIRouter, Body, Depends, Query, Response, status

from devportal.core.dependencies import get_caller, get_portal
from devportal.domain.schemas import (
    AccessRequest,
    AccessRequestCreate,
    AccessRequestUpdate,
    BulkReviewItem,
    BulkReviewRequest,
    ListingScope,
    RequestListing,
    RequestStatus,
    ResourceRef,
    ReviewComment,
    ReviewDecision,
)
from devportal.services.access import AccessPortal, Caller

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=AccessRequest,
    status_code=status.HTTP_201_CREATED,
    summary="Request access to an API product",
)
async def submit_request(
    payload: AccessRequestCreate,
    caller: Caller = Depends(get_caller),
    portal: AccessPortal = Depends(get_portal),
) -> AccessRequest:
    """
    Create a Pending access request for the caller.

    The product must exist, be published and offer the requested plan tier.
    """
    return await portal.lifecycle.submit(
        caller.identity,
        caller.role,
        payload.product_ref,
        payload.plan_tier,
        use_case=payload.use_case,
        email=payload.user_email,
    )


@router.get("", response_model=RequestListing, summary="Approval queue")
async def list_approval_queue(
    status_filter: Optional[RequestStatus] = Query(None, alias="status"),
    namespace: Optional[str] = Query(None),
    caller: Caller = Depends(get_caller),
    portal: AccessPortal = Depends(get_portal),
) -> RequestListing:
    """
    Requests the caller may review.

    Pending by default; pass ``status`` to browse reviewed requests on the
    same products.
    """
    return await portal.visibility.safe_list_requests(
        caller.identity,
        caller.role,
        ListingScope.APPROVAL_QUEUE,
        status=status_filter,
        namespace=namespace,
    )


@router.get("/my", response_model=RequestListing, summary="My access requests")
async def list_my_requests(
    status_filter: Optional[RequestStatus] = Query(None, alias="status"),
    namespace: Optional[str] = Query(None),
    caller: Caller = Depends(get_caller),
    portal: AccessPortal = Depends(get_portal),
) -> RequestListing:
    """The caller's own requests in every status, newest first."""
    return await portal.visibility.safe_list_requests(
        caller.identity,
        caller.role,
        ListingScope.MINE,
        status=status_filter,
        namespace=namespace,
    )


@router.post("/bulk-approve", response_model=List[BulkReviewItem])
async def bulk_approve(
    payload: BulkReviewRequest,
    caller: Caller = Depends(get_caller),
    portal: AccessPortal = Depends(get_portal),
) -> List[BulkReviewItem]:
    """Approve several requests. Each item reports its own outcome."""
    return await portal.lifecycle.bulk_review(
        caller.identity, caller.role, payload.requests, ReviewDecision.APPROVED, payload.comment
    )


@router.post("/bulk-reject", response_model=List[BulkReviewItem])
async def bulk_reject(
    payload: BulkReviewRequest,
    caller: Caller = Depends(get_caller),
    portal: AccessPortal = Depends(get_portal),
) -> List[BulkReviewItem]:
    """Reject several requests. Each item reports its own outcome."""
    return await portal.lifecycle.bulk_review(
        caller.identity, caller.role, payload.requests, ReviewDecision.REJECTED, payload.comment
    )


@router.post("/{namespace}/{name}/approve", response_model=AccessRequest)
async def approve_request(
    namespace: str,
    name: str,
    payload: Optional[ReviewComment] = Body(None),
    caller: Caller = Depends(get_caller),
    portal: AccessPortal = Depends(get_portal),
) -> AccessRequest:
    """Approve a Pending request on a product the caller owns (or any, for admins)."""
    return await portal.lifecycle.review(
        caller.identity,
        caller.role,
        ResourceRef(namespace=namespace, name=name),
        ReviewDecision.APPROVED,
        comment=payload.comment if payload else None,
    )


@router.post("/{namespace}/{name}/reject", response_model=AccessRequest)
async def reject_request(
    namespace: str,
    name: str,
    payload: Optional[ReviewComment] = Body(None),
    caller: Caller = Depends(get_caller),
    portal: AccessPortal = Depends(get_portal),
) -> AccessRequest:
    """Reject a Pending request."""
    return await portal.lifecycle.review(
        caller.identity,
        caller.role,
        ResourceRef(namespace=namespace, name=name),
        ReviewDecision.REJECTED,
        comment=payload.comment if payload else None,
    )


@router.patch("/{namespace}/{name}", response_model=AccessRequest)
async def edit_request(
    namespace: str,
    name: str,
    payload: AccessRequestUpdate,
    caller: Caller = Depends(get_caller),
    portal: AccessPortal = Depends(get_portal),
) -> AccessRequest:
    """Change the plan tier or use case of a Pending request."""
    return await portal.lifecycle.edit(
        caller.identity,
        caller.role,
        ResourceRef(namespace=namespace, name=name),
        plan_tier=payload.plan_tier,
        use_case=payload.use_case,
    )


@router.delete("/{namespace}/{name}", status_code=status.HTTP_204_NO_CONTENT)
async def withdraw_request(
    namespace: str,
    name: str,
    caller: Caller = Depends(get_caller),
    portal: AccessPortal = Depends(get_portal),
) -> Response:
    """Withdraw a request. Deleting a request that is already gone succeeds."""
    await portal.lifecycle.withdraw(caller.identity, caller.role, ResourceRef(namespace=namespace, name=name))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
