"""
Access request lifecycle.

Owns every state change of an access request: submission (Pending),
review (Pending -> Approved | Rejected), edits of pending requests, and
withdrawal. Reviews commit with a compare-and-swap on the version that was
read, so of two concurrent reviewers exactly one wins.
"""
import re
import secrets
from datetime import datetime, timezone
from typing import List, Optional

import structlog

from devportal.core.errors import ErrorCode, ErrorMessages
from devportal.core.exceptions import (
    AuthorizationError,
    ConflictError,
    CredentialIssuanceError,
    DevPortalException,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from devportal.domain.interfaces.collaborators import ICredentialIssuer
from devportal.domain.interfaces.store import ResourceKind
from devportal.domain.schemas import (
    AccessRequest,
    BulkReviewItem,
    Identity,
    Requester,
    RequestStatus,
    ResourceRef,
    ReviewDecision,
    Role,
)

from .authorization import AuthorizationEngine
from .gateway import StoreGateway
from .identity import entity_short_name
from .ownership import OwnershipResolver
from .permissions import Action, ResourceContext, ResourceType

logger = structlog.get_logger(__name__)

MAX_NAME_LENGTH = 253
_INVALID_NAME_CHARS = re.compile(r"[^a-z0-9-]+")

REVIEW_ACTIONS = {
    ReviewDecision.APPROVED: Action.ACCESSREQUEST_APPROVE,
    ReviewDecision.REJECTED: Action.ACCESSREQUEST_REJECT,
}


def generate_request_name(user_id: str, product_name: str) -> str:
    """
    Build a unique, DNS-1123 compatible request name.

    ``user:default/alice`` + ``payments`` -> ``alice-payments-1a2b3c4d``.
    """
    suffix = secrets.token_hex(4)
    prefix = f"{entity_short_name(user_id)}-{product_name}".lower()
    prefix = _INVALID_NAME_CHARS.sub("-", prefix).strip("-")
    prefix = prefix[: MAX_NAME_LENGTH - len(suffix) - 1].rstrip("-")
    return f"{prefix}-{suffix}" if prefix else suffix


class LifecycleManager:
    """Submits, reviews, edits and withdraws access requests."""

    def __init__(
        self,
        gateway: StoreGateway,
        engine: AuthorizationEngine,
        ownership: OwnershipResolver,
        credential_issuer: ICredentialIssuer,
    ):
        self.gateway = gateway
        self.engine = engine
        self.ownership = ownership
        self.credential_issuer = credential_issuer

    async def submit(
        self,
        identity: Optional[Identity],
        role: Role,
        product_ref: ResourceRef,
        plan_tier: str,
        use_case: Optional[str] = None,
        email: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> AccessRequest:
        """
        Create a Pending access request for the caller.

        Raises:
            AuthorizationError: the caller may not create requests
            ValidationError: unknown or unpublished product, or unknown tier
        """
        context = ResourceContext.collection(ResourceType.ACCESS_REQUEST)
        if not self.engine.can_perform(identity, role, Action.ACCESSREQUEST_CREATE, context):
            raise AuthorizationError(action=Action.ACCESSREQUEST_CREATE.value)

        product = await self.gateway.get_product(product_ref, timeout)
        if product is None:
            raise ValidationError(
                ErrorMessages.get(ErrorCode.VAL_UNKNOWN_PRODUCT, name=product_ref),
                field="api_product_name",
                code=ErrorCode.VAL_UNKNOWN_PRODUCT,
            )
        if not product.is_published:
            raise ValidationError(
                ErrorMessages.get(ErrorCode.VAL_PRODUCT_NOT_PUBLISHED, name=product_ref),
                field="api_product_name",
                code=ErrorCode.VAL_PRODUCT_NOT_PUBLISHED,
            )
        if not product.offers_tier(plan_tier):
            raise ValidationError(
                ErrorMessages.get(ErrorCode.VAL_UNKNOWN_PLAN_TIER, tier=plan_tier, name=product_ref),
                field="plan_tier",
                code=ErrorCode.VAL_UNKNOWN_PLAN_TIER,
            )

        request = AccessRequest(
            namespace=product.namespace,
            name=generate_request_name(identity.id, product.name),
            api_product_ref=product.ref,
            requested_by=Requester(user_id=identity.id, email=email or identity.email),
            plan_tier=plan_tier,
            use_case=use_case,
            status=RequestStatus.PENDING,
            requested_at=datetime.now(timezone.utc),
        )
        created = await self.gateway.create(ResourceKind.ACCESS_REQUEST, request, timeout)

        logger.info(
            "access_request_submitted",
            request=str(created.ref),
            product=str(product.ref),
            plan_tier=plan_tier,
            user_id=identity.id,
        )
        return created

    async def review(
        self,
        identity: Optional[Identity],
        role: Role,
        request_ref: ResourceRef,
        decision: ReviewDecision,
        comment: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> AccessRequest:
        """
        Approve or reject a Pending request.

        Checks run in a fixed order: existence, state, then authorization
        against the product's current owner. An approval is refused while
        another request for the same requester, product and tier is Approved.
        The write is a compare-and-swap on the version read; losing the race
        is reported as InvalidStateError.
        """
        decision = ReviewDecision(decision)
        action = REVIEW_ACTIONS[decision]

        request = await self._get_request(request_ref, timeout)
        self._ensure_pending(request)

        context = await self.ownership.context_for_request(request, timeout)
        if not self.engine.can_perform(identity, role, action, context):
            raise AuthorizationError(action=action.value)

        if decision == ReviewDecision.APPROVED:
            await self._ensure_no_approved_duplicate(request, timeout)

        reviewed = request.model_copy(update={
            "status": decision.status,
            "reviewed_by": identity.id,
            "review_comment": comment,
            "reviewed_at": datetime.now(timezone.utc),
        })
        committed = await self._compare_and_swap(request, reviewed, timeout)

        logger.info(
            "access_request_reviewed",
            request=str(request_ref),
            decision=decision.value,
            reviewed_by=identity.id,
            role=role.value,
        )

        if committed.status == RequestStatus.APPROVED:
            await self._issue_credentials(committed)

        return committed

    async def bulk_review(
        self,
        identity: Optional[Identity],
        role: Role,
        request_refs: List[ResourceRef],
        decision: ReviewDecision,
        comment: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> List[BulkReviewItem]:
        """Review several requests; each item succeeds or fails on its own."""
        results: List[BulkReviewItem] = []

        for ref in request_refs:
            try:
                reviewed = await self.review(identity, role, ref, decision, comment, timeout)
            except DevPortalException as e:
                logger.warning(
                    "bulk_review_item_failed",
                    request=str(ref),
                    error_code=e.code.value,
                    error=e.message,
                )
                results.append(BulkReviewItem(
                    namespace=ref.namespace,
                    name=ref.name,
                    success=False,
                    error_code=e.code.value,
                    error=e.message,
                ))
            else:
                results.append(BulkReviewItem(
                    namespace=ref.namespace,
                    name=ref.name,
                    success=True,
                    status=reviewed.status,
                ))

        logger.info(
            "bulk_review_completed",
            decision=ReviewDecision(decision).value,
            total=len(results),
            succeeded=sum(1 for item in results if item.success),
        )
        return results

    async def edit(
        self,
        identity: Optional[Identity],
        role: Role,
        request_ref: ResourceRef,
        plan_tier: Optional[str] = None,
        use_case: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> AccessRequest:
        """Change the tier or use case of a Pending request."""
        request = await self._get_request(request_ref, timeout)
        self._ensure_pending(request)

        context = ResourceContext.for_request(request)
        if not self.engine.can_perform(identity, role, Action.ACCESSREQUEST_UPDATE_OWN, context):
            raise AuthorizationError(action=Action.ACCESSREQUEST_UPDATE_OWN.value)

        changes = {}
        if plan_tier is not None and plan_tier != request.plan_tier:
            product = await self.gateway.get_product(request.api_product_ref, timeout)
            if product is None:
                raise ValidationError(
                    ErrorMessages.get(ErrorCode.VAL_UNKNOWN_PRODUCT, name=request.api_product_ref),
                    field="api_product_name",
                    code=ErrorCode.VAL_UNKNOWN_PRODUCT,
                )
            if not product.offers_tier(plan_tier):
                raise ValidationError(
                    ErrorMessages.get(ErrorCode.VAL_UNKNOWN_PLAN_TIER, tier=plan_tier, name=product.ref),
                    field="plan_tier",
                    code=ErrorCode.VAL_UNKNOWN_PLAN_TIER,
                )
            changes["plan_tier"] = plan_tier
        if use_case is not None:
            changes["use_case"] = use_case

        if not changes:
            return request

        committed = await self._compare_and_swap(request, request.model_copy(update=changes), timeout)
        logger.info(
            "access_request_edited",
            request=str(request_ref),
            fields=sorted(changes),
            user_id=identity.id,
        )
        return committed

    async def withdraw(
        self,
        identity: Optional[Identity],
        role: Role,
        request_ref: ResourceRef,
        timeout: Optional[float] = None,
    ) -> None:
        """
        Delete a request. Idempotent: an absent request is a no-op.

        Callers whose role cannot delete requests at all are refused before
        the store is read.
        """
        if identity is None or not self.engine.has_grant(role, Action.ACCESSREQUEST_DELETE):
            raise AuthorizationError(action=Action.ACCESSREQUEST_DELETE.value)

        request = await self.gateway.get_request(request_ref, timeout)
        if request is None:
            logger.info("access_request_withdraw_noop", request=str(request_ref), user_id=identity.id)
            return

        context = ResourceContext.for_request(request)
        if not self.engine.can_perform(identity, role, Action.ACCESSREQUEST_DELETE, context):
            raise AuthorizationError(action=Action.ACCESSREQUEST_DELETE.value)

        deleted = await self.gateway.delete(ResourceKind.ACCESS_REQUEST, request_ref, timeout)
        if not deleted:
            logger.info("access_request_withdraw_noop", request=str(request_ref), user_id=identity.id)
            return

        logger.info(
            "access_request_withdrawn",
            request=str(request_ref),
            status=request.status.value,
            user_id=identity.id,
        )

    async def _get_request(self, ref: ResourceRef, timeout: Optional[float]) -> AccessRequest:
        request = await self.gateway.get_request(ref, timeout)
        if request is None:
            raise NotFoundError("Access request", ref)
        return request

    @staticmethod
    def _ensure_pending(request: AccessRequest) -> None:
        if not request.is_pending:
            raise InvalidStateError(
                f"Access request {request.ref} is already {request.status.value}",
                current_state=request.status.value,
            )

    async def _ensure_no_approved_duplicate(self, request: AccessRequest, timeout: Optional[float]) -> None:
        """At most one Approved request per requester, product and tier."""
        filters = {
            "requested_by.user_id": request.requested_by.user_id,
            "api_product_ref.namespace": request.api_product_ref.namespace,
            "api_product_ref.name": request.api_product_ref.name,
            "plan_tier": request.plan_tier,
            "status": RequestStatus.APPROVED.value,
        }
        approved = await self.gateway.list(ResourceKind.ACCESS_REQUEST, filters, timeout)
        existing = [other for other in approved if other.ref != request.ref]
        if existing:
            logger.info(
                "access_request_duplicate_approval_refused",
                request=str(request.ref),
                approved=str(existing[0].ref),
            )
            raise InvalidStateError(
                f"{request.requested_by.user_id} already holds an approved key for "
                f"{request.api_product_ref} on tier {request.plan_tier} ({existing[0].ref})",
                current_state=request.status.value,
            )

    async def _compare_and_swap(
        self,
        current: AccessRequest,
        updated: AccessRequest,
        timeout: Optional[float],
    ) -> AccessRequest:
        try:
            return await self.gateway.update(
                ResourceKind.ACCESS_REQUEST,
                updated,
                expected_version=current.resource_version,
                timeout=timeout,
            )
        except ConflictError:
            logger.info("access_request_cas_lost", request=str(current.ref))
            raise InvalidStateError(
                f"Access request {current.ref} was modified concurrently",
                current_state=current.status.value,
            )

    async def _issue_credentials(self, request: AccessRequest) -> None:
        try:
            await self.credential_issuer.issue(request)
        except Exception as e:
            logger.error(
                "credential_issuance_failed",
                request=str(request.ref),
                error=str(e),
                error_type=type(e).__name__,
            )
            raise CredentialIssuanceError(str(request.ref)) from e
