"""
API product management.

Create, read, update, ownership transfer and delete for API products. The
owner is always the creating caller and only changes through an explicit
transfer; deleting a product removes its access requests first.
"""
import re
from typing import List, Optional

import structlog

from devportal.core.errors import ErrorCode, ErrorMessages
from devportal.core.exceptions import (
    AuthorizationError,
    DevPortalException,
    NotFoundError,
    StoreError,
    ValidationError,
)
from devportal.domain.interfaces.store import ResourceKind
from devportal.domain.schemas import (
    APIProduct,
    APIProductCreate,
    APIProductUpdate,
    Identity,
    Plan,
    ResourceRef,
    Role,
)

from .authorization import AuthorizationEngine
from .gateway import StoreGateway
from .identity import USER_KIND, normalize_entity_ref
from .permissions import Action, ResourceContext, ResourceType

logger = structlog.get_logger(__name__)

MAX_NAME_LENGTH = 253
DNS1123_SUBDOMAIN = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*$")


def validate_resource_name(value: str, field: str = "name") -> str:
    """Validate a DNS-1123 subdomain name (lowercase, at most 253 characters)."""
    if not value or len(value) > MAX_NAME_LENGTH or not DNS1123_SUBDOMAIN.match(value):
        raise ValidationError(
            f"Invalid {field} '{value}': {ErrorMessages.get(ErrorCode.VAL_INVALID_NAME)}",
            field=field,
            code=ErrorCode.VAL_INVALID_NAME,
        )
    return value


def validate_plans(plans: List[Plan]) -> List[Plan]:
    tiers = [plan.tier for plan in plans]
    duplicates = sorted({tier for tier in tiers if tiers.count(tier) > 1})
    if duplicates:
        raise ValidationError(f"Duplicate plan tiers: {', '.join(duplicates)}", field="plans")
    return plans


class APIProductService:
    """Owner-scoped management of API products."""

    def __init__(self, gateway: StoreGateway, engine: AuthorizationEngine, default_namespace: str = "default"):
        self.gateway = gateway
        self.engine = engine
        self.default_namespace = default_namespace

    async def create(
        self,
        identity: Optional[Identity],
        role: Role,
        draft: APIProductCreate,
        timeout: Optional[float] = None,
    ) -> APIProduct:
        """Create a product owned by the caller. A duplicate id raises ConflictError."""
        context = ResourceContext.collection(ResourceType.API_PRODUCT)
        if not self.engine.can_perform(identity, role, Action.APIPRODUCT_CREATE, context):
            raise AuthorizationError(action=Action.APIPRODUCT_CREATE.value)

        validate_resource_name(draft.namespace, field="namespace")
        validate_resource_name(draft.name)
        validate_plans(draft.plans)

        product = APIProduct(**draft.model_dump(), owner=identity.id)
        created = await self.gateway.create(ResourceKind.API_PRODUCT, product, timeout)

        logger.info(
            "api_product_created",
            product=str(created.ref),
            owner=identity.id,
            publish_status=created.publish_status.value,
        )
        return created

    async def get(
        self,
        identity: Optional[Identity],
        role: Role,
        ref: ResourceRef,
        timeout: Optional[float] = None,
    ) -> APIProduct:
        """Read a product. Drafts the caller cannot edit read as not found."""
        product = await self._get_product(ref, timeout)
        context = ResourceContext.for_product(product)

        if not product.is_published and not self.engine.can_perform(
            identity, role, Action.APIPRODUCT_UPDATE, context
        ):
            raise NotFoundError("API product", ref)

        if not self.engine.can_perform(identity, role, Action.APIPRODUCT_READ, context):
            raise AuthorizationError(action=Action.APIPRODUCT_READ.value)

        return product

    async def update(
        self,
        identity: Optional[Identity],
        role: Role,
        ref: ResourceRef,
        patch: APIProductUpdate,
        timeout: Optional[float] = None,
    ) -> APIProduct:
        """Apply whitelisted field changes with a compare-and-swap."""
        product = await self._get_product(ref, timeout)
        if not self.engine.can_perform(identity, role, Action.APIPRODUCT_UPDATE, ResourceContext.for_product(product)):
            raise AuthorizationError(action=Action.APIPRODUCT_UPDATE.value)

        changes = patch.model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            return product
        if patch.plans is not None:
            validate_plans(patch.plans)
            changes["plans"] = patch.plans

        updated = await self.gateway.update(
            ResourceKind.API_PRODUCT,
            product.model_copy(update=changes),
            expected_version=product.resource_version,
            timeout=timeout,
        )
        logger.info("api_product_updated", product=str(ref), fields=sorted(changes), user_id=identity.id)
        return updated

    async def transfer_ownership(
        self,
        identity: Optional[Identity],
        role: Role,
        ref: ResourceRef,
        new_owner: str,
        timeout: Optional[float] = None,
    ) -> APIProduct:
        """Hand a product to another owner. Its pending requests follow immediately."""
        product = await self._get_product(ref, timeout)
        if not self.engine.can_perform(
            identity, role, Action.APIPRODUCT_TRANSFER, ResourceContext.for_product(product)
        ):
            raise AuthorizationError(action=Action.APIPRODUCT_TRANSFER.value)

        owner = normalize_entity_ref(new_owner, USER_KIND, self.default_namespace)
        if owner == product.owner:
            return product

        updated = await self.gateway.update(
            ResourceKind.API_PRODUCT,
            product.model_copy(update={"owner": owner}),
            expected_version=product.resource_version,
            timeout=timeout,
        )
        logger.info(
            "api_product_ownership_transferred",
            product=str(ref),
            previous_owner=product.owner,
            owner=owner,
            user_id=identity.id,
        )
        return updated

    async def delete(
        self,
        identity: Optional[Identity],
        role: Role,
        ref: ResourceRef,
        timeout: Optional[float] = None,
    ) -> None:
        """Delete a product after removing its access requests (best effort)."""
        product = await self._get_product(ref, timeout)
        if not self.engine.can_perform(identity, role, Action.APIPRODUCT_DELETE, ResourceContext.for_product(product)):
            raise AuthorizationError(action=Action.APIPRODUCT_DELETE.value)

        removed = await self._delete_requests_for(ref, timeout)
        await self.gateway.delete(ResourceKind.API_PRODUCT, ref, timeout)

        logger.info("api_product_deleted", product=str(ref), requests_removed=removed, user_id=identity.id)

    async def _delete_requests_for(self, ref: ResourceRef, timeout: Optional[float]) -> int:
        filters = {"api_product_ref.namespace": ref.namespace, "api_product_ref.name": ref.name}
        try:
            requests = await self.gateway.list(ResourceKind.ACCESS_REQUEST, filters, timeout)
        except StoreError as e:
            logger.warning("api_product_cascade_list_failed", product=str(ref), error_code=e.code.value)
            return 0

        removed = 0
        for request in requests:
            try:
                if await self.gateway.delete(ResourceKind.ACCESS_REQUEST, request.ref, timeout):
                    removed += 1
            except DevPortalException as e:
                logger.warning(
                    "api_product_cascade_delete_failed",
                    product=str(ref),
                    request=str(request.ref),
                    error_code=e.code.value,
                )
        return removed

    async def _get_product(self, ref: ResourceRef, timeout: Optional[float]) -> APIProduct:
        product = await self.gateway.get_product(ref, timeout)
        if product is None:
            raise NotFoundError("API product", ref)
        return product
