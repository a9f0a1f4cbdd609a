"""
Credential issuers.
"""
import structlog

from devportal.domain.interfaces.collaborators import ICredentialIssuer
from devportal.domain.schemas import AccessRequest

logger = structlog.get_logger(__name__)


class LoggingCredentialIssuer(ICredentialIssuer):
    """
    Records the hand-off to the external key controller.

    The controller watches approved requests and materializes the secret; this
    issuer only makes the trigger visible in the logs.
    """

    async def issue(self, request: AccessRequest) -> None:
        logger.info(
            "credential_issuance_requested",
            request=f"{request.namespace}/{request.name}",
            product=str(request.api_product_ref),
            plan_tier=request.plan_tier,
            requested_by=request.requested_by.user_id,
        )
