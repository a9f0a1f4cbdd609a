"""
External collaborator interfaces consumed by the access core.
"""
from abc import ABC, abstractmethod
from typing import Mapping, Optional

from devportal.domain.schemas import AccessRequest, Identity


class IIdentityProvider(ABC):
    """Supplies the identity of the current caller."""

    @abstractmethod
    async def resolve(self, headers: Mapping[str, str]) -> Optional[Identity]:
        """Resolve the caller, or None when unauthenticated."""
        pass


class ICredentialIssuer(ABC):
    """Materializes the API key for an approved request."""

    @abstractmethod
    async def issue(self, request: AccessRequest) -> None:
        """Trigger credential issuance. Called after the approval is committed."""
        pass
