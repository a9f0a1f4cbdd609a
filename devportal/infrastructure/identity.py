"""
Identity providers.
"""
from typing import Dict, Mapping, Optional

import structlog

from devportal.core.config import Settings
from devportal.domain.interfaces.collaborators import IIdentityProvider
from devportal.domain.schemas import Identity

logger = structlog.get_logger(__name__)


class HeaderIdentityProvider(IIdentityProvider):
    """
    Reads the caller from headers set by the trusted authenticating proxy.

    The user header carries a user name or entity reference, the groups header
    a comma-separated list. A request without the user header is anonymous.
    """

    def __init__(self, settings: Settings):
        self.user_header = settings.IDENTITY_USER_HEADER.lower()
        self.email_header = settings.IDENTITY_EMAIL_HEADER.lower()
        self.groups_header = settings.IDENTITY_GROUPS_HEADER.lower()

    async def resolve(self, headers: Mapping[str, str]) -> Optional[Identity]:
        normalized = {key.lower(): value for key, value in headers.items()}

        user = (normalized.get(self.user_header) or "").strip()
        if not user:
            return None

        email = (normalized.get(self.email_header) or "").strip() or None
        raw_groups = normalized.get(self.groups_header) or ""
        groups = frozenset(g.strip() for g in raw_groups.split(",") if g.strip())

        return Identity(id=user, email=email, groups=groups)


class StaticIdentityProvider(IIdentityProvider):
    """Maps bearer tokens to fixed identities. Used for local development and tests."""

    def __init__(self, identities: Optional[Dict[str, Identity]] = None):
        self._identities: Dict[str, Identity] = dict(identities or {})

    def register(self, token: str, identity: Identity) -> None:
        self._identities[token] = identity

    async def resolve(self, headers: Mapping[str, str]) -> Optional[Identity]:
        authorization = ""
        for key, value in headers.items():
            if key.lower() == "authorization":
                authorization = value
                break

        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token:
            return None

        identity = self._identities.get(token.strip())
        if identity is None:
            logger.info("unknown_static_token")
        return identity
