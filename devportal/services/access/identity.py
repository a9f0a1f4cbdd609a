"""
Identity resolution.

Turns whatever the identity provider reports into a normalized ``Identity``
(entity references for the user and every group) and classifies the caller's
role exactly once per request.
"""
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

import structlog

from devportal.domain.interfaces.collaborators import IIdentityProvider
from devportal.domain.schemas import Identity, Role

from .roles import RoleClassifier

logger = structlog.get_logger(__name__)

USER_KIND = "user"
GROUP_KIND = "group"


def normalize_entity_ref(value: str, default_kind: str, default_namespace: str = "default") -> str:
    """
    Normalize a user or group reference to ``kind:namespace/name``.

    ``alice`` -> ``user:default/alice``; ``group:api-owners`` ->
    ``group:default/api-owners``; full references are only lower-cased.
    """
    value = value.strip()
    kind, sep, rest = value.partition(":")
    if not sep:
        kind, rest = default_kind, value

    namespace, sep, name = rest.partition("/")
    if not sep:
        namespace, name = default_namespace, rest

    return f"{kind}:{namespace}/{name}".lower()


def entity_short_name(entity_ref: str) -> str:
    """``user:default/alice`` -> ``alice``."""
    return entity_ref.rsplit("/", 1)[-1]


@dataclass(frozen=True)
class Caller:
    """Identity and role resolved for one request."""
    identity: Optional[Identity]
    role: Role

    @property
    def is_authenticated(self) -> bool:
        return self.identity is not None


class IdentityResolver:
    """Resolves and normalizes the current caller."""

    def __init__(
        self,
        provider: IIdentityProvider,
        classifier: RoleClassifier,
        default_namespace: str = "default",
    ):
        self.provider = provider
        self.classifier = classifier
        self.default_namespace = default_namespace

    def normalize(self, identity: Identity) -> Identity:
        """Normalize the user id and group references of an identity."""
        return Identity(
            id=normalize_entity_ref(identity.id, USER_KIND, self.default_namespace),
            email=identity.email,
            groups=self.normalize_groups(identity.groups),
        )

    def normalize_groups(self, groups: Iterable[str]) -> frozenset:
        return frozenset(
            normalize_entity_ref(group, GROUP_KIND, self.default_namespace)
            for group in groups
            if group and group.strip()
        )

    async def resolve(self, headers: Mapping[str, str]) -> Optional[Identity]:
        """Resolve the caller's identity, or None when unauthenticated."""
        identity = await self.provider.resolve(headers)
        if identity is None:
            return None
        return self.normalize(identity)

    async def resolve_caller(self, headers: Mapping[str, str]) -> Caller:
        """Resolve identity and classify the role in one step."""
        identity = await self.resolve(headers)
        role = self.classifier.classify(identity)

        logger.debug(
            "caller_resolved",
            user_id=identity.id if identity else None,
            role=role.value,
        )
        return Caller(identity=identity, role=role)
