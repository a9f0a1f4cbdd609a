"""
Role classification and hierarchy.

Roles are derived from group membership with a fixed precedence
(platform engineer, then API owner, then API consumer) because a user may be
in several of these groups at once. Capabilities are inherited down the chain
Admin -> Owner -> Consumer.
"""
from __future__ import annotations

from typing import Dict, Iterable, Optional, Set

import structlog

from devportal.core.config import Settings
from devportal.domain.schemas import Identity, Role, RoleCapabilities

logger = structlog.get_logger(__name__)


class RoleHierarchy:
    """Manages role inheritance. A child role holds every capability of its parents."""

    def __init__(self):
        self._hierarchy: Dict[Role, Set[Role]] = {}  # role -> parent roles
        self._reverse_hierarchy: Dict[Role, Set[Role]] = {}  # role -> child roles

    def add_inheritance(self, child_role: Role, parent_role: Role) -> None:
        """Add inheritance relationship."""
        if self.has_circular_dependency(child_role, parent_role):
            raise ValueError(f"{child_role.value} cannot inherit from {parent_role.value}: cycle")

        self._hierarchy.setdefault(child_role, set()).add(parent_role)
        self._reverse_hierarchy.setdefault(parent_role, set()).add(child_role)

        logger.debug("role_inheritance_added", child=child_role.value, parent=parent_role.value)

    def get_parent_roles(self, role: Role) -> Set[Role]:
        """Get direct parent roles."""
        return self._hierarchy.get(role, set()).copy()

    def get_child_roles(self, role: Role) -> Set[Role]:
        """Get direct child roles."""
        return self._reverse_hierarchy.get(role, set()).copy()

    def get_all_parent_roles(self, role: Role, visited: Optional[Set[Role]] = None) -> Set[Role]:
        """Get all parent roles (including inherited)."""
        if visited is None:
            visited = set()

        if role in visited:
            return set()

        visited.add(role)
        all_parents = self._hierarchy.get(role, set()).copy()

        for parent in list(all_parents):
            all_parents.update(self.get_all_parent_roles(parent, visited))

        return all_parents

    def has_circular_dependency(self, child_role: Role, parent_role: Role) -> bool:
        """Check if adding inheritance would create circular dependency."""
        if child_role == parent_role:
            return True
        return child_role in self.get_all_parent_roles(parent_role)


def default_hierarchy() -> RoleHierarchy:
    """Admin inherits Owner, Owner inherits Consumer."""
    hierarchy = RoleHierarchy()
    hierarchy.add_inheritance(Role.OWNER, Role.CONSUMER)
    hierarchy.add_inheritance(Role.ADMIN, Role.OWNER)
    return hierarchy


class RoleClassifier:
    """Derives a ``Role`` from group memberships. Pure and deterministic."""

    def __init__(
        self,
        admin_groups: Iterable[str],
        owner_groups: Iterable[str],
        consumer_groups: Iterable[str],
    ):
        self.admin_groups = frozenset(g.lower() for g in admin_groups)
        self.owner_groups = frozenset(g.lower() for g in owner_groups)
        self.consumer_groups = frozenset(g.lower() for g in consumer_groups)

    @classmethod
    def from_settings(cls, settings: Settings) -> RoleClassifier:
        return cls(
            admin_groups=settings.ADMIN_GROUPS,
            owner_groups=settings.OWNER_GROUPS,
            consumer_groups=settings.CONSUMER_GROUPS,
        )

    def classify_groups(self, groups: Iterable[str]) -> Role:
        """Classify a set of group references. Precedence order matters."""
        memberships = {g.lower() for g in groups}

        if memberships & self.admin_groups:
            return Role.ADMIN
        if memberships & self.owner_groups:
            return Role.OWNER
        if memberships & self.consumer_groups:
            return Role.CONSUMER
        return Role.UNKNOWN

    def classify(self, identity: Optional[Identity]) -> Role:
        """Classify an identity; anonymous callers are ``Unknown``."""
        if identity is None:
            return Role.UNKNOWN
        return self.classify_groups(identity.groups)

    def capabilities(self, role: Role) -> RoleCapabilities:
        """Flags for UI gating. Higher roles include the lower ones."""
        return RoleCapabilities(
            role=role,
            is_platform_engineer=role == Role.ADMIN,
            is_api_owner=role.at_least(Role.OWNER),
            is_api_consumer=role.at_least(Role.CONSUMER),
        )
