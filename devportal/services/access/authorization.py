"""
Authorization engine for the access portal.

Answers "may this identity, in this role, perform this action on this
resource" from the role's grants and the resource context. Decisions are
pure functions of their inputs: the engine never reads the store itself and
never raises.
"""

from typing import Any, Optional

import structlog
from pydantic import BaseModel

from devportal.domain.schemas import Identity, Role

from .permissions import (
    SCOPE_PRECEDENCE,
    Action,
    GrantScope,
    PermissionRegistry,
    ResourceContext,
    permission_registry,
)

logger = structlog.get_logger(__name__)


class AuthorizationDecision(BaseModel):
    """Result of an authorization check."""
    allowed: bool
    reason: str
    scope: Optional[GrantScope] = None

    @property
    def denied(self) -> bool:
        """Check if authorization was denied."""
        return not self.allowed


class AuthorizationEngine:
    """
    Evaluates role grants against a resource context.

    Deny by default: a missing identity, the unknown role, an unrecognized
    action, or an action paired with the wrong resource type all deny.
    """

    def __init__(self, registry: Optional[PermissionRegistry] = None):
        self.registry = registry or permission_registry

    def has_grant(self, role: Any, action: Any) -> bool:
        """Check whether the role holds the action under any scope."""
        if not isinstance(role, Role) or not isinstance(action, Action):
            return False
        return bool(self.registry.get_scopes(role, action))

    def can_perform(
        self,
        identity: Optional[Identity],
        role: Any,
        action: Any,
        resource: Optional[ResourceContext],
    ) -> bool:
        """Main authorization check."""
        return self.explain(identity, role, action, resource).allowed

    def explain(
        self,
        identity: Optional[Identity],
        role: Any,
        action: Any,
        resource: Optional[ResourceContext],
    ) -> AuthorizationDecision:
        """
        Evaluate a decision and report why.

        Args:
            identity: Caller, or None when unauthenticated
            role: Caller's classified role
            action: Action to perform
            resource: Context of the target resource

        Returns:
            AuthorizationDecision with the outcome and matching scope
        """
        try:
            decision = self._evaluate(identity, role, action, resource)
        except Exception as e:
            logger.error(
                "authorization_error",
                error=str(e),
                user_id=getattr(identity, "id", None),
                action=getattr(action, "value", action),
            )
            decision = AuthorizationDecision(allowed=False, reason="Authorization check failed")

        logger.debug(
            "authorization_decision",
            user_id=getattr(identity, "id", None),
            role=getattr(role, "value", role),
            action=getattr(action, "value", action),
            resource=str(getattr(resource, "ref", None) or "") or None,
            allowed=decision.allowed,
            reason=decision.reason,
        )

        return decision

    def _evaluate(
        self,
        identity: Optional[Identity],
        role: Any,
        action: Any,
        resource: Optional[ResourceContext],
    ) -> AuthorizationDecision:
        if identity is None:
            return AuthorizationDecision(allowed=False, reason="Not authenticated")

        if not isinstance(role, Role) or role == Role.UNKNOWN:
            return AuthorizationDecision(allowed=False, reason="Caller has no portal role")

        if not isinstance(action, Action):
            return AuthorizationDecision(allowed=False, reason="Unknown action")

        if not isinstance(resource, ResourceContext) or resource.resource_type != action.resource_type:
            return AuthorizationDecision(allowed=False, reason="Action does not apply to resource")

        scopes = self.registry.get_scopes(role, action)
        if not scopes:
            return AuthorizationDecision(
                allowed=False,
                reason=f"Role {role.value} does not hold {action.value}",
            )

        for scope in SCOPE_PRECEDENCE:
            if scope in scopes and self._scope_matches(scope, identity, resource):
                return AuthorizationDecision(
                    allowed=True,
                    reason=f"Role {role.value} holds {action.value} with scope {scope.value}",
                    scope=scope,
                )

        return AuthorizationDecision(
            allowed=False,
            reason=f"{action.value} is limited to {', '.join(sorted(s.value for s in scopes))}",
        )

    @staticmethod
    def _scope_matches(scope: GrantScope, identity: Identity, resource: ResourceContext) -> bool:
        if scope == GrantScope.ANY:
            return True
        if scope == GrantScope.OWNED_PRODUCT:
            return resource.product_owner is not None and resource.product_owner == identity.id
        if scope == GrantScope.SELF:
            return resource.requester_id is not None and resource.requester_id == identity.id
        return False

