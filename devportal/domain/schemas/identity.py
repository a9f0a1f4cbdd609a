"""
Identity and role schemas.
"""
from enum import Enum
from typing import FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    """Portal personas derived from group membership."""
    ADMIN = "platform-engineer"
    OWNER = "api-owner"
    CONSUMER = "api-consumer"
    UNKNOWN = "unknown"

    @property
    def rank(self) -> int:
        """Position in the total order Admin > Owner > Consumer > Unknown."""
        return _ROLE_RANKS[self]

    def at_least(self, other: "Role") -> bool:
        """Check if this role sits at or above ``other``."""
        return self.rank >= other.rank


_ROLE_RANKS = {
    Role.UNKNOWN: 0,
    Role.CONSUMER: 1,
    Role.OWNER: 2,
    Role.ADMIN: 3,
}


class Identity(BaseModel):
    """Authenticated caller. Immutable for the lifetime of a request."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    email: Optional[str] = None
    groups: FrozenSet[str] = Field(default_factory=frozenset)


class RoleCapabilities(BaseModel):
    """Flags the presentation layer uses for gating."""
    role: Role
    is_platform_engineer: bool = False
    is_api_owner: bool = False
    is_api_consumer: bool = False
