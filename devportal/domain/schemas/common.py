"""
Shared resource schemas.
"""
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ResourceRef(BaseModel):
    """The (namespace, name) id of a stored resource."""
    model_config = ConfigDict(frozen=True)

    namespace: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


class PortalResource(BaseModel):
    """Base schema for every resource kept in the resource store."""
    namespace: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    resource_version: Optional[int] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def ref(self) -> ResourceRef:
        """Get the resource id."""
        return ResourceRef(namespace=self.namespace, name=self.name)
