"""
Domain interfaces.
"""
from .collaborators import ICredentialIssuer, IIdentityProvider
from .store import IResourceStore, ResourceKind, matches_filters, resolve_attribute

__all__ = [
    "ICredentialIssuer",
    "IIdentityProvider",
    "IResourceStore",
    "ResourceKind",
    "matches_filters",
    "resolve_attribute",
]
