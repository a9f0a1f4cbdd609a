"""
Wiring of the access services around one store, identity provider and
credential issuer.
"""
from dataclasses import dataclass
from typing import Optional

import structlog

from devportal.core.config import Settings
from devportal.domain.interfaces.collaborators import ICredentialIssuer, IIdentityProvider
from devportal.domain.interfaces.store import IResourceStore
from devportal.infrastructure.credentials import LoggingCredentialIssuer
from devportal.infrastructure.identity import HeaderIdentityProvider
from devportal.infrastructure.store import build_store

from .authorization import AuthorizationEngine
from .gateway import StoreGateway
from .identity import IdentityResolver
from .lifecycle import LifecycleManager
from .ownership import OwnershipResolver
from .products import APIProductService
from .roles import RoleClassifier
from .visibility import VisibilityFilter

logger = structlog.get_logger(__name__)


@dataclass
class AccessPortal:
    """Every access service, sharing one gateway and engine."""
    store: IResourceStore
    gateway: StoreGateway
    engine: AuthorizationEngine
    classifier: RoleClassifier
    identity: IdentityResolver
    ownership: OwnershipResolver
    lifecycle: LifecycleManager
    visibility: VisibilityFilter
    products: APIProductService


def build_portal(
    settings: Settings,
    store: Optional[IResourceStore] = None,
    identity_provider: Optional[IIdentityProvider] = None,
    credential_issuer: Optional[ICredentialIssuer] = None,
) -> AccessPortal:
    """Build the services; collaborators default to what ``settings`` selects."""
    store = store or build_store(settings)
    gateway = StoreGateway(store, default_timeout=settings.STORE_TIMEOUT_SECONDS)
    engine = AuthorizationEngine()
    classifier = RoleClassifier.from_settings(settings)
    ownership = OwnershipResolver(gateway)

    portal = AccessPortal(
        store=store,
        gateway=gateway,
        engine=engine,
        classifier=classifier,
        identity=IdentityResolver(
            identity_provider or HeaderIdentityProvider(settings),
            classifier,
            default_namespace=settings.IDENTITY_DEFAULT_NAMESPACE,
        ),
        ownership=ownership,
        lifecycle=LifecycleManager(
            gateway,
            engine,
            ownership,
            credential_issuer or LoggingCredentialIssuer(),
        ),
        visibility=VisibilityFilter(gateway, engine, ownership),
        products=APIProductService(gateway, engine, default_namespace=settings.IDENTITY_DEFAULT_NAMESPACE),
    )

    logger.info("access_portal_built", store=type(store).__name__)
    return portal
