"""
Resource store implementations.
"""
from devportal.core.config import Settings
from devportal.domain.interfaces.store import IResourceStore

from .memory import InMemoryResourceStore
from .redis import RedisResourceStore, create_redis_client


def build_store(settings: Settings) -> IResourceStore:
    """Create the store selected by ``STORE_BACKEND``."""
    if settings.STORE_BACKEND == "redis":
        client = create_redis_client(settings.REDIS_URL, settings.REDIS_MAX_CONNECTIONS)
        return RedisResourceStore(client, prefix=settings.REDIS_KEY_PREFIX)
    return InMemoryResourceStore()


__all__ = [
    "InMemoryResourceStore",
    "RedisResourceStore",
    "build_store",
    "create_redis_client",
]
