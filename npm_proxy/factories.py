from functools import lru_cache

from npm_proxy.packages.registry_proxy import (
    MirrorRegistryClient,
    RegistryClient,
    RegistryConfig,
)
from npm_proxy.services.metadata_cache import MetadataCache
from npm_proxy.services.npm_service import NpmService
from npm_proxy.settings import settings


@lru_cache
def registry_client_factory() -> RegistryClient:
    """Factory function for the process-wide mirror client.

    Returns:
        RegistryClient racing the configured mirrors over one keep-alive pool
    """
    config = RegistryConfig(
        mirror_urls=tuple(settings.NPM_MIRROR_URLS),
        connect_timeout=settings.NPM_CONNECT_TIMEOUT,
        read_timeout=settings.NPM_READ_TIMEOUT,
        user_agent=settings.NPM_USER_AGENT,
        max_keepalive_connections=settings.NPM_MAX_KEEPALIVE_CONNECTIONS,
    )
    return MirrorRegistryClient(config=config)


@lru_cache
def metadata_cache_factory() -> MetadataCache:
    return MetadataCache(
        max_bytes=settings.CACHE_MAX_BYTES,
        positive_ttl=settings.CACHE_POSITIVE_TTL_SECONDS,
        negative_ttl=settings.CACHE_NEGATIVE_TTL_SECONDS,
    )


@lru_cache
def npm_service_factory() -> NpmService:
    """Factory function for the shared npm service.

    Note:
        The service is cached as a singleton, so every caller in the process
        shares the same cache and connection pool.
    """
    return NpmService(
        registry_client=registry_client_factory(),
        cache=metadata_cache_factory(),
    )
