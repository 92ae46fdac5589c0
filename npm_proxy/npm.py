"""Process-wide npm lookups.

Thin wrappers around the shared NpmService built by npm_service_factory.
"""

from typing import Any, Optional

from npm_proxy.factories import (
    metadata_cache_factory,
    npm_service_factory,
    registry_client_factory,
)
from npm_proxy.packages.registry_proxy import TarballStream


async def get_versions_and_tags(
    package_name: str, log: Any = None
) -> Optional[dict[str, Any]]:
    return await npm_service_factory().get_versions_and_tags(package_name, log)


async def get_package_config(
    package_name: str, version: str, log: Any = None
) -> Optional[dict[str, Any]]:
    return await npm_service_factory().get_package_config(package_name, version, log)


async def get_package(
    package_name: str, version: str, log: Any = None
) -> Optional[TarballStream]:
    return await npm_service_factory().get_package(package_name, version, log)


async def shutdown() -> None:
    """Close the shared mirror connection pool and forget the singletons.

    Does not build a client when none was created. The metadata cache is
    dropped as well, so lookups after a shutdown start cold on a new pool.
    """
    if registry_client_factory.cache_info().currsize:
        await registry_client_factory().aclose()
    npm_service_factory.cache_clear()
    metadata_cache_factory.cache_clear()
    registry_client_factory.cache_clear()
