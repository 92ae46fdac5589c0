"""npm package lookups against racing mirrors.

Package documents are cached (see metadata_cache); tarballs are streamed
straight from the winning mirror.
"""

import json
from typing import Any, Optional

import structlog

from npm_proxy.packages.registry_proxy import (
    RegistryClient,
    TarballStream,
    buffer_stream,
)
from npm_proxy.services.metadata_cache import MetadataCache, config_key, versions_key
from npm_proxy.utils.package_names import info_path, tarball_path

logger = structlog.stdlib.get_logger(__name__)

# Keys that sometimes appear in package info docs that consumers don't need.
PACKAGE_CONFIG_EXCLUDE_KEYS = frozenset(
    [
        "browserify",
        "bugs",
        "directories",
        "engines",
        "files",
        "homepage",
        "keywords",
        "maintainers",
        "scripts",
    ]
)


def clean_package_config(config: dict[str, Any]) -> dict[str, Any]:
    return {
        key: value
        for key, value in config.items()
        if not key.startswith("_") and key not in PACKAGE_CONFIG_EXCLUDE_KEYS
    }


class NpmService:
    """Resolves package versions, configs and tarballs from the mirrors."""

    def __init__(self, registry_client: RegistryClient, cache: MetadataCache):
        self.registry_client = registry_client
        self.cache = cache

    async def fetch_package_info(
        self, package_name: str, log: Any = None
    ) -> Optional[dict[str, Any]]:
        """Fetch the full package document from the first mirror that has it.

        Raises:
            json.JSONDecodeError: If the winning mirror sends malformed JSON
        """
        log = log or logger
        path = info_path(package_name)
        log.debug("Fetching package info", package_name=package_name, path=path)

        response = await self.registry_client.race_fetch(
            path, headers={"Accept": "application/json"}, log=log
        )
        if response is None:
            return None

        body = await buffer_stream(response)
        return json.loads(body)

    async def fetch_versions_and_tags(
        self, package_name: str, log: Any = None
    ) -> Optional[dict[str, Any]]:
        info = await self.fetch_package_info(package_name, log)
        if not info or not info.get("versions"):
            return None

        return {
            "versions": list(info["versions"].keys()),
            "tags": info.get("dist-tags") or {},
        }

    async def fetch_package_config(
        self, package_name: str, version: str, log: Any = None
    ) -> Optional[dict[str, Any]]:
        info = await self.fetch_package_info(package_name, log)
        if not info or not info.get("versions") or version not in info["versions"]:
            return None

        return clean_package_config(info["versions"][version])

    async def get_versions_and_tags(
        self, package_name: str, log: Any = None
    ) -> Optional[dict[str, Any]]:
        """Available ``{"versions": [...], "tags": {...}}`` of a package.

        Uses the cache to avoid over-fetching from the mirrors.
        """
        cache_key = versions_key(package_name)
        hit, cached = self.cache.lookup(cache_key)
        if hit:
            return cached

        value = await self.fetch_versions_and_tags(package_name, log)
        self.cache.store(cache_key, value)
        return value

    async def get_package_config(
        self, package_name: str, version: str, log: Any = None
    ) -> Optional[dict[str, Any]]:
        """Metadata of one version, mostly the same as its package.json.

        Uses the cache to avoid over-fetching from the mirrors.
        """
        cache_key = config_key(package_name, version)
        hit, cached = self.cache.lookup(cache_key)
        if hit:
            return cached

        value = await self.fetch_package_config(package_name, version, log)
        self.cache.store(cache_key, value)
        return value

    async def get_package(
        self, package_name: str, version: str, log: Any = None
    ) -> Optional[TarballStream]:
        """Decompressed tarball contents of a package version.

        The caller owns the returned stream and should close it (or read it
        to the end) to release the mirror connection.
        """
        log = log or logger
        path = tarball_path(package_name, version)
        log.debug(
            "Fetching package tarball",
            package_name=package_name,
            version=version,
            path=path,
        )

        response = await self.registry_client.race_fetch(path, log=log)
        if response is None:
            return None

        return TarballStream(response)
