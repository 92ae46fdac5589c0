"""In-memory cache for registry metadata lookups.

Values are serialized JSON strings. An empty string records a lookup that
found nothing, and is kept longer than a positive result so that requests
for missing packages do not keep hitting the mirrors.
"""

import json
import time
from typing import Any, Callable, Optional

import structlog
from cachetools import TLRUCache

logger = structlog.stdlib.get_logger(__name__)

NOT_FOUND = ""


def _byte_length(value: str) -> int:
    return len(value.encode("utf-8"))


class MetadataCache:
    """Size-bounded LRU cache with separate TTLs for hits and misses.

    The total UTF-8 size of the stored values never exceeds ``max_bytes``;
    expired entries are dropped first, then the least recently used ones.
    """

    def __init__(
        self,
        max_bytes: int,
        positive_ttl: float,
        negative_ttl: float,
        timer: Callable[[], float] = time.monotonic,
    ):
        if max_bytes <= 0:
            raise ValueError("max_bytes must be positive")
        if positive_ttl <= 0 or negative_ttl <= 0:
            raise ValueError("cache TTLs must be positive")

        self.positive_ttl = positive_ttl
        self.negative_ttl = negative_ttl
        self._cache: TLRUCache = TLRUCache(
            maxsize=max_bytes,
            ttu=self._time_to_use,
            timer=timer,
            getsizeof=_byte_length,
        )

    def _time_to_use(self, key: str, value: str, now: float) -> float:
        if value == NOT_FOUND:
            return now + self.negative_ttl
        return now + self.positive_ttl

    @property
    def current_bytes(self) -> int:
        return self._cache.currsize

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, key: str) -> bool:
        return key in self._cache

    def get_raw(self, key: str) -> Optional[str]:
        """Stored string for ``key``, ``NOT_FOUND`` for a cached miss,
        ``None`` when nothing (live) is cached."""
        return self._cache.get(key)

    def set_raw(self, key: str, value: str) -> None:
        try:
            self._cache[key] = value
        except ValueError:
            # cachetools refuses values larger than the whole cache
            logger.debug(
                "Value too large to cache", key=key, size=_byte_length(value)
            )

    def lookup(self, key: str) -> tuple[bool, Any]:
        """Return ``(hit, value)``; a cached miss is ``(True, None)``."""
        raw = self.get_raw(key)
        if raw is None:
            return False, None
        if raw == NOT_FOUND:
            return True, None
        return True, json.loads(raw)

    def store(self, key: str, value: Any) -> None:
        """Cache ``value``, or a negative entry when ``value`` is None."""
        if value is None:
            self.set_raw(key, NOT_FOUND)
        else:
            self.set_raw(key, json.dumps(value))


def versions_key(package_name: str) -> str:
    return f"versions-{package_name}"


def config_key(package_name: str, version: str) -> str:
    return f"config-{package_name}-{version}"
